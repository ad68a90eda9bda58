"""The product model as seen by API clients."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Iterable

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

# (JSON name, attribute name, value kind)
_JSON_FIELDS = (
    ("description", "description", str),
    ("id", "id", int),
    ("name", "name", str),
    ("price", "price", float),
    ("sku", "sku", str),
)


class CompositeValidationError(ValueError):
    """Raised when a model fails one or more of its schema rules."""

    def __init__(self, errors: Iterable[Exception]):
        self.errors = tuple(errors)
        super().__init__(
            "validation failure list:\n" + "\n".join(str(error) for error in self.errors)
        )


def _reject_constant(name: str) -> float:
    raise ValueError(f"invalid JSON literal {name}")


def _json_kind(value: object) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return "null"


def _coerce(value: object, kind: type, where: str) -> object:
    if kind is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"cannot decode JSON {_json_kind(value)} into integer field {where}")
        if not _INT64_MIN <= value <= _INT64_MAX:
            raise ValueError(f"JSON number {value} overflows integer field {where}")
        return value
    if kind is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"cannot decode JSON {_json_kind(value)} into number field {where}")
        return float(value)
    if not isinstance(value, str):
        raise ValueError(f"cannot decode JSON {_json_kind(value)} into string field {where}")
    return value


def _match_field(key: str):
    for spec in _JSON_FIELDS:
        if spec[0] == key:
            return spec
    folded = key.casefold()
    for spec in _JSON_FIELDS:
        if spec[0].casefold() == folded:
            return spec
    return None


def _dumps(value: object) -> str:
    text = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return (
        text.replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )


@dataclass
class Product:
    """A product; ``id`` is required and must be at least 1."""

    id: int | None = None
    name: str = ""
    description: str = ""
    price: float = 0.0
    sku: str = ""

    def validate(self) -> None:
        """Check the schema rules; raise CompositeValidationError on failure."""
        errors: list[Exception] = []
        if self.id is None:
            errors.append(ValueError("id in body is required"))
        elif self.id < 1:
            errors.append(ValueError("id in body should be greater than or equal to 1"))
        if errors:
            raise CompositeValidationError(errors)

    def to_dict(self) -> dict:
        """The JSON form: empty optional fields are left out, ``id`` is always present."""
        result: dict[str, object] = {}
        if self.description:
            result["description"] = self.description
        result["id"] = self.id
        if self.name:
            result["name"] = self.name
        if self.price:
            price = self.price
            if isinstance(price, float) and price.is_integer() and abs(price) < 1e21:
                price = int(price)
            result["price"] = price
        if self.sku:
            result["sku"] = self.sku
        return result

    @classmethod
    def from_dict(cls, data: object) -> Product:
        """Build a product from decoded JSON; keys match case-insensitively."""
        product = cls()
        if data is None:
            return product
        if not isinstance(data, dict):
            raise ValueError(f"cannot decode JSON {_json_kind(data)} into {cls.__name__}")
        for key, value in data.items():
            spec = _match_field(key)
            if spec is None:
                continue
            json_name, attr, kind = spec
            if value is None:
                if attr == "id":
                    product.id = None
                continue
            setattr(product, attr, _coerce(value, kind, f"{cls.__name__}.{json_name}"))
        return product

    def marshal_binary(self) -> bytes:
        """Encode the product as compact JSON bytes."""
        return _dumps(self.to_dict()).encode("utf-8")

    @classmethod
    def unmarshal_binary(cls, data: bytes | str) -> Product:
        """Decode a product from JSON bytes."""
        if isinstance(data, (bytes, bytearray)):
            data = bytes(data).decode("utf-8")
        payload = json.loads(data, parse_constant=_reject_constant)
        return cls.from_dict(payload)