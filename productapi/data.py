"""Product and drink records, their validation, JSON encoding and in-memory stores."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import IO, Generic, Iterable, Iterator, TypeVar

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_SKU_PATTERN = re.compile(r"[a-z]+-[a-z]+-[a-z]+")


class ValidationError(ValueError):
    """Raised when a record fails its field rules."""

    def __init__(self, type_name: str, failures: Iterable[tuple[str, str]]):
        self.type_name = type_name
        self.failures = tuple(failures)
        super().__init__(
            "\n".join(
                f"Key: '{type_name}.{field_name}' Error:Field validation for "
                f"'{field_name}' failed on the '{tag}' tag"
                for field_name, tag in self.failures
            )
        )


class ProductNotFoundError(LookupError):
    """Raised when no product has the requested id."""

    def __init__(self, message: str = "Product not found"):
        super().__init__(message)


class DrinkNotFoundError(LookupError):
    """Raised when no drink has the requested id."""

    def __init__(self, message: str = "Drink not Found"):
        super().__init__(message)


def _reject_constant(name: str) -> float:
    raise ValueError(f"invalid JSON literal {name}")


_DECODER = json.JSONDecoder(parse_constant=_reject_constant)

# (JSON name, attribute name, value kind)
_JSON_FIELDS = (
    ("id", "id", int),
    ("name", "name", str),
    ("description", "description", str),
    ("price", "price", float),
    ("sku", "sku", str),
)


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


def _timestamp() -> str:
    now = datetime.now(timezone.utc)
    text = now.strftime("%Y-%m-%d %H:%M:%S")
    if now.microsecond:
        text += "." + f"{now.microsecond:06d}".rstrip("0")
    return text + " +0000 UTC"


@dataclass
class _Item:
    id: int = 0
    name: str = ""
    description: str = ""
    price: float = 0.0
    sku: str = ""
    created_on: str = ""
    updated_on: str = ""
    deleted_on: str = ""

    @classmethod
    def from_json(cls, stream: IO):
        """Decode the first JSON value read from ``stream`` into a new record."""
        raw = stream.read()
        if isinstance(raw, (bytes, bytearray)):
            raw = bytes(raw).decode("utf-8")
        text = raw.lstrip(" \t\r\n")
        if not text:
            raise ValueError("unexpected end of JSON input")
        payload, _ = _DECODER.raw_decode(text)
        item = cls()
        if payload is None:
            return item
        if not isinstance(payload, dict):
            raise ValueError(f"cannot decode JSON {_json_kind(payload)} into {cls.__name__}")
        for key, value in payload.items():
            spec = _match_field(key)
            if spec is None or value is None:
                continue
            json_name, attr, kind = spec
            setattr(item, attr, _coerce(value, kind, f"{cls.__name__}.{json_name}"))
        return item

    def to_dict(self) -> dict:
        """Return the fields that appear in the JSON form."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "sku": self.sku,
        }


@dataclass
class Product(_Item):
    """A product sold by the shop."""

    @classmethod
    def from_json(cls, stream: IO) -> Product:
        """Decode a product from a JSON stream."""
        return super().from_json(stream)

    def to_dict(self) -> dict:
        """Return the product's JSON fields."""
        return super().to_dict()

    def validate(self) -> None:
        """Check the field rules; raise ValidationError listing every failure."""
        failures: list[tuple[str, str]] = []
        if not self.name:
            failures.append(("Name", "required"))
        if not self.price > 0:
            failures.append(("Price", "gt"))
        if not self.sku:
            failures.append(("SKU", "required"))
        elif not validate_sku(self.sku):
            failures.append(("SKU", "sku"))
        if failures:
            raise ValidationError(type(self).__name__, failures)


@dataclass
class Drink(_Item):
    """A drink on the menu."""

    @classmethod
    def from_json(cls, stream: IO) -> Drink:
        """Decode a drink from a JSON stream."""
        return super().from_json(stream)

    def to_dict(self) -> dict:
        """Return the drink's JSON fields."""
        return super().to_dict()


def validate_sku(value: str) -> bool:
    """True when ``value`` holds exactly one run of the form abc-def-ghi."""
    return len(_SKU_PATTERN.findall(value)) == 1


def _json_ready(record: dict) -> dict:
    price = record.get("price")
    if isinstance(price, float) and price.is_integer() and abs(price) < 1e21:
        record = {**record, "price": int(price)}
    return record


def to_json(items: Iterable[_Item], stream: IO) -> None:
    """Write ``items`` to ``stream`` as one JSON array followed by a newline."""
    text = json.dumps(
        [_json_ready(item.to_dict()) for item in items],
        separators=(",", ":"),
        ensure_ascii=False,
    )
    text = (
        text.replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )
    stream.write(text + "\n")


def default_products() -> list[Product]:
    """The products the shop starts with."""
    return [
        Product(
            id=1,
            name="Latte",
            description="Frothy Milky Coffee",
            price=2.45,
            sku="abc234",
            created_on=_timestamp(),
            updated_on=_timestamp(),
        ),
        Product(
            id=2,
            name="Espresso",
            description="Short and strong coffess without milk",
            price=1.99,
            sku="fjh234",
            created_on=_timestamp(),
            updated_on=_timestamp(),
        ),
        Product(
            id=3,
            name="Cappuccino",
            description="beloved espresso-based hot coffee drink ",
            price=2.99,
            sku="jsh234",
            created_on=_timestamp(),
            updated_on=_timestamp(),
        ),
    ]


def default_drinks() -> list[Drink]:
    """The drinks the shop starts with."""
    return [
        Drink(
            id=1,
            name="Cola",
            description=(
                "Carbonated soft drink flavored with vanilla, cinnamon, "
                "citrus oils, and other flavorings"
            ),
            price=2.45,
            sku="abc234",
            created_on=_timestamp(),
            updated_on=_timestamp(),
        ),
        Drink(
            id=2,
            name="Mountain-Dew",
            description="citrus-flavored soft drink",
            price=1.99,
            sku="fjh234",
            created_on=_timestamp(),
            updated_on=_timestamp(),
        ),
    ]


T = TypeVar("T", bound=_Item)


class _Store(Generic[T]):
    _not_found: type[LookupError] = LookupError

    def __init__(self, items: Iterable[T]):
        self._items: list[T] = list(items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))

    def all(self) -> list[T]:
        """All stored records, in insertion order."""
        return list(self._items)

    def _position(self, item_id: int) -> int:
        for position, item in enumerate(self._items):
            if item.id == item_id:
                return position
        raise self._not_found()

    def find(self, item_id: int) -> T:
        """The record with ``item_id``."""
        return self._items[self._position(item_id)]

    def add(self, item: T) -> T:
        """Give ``item`` the next id after the last record and store it."""
        if not self._items:
            raise IndexError("cannot assign an id: the store is empty")
        item.id = self._items[-1].id + 1
        self._items.append(item)
        return item

    def update(self, item_id: int, item: T) -> T:
        """Replace the record with ``item_id`` by ``item``."""
        position = self._position(item_id)
        item.id = item_id
        self._items[position] = item
        return item


class ProductStore(_Store[Product]):
    """In-memory list of products."""

    _not_found = ProductNotFoundError

    def __init__(self, products: Iterable[Product] | None = None):
        super().__init__(default_products() if products is None else products)

    def all(self) -> list[Product]:
        return super().all()

    def add(self, product: Product) -> Product:
        return super().add(product)

    def update(self, product_id: int, product: Product) -> Product:
        return super().update(product_id, product)

    def find(self, product_id: int) -> Product:
        return super().find(product_id)

    def delete(self, product_id: int) -> Product:
        """Remove the product with ``product_id`` and return it."""
        position = self._position(product_id)
        removed = self._items.pop(position)
        return removed


class DrinkStore(_Store[Drink]):
    """In-memory list of drinks."""

    _not_found = DrinkNotFoundError

    def __init__(self, drinks: Iterable[Drink] | None = None):
        super().__init__(default_drinks() if drinks is None else drinks)

    def all(self) -> list[Drink]:
        return super().all()

    def add(self, drink: Drink) -> Drink:
        return super().add(drink)

    def update(self, drink_id: int, drink: Drink) -> Drink:
        return super().update(drink_id, drink)

    def find(self, drink_id: int) -> Drink:
        return super().find(drink_id)