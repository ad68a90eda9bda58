"""HTTP handlers for the product and drink endpoints."""

from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass, field, replace
from http import HTTPStatus
from typing import Callable

from .data import (
    Drink,
    DrinkNotFoundError,
    DrinkStore,
    Product,
    ProductNotFoundError,
    ProductStore,
    to_json,
)

KEY_PRODUCT = "product"
KEY_DRINK = "drink"

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_DECIMAL = re.compile(r"[+-]?[0-9]+")
_DRINK_ID = re.compile(r"/([0-9]+)")


@dataclass
class Request:
    """An incoming HTTP request."""

    method: str
    path: str
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)
    path_params: dict[str, str] = field(default_factory=dict)
    context: dict[str, object] = field(default_factory=dict)


@dataclass
class Response:
    """An outgoing HTTP response."""

    status: int = HTTPStatus.OK
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""


class HTTPError(Exception):
    """An error answered with a status code and an optional plain-text message."""

    def __init__(self, status: int, message: str | None = None):
        self.status = int(status)
        self.message = message
        super().__init__(message or HTTPStatus(self.status).phrase)

    def to_response(self) -> Response:
        """The response that reports this error to the client."""
        if self.message is None:
            return Response(status=self.status)
        return Response(
            status=self.status,
            headers={
                "Content-Type": "text/plain; charset=utf-8",
                "X-Content-Type-Options": "nosniff",
            },
            body=(self.message + "\n").encode("utf-8"),
        )


Handler = Callable[[Request], Response]


def _atoi(text: str) -> int:
    if not _DECIMAL.fullmatch(text):
        raise ValueError(f"invalid syntax: {text!r}")
    value = int(text)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError(f"value out of range: {text!r}")
    return value


def _encode(items) -> bytes:
    buffer = io.StringIO()
    to_json(items, buffer)
    return buffer.getvalue().encode("utf-8")


class ProductHandlers:
    """Handlers for listing, adding, updating and deleting products."""

    def __init__(self, store: ProductStore, logger: logging.Logger | None = None):
        self.store = store
        self.log = logger or logging.getLogger("productapi.handlers")

    def get_products(self, request: Request) -> Response:
        """Return every product as a JSON array."""
        self.log.info("Handle GET Products")
        try:
            body = _encode(self.store.all())
        except (TypeError, ValueError) as exc:
            raise HTTPError(HTTPStatus.INTERNAL_SERVER_ERROR, "Unable to marshal json") from exc
        return Response(headers={"Content-Type": "application/json"}, body=body)

    def add_product(self, request: Request) -> Response:
        """Store the validated product carried in the request context."""
        self.log.info("Handle POST product")
        product = request.context[KEY_PRODUCT]
        self.store.add(replace(product))
        return Response()

    def update_products(self, request: Request) -> Response:
        """Replace the product named by the ``id`` path parameter."""
        try:
            product_id = _atoi(request.path_params.get("id", ""))
        except ValueError as exc:
            raise HTTPError(HTTPStatus.BAD_REQUEST, "Not convertable id") from exc
        self.log.info("Handle PUT product %d", product_id)
        product = request.context[KEY_PRODUCT]
        try:
            self.store.update(product_id, replace(product))
        except ProductNotFoundError as exc:
            raise HTTPError(HTTPStatus.NOT_FOUND, "Product not found") from exc
        except Exception as exc:
            raise HTTPError(HTTPStatus.INTERNAL_SERVER_ERROR, "Product not found") from exc
        return Response()

    def delete_product(self, request: Request) -> Response:
        """Remove the product named by the ``id`` path parameter."""
        try:
            product_id = _atoi(request.path_params.get("id", ""))
        except ValueError:
            product_id = 0
        self.log.info("Handle Delete Product %d", product_id)
        try:
            self.store.delete(product_id)
        except ProductNotFoundError as exc:
            raise HTTPError(HTTPStatus.NOT_FOUND, "Product not found") from exc
        except Exception as exc:
            raise HTTPError(HTTPStatus.INTERNAL_SERVER_ERROR, "Product not found") from exc
        return Response()

    def middleware_product_validation(self, handler: Handler) -> Handler:
        """Wrap ``handler`` so it only sees requests carrying a valid product."""

        def validated(request: Request) -> Response:
            try:
                product = Product.from_json(io.BytesIO(request.body))
            except ValueError as exc:
                self.log.error("[ERROR] deserializing product %s", exc)
                raise HTTPError(HTTPStatus.BAD_REQUEST, "Error Reading Product") from exc
            try:
                product.validate()
            except ValueError as exc:
                self.log.error("[ERROR] validating product %s", exc)
                raise HTTPError(
                    HTTPStatus.BAD_REQUEST, f"Error validating Product:{exc}"
                ) from exc
            context = {**request.context, KEY_PRODUCT: product}
            return handler(replace(request, context=context))

        return validated


class DrinkHandlers:
    """A single handler answering every method on the drinks resource."""

    def __init__(
        self,
        store: DrinkStore,
        product_store: ProductStore,
        logger: logging.Logger | None = None,
    ):
        self.store = store
        self.product_store = product_store
        self.log = logger or logging.getLogger("productapi.handlers")

    def __call__(self, request: Request) -> Response:
        if request.method == "GET":
            return self._get_drinks()
        if request.method == "POST":
            return self._add_drink(request)
        if request.method == "PUT":
            self.log.info("Put")
            groups = _DRINK_ID.findall(request.path)
            if len(groups) != 1:
                raise HTTPError(HTTPStatus.BAD_REQUEST, "Invalid URI for len 1")
            try:
                drink_id = _atoi(groups[0])
            except ValueError as exc:
                raise HTTPError(HTTPStatus.BAD_REQUEST, "Invalid URI for err") from exc
            return self._update_drink(drink_id, request)
        raise HTTPError(HTTPStatus.METHOD_NOT_ALLOWED)

    def _get_drinks(self) -> Response:
        try:
            body = _encode(self.store.all())
        except (TypeError, ValueError) as exc:
            raise HTTPError(HTTPStatus.INTERNAL_SERVER_ERROR, "Unable to encode data") from exc
        return Response(body=body)

    def _add_drink(self, request: Request) -> Response:
        self.log.info("Handle Post Drinks")
        drink: Drink = replace(request.context[KEY_DRINK])
        self.store.add(drink)
        self.log.info("drink: %r", drink)
        return Response()

    def _update_drink(self, drink_id: int, request: Request) -> Response:
        # The update is applied to the product list with the product from the context.
        self.log.info("Handle PUT Drinks")
        product = request.context[KEY_PRODUCT]
        try:
            self.product_store.update(drink_id, replace(product))
        except DrinkNotFoundError as exc:
            raise HTTPError(HTTPStatus.NOT_FOUND, "Drink not found") from exc
        except Exception as exc:
            raise HTTPError(HTTPStatus.INTERNAL_SERVER_ERROR, "Drink not found") from exc
        return Response()

    def middleware_drink_validation(self, handler: Handler) -> Handler:
        """Wrap ``handler`` so it receives the decoded drink in its context."""

        def decoded(request: Request) -> Response:
            try:
                drink = Drink.from_json(io.BytesIO(request.body))
            except ValueError as exc:
                self.log.error("[ERROR] deserializing drinks %s", exc)
                raise HTTPError(HTTPStatus.BAD_REQUEST, "Error Reading Product") from exc
            context = {**request.context, KEY_DRINK: drink}
            return handler(replace(request, context=context))

        return decoded