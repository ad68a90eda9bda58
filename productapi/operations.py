"""Parameters, responses and response readers of the product API operations."""

from __future__ import annotations

import json
from dataclasses import dataclass, field

from .models import Product

DEFAULT_TIMEOUT = 30.0


@dataclass
class ClientRequest:
    """The parts of an outgoing request that operation parameters fill in."""

    timeout: float | None = None
    path_params: dict[str, str] = field(default_factory=dict)

    def set_timeout(self, timeout: float) -> None:
        """Set the request timeout in seconds."""
        self.timeout = timeout

    def set_path_param(self, name: str, value: str) -> None:
        """Set the value substituted for ``{name}`` in the path."""
        self.path_params[name] = value


@dataclass
class ClientResponse:
    """A response received from the server."""

    code: int
    message: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""


class APIError(Exception):
    """Raised when the server answers with a status the operation does not expect."""

    def __init__(self, operation_name: str, response: ClientResponse, code: int):
        self.operation_name = operation_name
        self.response = response
        self.code = code
        super().__init__(f"{operation_name} (status {code}): {response!r}")


@dataclass
class DeleteProductParams:
    """Parameters of the deleteProduct operation."""

    id: int = 0
    timeout: float = DEFAULT_TIMEOUT
    http_client: object | None = None

    def write_to_request(self, request: ClientRequest) -> None:
        """Write the timeout and the ``id`` path parameter into ``request``."""
        request.set_timeout(self.timeout)
        request.set_path_param("id", str(int(self.id)))


@dataclass
class ListProductsParams:
    """Parameters of the listProducts operation."""

    timeout: float = DEFAULT_TIMEOUT
    http_client: object | None = None

    def write_to_request(self, request: ClientRequest) -> None:
        """Write the timeout into ``request``."""
        request.set_timeout(self.timeout)


class _Result:
    code: int = 0

    def is_success(self) -> bool:
        """True for a 2xx status code."""
        return 200 <= self.code < 300

    def is_redirect(self) -> bool:
        """True for a 3xx status code."""
        return 300 <= self.code < 400

    def is_client_error(self) -> bool:
        """True for a 4xx status code."""
        return 400 <= self.code < 500

    def is_server_error(self) -> bool:
        """True for a 5xx status code."""
        return 500 <= self.code < 600

    def is_code(self, code: int) -> bool:
        """True when ``code`` is this response's status code."""
        return code == self.code


@dataclass
class DeleteProductCreated(_Result):
    """The 201 answer to deleteProduct."""

    code = 201

    def is_success(self) -> bool:
        return super().is_success()

    def is_redirect(self) -> bool:
        return super().is_redirect()

    def is_client_error(self) -> bool:
        return super().is_client_error()

    def is_server_error(self) -> bool:
        return super().is_server_error()

    def is_code(self, code: int) -> bool:
        return super().is_code(code)

    def __str__(self) -> str:
        return f"[DELETE /products/{{id}}][{self.code}] deleteProductCreated"


@dataclass
class ListProductsOK(_Result):
    """The 200 answer to listProducts, carrying the products."""

    payload: list[Product | None] = field(default_factory=list)
    code = 200

    def is_success(self) -> bool:
        return super().is_success()

    def is_redirect(self) -> bool:
        return super().is_redirect()

    def is_client_error(self) -> bool:
        return super().is_client_error()

    def is_server_error(self) -> bool:
        return super().is_server_error()

    def is_code(self, code: int) -> bool:
        return super().is_code(code)

    def __str__(self) -> str:
        items = ",".join(
            "null" if product is None else product.marshal_binary().decode("utf-8")
            for product in self.payload
        )
        return f"[GET /products][{self.code}] listProductsOK [{items}]"


class DeleteProductReader:
    """Turns a server response into the deleteProduct result."""

    def read_response(self, response: ClientResponse) -> DeleteProductCreated:
        """Return the 201 result or raise APIError for any other status."""
        if response.code == 201:
            return DeleteProductCreated()
        raise APIError("[DELETE /products/{id}] deleteProduct", response, response.code)


class ListProductsReader:
    """Turns a server response into the listProducts result."""

    def read_response(self, response: ClientResponse) -> ListProductsOK:
        """Return the 200 result with its decoded payload, or raise APIError."""
        if response.code != 200:
            raise APIError("[GET /products] listProducts", response, response.code)
        result = ListProductsOK()
        body = response.body
        if isinstance(body, (bytes, bytearray)):
            body = bytes(body).decode("utf-8")
        if not body.strip():
            return result
        decoded = json.loads(body)
        if decoded is None:
            return result
        if not isinstance(decoded, list):
            raise ValueError("cannot decode JSON value into a list of products")
        result.payload = [
            None if item is None else Product.from_dict(item) for item in decoded
        ]
        return result