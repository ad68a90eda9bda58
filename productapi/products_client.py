"""HTTP transport and the client for the products operations."""

from __future__ import annotations

import base64
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Callable, Sequence
from urllib.parse import quote

from .operations import (
    ClientRequest,
    ClientResponse,
    DeleteProductCreated,
    DeleteProductParams,
    DeleteProductReader,
    ListProductsOK,
    ListProductsParams,
    ListProductsReader,
)

Authentication = Callable[[dict], None]

_MEDIA_TYPES = ("application/json",)


@dataclass
class ClientOperation:
    """Everything the transport needs to perform one API call."""

    id: str
    method: str
    path_pattern: str
    params: object
    reader: object
    produces_media_types: Sequence[str] = _MEDIA_TYPES
    consumes_media_types: Sequence[str] = _MEDIA_TYPES
    schemes: Sequence[str] = ("http",)
    authentication: Authentication | None = None
    client: object | None = None


ClientOption = Callable[[ClientOperation], None]


def basic_auth(user: str, password: str) -> Authentication:
    """An authentication writer adding a Basic Authorization header."""
    credentials = base64.b64encode(f"{user}:{password}".encode("utf-8")).decode("ascii")

    def write(headers: dict) -> None:
        headers["Authorization"] = f"Basic {credentials}"

    return write


def bearer_token(token: str) -> Authentication:
    """An authentication writer adding a Bearer Authorization header."""

    def write(headers: dict) -> None:
        headers["Authorization"] = f"Bearer {token}"

    return write


def _join_path(base_path: str, path: str) -> str:
    parts = [part.strip("/") for part in (base_path, path)]
    joined = "/".join(part for part in parts if part)
    result = "/" + joined
    if joined and path.endswith("/"):
        result += "/"
    return result


class Transport:
    """Sends operations over HTTP to ``host`` below ``base_path``."""

    def __init__(
        self,
        host: str,
        base_path: str = "/",
        schemes: Sequence[str] | None = None,
        authentication: Authentication | None = None,
    ):
        self.host = host
        self.base_path = base_path
        self.schemes = list(schemes or [])
        self.authentication = authentication
        self._opener = urllib.request.build_opener()

    def _pick_scheme(self, operation_schemes: Sequence[str]) -> str:
        for candidates in (self.schemes, list(operation_schemes)):
            if candidates:
                return "https" if "https" in candidates else candidates[0]
        return "http"

    def submit(self, operation: ClientOperation):
        """Perform ``operation`` and return what its reader makes of the response."""
        request = ClientRequest()
        operation.params.write_to_request(request)

        path = operation.path_pattern
        for name, value in request.path_params.items():
            path = path.replace("{" + name + "}", quote(value, safe=""))
        scheme = self._pick_scheme(operation.schemes)
        url = f"{scheme}://{self.host}{_join_path(self.base_path, path)}"

        headers: dict[str, str] = {}
        if operation.produces_media_types:
            headers["Accept"] = operation.produces_media_types[0]
        authenticate = operation.authentication or self.authentication
        if authenticate is not None:
            authenticate(headers)

        outgoing = urllib.request.Request(url, method=operation.method, headers=headers)
        opener = operation.client or self._opener
        try:
            with opener.open(outgoing, timeout=request.timeout) as answer:
                response = ClientResponse(
                    code=answer.status,
                    message=answer.reason or "",
                    headers=dict(answer.headers.items()),
                    body=answer.read(),
                )
        except urllib.error.HTTPError as exc:
            response = ClientResponse(
                code=exc.code,
                message=str(exc.reason),
                headers=dict(exc.headers.items()) if exc.headers else {},
                body=exc.read() or b"",
            )
        return operation.reader.read_response(response)


def _unexpected(operation_id: str, result: object) -> RuntimeError:
    return RuntimeError(
        f"unexpected success response for {operation_id}: API contract not enforced "
        f"by server. Client expected to get an error, but got: {type(result).__name__}"
    )


class ProductsClient:
    """Client for the products operations."""

    def __init__(self, transport: Transport):
        self.transport = transport

    def delete_product(
        self, params: DeleteProductParams | None = None, *args: ClientOption
    ) -> DeleteProductCreated:
        """Delete a product; raises APIError for any answer but 201."""
        if params is None:
            params = DeleteProductParams()
        operation = ClientOperation(
            id="deleteProduct",
            method="DELETE",
            path_pattern="/products/{id}",
            params=params,
            reader=DeleteProductReader(),
            client=params.http_client,
        )
        for option in args:
            option(operation)
        result = self.transport.submit(operation)
        if isinstance(result, DeleteProductCreated):
            return result
        raise _unexpected("deleteProduct", result)

    def list_products(
        self, params: ListProductsParams | None = None, *args: ClientOption
    ) -> ListProductsOK:
        """Fetch every product; raises APIError for any answer but 200."""
        if params is None:
            params = ListProductsParams()
        operation = ClientOperation(
            id="listProducts",
            method="GET",
            path_pattern="/products",
            params=params,
            reader=ListProductsReader(),
            client=params.http_client,
        )
        for option in args:
            option(operation)
        result = self.transport.submit(operation)
        if isinstance(result, ListProductsOK):
            return result
        raise _unexpected("listProducts", result)

    def set_transport(self, transport: Transport) -> None:
        """Use ``transport`` for later calls."""
        self.transport = transport


def new_client_with_basic_auth(
    host: str, base_path: str, scheme: str, user: str, password: str
) -> ProductsClient:
    """A products client sending Basic authentication with each call."""
    return ProductsClient(Transport(host, base_path, [scheme], basic_auth(user, password)))


def new_client_with_bearer_token(
    host: str, base_path: str, scheme: str, token: str
) -> ProductsClient:
    """A products client sending a Bearer token with each call."""
    return ProductsClient(Transport(host, base_path, [scheme], bearer_token(token)))