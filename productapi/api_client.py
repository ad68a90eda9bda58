"""The product API client and its transport configuration."""

from __future__ import annotations

from dataclasses import dataclass, field

from .products_client import ProductsClient, Transport

DEFAULT_HOST = "localhost"
DEFAULT_BASE_PATH = "/"
DEFAULT_SCHEMES = ("http",)


@dataclass
class TransportConfig:
    """Where the API lives: host, base path and URL schemes."""

    host: str = DEFAULT_HOST
    base_path: str = DEFAULT_BASE_PATH
    schemes: list[str] = field(default_factory=lambda: list(DEFAULT_SCHEMES))

    def with_host(self, host: str) -> TransportConfig:
        """Override the host and return this config."""
        self.host = host
        return self

    def with_base_path(self, base_path: str) -> TransportConfig:
        """Override the base path and return this config."""
        self.base_path = base_path
        return self

    def with_schemes(self, schemes) -> TransportConfig:
        """Override the schemes and return this config."""
        self.schemes = list(schemes)
        return self


class ProductAPI:
    """Client for the product API."""

    def __init__(self, transport: Transport):
        self.transport = transport
        self.products = ProductsClient(transport)

    def set_transport(self, transport: Transport) -> None:
        """Change the transport on the client and all its subresources."""
        self.transport = transport
        self.products.set_transport(transport)


def default_transport_config() -> TransportConfig:
    """A config with the default host, base path and schemes."""
    return TransportConfig()


def new_http_client(config: TransportConfig | None = None) -> ProductAPI:
    """A product API client talking HTTP as ``config`` describes."""
    if config is None:
        config = default_transport_config()
    return ProductAPI(Transport(config.host, config.base_path, list(config.schemes)))