import logging
import threading
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

import pytest

from productapi.api_client import (
    ProductAPI,
    TransportConfig,
    default_transport_config,
    new_http_client,
)
from productapi.data import ProductStore
from productapi.handlers import ProductHandlers
from productapi.operations import APIError, DeleteProductParams, ListProductsParams
from productapi.products_client import Transport
from productapi.server import create_app


class _QuietHandler(WSGIRequestHandler):
    def log_message(self, format, *args):
        pass


@pytest.fixture
def api_host(tmp_path):
    handlers = ProductHandlers(ProductStore(), logging.getLogger("test-api-client"))
    app = create_app(handlers, tmp_path)
    httpd = make_server(
        "127.0.0.1", 0, app, server_class=WSGIServer, handler_class=_QuietHandler
    )
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    yield f"127.0.0.1:{httpd.server_address[1]}"
    httpd.shutdown()
    httpd.server_close()


def test_our_client(api_host):
    cfg = default_transport_config().with_host(api_host)
    c = new_http_client(cfg)
    params = ListProductsParams()
    prod = c.products.list_products(params)
    assert prod.code == 200
    assert [p.name for p in prod.payload] == ["Latte", "Espresso", "Cappuccino"]
    assert [p.id for p in prod.payload] == [1, 2, 3]
    assert prod.payload[0].sku == "abc234"


def test_delete_on_unrouted_path_is_api_error(api_host):
    c = new_http_client(default_transport_config().with_host(api_host))
    with pytest.raises(APIError) as info:
        c.products.delete_product(DeleteProductParams(id=1))
    assert info.value.code == 404


def test_default_transport_config():
    cfg = default_transport_config()
    assert cfg.host == "localhost"
    assert cfg.base_path == "/"
    assert cfg.schemes == ["http"]


def test_with_methods_return_same_config():
    cfg = TransportConfig()
    assert cfg.with_host("example.com:8080") is cfg
    assert cfg.with_base_path("/v1") is cfg
    assert cfg.with_schemes(["https"]) is cfg
    assert (cfg.host, cfg.base_path, cfg.schemes) == ("example.com:8080", "/v1", ["https"])


def test_new_http_client_uses_defaults():
    api = new_http_client()
    assert api.transport.host == "localhost"
    assert api.transport.base_path == "/"
    assert api.transport.schemes == ["http"]
    assert api.products.transport is api.transport


def test_set_transport_reaches_products_client():
    api = ProductAPI(Transport("localhost"))
    replacement = Transport("example.com", "/v2", ["https"])
    api.set_transport(replacement)
    assert api.transport is replacement
    assert api.products.transport is replacement