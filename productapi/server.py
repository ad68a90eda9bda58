"""Routing, CORS and the HTTP server for the product API."""

from __future__ import annotations

import argparse
import logging
import re
import signal
import sys
import threading
from dataclasses import dataclass, replace
from http import HTTPStatus
from pathlib import Path
from socketserver import ThreadingMixIn
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from .data import ProductStore
from .handlers import Handler, HTTPError, ProductHandlers, Request, Response

_VARIABLE = re.compile(r"\{([^{}:]+)(?::([^{}]+))?\}")
_DEFAULT_CORS_METHODS = ("GET", "HEAD", "POST")
_DEFAULT_CORS_HEADERS = ("Accept", "Accept-Language", "Content-Language", "Origin")
_REDOC_SCRIPT = "redoc.standalone.js"
_REDOC_TITLE = "API documentation"


@dataclass(frozen=True)
class _Route:
    method: str
    regex: re.Pattern
    names: tuple[tuple[str, str], ...]
    handler: Handler
    middlewares: tuple


def _compile(pattern: str) -> tuple[re.Pattern, tuple[tuple[str, str], ...]]:
    parts: list[str] = []
    names: list[tuple[str, str]] = []
    position = 0
    for number, match in enumerate(_VARIABLE.finditer(pattern)):
        parts.append(re.escape(pattern[position : match.start()]))
        group = f"v{number}"
        parts.append(f"(?P<{group}>{match.group(2) or '[^/]+'})")
        names.append((group, match.group(1)))
        position = match.end()
    parts.append(re.escape(pattern[position:]))
    return re.compile("".join(parts)), tuple(names)


def _not_found() -> Response:
    return HTTPError(HTTPStatus.NOT_FOUND, "404 page not found").to_response()


class Router:
    """Matches requests by method and path pattern such as ``/{id:[0-9]+}``."""

    def __init__(self):
        self._routes: list[_Route] = []

    def route(self, method: str, pattern: str, handler: Handler, *args) -> None:
        """Register ``handler``; extra arguments are middlewares, outermost first."""
        regex, names = _compile(pattern)
        self._routes.append(_Route(method.upper(), regex, names, handler, args))

    def dispatch(self, request: Request) -> Response:
        """Run the first matching route and turn raised HTTP errors into responses."""
        method_mismatch = False
        for route in self._routes:
            match = route.regex.fullmatch(request.path)
            if match is None:
                continue
            if route.method != request.method.upper():
                method_mismatch = True
                continue
            params = {name: match.group(group) for group, name in route.names}
            handler = route.handler
            for middleware in reversed(route.middlewares):
                handler = middleware(handler)
            try:
                return handler(replace(request, path_params=params))
            except HTTPError as exc:
                return exc.to_response()
        if method_mismatch:
            return Response(status=HTTPStatus.METHOD_NOT_ALLOWED)
        return _not_found()


def redoc_page(spec_url: str) -> str:
    """The HTML page that renders the API specification at ``spec_url``."""
    return (
        "<!DOCTYPE html>\n"
        "<html>\n"
        "  <head>\n"
        f"    <title>{_REDOC_TITLE}</title>\n"
        '    <meta name="viewport" content="width=device-width, initial-scale=1">\n'
        "    <style>\n"
        "      body { margin: 0; padding: 0; }\n"
        "    </style>\n"
        "  </head>\n"
        "  <body>\n"
        f"    <redoc spec-url='{spec_url}'></redoc>\n"
        f'    <script src="{_REDOC_SCRIPT}"> </script>\n'
        "  </body>\n"
        "</html>\n"
    )


def _docs_handler(spec_url: str) -> Handler:
    page = redoc_page(spec_url).encode("utf-8")

    def docs(request: Request) -> Response:
        return Response(headers={"Content-Type": "text/html; charset=utf-8"}, body=page)

    return docs


def _file_handler(path: Path) -> Handler:
    def serve(request: Request) -> Response:
        try:
            content = path.read_bytes()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            return _not_found()
        except PermissionError:
            return HTTPError(HTTPStatus.FORBIDDEN, "403 Forbidden").to_response()
        except OSError:
            return HTTPError(
                HTTPStatus.INTERNAL_SERVER_ERROR, "500 Internal Server Error"
            ).to_response()
        return Response(headers={"Content-Type": "text/plain; charset=utf-8"}, body=content)

    return serve


def _header(request: Request, name: str) -> str | None:
    folded = name.casefold()
    for key, value in request.headers.items():
        if key.casefold() == folded:
            return value
    return None


def _canonical(key: str) -> str:
    return "-".join(part.capitalize() for part in key.split("-"))


class _Application:
    """Applies CORS rules in front of a router; also a WSGI application."""

    def __init__(self, router: Router, allowed_origins: tuple[str, ...] = ("*",)):
        self.router = router
        self.allowed_origins = allowed_origins

    def _origin_allowed(self, origin: str) -> bool:
        if not self.allowed_origins:
            return True
        return any(allowed in (origin, "*") for allowed in self.allowed_origins)

    def dispatch(self, request: Request) -> Response:
        origin = _header(request, "Origin") or ""
        preflight = request.method.upper() == "OPTIONS"
        if not self._origin_allowed(origin):
            return Response() if preflight else self.router.dispatch(request)

        cors_headers: dict[str, str] = {}
        if preflight:
            method = _header(request, "Access-Control-Request-Method")
            if method is None:
                return Response(status=HTTPStatus.BAD_REQUEST)
            if method not in _DEFAULT_CORS_METHODS:
                return Response(status=HTTPStatus.METHOD_NOT_ALLOWED)
            requested = (_header(request, "Access-Control-Request-Headers") or "").split(",")
            allowed_headers = []
            for raw in requested:
                name = _canonical(raw.strip())
                if not name or name in _DEFAULT_CORS_HEADERS:
                    continue
                return Response(status=HTTPStatus.FORBIDDEN)
            if allowed_headers:
                cors_headers["Access-Control-Allow-Headers"] = ",".join(allowed_headers)

        if len(self.allowed_origins) > 1:
            cors_headers["Vary"] = "Origin"
        if not self.allowed_origins or "*" in self.allowed_origins:
            cors_headers["Access-Control-Allow-Origin"] = "*"
        else:
            cors_headers["Access-Control-Allow-Origin"] = origin

        if preflight:
            return Response(headers=cors_headers)
        response = self.router.dispatch(request)
        return replace(response, headers={**cors_headers, **response.headers})

    def __call__(self, environ, start_response):
        try:
            length = int(environ.get("CONTENT_LENGTH") or 0)
        except ValueError:
            length = 0
        body = environ["wsgi.input"].read(length) if length > 0 else b""
        headers = {
            _canonical(key[5:].replace("_", "-")): value
            for key, value in environ.items()
            if key.startswith("HTTP_")
        }
        if environ.get("CONTENT_TYPE"):
            headers["Content-Type"] = environ["CONTENT_TYPE"]
        request = Request(
            method=environ.get("REQUEST_METHOD", "GET").upper(),
            path=environ.get("PATH_INFO") or "/",
            body=body,
            headers=headers,
        )
        response = self.dispatch(request)
        out = dict(response.headers)
        if response.body and not any(key.casefold() == "content-type" for key in out):
            out["Content-Type"] = "text/plain; charset=utf-8"
        out["Content-Length"] = str(len(response.body))
        status = HTTPStatus(response.status)
        start_response(f"{status.value} {status.phrase}", list(out.items()))
        return [response.body]


def create_app(handlers: ProductHandlers | None = None, spec_dir: str | Path = "."):
    """Build the routed, CORS-enabled application for the product API."""
    if handlers is None:
        handlers = ProductHandlers(ProductStore())
    router = Router()
    router.route("GET", "/products", handlers.get_products)
    router.route(
        "PUT", "/{id:[0-9]+}", handlers.update_products, handlers.middleware_product_validation
    )
    router.route("POST", "/", handlers.add_product, handlers.middleware_product_validation)
    router.route("DELETE", "/{id:[0-9]+}", handlers.delete_product)
    router.route("GET", "/docs", _docs_handler("/swagger.yaml"))
    router.route("GET", "/swagger.yaml", _file_handler(Path(spec_dir) / "swagger.yaml"))
    return _Application(router)


class _Server(ThreadingMixIn, WSGIServer):
    daemon_threads = True


class _RequestHandler(WSGIRequestHandler):
    timeout = 1

    def log_message(self, format, *args):
        logging.getLogger("productapi").debug(format, *args)


def _make_logger() -> logging.Logger:
    logger = logging.getLogger("productapi")
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter("/%(asctime)s %(message)s", datefmt="%Y/%m/%d %H:%M:%S")
        )
        logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger


def main(argv=None) -> int:
    """Serve the product API until interrupted, then shut down gracefully."""
    parser = argparse.ArgumentParser(prog="productapi", description="Serve the product API.")
    parser.add_argument("--addr", default=":9090", help="address to listen on, host:port")
    parser.add_argument("--spec-dir", default=".", help="directory holding swagger.yaml")
    args = parser.parse_args(argv)

    host, _, port = args.addr.rpartition(":")
    try:
        port_number = int(port)
    except ValueError:
        parser.error(f"invalid address: {args.addr}")

    logger = _make_logger()
    app = create_app(ProductHandlers(ProductStore(), logger), args.spec_dir)
    try:
        server = make_server(
            host, port_number, app, server_class=_Server, handler_class=_RequestHandler
        )
    except OSError as exc:
        logger.critical("%s", exc)
        return 1

    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    stop = threading.Event()
    received: list[int] = []

    def on_signal(signum, frame):
        received.append(signum)
        stop.set()

    watched = (signal.SIGINT, signal.SIGTERM)
    previous = {sig: signal.signal(sig, on_signal) for sig in watched}
    try:
        while not stop.wait(0.5):
            pass
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    logger.info("Received terminate, graceful shutdown %s", signal.Signals(received[0]).name)
    server.shutdown()
    server.server_close()
    thread.join(30)
    return 0


if __name__ == "__main__":
    sys.exit(main())