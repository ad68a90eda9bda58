# productapi

A small HTTP service that keeps a catalogue of coffee products in memory
and serves it as JSON, together with a client for product API calls.
It uses only the standard library.

## Installing

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Running the server

```
productapi
```

Options:

- `--addr HOST:PORT` – address to listen on (default `:9090`, all interfaces).
- `--spec-dir DIR` – directory from which `swagger.yaml` is served (default `.`).

The server is a threaded WSGI server from the standard library. It logs
to standard output and, on SIGINT or SIGTERM, stops accepting requests and
shuts down. Every response carries `Access-Control-Allow-Origin: *`;
`OPTIONS` preflight requests are answered for the methods `GET`, `HEAD`
and `POST`.

| Method | Path            | What it does                                          |
|--------|-----------------|-------------------------------------------------------|
| GET    | `/products`     | List all products as a JSON array                     |
| POST   | `/`             | Add the product in the JSON body; it gets the next id |
| PUT    | `/{id}`         | Replace the product with that numeric id              |
| DELETE | `/{id}`         | Remove the product with that numeric id               |
| GET    | `/docs`         | HTML documentation page pointing at `/swagger.yaml`   |
| GET    | `/swagger.yaml` | The file `swagger.yaml` from `--spec-dir`, if present |

Successful POST, PUT and DELETE answer `200 OK` with an empty body.
A path that matches no route gets `404`; a known path with the wrong
method gets `405`.

Bodies sent with POST and PUT are decoded and validated first:

- `name` is required,
- `price` must be greater than zero,
- `sku` is required and must contain exactly one run of the form
  `abc-def-ghi` (lower-case letters joined by two dashes).

A body that is not valid JSON gets `400 Error Reading Product`; one that
fails validation gets `400 Error validating Product:` followed by the
failed rules. Updating or deleting an unknown id gets `404 Product not found`.

```
curl localhost:9090/products
curl -X POST localhost:9090/ -d '{"name": "Mocha", "price": 3.1, "sku": "abc-def-ghi"}'
curl -X PUT localhost:9090/1 -d '{"name": "Flat White", "price": 2.8, "sku": "abc-def-ghi"}'
curl -X DELETE localhost:9090/2
```

`productapi.server.create_app(handlers, spec_dir)` returns the same
application as a WSGI callable, so it can be run by any WSGI server.
`Router` in the same module is the small method-and-pattern router it is
built on.

## Using the data layer directly

```python
from productapi.data import Product, ProductStore, ValidationError

store = ProductStore()       # starts with Latte, Espresso and Cappuccino
product = Product(name="Mocha", price=3.1, sku="abc-def-ghi")
product.validate()           # raises ValidationError when a rule is broken
store.add(product)           # gets the id after the last product's
store.update(1, Product(name="Flat White", price=2.8, sku="abc-def-ghi"))
store.delete(2)              # raises ProductNotFoundError for an unknown id
```

`to_json(items, stream)` writes records as one JSON array and a newline;
`Product.from_json(stream)` reads one back. `DrinkStore` and `Drink` do the
same for drinks, and `productapi.handlers.DrinkHandlers` is a handler for
them, but `create_app` does not route it.

## Using the client

```python
from productapi.api_client import default_transport_config, new_http_client

config = default_transport_config().with_host("localhost:9090")
api = new_http_client(config)
result = api.products.list_products()
for product in result.payload:
    print(product.to_dict())
```

Each call accepts its parameters object (`ListProductsParams`,
`DeleteProductParams` from `productapi.operations`, with a `timeout` in
seconds, 30 by default) and any number of functions that adjust the
`ClientOperation` before it is sent. A response with a status code the
operation does not expect is raised as `APIError`. Clients that send
credentials can be made with `new_client_with_basic_auth` or
`new_client_with_bearer_token` from `productapi.products_client`.

`productapi.models.Product` is the client-side model: `validate()` raises
`CompositeValidationError` when `id` is missing or below 1, and
`marshal_binary()` / `unmarshal_binary()` convert it to and from JSON.

## What it does not do

- Products are kept in memory only; they are lost when the server stops.
- The `/docs` page loads a script named `redoc.standalone.js` that the
  server does not serve, so the page renders only if that script is
  made available some other way.
- `delete_product` in the client calls `DELETE /products/{id}` and expects
  `201`, while the server deletes at `DELETE /{id}` and answers `200`; used
  against this server it raises `APIError`.