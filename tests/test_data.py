import io
import json
import re

import pytest

from productapi.data import (
    Drink,
    DrinkNotFoundError,
    DrinkStore,
    Product,
    ProductNotFoundError,
    ProductStore,
    ValidationError,
    default_drinks,
    default_products,
    to_json,
    validate_sku,
)

TIMESTAMP = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}(\.\d+)? \+0000 UTC$")


def test_check_validation():
    product = Product(name="Elliot", price=1.032, sku="abf-fds-ads")
    assert product.validate() is None


def test_validation_missing_name():
    with pytest.raises(ValidationError) as info:
        Product(price=1.0, sku="abc-def-ghi").validate()
    assert info.value.failures == (("Name", "required"),)
    assert str(info.value) == (
        "Key: 'Product.Name' Error:Field validation for 'Name' failed on the 'required' tag"
    )


def test_validation_collects_every_failure():
    with pytest.raises(ValidationError) as info:
        Product().validate()
    assert info.value.failures == (("Name", "required"), ("Price", "gt"), ("SKU", "required"))
    assert len(str(info.value).splitlines()) == 3


@pytest.mark.parametrize("price", [0.0, -1.5])
def test_validation_price_must_be_positive(price):
    with pytest.raises(ValidationError) as info:
        Product(name="x", price=price, sku="abc-def-ghi").validate()
    assert info.value.failures == (("Price", "gt"),)


def test_validation_bad_sku():
    with pytest.raises(ValidationError) as info:
        Product(name="x", price=1.0, sku="abc234").validate()
    assert info.value.failures == (("SKU", "sku"),)


@pytest.mark.parametrize(
    "sku, expected",
    [
        ("abc-def-ghi", True),
        ("xx abc-def-ghi 12", True),
        ("abc-def", False),
        ("ABC-DEF-GHI", False),
        ("abc-def-ghi abc-def-ghi", False),
        ("", False),
    ],
)
def test_validate_sku(sku, expected):
    assert validate_sku(sku) is expected


def test_product_from_json():
    stream = io.StringIO('{"id": 7, "name": "Tea", "price": 3, "sku": "a-b-c", "createdOn": "x"}')
    product = Product.from_json(stream)
    assert product == Product(id=7, name="Tea", price=3.0, sku="a-b-c")
    assert isinstance(product.price, float)


def test_from_json_reads_bytes_and_ignores_trailing_data():
    product = Product.from_json(io.BytesIO(b'  {"name": "Mocha"} {"name": "other"}'))
    assert product.name == "Mocha"


def test_from_json_matches_keys_ignoring_case():
    product = Product.from_json(io.StringIO('{"NAME": "Flat white", "Sku": "q-w-e"}'))
    assert (product.name, product.sku) == ("Flat white", "q-w-e")


def test_from_json_null_leaves_defaults():
    product = Product.from_json(io.StringIO('{"name": null, "id": 4}'))
    assert product == Product(id=4)


@pytest.mark.parametrize(
    "payload",
    ['{"id": "1"}', '{"id": 1.5}', '{"price": "cheap"}', '{"name": 5}', "[1, 2]", "", "{"],
)
def test_from_json_rejects_bad_input(payload):
    with pytest.raises(ValueError):
        Product.from_json(io.StringIO(payload))


def test_drink_from_json():
    drink = Drink.from_json(io.StringIO('{"id": 9, "name": "Soda", "price": 1.25}'))
    assert drink == Drink(id=9, name="Soda", price=1.25)


def test_to_json_exact_output():
    stream = io.StringIO()
    to_json([Product(id=1, name="Latte", description="x", price=2.45, sku="abc")], stream)
    assert stream.getvalue() == (
        '[{"id":1,"name":"Latte","description":"x","price":2.45,"sku":"abc"}]\n'
    )


def test_to_json_integral_price_and_escaping():
    stream = io.StringIO()
    to_json([Drink(id=2, name="<a&b>", price=3.0)], stream)
    assert stream.getvalue() == (
        '[{"id":2,"name":"\\u003ca\\u0026b\\u003e","description":"","price":3,"sku":""}]\n'
    )


def test_to_json_round_trip():
    stream = io.StringIO()
    products = default_products()
    to_json(products, stream)
    decoded = json.loads(stream.getvalue())
    assert [item["name"] for item in decoded] == ["Latte", "Espresso", "Cappuccino"]
    assert decoded[0] == products[0].to_dict()
    assert "created_on" not in decoded[0]


def test_to_json_empty():
    stream = io.StringIO()
    to_json([], stream)
    assert stream.getvalue() == "[]\n"


def test_default_products():
    products = default_products()
    assert [(p.id, p.name, p.price, p.sku) for p in products] == [
        (1, "Latte", 2.45, "abc234"),
        (2, "Espresso", 1.99, "fjh234"),
        (3, "Cappuccino", 2.99, "jsh234"),
    ]
    assert all(TIMESTAMP.match(p.created_on) for p in products)
    assert all(p.deleted_on == "" for p in products)


def test_default_drinks():
    drinks = default_drinks()
    assert [(d.id, d.name, d.sku) for d in drinks] == [(1, "Cola", "abc234"), (2, "Mountain-Dew", "fjh234")]
    assert all(TIMESTAMP.match(d.updated_on) for d in drinks)


def test_product_store_add_assigns_next_id():
    store = ProductStore()
    product = Product(id=99, name="Mocha", price=3.5, sku="a-b-c")
    store.add(product)
    assert product.id == 4
    assert store.all()[-1] is product
    assert len(store.all()) == 4


def test_product_store_add_to_empty_store():
    store = ProductStore([])
    with pytest.raises(IndexError):
        store.add(Product(name="x"))


def test_product_store_update():
    store = ProductStore()
    replacement = Product(name="Iced Latte", price=3.0, sku="i-c-e")
    store.update(2, replacement)
    assert replacement.id == 2
    assert [p.name for p in store.all()] == ["Latte", "Iced Latte", "Cappuccino"]
    assert store.find(2) is replacement


def test_product_store_update_missing():
    store = ProductStore()
    with pytest.raises(ProductNotFoundError, match="Product not found"):
        store.update(42, Product())


def test_product_store_delete():
    store = ProductStore()
    store.delete(1)
    assert [p.id for p in store.all()] == [2, 3]
    with pytest.raises(ProductNotFoundError):
        store.find(1)
    with pytest.raises(ProductNotFoundError):
        store.delete(1)


def test_product_store_all_is_a_copy():
    store = ProductStore()
    snapshot = store.all()
    snapshot.clear()
    assert len(store.all()) == 3


def test_drink_store():
    store = DrinkStore()
    drink = store.add(Drink(name="Water", price=0.5))
    assert drink.id == 3
    store.update(1, Drink(name="Diet Cola"))
    assert store.find(1).name == "Diet Cola"
    with pytest.raises(DrinkNotFoundError, match="Drink not Found"):
        store.find(10)


def test_stores_are_independent():
    first = ProductStore()
    second = ProductStore()
    first.delete(3)
    assert [p.id for p in second.all()] == [1, 2, 3]