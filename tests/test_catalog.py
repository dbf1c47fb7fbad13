import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
import pytest
from cart_engine.catalog import (
    build_line_descriptor,
    find_variant,
    normalize_product,
    normalize_variants,
    resolve_old_price,
    resolve_price,
    variant_label,
)
from cart_engine.domain import ProductSnapshot, VariantSnapshot


@pytest.fixture
def variable_product():
    return normalize_product(
        {
            "id": 101,
            "name": "Panjabi",
            "category": {"id": 1, "name": "Clothing"},
            "regular_price": 2400,
            "sale_price": 1990,
            "featured_image_url": "https://cdn.example/panjabi.jpg",
            "variants": [
                {
                    "id": 1011,
                    "sale_price": "1890",
                    "regular_price": 2400,
                    "stock": 5,
                    "sku": "PNJ-M",
                    "image_path": "variants/m.jpg",
                    "attributes": {"size": "M", "color": "white"},
                },
                {"id": 1012, "regular_price": 2400, "stock": 2, "attribute_values": {"size": "L"}},
            ],
        },
        base_url="https://shop.example",
    )


def test_resolve_price_priority():
    """sale_price -> regular_price -> price: первое конечное значение побеждает"""
    assert resolve_price({"sale_price": 90, "regular_price": 100, "price": 110}).value == 90
    assert resolve_price({"sale_price": None, "regular_price": 100, "price": 110}).value == 100
    assert resolve_price({"sale_price": "n/a", "price": 110}).value == 110
    assert resolve_price({}).is_none()


def test_resolve_price_on_snapshots():
    assert resolve_price(ProductSnapshot(id=1, regular_price=50)).value == 50
    assert resolve_price(VariantSnapshot(id=2)).is_none()


def test_old_price_only_when_strictly_greater():
    assert resolve_old_price({"regular_price": 120}, 100) == 120
    assert resolve_old_price({"regular_price": 100}, 100) is None
    assert resolve_old_price({"regular_price": 80}, 100) is None
    assert resolve_old_price({}, 100) is None
    assert resolve_old_price({"regular_price": 120}, None) is None


def test_variants_plain_list_and_wrapped_shapes():
    plain = normalize_variants([{"id": 1}, {"id": 2}])
    wrapped = normalize_variants({"data": [{"id": 1}, {"id": 2}]})
    nested = normalize_variants({"variants": {"data": [{"id": 1}, {"id": 2}]}})

    assert [v.id for v in plain] == [1, 2]
    assert [v.id for v in wrapped] == [1, 2]
    assert [v.id for v in nested] == [1, 2]
    assert normalize_variants(None) == ()
    assert normalize_variants("oops") == ()


def test_normalize_product_fields(variable_product):
    assert variable_product.id == 101
    assert variable_product.category == "Clothing"
    assert variable_product.image == "https://cdn.example/panjabi.jpg"
    assert variable_product.is_variable
    assert variable_product.variants[0].image == "https://shop.example/storage/variants/m.jpg"
    assert variable_product.variants[0].sale_price == 1890
    assert variable_product.variants[1].attributes == {"size": "L"}


def test_normalize_product_tolerates_missing_fields():
    product = normalize_product({"id": 5})

    assert product.name == ""
    assert product.image is None
    assert product.variants == ()
    assert not product.is_variable


def test_descriptor_for_simple_product():
    product = normalize_product(
        {"id": 103, "name": "Mug", "regular_price": 350, "stock": 40, "sku": "MUG", "image": "mug.jpg"}
    )

    descriptor = build_line_descriptor(product)

    assert descriptor.product_id == 103
    assert descriptor.variant_id is None
    assert descriptor.price == 350
    assert descriptor.old_price is None
    assert descriptor.image == "mug.jpg"
    assert descriptor.attrs is None
    assert descriptor.variant_label == ""
    assert descriptor.sku == "MUG"


def test_descriptor_for_selected_variant(variable_product):
    variant = find_variant(variable_product, 1011).value

    descriptor = build_line_descriptor(variable_product, variant)

    assert descriptor.variant_id == 1011
    assert descriptor.price == 1890
    assert descriptor.old_price == 2400
    assert descriptor.stock == 5
    assert descriptor.sku == "PNJ-M"
    assert descriptor.image == "https://shop.example/storage/variants/m.jpg"
    assert descriptor.attrs == {"size": "M", "color": "white"}
    assert descriptor.variant_label == "size: M, color: white"
    assert descriptor.category == "Clothing"


def test_variant_without_image_uses_product_image(variable_product):
    variant = find_variant(variable_product, 1012).value

    descriptor = build_line_descriptor(variable_product, variant)

    assert descriptor.image == variable_product.image
    assert descriptor.price == 2400
    assert descriptor.old_price is None


def test_product_without_price_gives_empty_price():
    descriptor = build_line_descriptor(normalize_product({"id": 104, "name": "Gift"}))
    assert descriptor.price is None


def test_find_variant_missing():
    assert find_variant(ProductSnapshot(id=1), 99).is_none()


def test_variant_label():
    assert variant_label({"size": "M"}) == "size: M"
    assert variant_label(None) == ""
