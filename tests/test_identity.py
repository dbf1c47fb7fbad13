import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from cart_engine.transforms import (
    make_line_id,
    clamp_qty,
    to_number_or_none,
    stock_ceiling,
    fit_qty,
)


def test_line_id_is_deterministic():
    """Одна и та же пара (товар, вариант) всегда даёт один ключ"""
    assert make_line_id(1, 5) == make_line_id(1, 5)
    assert make_line_id(1, 5) == "p:1|v:5"


def test_line_id_without_variant_uses_sentinel():
    assert make_line_id(1) == make_line_id(1, None) == "p:1|v:none"


def test_line_id_distinguishes_variants():
    assert make_line_id(1, None) != make_line_id(1, 5)
    assert make_line_id(1, 5) != make_line_id(2, 5)


def test_line_id_missing_product_does_not_raise():
    assert make_line_id(None, None) == "p:?|v:none"


def test_line_id_same_for_int_and_str_ids():
    """id после JSON-круга может стать строкой - ключ не меняется"""
    assert make_line_id(7, 3) == make_line_id("7", "3")


def test_to_number_or_none():
    assert to_number_or_none(10) == 10
    assert to_number_or_none("12.5") == 12.5
    assert to_number_or_none(None) is None
    assert to_number_or_none("abc") is None
    assert to_number_or_none(float("nan")) is None
    assert to_number_or_none(float("inf")) is None
    assert to_number_or_none(True) is None


def test_clamp_qty_invalid_values_become_one():
    assert clamp_qty(0) == 1
    assert clamp_qty(-3) == 1
    assert clamp_qty("abc") == 1
    assert clamp_qty(None) == 1
    assert clamp_qty(float("nan")) == 1


def test_clamp_qty_floors_and_caps():
    assert clamp_qty(2.9) == 2
    assert clamp_qty("4") == 4
    assert clamp_qty(150, max_qty=99) == 99
    assert clamp_qty(150) == 150


def test_stock_ceiling_and_fit_qty():
    assert stock_ceiling(None) is None
    assert stock_ceiling(0) is None
    assert stock_ceiling(3.7) == 3
    assert fit_qty(10, 3) == 3
    assert fit_qty(10, None) == 10
    assert fit_qty(10, 50, max_qty=5) == 5
