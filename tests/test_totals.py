import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from cart_engine.domain import CartLine, Coupon
from cart_engine.transforms import compute_totals


def _line(line_id, price, qty):
    return CartLine(line_id=line_id, product_id=line_id, variant_id=None, name=line_id, qty=qty, price=price)


def test_totals_basic():
    """subtotal=250, discount=50, shipping=80, total=280"""
    lines = (_line("a", 100, 2), _line("b", 50, 1))
    totals = compute_totals(lines, Coupon(code="X", discount=50), 80)

    assert totals.subtotal == 250
    assert totals.discount == 50
    assert totals.shipping == 80
    assert totals.total == 280
    assert totals.incomplete == ()


def test_totals_accept_plain_mappings():
    totals = compute_totals([{"price": 100, "qty": 2}, {"price": 50, "qty": 1}], {"discount": 50}, 80)
    assert totals.total == 280


def test_total_never_negative():
    totals = compute_totals((_line("a", 10, 1),), Coupon(code="BIG", discount=1000), 0)
    assert totals.total == 0


def test_missing_price_contributes_zero_and_is_flagged():
    lines = (_line("a", None, 3), _line("b", 20, 2))
    totals = compute_totals(lines, None, 0)

    assert totals.subtotal == 40
    assert totals.incomplete == ("a",)


def test_bad_shipping_and_no_coupon_degrade_to_zero():
    totals = compute_totals((_line("a", 10, 1),), None, "free")
    assert totals.shipping == 0
    assert totals.discount == 0
    assert totals.total == 10


def test_empty_cart_totals():
    totals = compute_totals((), None, 0)
    assert totals.subtotal == 0
    assert totals.total == 0
