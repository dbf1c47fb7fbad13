import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
import pytest
from cart_engine.domain import Coupon, LineDescriptor
from cart_engine.service import CheckoutService
from cart_engine.storage import MemoryStorage
from cart_engine.store import CartStore


@pytest.fixture
def store():
    store = CartStore(storage=MemoryStorage())
    store.add_item(LineDescriptor(product_id=101, variant_id=1011, name="Panjabi", price=100, sku="PNJ-M"), 2)
    store.add_item(LineDescriptor(product_id=103, name="Mug", price=50))
    store.apply_coupon(Coupon(code="SAVE50", discount=50))
    return store


def test_prepare_empty_cart_is_left():
    service = CheckoutService(CartStore(storage=MemoryStorage()))

    result = service.prepare(80)

    assert result.is_left
    assert "error" in result.value


def test_snapshot_totals(store):
    snap = CheckoutService(store).prepare(80).value

    assert snap.totals.subtotal == 250
    assert snap.totals.total == 280
    assert snap.coupon.code == "SAVE50"


def test_snapshot_is_frozen(store):
    """Снимок не меняется после последующих мутаций корзины"""
    snap = CheckoutService(store).snapshot(0)

    store.clear_cart()

    assert len(snap.lines) == 2
    assert snap.totals.subtotal == 250


def test_order_items_shape(store):
    snap = CheckoutService(store).snapshot(0)

    items = CheckoutService.order_items(snap)

    assert items[0] == {
        "product_id": 101,
        "variant_id": 1011,
        "product_name": "Panjabi",
        "qty": 2,
        "price": 100,
        "sku": "PNJ-M",
    }
    assert items[1]["variant_id"] is None
    assert items[1]["sku"] is None


def test_order_payload(store):
    payload = CheckoutService.order_payload(CheckoutService(store).snapshot(80))

    assert payload["coupon_code"] == "SAVE50"
    assert payload["shipping"] == 80
    assert payload["total"] == 280
    assert len(payload["items"]) == 2


def test_incomplete_pricing_does_not_block(store):
    store.add_item(LineDescriptor(product_id=104, name="Gift"))

    result = CheckoutService(store).prepare(0)

    assert result.is_right
    assert result.value.totals.incomplete == ("p:104|v:none",)
    assert CheckoutService.order_items(result.value)[-1]["price"] == 0


def test_complete_clears_cart(store):
    CheckoutService(store).complete()

    assert store.lines == ()
    assert store.coupon is None
