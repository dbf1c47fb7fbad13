import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from cart_engine.domain import Coupon, LineDescriptor
from cart_engine.frp import (
    EventBus,
    create_event,
    create_cart_event_bus,
    initial_state,
    apply_events,
)


def test_eventbus_immutability():
    """EventBus должен быть иммутабельным"""
    bus1 = EventBus()
    bus2 = bus1.subscribe("TEST", lambda e, s: s)

    assert bus1.subscribers == ()
    assert len(bus2.subscribers) == 1
    assert bus1 is not bus2


def test_unknown_event_leaves_state_untouched():
    bus = create_cart_event_bus()
    state = initial_state()

    assert bus.publish(create_event("UNKNOWN", {}), state) is state


def test_add_item_event():
    """ADD_ITEM добавляет строку, не меняя исходное состояние"""
    bus = create_cart_event_bus()
    state = initial_state()

    event = create_event("ADD_ITEM", {"item": LineDescriptor(product_id="p1"), "qty": 2})
    new_state = bus.publish(event, state)

    assert state.lines == ()
    assert new_state.lines[0].line_id == "p:p1|v:none"
    assert new_state.lines[0].qty == 2


def test_bus_applies_max_qty():
    bus = create_cart_event_bus(max_qty=3)
    event = create_event("ADD_ITEM", {"item": LineDescriptor(product_id="p1"), "qty": 10})

    assert bus.publish(event, initial_state()).lines[0].qty == 3


def test_event_sequence_replay():
    """Последовательность событий применяется как свёртка"""
    bus = create_cart_event_bus()

    events = (
        create_event("ADD_ITEM", {"item": LineDescriptor(product_id="p1"), "qty": 2}),
        create_event("ADD_ITEM", {"item": LineDescriptor(product_id="p2"), "qty": 1}),
        create_event("SET_QTY", {"line_id": "p:p1|v:none", "qty": 4}),
        create_event("APPLY_COUPON", {"coupon": Coupon(code="A", discount=5)}),
        create_event("REMOVE_ITEM", {"line_id": "p:p2|v:none"}),
    )

    final_state = apply_events(bus, events, initial_state())

    assert len(final_state.lines) == 1
    assert final_state.lines[0].qty == 4
    assert final_state.coupon.code == "A"


def test_clear_and_remove_coupon_events():
    bus = create_cart_event_bus()
    events = (
        create_event("ADD_ITEM", {"item": LineDescriptor(product_id="p1")}),
        create_event("APPLY_COUPON", {"coupon": Coupon(code="A", discount=5)}),
        create_event("REMOVE_COUPON", {}),
    )
    state = apply_events(bus, events, initial_state())
    assert state.coupon is None

    cleared = bus.publish(create_event("CLEAR", {}), state)
    assert cleared.lines == ()
