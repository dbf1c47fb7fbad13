import uuid
from dataclasses import dataclass
from datetime import datetime
from functools import partial, reduce
from typing import Callable, Optional, Tuple

from .domain import CartState, Event
from .transforms import (
    add_line,
    apply_coupon,
    clear_cart,
    remove_coupon,
    remove_line,
    set_line_qty,
)

ADD_ITEM = "ADD_ITEM"
REMOVE_ITEM = "REMOVE_ITEM"
SET_QTY = "SET_QTY"
APPLY_COUPON = "APPLY_COUPON"
REMOVE_COUPON = "REMOVE_COUPON"
CLEAR = "CLEAR"


@dataclass(frozen=True)
class EventBus:
    """
    Иммутабельная шина событий корзины.
    Обработчики - чистые функции: (Event, CartState) -> CartState
    """

    subscribers: Tuple[Tuple[str, Callable], ...] = ()

    def subscribe(
        self, event_name: str, handler: Callable[[Event, CartState], CartState]
    ) -> "EventBus":
        """Возвращает новую шину с добавленным обработчиком"""
        return EventBus(subscribers=self.subscribers + ((event_name, handler),))

    def publish(self, event: Event, state: CartState) -> CartState:
        """
        Применяет все обработчики события по порядку (fold)
        Событие без обработчиков возвращает состояние без изменений
        """
        matching_handlers = tuple(
            handler for name, handler in self.subscribers if name == event.name
        )
        return reduce(lambda current, handler: handler(event, current), matching_handlers, state)


# ============ Конструкторы событий ============


def create_event(name: str, payload: dict) -> Event:
    """Создаёт событие с автоматической меткой времени"""
    return Event(
        id=str(uuid.uuid4()),
        ts=datetime.now().isoformat(),
        name=name,
        payload=payload,
    )


# ============ Обработчики событий корзины ============


def handle_add_item(event: Event, state: CartState, max_qty: Optional[int] = None) -> CartState:
    return add_line(state, event.payload["item"], event.payload.get("qty", 1), max_qty)


def handle_remove_item(event: Event, state: CartState) -> CartState:
    return remove_line(state, event.payload.get("line_id"))


def handle_set_qty(event: Event, state: CartState, max_qty: Optional[int] = None) -> CartState:
    return set_line_qty(state, event.payload.get("line_id"), event.payload.get("qty"), max_qty)


def handle_apply_coupon(event: Event, state: CartState) -> CartState:
    return apply_coupon(state, event.payload.get("coupon"))


def handle_remove_coupon(event: Event, state: CartState) -> CartState:
    return remove_coupon(state)


def handle_clear(event: Event, state: CartState) -> CartState:
    return clear_cart(state)


# ============ Сборка шины ============


def create_cart_event_bus(max_qty: Optional[int] = None) -> EventBus:
    """
    Шина со всеми операциями корзины
    max_qty - потолок количества в одной строке (None - без потолка)
    """
    bus = EventBus()
    bus = bus.subscribe(ADD_ITEM, partial(handle_add_item, max_qty=max_qty))
    bus = bus.subscribe(REMOVE_ITEM, handle_remove_item)
    bus = bus.subscribe(SET_QTY, partial(handle_set_qty, max_qty=max_qty))
    bus = bus.subscribe(APPLY_COUPON, handle_apply_coupon)
    bus = bus.subscribe(REMOVE_COUPON, handle_remove_coupon)
    bus = bus.subscribe(CLEAR, handle_clear)
    return bus


def initial_state() -> CartState:
    return CartState(lines=(), coupon=None)


def apply_events(bus: EventBus, events: Tuple[Event, ...], state: CartState) -> CartState:
    """
    Применяет последовательность событий к состоянию (replay)
    Чистая функция: (events, initial_state) -> final_state
    """
    return reduce(lambda s, e: bus.publish(e, s), events, state)
