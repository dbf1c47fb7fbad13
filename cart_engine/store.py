from typing import Any, Callable, Mapping, Optional, Tuple, Union

from .config import settings
from .domain import CartLine, CartState, Coupon, LineDescriptor, QtyNotice, Totals
from .frp import (
    ADD_ITEM,
    APPLY_COUPON,
    CLEAR,
    REMOVE_COUPON,
    REMOVE_ITEM,
    SET_QTY,
    EventBus,
    create_cart_event_bus,
    create_event,
)
from .ftypes import Maybe
from .log import get_logger
from .storage import MemoryStorage, dump_cart, load_cart
from .transforms import (
    clamp_qty,
    compute_totals,
    describe_shortfall,
    find_line,
    item_count,
    make_line_id,
    normalize_descriptor,
)

logger = get_logger(__name__)

Listener = Callable[[CartState], None]


class CartStore:
    """
    Единственный экземпляр корзины, общий для всех точек UI.

    Каждая мутация публикуется событием в EventBus, новое состояние
    записывается в хранилище (write-through), затем синхронно уведомляются
    подписчики. Восстановление из хранилища - один раз в конструкторе,
    до появления подписчиков.
    """

    def __init__(
        self,
        storage: Any = None,
        storage_key: Optional[str] = None,
        max_qty: Optional[int] = settings.max_line_qty,
        bus: Optional[EventBus] = None,
    ):
        self.storage = storage if storage is not None else MemoryStorage()
        self.storage_key = storage_key or settings.storage_key
        self.max_qty = max_qty or None
        self._bus = bus or create_cart_event_bus(self.max_qty)
        self._listeners: Tuple[Tuple[object, Listener], ...] = ()
        self._state = load_cart(self.storage, self.storage_key, self.max_qty)
        logger.debug("cart_hydrated", key=self.storage_key, lines=len(self._state.lines))

    # ============ Чтение ============

    @property
    def state(self) -> CartState:
        return self._state

    @property
    def lines(self) -> Tuple[CartLine, ...]:
        return self._state.lines

    @property
    def coupon(self) -> Optional[Coupon]:
        return self._state.coupon

    @property
    def item_count(self) -> int:
        return item_count(self._state.lines)

    def find_line(self, line_id: str) -> Maybe[CartLine]:
        return find_line(self._state.lines, line_id)

    def has_line(self, line_id: str) -> bool:
        return self.find_line(line_id).is_some()

    def totals(self, shipping: Any = 0) -> Totals:
        return compute_totals(self._state.lines, self._state.coupon, shipping)

    # ============ Запись ============

    def add_item(
        self, descriptor: Union[LineDescriptor, Mapping], qty: Any = 1
    ) -> Maybe[QtyNotice]:
        """
        Добавляет товар или увеличивает количество существующей строки.
        Some(QtyNotice), если количество упёрлось в остаток или потолок строки.
        """
        item = normalize_descriptor(descriptor)
        line_id = make_line_id(item.product_id, item.variant_id)
        before = self.find_line(line_id).map(lambda line: line.qty).get_or_else(0)
        requested = before + clamp_qty(qty)

        self._dispatch(ADD_ITEM, {"item": item, "qty": qty})
        logger.info("cart_item_added", line_id=line_id, qty=clamp_qty(qty))
        return self._shortfall(line_id, requested)

    def remove_item(self, line_id: str) -> None:
        self._dispatch(REMOVE_ITEM, {"line_id": line_id})

    def set_qty(self, line_id: str, qty: Any) -> Maybe[QtyNotice]:
        if not self.has_line(line_id):
            return Maybe.nothing()
        self._dispatch(SET_QTY, {"line_id": line_id, "qty": qty})
        return self._shortfall(line_id, clamp_qty(qty))

    def apply_coupon(self, coupon: Union[Coupon, Mapping]) -> None:
        """Coupon или словарь {code, discount, type, value}; без code - no-op"""
        self._dispatch(APPLY_COUPON, {"coupon": coupon})

    def remove_coupon(self) -> None:
        self._dispatch(REMOVE_COUPON, {})

    def clear_cart(self) -> None:
        self._dispatch(CLEAR, {})

    # ============ Подписка ============

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        """Подписчик вызывается после каждой мутации с текущим состоянием"""
        token = object()
        self._listeners = self._listeners + ((token, callback),)

        def unsubscribe() -> None:
            self._listeners = tuple(pair for pair in self._listeners if pair[0] is not token)

        return unsubscribe

    # ============ Внутреннее ============

    def _shortfall(self, line_id: str, requested: int) -> Maybe[QtyNotice]:
        notice = self.find_line(line_id).bind(lambda line: describe_shortfall(line, requested))
        if notice.is_some():
            logger.info(
                "cart_qty_capped",
                line_id=line_id,
                requested=notice.value.requested,
                allowed=notice.value.allowed,
                reason=notice.value.reason,
            )
        return notice

    def _dispatch(self, name: str, payload: dict) -> CartState:
        event = create_event(name, payload)
        previous = self._state
        new_state = self._bus.publish(event, previous)

        if new_state == previous:
            logger.debug("cart_event_noop", cart_event=name)
            return previous

        # состояние фиксируется только после успешной записи
        record = dump_cart(new_state)
        self.storage.write(self.storage_key, record)
        self._state = new_state
        logger.debug("cart_event_applied", cart_event=name, lines=len(new_state.lines))

        for _, listener in self._listeners:
            listener(self._state)
        return self._state
