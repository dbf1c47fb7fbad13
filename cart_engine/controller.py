from typing import Any, Callable, Optional, Tuple

from .catalog import build_line_descriptor
from .domain import CartButtonState, CheckoutSnapshot, ProductSnapshot, QtyNotice, VariantSnapshot
from .ftypes import Maybe
from .service import CheckoutService
from .store import CartStore
from .transforms import make_line_id


class AddToCartController:
    """
    Адаптер карточки товара: снимок товара -> add_item, плюс реактивный
    статус "уже в корзине". Статус не кэшируется и читается из store при
    каждом обращении.
    """

    def __init__(
        self,
        store: CartStore,
        product: ProductSnapshot,
        selected_variant: Optional[VariantSnapshot] = None,
        qty: Any = 1,
    ):
        self.store = store
        self.product = product
        self.selected_variant = selected_variant
        self.qty = qty
        self._subscriptions: Tuple[Callable[[], None], ...] = ()

    @property
    def active_variant(self) -> Optional[VariantSnapshot]:
        # вариант учитывается только у вариативного товара
        return self.selected_variant if self.product.is_variable else None

    @property
    def line_id(self) -> str:
        variant = self.active_variant
        return make_line_id(self.product.id, variant.id if variant is not None else None)

    @property
    def in_cart(self) -> bool:
        return self.store.has_line(self.line_id)

    @property
    def state(self) -> CartButtonState:
        return CartButtonState.IN_CART if self.in_cart else CartButtonState.NOT_IN_CART

    @property
    def affordance(self) -> str:
        return "view_cart" if self.in_cart else "add_to_cart"

    def select_variant(self, variant: Optional[VariantSnapshot]) -> None:
        self.selected_variant = variant

    def add(self) -> Maybe[QtyNotice]:
        """Ровно один вызов add_item на каждое нажатие"""
        descriptor = build_line_descriptor(self.product, self.active_variant)
        return self.store.add_item(descriptor, self.qty)

    def buy_now(self, shipping: Any = 0) -> CheckoutSnapshot:
        """Кнопка "купить сейчас": одна единица товара и снимок для оформления"""
        self.store.add_item(build_line_descriptor(self.product, self.active_variant), 1)
        return CheckoutService(self.store).snapshot(shipping)

    def watch(self, callback: Callable[[CartButtonState], None]) -> Callable[[], None]:
        """callback вызывается только при смене NOT_IN_CART <-> IN_CART"""
        last = self.state

        def on_change(_state) -> None:
            nonlocal last
            current = self.state
            if current != last:
                last = current
                callback(current)

        unsubscribe = self.store.subscribe(on_change)
        self._subscriptions = self._subscriptions + (unsubscribe,)
        return unsubscribe

    def close(self) -> None:
        for unsubscribe in self._subscriptions:
            unsubscribe()
        self._subscriptions = ()
