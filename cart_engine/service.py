from typing import Any, Tuple

from .domain import CartLine, CheckoutSnapshot
from .ftypes import Either
from .log import get_logger
from .transforms import compute_totals

logger = get_logger(__name__)


def order_line(line: CartLine) -> dict:
    """Строка заказа для внешнего сервиса оформления"""
    return {
        "product_id": line.product_id,
        "variant_id": line.variant_id,
        "product_name": line.name,
        "qty": line.qty,
        "price": line.price if line.price is not None else 0,
        "sku": line.sku,
    }


class CheckoutService:
    """Фасад оформления: замороженный снимок корзины и payload заказа"""

    def __init__(self, store):
        self.store = store

    def snapshot(self, shipping: Any = 0) -> CheckoutSnapshot:
        """Состояние иммутабельно, поэтому снимок не меняется после мутаций store"""
        state = self.store.state
        return CheckoutSnapshot(
            lines=state.lines,
            coupon=state.coupon,
            totals=compute_totals(state.lines, state.coupon, shipping),
        )

    def prepare(self, shipping: Any = 0) -> Either[dict, CheckoutSnapshot]:
        """
        Left({"error": ...}) для пустой корзины
        Right(snapshot) иначе; строки без цены не блокируют, а видны в totals.incomplete
        """
        snap = self.snapshot(shipping)
        if not snap.lines:
            return Either.left({"error": "Корзина пуста"})
        if snap.totals.incomplete:
            logger.warning("checkout_incomplete_pricing", lines=list(snap.totals.incomplete))
        return Either.right(snap)

    @staticmethod
    def order_items(snap: CheckoutSnapshot) -> Tuple[dict, ...]:
        return tuple(map(order_line, snap.lines))

    @staticmethod
    def order_payload(snap: CheckoutSnapshot) -> dict:
        return {
            "coupon_code": snap.coupon.code if snap.coupon is not None else None,
            "shipping": snap.totals.shipping,
            "items": list(CheckoutService.order_items(snap)),
            "subtotal": snap.totals.subtotal,
            "discount": snap.totals.discount,
            "total": snap.totals.total,
        }

    def complete(self) -> None:
        """Вызывается после успешной отправки заказа внешним сервисом"""
        logger.info("checkout_completed", lines=len(self.store.lines))
        self.store.clear_cart()
