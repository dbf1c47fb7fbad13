import math
from dataclasses import replace
from functools import reduce
from typing import Any, Iterable, Mapping, Optional, Union

from .domain import CartLine, CartState, Coupon, LineDescriptor, Number, QtyNotice, Totals
from .ftypes import Maybe


# ============ LineIdentity ============


def make_line_id(product_id: Any, variant_id: Any = None) -> str:
    """
    Стабильный ключ строки корзины из пары (товар, вариант).
    (P, None) и вариант по умолчанию совпадают; отсутствующий товар даёт "?".
    """
    pid = "?" if product_id is None else product_id
    vid = "none" if variant_id is None else variant_id
    return f"p:{pid}|v:{vid}"


# ============ Числа и количества ============


def to_number_or_none(value: Any) -> Optional[Number]:
    """Число или None, если значение не приводится к конечному числу"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def clamp_qty(qty: Any, max_qty: Optional[int] = None) -> int:
    """Целое количество >= 1; нечисловое значение превращается в 1"""
    number = to_number_or_none(qty)
    if number is None:
        return 1
    clamped = max(1, math.floor(number))
    return min(clamped, max_qty) if max_qty else clamped


def stock_ceiling(stock: Any) -> Optional[int]:
    """Мягкий потолок по остатку; неизвестный или нулевой остаток не ограничивает"""
    number = to_number_or_none(stock)
    if number is None or number < 1:
        return None
    return math.floor(number)


def fit_qty(qty: Any, stock: Any, max_qty: Optional[int] = None) -> int:
    clamped = clamp_qty(qty, max_qty)
    ceiling = stock_ceiling(stock)
    return min(clamped, ceiling) if ceiling is not None else clamped


def describe_shortfall(line: CartLine, requested: int) -> Maybe[QtyNotice]:
    """Some(QtyNotice), если в строке оказалось меньше, чем просили"""
    if line.qty >= requested:
        return Maybe.nothing()
    reason = "stock" if stock_ceiling(line.stock) == line.qty else "max_qty"
    return Maybe.some(
        QtyNotice(line_id=line.line_id, requested=requested, allowed=line.qty, reason=reason)
    )


# ============ Нормализация входящего товара ============


def _pick(payload: Mapping, *keys: str, default: Any = None) -> Any:
    return next((payload[k] for k in keys if payload.get(k) is not None), default)


def normalize_descriptor(payload: Union[LineDescriptor, Mapping]) -> LineDescriptor:
    """
    Приводит снимок товара к LineDescriptor.
    Принимает готовый LineDescriptor или словарь с camelCase / snake_case ключами.
    """
    if isinstance(payload, LineDescriptor):
        return replace(
            payload,
            attrs=dict(payload.attrs) if payload.attrs else None,
            price=to_number_or_none(payload.price),
            old_price=to_number_or_none(payload.old_price),
            stock=to_number_or_none(payload.stock),
        )

    attrs = _pick(payload, "attrs", "attributes")
    return LineDescriptor(
        product_id=_pick(payload, "productId", "product_id"),
        variant_id=_pick(payload, "variantId", "variant_id"),
        name=str(_pick(payload, "name", default="")),
        image=_pick(payload, "image") or None,
        category=_pick(payload, "category") or None,
        price=to_number_or_none(_pick(payload, "price")),
        old_price=to_number_or_none(_pick(payload, "oldPrice", "old_price")),
        stock=to_number_or_none(_pick(payload, "stock")),
        attrs=dict(attrs) if isinstance(attrs, Mapping) else None,
        variant_label=str(_pick(payload, "variantLabel", "variant_label", default="")),
        sku=_pick(payload, "sku"),
    )


def line_from_descriptor(
    descriptor: LineDescriptor, qty: Any, max_qty: Optional[int] = None
) -> CartLine:
    return CartLine(
        line_id=make_line_id(descriptor.product_id, descriptor.variant_id),
        product_id=descriptor.product_id,
        variant_id=descriptor.variant_id,
        name=descriptor.name,
        qty=fit_qty(qty, descriptor.stock, max_qty),
        image=descriptor.image,
        category=descriptor.category,
        price=descriptor.price,
        old_price=descriptor.old_price,
        stock=descriptor.stock,
        attrs=descriptor.attrs,
        variant_label=descriptor.variant_label,
        sku=descriptor.sku,
    )


# ============ Операции над корзиной (чистые функции) ============


def find_line(lines: Iterable[CartLine], line_id: str) -> Maybe[CartLine]:
    return Maybe(next((line for line in lines if line.line_id == line_id), None))


def add_line(
    state: CartState,
    item: Union[LineDescriptor, Mapping],
    qty: Any = 1,
    max_qty: Optional[int] = None,
) -> CartState:
    """
    Добавляет товар: существующая строка получает сумму количеств и
    свежий снимок полей, новая строка дописывается в конец.
    """
    descriptor = normalize_descriptor(item)
    line_id = make_line_id(descriptor.product_id, descriptor.variant_id)
    to_add = clamp_qty(qty)

    existing = find_line(state.lines, line_id)
    if existing.is_some():
        merged = line_from_descriptor(descriptor, existing.value.qty + to_add, max_qty)
        lines = tuple(merged if line.line_id == line_id else line for line in state.lines)
    else:
        lines = state.lines + (line_from_descriptor(descriptor, to_add, max_qty),)

    return replace(state, lines=lines)


def remove_line(state: CartState, line_id: str) -> CartState:
    """Удаляет строку целиком; неизвестный line_id - no-op"""
    return replace(state, lines=tuple(filter(lambda line: line.line_id != line_id, state.lines)))


def set_line_qty(
    state: CartState, line_id: str, qty: Any, max_qty: Optional[int] = None
) -> CartState:
    """Никогда не удаляет строку: количество < 1 превращается в 1"""
    lines = tuple(
        replace(line, qty=fit_qty(qty, line.stock, max_qty)) if line.line_id == line_id else line
        for line in state.lines
    )
    return replace(state, lines=lines)


def normalize_coupon(raw: Any) -> Maybe[Coupon]:
    """Coupon как есть; словарь с непустым code -> Coupon; остальное -> Nothing"""
    if isinstance(raw, Coupon):
        return Maybe.some(raw)
    if not isinstance(raw, Mapping) or not raw.get("code"):
        return Maybe.nothing()
    return Maybe.some(
        Coupon(
            code=str(raw["code"]),
            discount=to_number_or_none(raw.get("discount")) or 0,
            type=str(raw.get("type") or "fixed"),
            value=to_number_or_none(raw.get("value")) or 0,
        )
    )


def apply_coupon(state: CartState, coupon: Union[Coupon, Mapping]) -> CartState:
    """Новый купон заменяет прежний; нераспознанный купон - no-op"""
    return normalize_coupon(coupon).map(lambda c: replace(state, coupon=c)).get_or_else(state)


def remove_coupon(state: CartState) -> CartState:
    return replace(state, coupon=None)


def clear_cart(state: Optional[CartState] = None) -> CartState:
    return CartState(lines=(), coupon=None)


def item_count(lines: Iterable[CartLine]) -> int:
    return reduce(lambda acc, line: acc + line.qty, lines, 0)


# ============ PriceCalculator ============


def _read(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def compute_totals(lines: Iterable[Any], coupon: Any = None, shipping: Any = 0) -> Totals:
    """
    subtotal = sum(price * qty); строка без цены даёт 0 и попадает в incomplete.
    total = max(subtotal + shipping - discount, 0). Никогда не бросает.
    """

    def accumulate(acc, line):
        subtotal, incomplete = acc
        price = to_number_or_none(_read(line, "price"))
        qty = to_number_or_none(_read(line, "qty"))
        if price is None:
            return subtotal, incomplete + (str(_read(line, "line_id") or "?"),)
        return subtotal + price * (1 if qty is None else qty), incomplete

    subtotal, incomplete = reduce(accumulate, lines or (), (0, ()))
    discount = to_number_or_none(_read(coupon, "discount")) or 0
    shipping_amount = to_number_or_none(shipping) or 0

    return Totals(
        subtotal=subtotal,
        discount=discount,
        shipping=shipping_amount,
        total=max(subtotal + shipping_amount - discount, 0),
        incomplete=incomplete,
    )
