from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

Number = Union[int, float]


@dataclass(frozen=True)
class Coupon:
    code: str
    discount: Number  # уже посчитанная сумма скидки
    type: str = "fixed"  # "percentage" | "fixed"
    value: Number = 0


@dataclass(frozen=True)
class LineDescriptor:
    """Каноничный снимок товара для корзины (собирается на границе каталога)"""

    product_id: Any
    variant_id: Any = None
    name: str = ""
    image: Optional[str] = None
    category: Optional[str] = None
    price: Optional[Number] = None
    old_price: Optional[Number] = None
    stock: Optional[Number] = None
    attrs: Optional[Dict[str, str]] = None
    variant_label: str = ""
    sku: Optional[str] = None


@dataclass(frozen=True)
class CartLine:
    line_id: str
    product_id: Any
    variant_id: Any
    name: str
    qty: int
    image: Optional[str] = None
    category: Optional[str] = None
    price: Optional[Number] = None
    old_price: Optional[Number] = None
    stock: Optional[Number] = None
    attrs: Optional[Dict[str, str]] = None
    variant_label: str = ""
    sku: Optional[str] = None


@dataclass(frozen=True)
class CartState:
    lines: Tuple[CartLine, ...] = ()
    coupon: Optional[Coupon] = None


@dataclass(frozen=True)
class Totals:
    subtotal: Number
    discount: Number
    shipping: Number
    total: Number
    incomplete: Tuple[str, ...] = ()  # line_id без цены


@dataclass(frozen=True)
class QtyNotice:
    """Запрошенное количество было урезано"""

    line_id: str
    requested: int
    allowed: int
    reason: str  # "stock" | "max_qty"


@dataclass(frozen=True)
class VariantSnapshot:
    id: Any
    sale_price: Optional[Number] = None
    regular_price: Optional[Number] = None
    price: Optional[Number] = None
    stock: Optional[Number] = None
    image: Optional[str] = None
    attributes: Optional[Dict[str, str]] = None
    sku: Optional[str] = None


@dataclass(frozen=True)
class ProductSnapshot:
    id: Any
    name: str = ""
    sale_price: Optional[Number] = None
    regular_price: Optional[Number] = None
    price: Optional[Number] = None
    stock: Optional[Number] = None
    image: Optional[str] = None
    category: Optional[str] = None
    sku: Optional[str] = None
    variants: Tuple[VariantSnapshot, ...] = ()

    @property
    def is_variable(self) -> bool:
        return len(self.variants) > 0


class CartButtonState(Enum):
    NOT_IN_CART = "not_in_cart"
    IN_CART = "in_cart"


@dataclass(frozen=True)
class CheckoutSnapshot:
    lines: Tuple[CartLine, ...]
    coupon: Optional[Coupon]
    totals: Totals


@dataclass(frozen=True)
class Event:
    id: str
    ts: str
    name: str
    payload: Dict
