"""
Граница с каталогом: сырые ответы API -> ProductSnapshot / VariantSnapshot
-> LineDescriptor. Вся логика "какое поле цены взять" живёт только здесь.
"""

from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from .compose import first_some
from .domain import LineDescriptor, Number, ProductSnapshot, VariantSnapshot
from .ftypes import Maybe
from .transforms import to_number_or_none

# порядок важен: первое присутствующее конечное значение побеждает
PRICE_FIELDS = ("sale_price", "regular_price", "price")
IMAGE_URL_FIELDS = ("image", "featured_image_url", "image_url")
ATTRIBUTE_FIELDS = ("attributes", "attribute_values")
VARIANT_WRAPPER_KEYS = ("data", "items", "variants")


def _get(source: Any, name: str) -> Any:
    if isinstance(source, Mapping):
        return source.get(name)
    return getattr(source, name, None)


def _number_field(name: str) -> Callable[[Any], Maybe[Number]]:
    return lambda source: Maybe(to_number_or_none(_get(source, name)))


# ============ Цены ============

_price_resolver = first_some(*map(_number_field, PRICE_FIELDS))


def resolve_price(source: Any) -> Maybe[Number]:
    """sale_price -> regular_price -> price"""
    return _price_resolver(source)


def resolve_old_price(source: Any, price: Optional[Number]) -> Optional[Number]:
    """regular_price как "старая цена", только если она строго больше цены продажи"""
    regular = to_number_or_none(_get(source, "regular_price"))
    if regular is None or price is None:
        return None
    return regular if regular > price else None


# ============ Картинки и атрибуты ============


def storage_url(base_url: str, path: str) -> str:
    if path.startswith(("http://", "https://")):
        return path
    return f"{base_url.rstrip('/')}/storage/{path.lstrip('/')}"


def _image_ref(raw: Mapping, base_url: str) -> Optional[str]:
    url = next((raw[k] for k in IMAGE_URL_FIELDS if raw.get(k)), None)
    if url:
        return str(url)
    path = raw.get("image_path")
    return storage_url(base_url, str(path)) if path else None


def _attributes(raw: Mapping) -> Optional[Dict[str, str]]:
    attrs = next((raw[k] for k in ATTRIBUTE_FIELDS if isinstance(raw.get(k), Mapping)), None)
    if not attrs:
        return None
    return {str(k): str(v) for k, v in attrs.items()}


def variant_label(attrs: Optional[Mapping]) -> str:
    """{"size": "M", "color": "red"} -> "size: M, color: red" """
    if not attrs:
        return ""
    return ", ".join(f"{k}: {v}" for k, v in attrs.items())


# ============ Нормализация ============


def _unwrap_variants(raw: Any) -> Tuple[Any, ...]:
    """Список вариантов может прийти как есть или внутри обёртки {"data": [...]}"""
    if isinstance(raw, Mapping):
        inner = next((raw[k] for k in VARIANT_WRAPPER_KEYS if raw.get(k) is not None), None)
        return _unwrap_variants(inner)
    if isinstance(raw, (list, tuple)):
        return tuple(raw)
    return ()


def normalize_variant(raw: Any, base_url: str = "") -> VariantSnapshot:
    if isinstance(raw, VariantSnapshot):
        return raw
    return VariantSnapshot(
        id=raw.get("id"),
        sale_price=to_number_or_none(raw.get("sale_price")),
        regular_price=to_number_or_none(raw.get("regular_price")),
        price=to_number_or_none(raw.get("price")),
        stock=to_number_or_none(raw.get("stock")),
        image=_image_ref(raw, base_url),
        attributes=_attributes(raw),
        sku=raw.get("sku"),
    )


def normalize_variants(raw: Any, base_url: str = "") -> Tuple[VariantSnapshot, ...]:
    return tuple(
        normalize_variant(v, base_url)
        for v in _unwrap_variants(raw)
        if isinstance(v, (Mapping, VariantSnapshot))
    )


def _category_name(raw: Any) -> Optional[str]:
    if isinstance(raw, Mapping):
        return raw.get("name")
    return str(raw) if raw else None


def normalize_product(raw: Any, base_url: str = "") -> ProductSnapshot:
    """Сырой товар каталога -> ProductSnapshot (отсутствующие поля -> None)"""
    if isinstance(raw, ProductSnapshot):
        return raw
    return ProductSnapshot(
        id=raw.get("id"),
        name=str(raw.get("name") or ""),
        sale_price=to_number_or_none(raw.get("sale_price")),
        regular_price=to_number_or_none(raw.get("regular_price")),
        price=to_number_or_none(raw.get("price")),
        stock=to_number_or_none(raw.get("stock")),
        image=_image_ref(raw, base_url),
        category=_category_name(raw.get("category")),
        sku=raw.get("sku"),
        variants=normalize_variants(raw.get("variants"), base_url),
    )


def find_variant(product: ProductSnapshot, variant_id: Any) -> Maybe[VariantSnapshot]:
    return Maybe(next((v for v in product.variants if v.id == variant_id), None))


def build_line_descriptor(
    product: ProductSnapshot, variant: Optional[VariantSnapshot] = None
) -> LineDescriptor:
    """
    Снимок для корзины: цена/остаток/sku от выбранного варианта (если есть),
    картинка варианта или товара, атрибуты только у варианта.
    """
    source = variant if variant is not None else product
    price = resolve_price(source).get_or_else(None)
    attrs = dict(variant.attributes) if variant is not None and variant.attributes else None

    return LineDescriptor(
        product_id=product.id,
        variant_id=variant.id if variant is not None else None,
        name=product.name,
        image=(variant.image if variant is not None else None) or product.image,
        category=product.category,
        price=price,
        old_price=resolve_old_price(source, price),
        stock=source.stock,
        attrs=attrs,
        variant_label=variant_label(attrs),
        sku=source.sku,
    )
