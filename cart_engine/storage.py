import json
from dataclasses import replace
from functools import reduce
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from .domain import CartLine, CartState, Coupon
from .ftypes import Either
from .log import get_logger
from .transforms import add_line, normalize_coupon

logger = get_logger(__name__)


# ============ Хранилища ============


class MemoryStorage:
    """Хранилище записей в памяти (тесты, одна сессия UI)"""

    def __init__(self, records: Optional[Dict[str, str]] = None):
        self._records = dict(records or {})

    def read(self, key: str) -> Optional[str]:
        return self._records.get(key)

    def write(self, key: str, value: str) -> None:
        self._records[key] = value


class JsonFileStorage:
    """
    Долговременное клиентское хранилище: одна JSON-запись на ключ,
    файл <directory>/<key>.json. Запись атомарна (через временный файл).
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("cart_storage_read_failed", path=str(path), error=str(exc))
            return None

    def write(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)


# ============ Сериализация ============


def _line_record(line: CartLine) -> dict:
    return {
        "lineId": line.line_id,
        "productId": line.product_id,
        "variantId": line.variant_id,
        "name": line.name,
        "image": line.image,
        "category": line.category,
        "price": line.price,
        "oldPrice": line.old_price,
        "qty": line.qty,
        "stock": line.stock,
        "attrs": line.attrs,
        "variantLabel": line.variant_label,
        "sku": line.sku,
    }


def _coupon_record(coupon: Optional[Coupon]) -> Optional[dict]:
    if coupon is None:
        return None
    return {
        "code": coupon.code,
        "discount": coupon.discount,
        "type": coupon.type,
        "value": coupon.value,
    }


def serialize_cart(state: CartState) -> dict:
    """Раскладка записи: {"items": [...], "coupon": {...} | null}"""
    return {
        "items": [_line_record(line) for line in state.lines],
        "coupon": _coupon_record(state.coupon),
    }


def dump_cart(state: CartState) -> str:
    return json.dumps(serialize_cart(state), ensure_ascii=False)


# ============ Восстановление (Either) ============


def parse_record(raw: Union[str, bytes, Mapping, None]) -> Either[str, Mapping]:
    """Right(record) или Left(описание ошибки) для битой записи"""
    if isinstance(raw, Mapping):
        record: Any = raw
    else:
        try:
            record = json.loads(raw)
        except (TypeError, ValueError) as exc:
            return Either.left(f"invalid json: {exc}")

    if not isinstance(record, Mapping):
        return Either.left("record is not an object")
    if not isinstance(record.get("items"), list):
        return Either.left("items is not a list")
    return Either.right(record)


def _has_product_id(entry: Any) -> bool:
    return isinstance(entry, Mapping) and (
        entry.get("productId") is not None or entry.get("product_id") is not None
    )


def hydrate_cart(
    raw: Union[str, bytes, Mapping, None], max_qty: Optional[int] = None
) -> Either[str, CartState]:
    """
    Запись -> CartState
    Записи без товара пропускаются, line_id пересчитывается из id,
    дубли одного line_id сливаются сложением количеств.
    """

    def to_state(record: Mapping) -> Either[str, CartState]:
        entries = tuple(filter(_has_product_id, record["items"]))
        state = reduce(
            lambda s, entry: add_line(s, entry, entry.get("qty", 1), max_qty),
            entries,
            CartState(),
        )
        coupon = normalize_coupon(record.get("coupon")).get_or_else(None)
        return Either.right(replace(state, coupon=coupon))

    return parse_record(raw).bind(to_state)


def load_cart(storage: Any, key: str, max_qty: Optional[int] = None) -> CartState:
    """Однократное чтение при старте; отсутствующая или битая запись - пустая корзина"""
    raw = storage.read(key)
    if raw is None:
        return CartState()

    result = hydrate_cart(raw, max_qty)
    if result.is_left:
        logger.warning("cart_hydrate_failed", key=key, error=result.value)
    return result.get_or_else(CartState())
