import json
from typing import Any, Callable, Optional, Tuple, Union

from .config import settings
from .ftypes import Either
from .log import get_logger
from .storage import MemoryStorage

logger = get_logger(__name__)

Listener = Callable[[Tuple[Any, ...]], None]


# ============ Чистые функции ============


def parse_wishlist(raw: Union[str, bytes, None]) -> Either[str, Tuple[Any, ...]]:
    """Right(ids) для JSON-списка, иначе Left(описание ошибки)"""
    if raw is None:
        return Either.right(())
    try:
        record = json.loads(raw)
    except (TypeError, ValueError) as exc:
        return Either.left(f"invalid json: {exc}")
    if not isinstance(record, list):
        return Either.left("record is not a list")
    ids = (pid for pid in record if isinstance(pid, (int, float, str)) and not isinstance(pid, bool))
    return Either.right(tuple(dict.fromkeys(ids)))


def toggle_id(ids: Tuple[Any, ...], product_id: Any) -> Tuple[Any, ...]:
    """Убирает id, если он уже в списке, иначе дописывает в конец"""
    if product_id in ids:
        return tuple(pid for pid in ids if pid != product_id)
    return ids + (product_id,)


# ============ Хранилище избранного ============


class WishlistStore:
    """
    Избранное: упорядоченный список id товаров.
    Читается из хранилища один раз, каждый toggle сразу записывается
    и уведомляет подписчиков.
    """

    def __init__(self, storage: Any = None, storage_key: Optional[str] = None):
        self.storage = storage if storage is not None else MemoryStorage()
        self.storage_key = storage_key or settings.wishlist_key
        self._listeners: Tuple[Tuple[object, Listener], ...] = ()

        result = parse_wishlist(self.storage.read(self.storage_key))
        if result.is_left:
            logger.warning("wishlist_hydrate_failed", key=self.storage_key, error=result.value)
        self._ids: Tuple[Any, ...] = result.get_or_else(())

    @property
    def ids(self) -> Tuple[Any, ...]:
        return self._ids

    @property
    def count(self) -> int:
        return len(self._ids)

    def is_wishlisted(self, product_id: Any) -> bool:
        return product_id in self._ids

    def toggle(self, product_id: Any) -> bool:
        """Переключает товар; True, если после вызова он в избранном"""
        if product_id is None:
            return False
        ids = toggle_id(self._ids, product_id)
        self.storage.write(self.storage_key, json.dumps(list(ids), ensure_ascii=False))
        self._ids = ids

        wishlisted = product_id in ids
        logger.info("wishlist_toggled", product_id=product_id, wishlisted=wishlisted)
        for _, listener in self._listeners:
            listener(self._ids)
        return wishlisted

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        token = object()
        self._listeners = self._listeners + ((token, callback),)

        def unsubscribe() -> None:
            self._listeners = tuple(pair for pair in self._listeners if pair[0] is not token)

        return unsubscribe
