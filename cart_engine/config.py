from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parents[1]
load_dotenv(dotenv_path=ROOT_DIR / ".env")


def _get_env(*keys: str, default: str | None = None) -> str | None:
    for k in keys:
        v = os.getenv(k)
        if v is not None and str(v).strip() != "":
            return v.strip()
    return default


def _get_int(*keys: str, default: int) -> int:
    v = _get_env(*keys)
    return default if v is None else int(v)


def _get_bool(*keys: str, default: bool = False) -> bool:
    v = _get_env(*keys)
    return default if v is None else v.lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    storage_dir: str
    storage_key: str
    wishlist_key: str
    max_line_qty: int  # 0 - без потолка
    currency: str
    shipping_inside: int
    shipping_outside: int
    catalog_base_url: str
    seed_path: str
    debug: bool


settings = Settings(
    storage_dir=_get_env("CART_STORAGE_DIR", default=str(ROOT_DIR / "data" / "storage")) or "",
    storage_key=_get_env("CART_STORAGE_KEY", default="bs_cart_v1") or "bs_cart_v1",
    wishlist_key=_get_env("WISHLIST_STORAGE_KEY", default="wishlist_product_ids") or "wishlist_product_ids",
    max_line_qty=_get_int("CART_MAX_LINE_QTY", default=99),
    currency=_get_env("CURRENCY", default="৳") or "৳",
    shipping_inside=_get_int("SHIPPING_INSIDE", default=80),
    shipping_outside=_get_int("SHIPPING_OUTSIDE", default=150),
    catalog_base_url=_get_env("CATALOG_BASE_URL", default="") or "",
    seed_path=_get_env("SEED_PATH", default=str(ROOT_DIR / "data" / "seed.json")) or "",
    debug=_get_bool("DEBUG", default=False),
)
