import sys
import os
import json
import streamlit as st

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from cart_engine.catalog import find_variant, normalize_product, resolve_price, variant_label
from cart_engine.config import settings
from cart_engine.controller import AddToCartController
from cart_engine.domain import Coupon
from cart_engine.ftypes import Either
from cart_engine.log import configure_logging, get_logger
from cart_engine.service import CheckoutService
from cart_engine.storage import JsonFileStorage
from cart_engine.store import CartStore
from cart_engine.wishlist import WishlistStore

logger = get_logger(__name__)


# ============ Кэширование данных ============
@st.cache_resource
def init_logging():
    configure_logging(settings.debug)
    return True


@st.cache_data
def get_catalog():
    """Внешний каталог: сырой JSON -> нормализованные снимки товаров"""
    with open(settings.seed_path, "r", encoding="utf-8") as f:
        data = json.load(f)
    products = tuple(
        normalize_product(p, settings.catalog_base_url) for p in data.get("products", [])
    )
    return products, tuple(data.get("coupons", []))


def get_store() -> CartStore:
    """Один экземпляр корзины на сессию; все страницы работают с ним"""
    if "cart_store" not in st.session_state:
        st.session_state.cart_store = CartStore(
            storage=JsonFileStorage(settings.storage_dir),
            storage_key=settings.storage_key,
            max_qty=settings.max_line_qty,
        )
    return st.session_state.cart_store


def get_wishlist() -> WishlistStore:
    if "wishlist" not in st.session_state:
        st.session_state.wishlist = WishlistStore(
            storage=JsonFileStorage(settings.storage_dir),
            storage_key=settings.wishlist_key,
        )
    return st.session_state.wishlist


# ============ Внешние сервисы (заглушки) ============
def validate_coupon(code: str, subtotal, coupons) -> Either[str, Coupon]:
    """Проверка промокода: в настоящем магазине это запрос к API"""
    rule = next((c for c in coupons if c["code"] == code), None)
    if rule is None:
        return Either.left("Неверный промокод")
    if rule["type"] == "percentage":
        discount = round(subtotal * rule["value"] / 100, 2)
    else:
        discount = rule["value"]
    return Either.right(
        Coupon(code=rule["code"], discount=discount, type=rule["type"], value=rule["value"])
    )


DELIVERY_OPTIONS = {
    "pickup": "🏬 Самовывоз",
    "inside_dhaka": "🚚 По Дакке",
    "outside_dhaka": "📦 За пределы Дакки",
}


def shipping_for(delivery: str) -> int:
    if delivery == "inside_dhaka":
        return settings.shipping_inside
    if delivery == "outside_dhaka":
        return settings.shipping_outside
    return 0


def format_price(amount) -> str:
    return f"{settings.currency} {float(amount or 0):,.2f}"


def show_notice(notice) -> None:
    if notice.is_some():
        n = notice.value
        if n.reason == "stock":
            st.warning(f"⚠️ Доступно только {n.allowed} шт.")
        else:
            st.warning(f"⚠️ Не больше {n.allowed} шт. в одной строке")


# ============ Инициализация ============
st.set_page_config(
    page_title="Storefront Cart",
    page_icon="🛒",
    layout="wide",
    initial_sidebar_state="expanded",
)

init_logging()
products, coupons = get_catalog()
store = get_store()
wishlist = get_wishlist()
checkout = CheckoutService(store)


# ============ SIDEBAR - Навигация ============
with st.sidebar:
    st.header("📂 Навигация")
    page = st.radio(
        "Выберите раздел:",
        ["🏪 Каталог", "❤️ Избранное", "🛒 Корзина", "✅ Оформление"],
        label_visibility="collapsed",
    )
    st.divider()
    st.metric("🛒 Товаров в корзине", store.item_count)
    st.metric("❤️ В избранном", wishlist.count)
    st.metric("💰 Подытог", format_price(store.totals().subtotal))


st.title("🛒 Интернет-магазин")


# ============ PAGE: КАТАЛОГ ============
if page == "🏪 Каталог":
    st.header("🏪 Каталог товаров")

    for p in products:
        with st.container():
            cols = st.columns([2, 5, 3, 3])
            with cols[0]:
                if p.image:
                    st.image(p.image, width=120)
                else:
                    st.write("📦")

            variant = None
            with cols[1]:
                st.markdown(f"**{p.name}**")
                if p.category:
                    st.caption(f"🏷️ {p.category}")
                if p.is_variable:
                    labels = {v.id: variant_label(v.attributes) or str(v.id) for v in p.variants}
                    variant_id = st.selectbox(
                        "Вариант",
                        list(labels),
                        format_func=lambda vid, labels=labels: labels[vid],
                        key=f"variant_{p.id}",
                    )
                    variant = find_variant(p, variant_id).get_or_else(None)

            controller = AddToCartController(store, p, selected_variant=variant)

            with cols[2]:
                price = resolve_price(variant if variant is not None else p).get_or_else(None)
                st.write(format_price(price) if price is not None else "Цена по запросу")
                qty = st.number_input(
                    "Кол-во",
                    min_value=1,
                    value=1,
                    key=f"qty_{p.id}",
                    label_visibility="collapsed",
                )
                controller.qty = qty

            with cols[3]:
                if controller.affordance == "view_cart":
                    st.success("✅ Уже в корзине")
                    if st.button("➕ Ещё", key=f"more_{p.id}"):
                        show_notice(controller.add())
                else:
                    if st.button("➕ В корзину", key=f"add_{p.id}"):
                        notice = controller.add()
                        show_notice(notice)
                        if notice.is_none():
                            st.rerun()
                if st.button("⚡ Купить сейчас", key=f"buy_{p.id}"):
                    snap = controller.buy_now()
                    st.info(f"К оплате: {format_price(snap.totals.total)}")
                heart = "💔 Из избранного" if wishlist.is_wishlisted(p.id) else "❤️ В избранное"
                if st.button(heart, key=f"wish_{p.id}"):
                    wishlist.toggle(p.id)
                    st.rerun()
            st.divider()


# ============ PAGE: ИЗБРАННОЕ ============
elif page == "❤️ Избранное":
    st.header("❤️ Избранное")

    saved = [p for p in products if wishlist.is_wishlisted(p.id)]
    if not saved:
        st.info("В избранном пока ничего нет")
    for p in saved:
        cols = st.columns([6, 3, 2])
        cols[0].markdown(f"**{p.name}**")
        price = resolve_price(p).get_or_else(None)
        cols[1].write(format_price(price) if price is not None else "Цена по запросу")
        if cols[2].button("✖️", key=f"unwish_{p.id}"):
            wishlist.toggle(p.id)
            st.rerun()


# ============ PAGE: КОРЗИНА ============
elif page == "🛒 Корзина":
    st.header("🛒 Ваша корзина")

    if not store.lines:
        st.info("🛍️ Корзина пуста. Перейдите в каталог!")
    else:
        for line in store.lines:
            with st.container():
                cols = st.columns([5, 2, 2, 1])
                with cols[0]:
                    st.write(f"**{line.name}**")
                    if line.variant_label:
                        st.caption(line.variant_label)
                    if line.price is None:
                        st.caption("⚠️ Цена не определена")
                with cols[1]:
                    new_qty = st.number_input(
                        "Кол-во",
                        min_value=1,
                        value=line.qty,
                        key=f"cart_qty_{line.line_id}",
                        label_visibility="collapsed",
                    )
                    if new_qty != line.qty:
                        show_notice(store.set_qty(line.line_id, new_qty))
                with cols[2]:
                    if line.old_price:
                        st.caption(f"~~{format_price(line.old_price * line.qty)}~~")
                    st.write(format_price((line.price or 0) * line.qty))
                with cols[3]:
                    if st.button("🗑️", key=f"remove_{line.line_id}"):
                        store.remove_item(line.line_id)
                        st.rerun()

        st.divider()

        # Промокод
        if store.coupon is not None:
            st.success(f"🎟️ Промокод {store.coupon.code}: -{format_price(store.coupon.discount)}")
            if st.button("Убрать промокод"):
                store.remove_coupon()
                st.rerun()
        else:
            code = st.text_input("🎟️ Промокод", key="coupon_code")
            if st.button("Применить", disabled=not code.strip()):
                result = validate_coupon(code.strip().upper(), store.totals().subtotal, coupons)
                if result.is_right:
                    store.apply_coupon(result.value)
                    st.rerun()
                else:
                    st.error(f"❌ {result.value}")

        totals = store.totals()
        st.markdown(f"### 💰 Подытог: **{format_price(totals.subtotal)}**")
        if totals.discount:
            st.markdown(f"Скидка: -{format_price(totals.discount)}")
        if totals.incomplete:
            st.warning("⚠️ У некоторых товаров нет цены, итог неполный")

        if st.button("🧹 Очистить корзину"):
            store.clear_cart()
            st.rerun()


# ============ PAGE: ОФОРМЛЕНИЕ ============
elif page == "✅ Оформление":
    st.header("✅ Оформление заказа")

    delivery = st.radio(
        "Доставка",
        list(DELIVERY_OPTIONS),
        format_func=lambda d: DELIVERY_OPTIONS[d],
        horizontal=True,
    )
    result = checkout.prepare(shipping_for(delivery))

    if result.is_left:
        st.info(f"🛍️ {result.value['error']}")
    else:
        snap = result.value
        col1, col2, col3, col4 = st.columns(4)
        with col1:
            st.metric("Подытог", format_price(snap.totals.subtotal))
        with col2:
            shipping = snap.totals.shipping
            st.metric("Доставка", "Бесплатно" if shipping == 0 else format_price(shipping))
        with col3:
            st.metric("Скидка", f"-{format_price(snap.totals.discount)}")
        with col4:
            st.metric("Итого", format_price(snap.totals.total))

        with st.expander("📄 Данные заказа"):
            st.json(CheckoutService.order_payload(snap))

        if st.button("✅ Оформить заказ", type="primary", use_container_width=True):
            payload = CheckoutService.order_payload(snap)
            logger.info("order_submitted", total=payload["total"], lines=len(payload["items"]))
            checkout.complete()
            st.success(f"🎉 Заказ оформлен! Сумма: {format_price(payload['total'])}")
            st.balloons()
