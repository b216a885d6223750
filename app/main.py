import sys
import os
import json
import streamlit as st

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from shopstate import actions
from shopstate import async_ops
from shopstate.api import ShopApi
from shopstate.config import configure_logging, get_settings
from shopstate.selectors import (
    cart_breakdown,
    cart_item_count,
    cart_total_is_consistent,
    computed_cart_total,
    has_next_page,
    has_previous_page,
    is_authenticated,
    orders_total,
    state_snapshot,
)
from shopstate.store import Store


# ============ Инициализация ============
st.set_page_config(
    page_title="Store Devtools",
    page_icon="🛒",
    layout="wide",
    initial_sidebar_state="expanded",
)


@st.cache_resource
def setup_logging():
    configure_logging(get_settings())
    return True


setup_logging()

if "store" not in st.session_state:
    st.session_state.store = Store()


def dispatch(action):
    st.session_state.store = st.session_state.store.dispatch(action)


async def call_api(operation, *args):
    """Новый клиент на каждый вызов: asyncio.run создаёт свой event loop"""
    async with ShopApi.from_settings() as api:
        return await operation(api, *args)


def format_price(amount) -> str:
    return f"${amount:,.2f}"


def parse_json(raw: str, default):
    try:
        return json.loads(raw) if raw.strip() else default
    except ValueError as exc:
        st.error(f"❌ Некорректный JSON: {exc}")
        return None


# ============ HEADER ============
st.title("🛒 Store Devtools")
st.caption(f"API: {get_settings().api_url}")

store = st.session_state.store
state = store.state

# ============ SIDEBAR ============
with st.sidebar:
    st.header("📂 Раздел")
    page = st.radio(
        "Раздел:",
        ["🔐 Auth", "🛒 Cart", "🧾 Orders", "🏪 Shop", "📜 History"],
        label_visibility="collapsed",
    )
    st.divider()
    st.metric("Действий в истории", len(store.history))
    if st.button("🔁 Replay"):
        st.session_state.store = store.replay()
        st.rerun()
    if st.button("🧹 Сброс"):
        st.session_state.store = Store()
        st.rerun()


# ============ PAGE: AUTH ============
if page == "🔐 Auth":
    st.header("🔐 Сессия")

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Вход выполнен", "да" if is_authenticated(state.auth) else "нет")
    with col2:
        st.metric("Загрузка", "да" if state.auth.loading else "нет")
    with col3:
        st.metric("Ошибка", state.auth.error or "—")

    with st.form("login"):
        email = st.text_input("Email")
        password = st.text_input("Пароль", type="password")
        if st.form_submit_button("Войти через API"):
            st.session_state.store = async_ops.run_sync(
                call_api(async_ops.login, store, email, password)
            )
            st.rerun()

    cols = st.columns(4)
    if cols[0].button("AUTH_START"):
        dispatch(actions.auth_start())
        st.rerun()
    if cols[1].button("AUTH_SUCCESS (demo)"):
        dispatch(actions.auth_success("demo-token", "user-1", "demo@example.com"))
        st.rerun()
    if cols[2].button("AUTH_FAIL"):
        dispatch(actions.auth_fail("Invalid credentials"))
        st.rerun()
    if cols[3].button("AUTH_LOGOUT"):
        dispatch(actions.auth_logout())
        st.rerun()

    st.json(state_snapshot(state)["auth"])


# ============ PAGE: CART ============
elif page == "🛒 Cart":
    st.header("🛒 Корзина")

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Товаров", cart_item_count(state.cart))
    with col2:
        st.metric("Итог (state)", format_price(state.cart.total_price))
    with col3:
        st.metric("Итог (по строкам)", format_price(computed_cart_total(state.cart)))

    if not cart_total_is_consistent(state.cart):
        st.warning("⚠️ total_price расходится с суммой строк")

    if state.cart.products:
        st.table(cart_breakdown(state.cart))
    else:
        st.info("🛍️ Корзина пуста")

    raw = st.text_area(
        "Строки корзины (JSON)",
        '[{"productId": {"_id": "1"}, "price": 10, "quantity": 2}]',
    )
    cols = st.columns(3)
    if cols[0].button("FETCH_CART_SUCCESS"):
        lines = parse_json(raw, [])
        if lines is not None:
            total = sum(line.get("price", 0) * line.get("quantity", 1) for line in lines)
            dispatch(actions.fetch_cart_success({"products": lines, "totalPrice": total}))
            st.rerun()
    if cols[1].button("ADD_PRODUCT_TO_CART_SUCCESS"):
        lines = parse_json(raw, [])
        if lines is not None:
            dispatch(actions.add_product_to_cart_success(lines))
            st.rerun()

    product_id = cols[2].text_input("productId", "1", label_visibility="collapsed")
    if cols[2].button("REMOVE_PRODUCT_FROM_CART_SUCCESS"):
        dispatch(actions.remove_product_from_cart_success(product_id))
        st.rerun()

    if st.button("Загрузить корзину через API"):
        st.session_state.store = async_ops.run_sync(call_api(async_ops.fetch_cart, store))
        st.rerun()


# ============ PAGE: ORDERS ============
elif page == "🧾 Orders":
    st.header("🧾 Заказы")

    col1, col2 = st.columns(2)
    with col1:
        st.metric("Заказов", len(state.orders.orders))
    with col2:
        st.metric("Сумма", format_price(orders_total(state.orders)))

    if st.button("Загрузить заказы через API"):
        st.session_state.store = async_ops.run_sync(call_api(async_ops.fetch_orders, store))
        st.rerun()

    for order in state.orders.orders:
        st.write(f"• **{order.get('orderId', order.get('id', '?'))}** — {order.get('status', '')}")

    if state.orders.error:
        st.error(f"❌ {state.orders.error}")


# ============ PAGE: SHOP ============
elif page == "🏪 Shop":
    st.header("🏪 Каталог")

    st.caption(f"Страница {state.shop.current_page} из {state.shop.last_page}")
    cols = st.columns(2)
    if cols[0].button("⬅️ Назад", disabled=not has_previous_page(state.shop)):
        st.session_state.store = async_ops.run_sync(
            call_api(async_ops.fetch_products, store, state.shop.current_page - 1)
        )
        st.rerun()
    if cols[1].button("Вперёд ➡️", disabled=not has_next_page(state.shop)):
        st.session_state.store = async_ops.run_sync(
            call_api(async_ops.fetch_products, store, state.shop.current_page + 1)
        )
        st.rerun()

    if state.shop.loading:
        st.info("⏳ Загрузка...")
    for product in state.shop.products:
        st.write(f"**{product.get('title', product.get('_id'))}** — {format_price(product.get('price', 0))}")

    if state.shop.error:
        st.error(f"❌ {state.shop.error}")


# ============ PAGE: HISTORY ============
elif page == "📜 History":
    st.header("📜 История действий")

    if not store.history:
        st.info("Действий пока не было")
    for action in reversed(store.history):
        with st.expander(f"{action.ts} · {action.type.value}"):
            st.write(dict(action.payload))

    st.divider()
    st.subheader("Текущее состояние")
    st.json(state_snapshot(state))
