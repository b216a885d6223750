import asyncio
from typing import Any, Callable, Dict, Mapping

import structlog

from . import actions
from .api import ApiError, ShopApi
from .domain import Action
from .ftypes import Either
from .selectors import auth_headers, computed_cart_total
from .store import Store

logger = structlog.get_logger(__name__)

EMPTY_CART_MESSAGE = "Cart is empty"


# ============ Шаблон START -> запрос -> SUCCESS / FAIL ============


async def run_triad(
    store: Store,
    start: Action,
    request: Callable[[], Any],
    on_success: Callable[[Dict[str, Any]], Action],
    on_fail: Callable[[str], Action],
) -> Store:
    """
    Диспатчит START, ждёт ответ API и диспатчит SUCCESS или FAIL.
    Ошибки HTTP и сети приходят как Left и становятся FAIL-действием
    """
    store = store.dispatch(start)
    result: Either[ApiError, Dict[str, Any]] = await request()
    return store.dispatch(
        result.fold(lambda error: on_fail(error.message), on_success)
    )


# ============ Каталог ============


async def fetch_products(api: ShopApi, store: Store, page: int = 1) -> Store:
    return await run_triad(
        store,
        actions.fetch_products_start(),
        lambda: api.get_products(page),
        lambda body: actions.fetch_products_success(body.get("products") or [], page),
        actions.fetch_products_fail,
    )


async def get_product(api: ShopApi, product_id: str) -> Either[ApiError, Dict[str, Any]]:
    """Карточка товара; у каталога нет слайса под неё"""
    result = await api.get_product(product_id)
    return result.map(lambda body: body.get("product") or body)


# ============ Аутентификация ============


def on_auth_success(body: Mapping[str, Any]) -> Action:
    return actions.auth_success(body.get("token"), body.get("userId"), body.get("email"))


async def login(api: ShopApi, store: Store, email: str, password: str) -> Store:
    return await run_triad(
        store,
        actions.auth_start(),
        lambda: api.login(email, password),
        on_auth_success,
        actions.auth_fail,
    )


async def signup(
    api: ShopApi, store: Store, email: str, password: str, confirm_password: str
) -> Store:
    return await run_triad(
        store,
        actions.auth_start(),
        lambda: api.signup(email, password, confirm_password),
        on_auth_success,
        actions.auth_fail,
    )


async def admin_login(api: ShopApi, store: Store, email: str, password: str) -> Store:
    return await run_triad(
        store,
        actions.auth_start(),
        lambda: api.admin_login(email, password),
        on_auth_success,
        actions.auth_fail,
    )


def logout(store: Store) -> Store:
    return store.dispatch(actions.auth_logout())


# ============ Корзина ============


async def fetch_cart(api: ShopApi, store: Store) -> Store:
    headers = auth_headers(store.state.auth)
    return await run_triad(
        store,
        actions.fetch_cart_start(),
        lambda: api.get_cart(headers),
        lambda body: actions.fetch_cart_success(body.get("cart") or body),
        actions.fetch_cart_fail,
    )


async def add_product_to_cart(api: ShopApi, store: Store, product_id: str) -> Store:
    headers = auth_headers(store.state.auth)
    return await run_triad(
        store,
        actions.add_product_to_cart_start(),
        lambda: api.add_to_cart(product_id, headers),
        lambda body: actions.add_product_to_cart_success(
            (body.get("cart") or {}).get("products") or []
        ),
        actions.add_product_to_cart_fail,
    )


async def remove_product_from_cart(api: ShopApi, store: Store, product_id: str) -> Store:
    """Итог корзины после удаления пересчитывает reducer, а не сервер"""
    headers = auth_headers(store.state.auth)
    return await run_triad(
        store,
        actions.remove_product_from_cart_start(),
        lambda: api.remove_from_cart(product_id, headers),
        lambda body: actions.remove_product_from_cart_success(product_id),
        actions.remove_product_from_cart_fail,
    )


# ============ Заказы ============


async def fetch_orders(api: ShopApi, store: Store) -> Store:
    headers = auth_headers(store.state.auth)
    return await run_triad(
        store,
        actions.fetch_orders_start(),
        lambda: api.get_orders(headers),
        lambda body: actions.fetch_orders_success(body.get("orders") or []),
        actions.fetch_orders_fail,
    )


async def fetch_all_orders(api: ShopApi, store: Store) -> Store:
    """Все заказы магазина (для администратора) в тот же слайс orders"""
    headers = auth_headers(store.state.auth)
    return await run_triad(
        store,
        actions.fetch_orders_start(),
        lambda: api.get_all_orders(headers),
        lambda body: actions.fetch_orders_success(body.get("orders") or []),
        actions.fetch_orders_fail,
    )


async def checkout(
    api: ShopApi, store: Store, payment_token: str, currency: str = "usd"
) -> Either[ApiError, Dict[str, Any]]:
    """
    Оформление: проверка наличия, оплата, затем создание заказа.
    Store не меняется ни при успехе, ни при ошибке: корзина сохраняется,
    свежие заказы подтягиваются отдельным fetch_orders
    """
    cart = store.state.cart
    if not cart.products:
        return Either.left(ApiError(status=None, message=EMPTY_CART_MESSAGE))

    headers = auth_headers(store.state.auth)
    amount = computed_cart_total(cart)
    lines = [
        {"productId": line.product_id, "quantity": line.quantity, "price": line.price}
        for line in cart.products
    ]

    # Наличие товаров проверяется до оплаты
    validation = await api.validate_checkout(lines, headers)
    if validation.is_left:
        logger.warning("Checkout validation failed", message=validation.value.message)
        return validation

    payment = await api.process_payment(amount, payment_token, headers, currency)
    if payment.is_left:
        logger.warning("Payment failed", amount=amount, message=payment.value.message)
        return payment

    transaction_id = payment.value.get("transactionId")
    order = await api.create_order(
        lines,
        transaction_id,
        headers,
        customerId=store.state.auth.user_id,
        totalAmount=amount,
    )
    if order.is_right:
        logger.info("Order created", transaction_id=transaction_id, amount=amount)
    return order


# ============ Администрирование ============


async def create_product(
    api: ShopApi, store: Store, product: Mapping[str, Any]
) -> Either[ApiError, Dict[str, Any]]:
    return await api.create_product(product, auth_headers(store.state.auth))


async def update_product(
    api: ShopApi, store: Store, product_id: str, product: Mapping[str, Any]
) -> Either[ApiError, Dict[str, Any]]:
    return await api.update_product(product_id, product, auth_headers(store.state.auth))


async def delete_product(
    api: ShopApi, store: Store, product_id: str
) -> Either[ApiError, Dict[str, Any]]:
    return await api.delete_product(product_id, auth_headers(store.state.auth))


async def update_order_status(
    api: ShopApi, store: Store, order_id: str, status: str
) -> Either[ApiError, Dict[str, Any]]:
    return await api.update_order_status(order_id, status, auth_headers(store.state.auth))


# ============ Синхронная обёртка ============


def run_sync(coro):
    """Синхронная обёртка для использования в UI"""
    return asyncio.run(coro)
