import math
from dataclasses import asdict
from functools import reduce
from typing import Any, Dict, Mapping

from .cart import PRICE_PRECISION, line_total, lines_total
from .domain import AUTH_PLACEHOLDER_TOKEN, AuthState, CartState, OrderState, RootState, ShopState


# ============ Auth ============


def is_authenticated(auth: AuthState) -> bool:
    """Токен-заглушка до входа не считается сессией"""
    return auth.token is not None and auth.token != AUTH_PLACEHOLDER_TOKEN


def auth_headers(auth: AuthState) -> Dict[str, str]:
    """Заголовки для запросов от имени пользователя"""
    if not is_authenticated(auth):
        return {}

    headers = {"Authorization": f"Bearer {auth.token}"}
    if auth.user_id:
        headers["UserId"] = auth.user_id
    return headers


# ============ Cart ============


def cart_item_count(cart: CartState) -> int:
    return reduce(lambda acc, line: acc + line.quantity, cart.products, 0)


def computed_cart_total(cart: CartState) -> float:
    """Итог корзины, посчитанный по строкам, а не взятый с сервера"""
    return lines_total(cart.products)


def cart_total_is_consistent(cart: CartState) -> bool:
    """
    total_price == sum(price * quantity)
    После ADD_PRODUCT_TO_CART_SUCCESS может быть False: итог там не пересчитывается
    """
    exact = reduce(lambda acc, line: acc + line_total(line), cart.products, 0)
    return math.isclose(cart.total_price, exact, rel_tol=1e-9, abs_tol=1e-9)


def cart_breakdown(cart: CartState) -> list:
    """Строки корзины с суммой по каждой строке"""
    return [
        {
            "product_id": line.product_id,
            "quantity": line.quantity,
            "price": line.price,
            "line_total": round(line_total(line), PRICE_PRECISION),
        }
        for line in cart.products
    ]


# ============ Shop ============


def has_next_page(shop: ShopState) -> bool:
    return shop.current_page < shop.last_page


def has_previous_page(shop: ShopState) -> bool:
    return shop.current_page > 1


# ============ Orders ============


def order_amount(order: Mapping[str, Any]) -> float:
    """У заказов клиента поле total, у созданных заказов - totalPrice"""
    return order.get("total", order.get("totalPrice", 0)) or 0


def orders_total(orders: OrderState) -> float:
    total = reduce(lambda acc, o: acc + order_amount(o), orders.orders, 0)
    return round(total, PRICE_PRECISION)


def orders_by_status(orders: OrderState) -> Dict[str, int]:
    def count(acc: dict, order: Mapping[str, Any]) -> dict:
        status = order.get("status", "unknown")
        return {**acc, status: acc.get(status, 0) + 1}

    return reduce(count, orders.orders, {})


# ============ Снимок для отображения ============


def state_snapshot(state: RootState) -> Dict[str, Any]:
    """Состояние как обычный dict (для вывода и сериализации)"""
    snapshot = asdict(state)
    snapshot["cart"]["computed_total"] = computed_cart_total(state.cart)
    snapshot["cart"]["consistent"] = cart_total_is_consistent(state.cart)
    return snapshot
