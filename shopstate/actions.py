import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Mapping, Union

from .domain import Action, CartLine


class AuthActionType(str, Enum):
    AUTH_START = "AUTH_START"
    AUTH_SUCCESS = "AUTH_SUCCESS"
    AUTH_FAIL = "AUTH_FAIL"
    AUTH_LOGOUT = "AUTH_LOGOUT"


class CartActionType(str, Enum):
    FETCH_CART_START = "FETCH_CART_START"
    FETCH_CART_SUCCESS = "FETCH_CART_SUCCESS"
    FETCH_CART_FAIL = "FETCH_CART_FAIL"
    ADD_PRODUCT_TO_CART_START = "ADD_PRODUCT_TO_CART_START"
    ADD_PRODUCT_TO_CART_SUCCESS = "ADD_PRODUCT_TO_CART_SUCCESS"
    ADD_PRODUCT_TO_CART_FAIL = "ADD_PRODUCT_TO_CART_FAIL"
    REMOVE_PRODUCT_FROM_CART_START = "REMOVE_PRODUCT_FROM_CART_START"
    REMOVE_PRODUCT_FROM_CART_SUCCESS = "REMOVE_PRODUCT_FROM_CART_SUCCESS"
    REMOVE_PRODUCT_FROM_CART_FAIL = "REMOVE_PRODUCT_FROM_CART_FAIL"


class OrderActionType(str, Enum):
    FETCH_ORDERS_START = "FETCH_ORDERS_START"
    FETCH_ORDERS_SUCCESS = "FETCH_ORDERS_SUCCESS"
    FETCH_ORDERS_FAIL = "FETCH_ORDERS_FAIL"


class ShopActionType(str, Enum):
    FETCH_PRODUCTS_START = "FETCH_PRODUCTS_START"
    FETCH_PRODUCTS_SUCCESS = "FETCH_PRODUCTS_SUCCESS"
    FETCH_PRODUCTS_FAIL = "FETCH_PRODUCTS_FAIL"


# ============ Конструктор действий ============


def create_action(action_type: Enum, **payload: Any) -> Action:
    """Создаёт действие с уникальным id и меткой времени"""
    return Action(
        type=action_type,
        payload=payload,
        id=str(uuid.uuid4()),
        ts=datetime.now().isoformat(),
    )


# ============ Auth ============


def auth_start() -> Action:
    return create_action(AuthActionType.AUTH_START)


def auth_success(token: str, user_id: str, email: str) -> Action:
    return create_action(
        AuthActionType.AUTH_SUCCESS, token=token, user_id=user_id, email=email
    )


def auth_fail(error: str) -> Action:
    return create_action(AuthActionType.AUTH_FAIL, error=error)


def auth_logout() -> Action:
    return create_action(AuthActionType.AUTH_LOGOUT)


# ============ Cart ============


def fetch_cart_start() -> Action:
    return create_action(CartActionType.FETCH_CART_START)


def fetch_cart_success(cart: Mapping[str, Any]) -> Action:
    return create_action(CartActionType.FETCH_CART_SUCCESS, cart=cart)


def fetch_cart_fail(error: str) -> Action:
    return create_action(CartActionType.FETCH_CART_FAIL, error=error)


def add_product_to_cart_start() -> Action:
    return create_action(CartActionType.ADD_PRODUCT_TO_CART_START)


def add_product_to_cart_success(
    products: Iterable[Union[CartLine, Mapping[str, Any]]]
) -> Action:
    return create_action(
        CartActionType.ADD_PRODUCT_TO_CART_SUCCESS, products=tuple(products)
    )


def add_product_to_cart_fail(error: str) -> Action:
    return create_action(CartActionType.ADD_PRODUCT_TO_CART_FAIL, error=error)


def remove_product_from_cart_start() -> Action:
    return create_action(CartActionType.REMOVE_PRODUCT_FROM_CART_START)


def remove_product_from_cart_success(product_id: str) -> Action:
    return create_action(
        CartActionType.REMOVE_PRODUCT_FROM_CART_SUCCESS, product_id=product_id
    )


def remove_product_from_cart_fail(error: str) -> Action:
    return create_action(CartActionType.REMOVE_PRODUCT_FROM_CART_FAIL, error=error)


# ============ Orders ============


def fetch_orders_start() -> Action:
    return create_action(OrderActionType.FETCH_ORDERS_START)


def fetch_orders_success(orders: Iterable[Mapping[str, Any]]) -> Action:
    return create_action(OrderActionType.FETCH_ORDERS_SUCCESS, orders=tuple(orders))


def fetch_orders_fail(error: str) -> Action:
    return create_action(OrderActionType.FETCH_ORDERS_FAIL, error=error)


# ============ Shop ============


def fetch_products_start() -> Action:
    return create_action(ShopActionType.FETCH_PRODUCTS_START)


def fetch_products_success(
    products: Iterable[Mapping[str, Any]], page_number: int
) -> Action:
    return create_action(
        ShopActionType.FETCH_PRODUCTS_SUCCESS,
        products=tuple(products),
        page_number=page_number,
    )


def fetch_products_fail(error: str) -> Action:
    return create_action(ShopActionType.FETCH_PRODUCTS_FAIL, error=error)
