from dataclasses import replace
from functools import reduce
from typing import Any, Iterable, Mapping, Tuple, Union

from .actions import CartActionType
from .domain import Action, CartLine, CartState
from .ftypes import Maybe
from .reducer import Reducer

# Округление только для отображения сумм
PRICE_PRECISION = 2
# Срезает хвосты float (0.30000000000000004), не трогая дробные цены вроде 0.125
RESIDUE_DIGITS = 10


# ============ Арифметика корзины (чистые функции) ============


def line_total(line: CartLine) -> float:
    return line.price * line.quantity


def lines_total(lines: Iterable[CartLine]) -> float:
    """Сумма price * quantity по всем строкам через reduce"""
    total = reduce(lambda acc, line: acc + line_total(line), lines, 0)
    return round(total, RESIDUE_DIGITS)


def subtract_price(total: float, amount: float) -> float:
    """Уменьшает итог корзины; итог не уходит ниже нуля"""
    return max(round(total - amount, RESIDUE_DIGITS), 0)


def to_lines(raw_lines: Iterable[Union[CartLine, Mapping[str, Any]]]) -> Tuple[CartLine, ...]:
    return tuple(map(CartLine.from_payload, raw_lines or ()))


def find_line(lines: Tuple[CartLine, ...], product_id: str) -> Maybe[CartLine]:
    return Maybe.first(lines, lambda line: line.product_id == str(product_id))


def remove_line(state: CartState, line: CartLine) -> CartState:
    """
    Удаляет строку и пересчитывает итог локально.
    Последняя строка -> пустая корзина с итогом ровно 0.
    """
    remaining = tuple(other for other in state.products if other is not line)
    total = subtract_price(state.total_price, line_total(line)) if remaining else 0
    return replace(state, products=remaining, total_price=total, loading=False)


# ============ Обработчики ============


def handle_fetch_cart_start(action: Action, state: CartState) -> CartState:
    return replace(state, loading=True, to_cart=False)


def handle_start(action: Action, state: CartState) -> CartState:
    return replace(state, loading=True)


def handle_fetch_cart_success(action: Action, state: CartState) -> CartState:
    """Корзина с сервера: доверяем серверному итогу"""
    cart = action.payload.get("cart") or {}
    return replace(
        state,
        products=to_lines(cart.get("products", ())),
        total_price=cart.get("totalPrice") or 0,
        loading=False,
    )


def handle_add_product_success(action: Action, state: CartState) -> CartState:
    """
    Заменяет строки корзины ответом сервера.
    total_price здесь НЕ пересчитывается (в отличие от удаления).
    """
    return replace(
        state, products=to_lines(action.payload.get("products", ())), loading=False
    )


def handle_remove_product_success(action: Action, state: CartState) -> CartState:
    product_id = action.payload.get("product_id")
    return (
        find_line(state.products, product_id)
        .map(lambda line: remove_line(state, line))
        .get_or_else(replace(state, loading=False))
    )


def handle_fail(action: Action, state: CartState) -> CartState:
    return replace(state, error=action.payload.get("error"), loading=False)


cart_reducer = (
    Reducer(initial=CartState, action_types=CartActionType)
    .on(CartActionType.FETCH_CART_START, handler=handle_fetch_cart_start)
    .on(
        CartActionType.ADD_PRODUCT_TO_CART_START,
        CartActionType.REMOVE_PRODUCT_FROM_CART_START,
        handler=handle_start,
    )
    .on(CartActionType.FETCH_CART_SUCCESS, handler=handle_fetch_cart_success)
    .on(CartActionType.ADD_PRODUCT_TO_CART_SUCCESS, handler=handle_add_product_success)
    .on(
        CartActionType.REMOVE_PRODUCT_FROM_CART_SUCCESS,
        handler=handle_remove_product_success,
    )
    .on(
        CartActionType.FETCH_CART_FAIL,
        CartActionType.ADD_PRODUCT_TO_CART_FAIL,
        CartActionType.REMOVE_PRODUCT_FROM_CART_FAIL,
        handler=handle_fail,
    )
    .sealed()
)
