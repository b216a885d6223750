from dataclasses import replace

from .actions import OrderActionType
from .domain import Action, OrderState
from .reducer import Reducer


def handle_fetch_orders_start(action: Action, state: OrderState) -> OrderState:
    return replace(state, loading=True)


def handle_fetch_orders_success(action: Action, state: OrderState) -> OrderState:
    """Новый снимок истории заказов полностью заменяет прежний"""
    return replace(
        state, orders=tuple(action.payload.get("orders", ())), loading=False
    )


def handle_fetch_orders_fail(action: Action, state: OrderState) -> OrderState:
    return replace(state, error=action.payload.get("error"), loading=False)


order_reducer = (
    Reducer(initial=OrderState, action_types=OrderActionType)
    .on(OrderActionType.FETCH_ORDERS_START, handler=handle_fetch_orders_start)
    .on(OrderActionType.FETCH_ORDERS_SUCCESS, handler=handle_fetch_orders_success)
    .on(OrderActionType.FETCH_ORDERS_FAIL, handler=handle_fetch_orders_fail)
    .sealed()
)
