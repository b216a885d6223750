from dataclasses import replace

from .actions import ShopActionType
from .domain import Action, ShopState
from .reducer import Reducer


def handle_fetch_products_start(action: Action, state: ShopState) -> ShopState:
    return replace(state, loading=True)


def handle_fetch_products_success(action: Action, state: ShopState) -> ShopState:
    """
    Страница каталога: товары не накапливаются между страницами,
    current_page берётся из последнего успешного ответа
    """
    return replace(
        state,
        products=tuple(action.payload.get("products", ())),
        current_page=action.payload.get("page_number", state.current_page),
        loading=False,
    )


def handle_fetch_products_fail(action: Action, state: ShopState) -> ShopState:
    return replace(state, error=action.payload.get("error"), loading=False)


shop_reducer = (
    Reducer(initial=ShopState, action_types=ShopActionType)
    .on(ShopActionType.FETCH_PRODUCTS_START, handler=handle_fetch_products_start)
    .on(ShopActionType.FETCH_PRODUCTS_SUCCESS, handler=handle_fetch_products_success)
    .on(ShopActionType.FETCH_PRODUCTS_FAIL, handler=handle_fetch_products_fail)
    .sealed()
)
