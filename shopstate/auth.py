from dataclasses import replace

from .actions import AuthActionType
from .domain import Action, AuthState
from .reducer import Reducer


def handle_auth_start(action: Action, state: AuthState) -> AuthState:
    """Начало входа: ошибка предыдущей попытки сбрасывается"""
    return replace(state, loading=True, error=None)


def handle_auth_success(action: Action, state: AuthState) -> AuthState:
    return replace(
        state,
        token=action.payload.get("token"),
        user_id=action.payload.get("user_id"),
        email=action.payload.get("email"),
        loading=False,
        error=None,
    )


def handle_auth_fail(action: Action, state: AuthState) -> AuthState:
    """Учётные данные не трогаем"""
    return replace(state, error=action.payload.get("error"), loading=False)


def handle_auth_logout(action: Action, state: AuthState) -> AuthState:
    """Чистит только сессию; loading и error остаются как были"""
    return replace(state, token=None, user_id=None, email=None)


auth_reducer = (
    Reducer(initial=AuthState, action_types=AuthActionType)
    .on(AuthActionType.AUTH_START, handler=handle_auth_start)
    .on(AuthActionType.AUTH_SUCCESS, handler=handle_auth_success)
    .on(AuthActionType.AUTH_FAIL, handler=handle_auth_fail)
    .on(AuthActionType.AUTH_LOGOUT, handler=handle_auth_logout)
    .sealed()
)
