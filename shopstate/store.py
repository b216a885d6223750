from dataclasses import dataclass, field, replace
from functools import reduce
from typing import Iterable, Optional, Tuple

import structlog

from .auth import auth_reducer
from .cart import cart_reducer
from .config import get_settings
from .domain import Action, RootState
from .ftypes import Maybe
from .orders import order_reducer
from .reducer import Reducer
from .shop import shop_reducer

logger = structlog.get_logger(__name__)

# Слайс состояния -> reducer домена
ROOT_REDUCERS: Tuple[Tuple[str, Reducer], ...] = (
    ("auth", auth_reducer),
    ("cart", cart_reducer),
    ("orders", order_reducer),
    ("shop", shop_reducer),
)


def initial_state() -> RootState:
    """Начальное состояние всех четырёх доменов"""
    return RootState()


def slice_for(action: Action) -> Maybe[Tuple[str, Reducer]]:
    """Находит слайс, которому принадлежит тип действия"""
    return Maybe.first(ROOT_REDUCERS, lambda entry: entry[1].owns(action.type))


def root_reducer(state: Optional[RootState] = None, action: Optional[Action] = None) -> RootState:
    """
    Корневой reducer: действие уходит только в reducer своего домена,
    остальные слайсы возвращаются как есть (тот же объект)
    """
    current = initial_state() if state is None else state
    if action is None:
        return current

    def apply(entry: Tuple[str, Reducer]) -> RootState:
        key, domain_reducer = entry
        updated = domain_reducer(getattr(current, key), action)
        return replace(current, **{key: updated})

    return slice_for(action).map(apply).get_or_else(current)


@dataclass(frozen=True)
class Store:
    """
    Иммутабельный контейнер состояния, которым владеет вызывающий код.
    dispatch() не меняет Store, а возвращает новый
    """

    state: RootState = field(default_factory=initial_state)
    history: Tuple[Action, ...] = ()
    history_limit: int = field(default_factory=lambda: get_settings().history_limit)

    def dispatch(self, action: Optional[Action]) -> "Store":
        if action is None:
            return self
        new_state = root_reducer(self.state, action)
        if new_state is self.state:
            logger.debug("Ignored action", action_type=str(action.type))
        else:
            logger.debug("Dispatched action", action_type=action.type.value, action_id=action.id)

        history = (self.history + (action,))[-self.history_limit :] if self.history_limit > 0 else ()
        return replace(self, state=new_state, history=history)

    def replay(self) -> "Store":
        """Пересобирает состояние из истории действий с нуля"""
        fresh = Store(history_limit=self.history_limit)
        return apply_actions(fresh, self.history)


def apply_actions(store: Store, actions: Iterable[Action]) -> Store:
    """
    Применяет последовательность действий к store
    Чистая функция: (store, actions) -> store
    """
    return reduce(lambda s, a: s.dispatch(a), actions, store)
