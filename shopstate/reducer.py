from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, Optional, Tuple, Type, TypeVar

from .domain import Action
from .ftypes import Maybe

S = TypeVar("S")
Handler = Callable[[Action, S], S]


@dataclass(frozen=True)
class Reducer(Generic[S]):
    """
    Иммутабельный reducer одного домена.
    Обработчики - чистые функции: (Action, State) -> State
    Вызов reducer'а: (State, Action) -> State
    """

    initial: Callable[[], S]
    action_types: Type[Enum]
    handlers: Tuple[Tuple[Enum, Handler], ...] = ()

    def on(self, *action_types: Enum, handler: Handler) -> "Reducer[S]":
        """
        Возвращает новый reducer с обработчиком для перечисленных типов
        """
        foreign = tuple(t for t in action_types if not self.owns(t))
        if foreign:
            raise TypeError(
                f"{self.action_types.__name__} does not define {foreign!r}"
            )
        added = tuple((t, handler) for t in action_types)
        return Reducer(self.initial, self.action_types, self.handlers + added)

    def owns(self, action_type: object) -> bool:
        return isinstance(action_type, self.action_types)

    def handler_for(self, action_type: Enum) -> Maybe[Handler]:
        return Maybe.first(
            (handler for name, handler in self.handlers if name is action_type),
            lambda handler: True,
        )

    def missing(self) -> Tuple[Enum, ...]:
        """Типы действий домена без обработчика"""
        covered = {name for name, _ in self.handlers}
        return tuple(t for t in self.action_types if t not in covered)

    def sealed(self) -> "Reducer[S]":
        """
        Проверка полноты: каждый тип действия домена обязан иметь обработчик.
        Новый тип в Enum без обработчика ломает импорт модуля.
        """
        missing = self.missing()
        if missing:
            names = ", ".join(t.name for t in missing)
            raise TypeError(f"{self.action_types.__name__} is not handled: {names}")
        return self

    def __call__(self, state: Optional[S] = None, action: Optional[Action] = None) -> S:
        current = self.initial() if state is None else state
        if action is None or not self.owns(action.type):
            return current

        return (
            self.handler_for(action.type)
            .map(lambda handler: handler(action, current))
            .get_or_else(current)
        )
