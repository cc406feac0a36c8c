"""
Events — уведомления oracle и sentry

Immutable Pydantic модели событий и EventEmitter, который:
- валидирует payload события против JSON Schema контракта
- сохраняет историю событий
- рассылает события подписчикам

События:
- Updated(price0_cumulative, price1_cumulative) — после успешного update()
- AddSentryStrategy / RemoveSentryStrategy / UpdateSanctionsList — sentry
"""

import logging
from collections import deque
from typing import Callable, ClassVar, Deque, Final, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from src.core.contracts import validate_event
from src.core.math.numerical_safeguards import UINT256_MAX

_log = logging.getLogger(__name__)

# Сколько последних событий хранит EventEmitter по умолчанию
DEFAULT_HISTORY_LIMIT: Final[int] = 256


# =============================================================================
# EVENT MODELS
# =============================================================================


class Updated(BaseModel):
    """Oracle обновил средние значения."""

    schema_name: ClassVar[str] = "oracle_updated"

    event: Literal["Updated"] = "Updated"
    price0_cumulative: int = Field(..., ge=0, le=UINT256_MAX)
    price1_cumulative: int = Field(..., ge=0, le=UINT256_MAX)

    model_config = {"frozen": True}


class AddSentryStrategy(BaseModel):
    """В sentry зарегистрирована стратегия."""

    schema_name: ClassVar[str] = "sentry_event"

    event: Literal["AddSentryStrategy"] = "AddSentryStrategy"
    strategy: str = Field(..., min_length=1)

    model_config = {"frozen": True}


class RemoveSentryStrategy(BaseModel):
    """Стратегия удалена из sentry."""

    schema_name: ClassVar[str] = "sentry_event"

    event: Literal["RemoveSentryStrategy"] = "RemoveSentryStrategy"
    strategy: str = Field(..., min_length=1)

    model_config = {"frozen": True}


class UpdateSanctionsList(BaseModel):
    """Sanctions list заменён (None — отключён)."""

    schema_name: ClassVar[str] = "sentry_event"

    event: Literal["UpdateSanctionsList"] = "UpdateSanctionsList"
    sanctions_list: Optional[str] = None

    model_config = {"frozen": True}


Event = Union[Updated, AddSentryStrategy, RemoveSentryStrategy, UpdateSanctionsList]
EventHandler = Callable[[Event], None]


# =============================================================================
# EMITTER
# =============================================================================


class EventEmitter:
    """
    Синхронный emitter событий.

    История хранит только последние history_limit событий.

    Подписчики вызываются в порядке подписки. Исключение подписчика
    логируется и не прерывает рассылку: к моменту emit состояние
    источника события уже зафиксировано.
    """

    def __init__(self, keep_history: bool = True, history_limit: int = DEFAULT_HISTORY_LIMIT):
        if history_limit <= 0:
            raise ValueError(f"history_limit must be positive, got {history_limit}")
        self._handlers: List[EventHandler] = []
        self._history: Deque[Event] = deque(maxlen=history_limit)
        self._keep_history = keep_history

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        """
        Подписка на события.

        Returns:
            Функция отписки
        """
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def emit(self, event: Event) -> None:
        """
        Публикация события.

        Raises:
            jsonschema.ValidationError: Если payload не соответствует контракту
        """
        validate_event(event.schema_name, event.model_dump(mode="json"))

        if self._keep_history:
            self._history.append(event)

        _log.debug("event %s: %s", event.event, event.model_dump())

        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception:
                _log.exception("event handler %r failed on %s", handler, event.event)

    @property
    def history(self) -> tuple[Event, ...]:
        return tuple(self._history)

    def clear_history(self) -> None:
        self._history.clear()
