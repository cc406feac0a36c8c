"""Sentry — составной гейт допуска аккаунтов.

Действие разрешено тогда и только тогда, когда:
1. Sanctions list (если задан) не помечает аккаунт
2. Каждая зарегистрированная стратегия возвращает True

Порядок проверок фиксирован: sanctions → стратегии в порядке регистрации,
первый отказ завершает оценку.

Администрирование (add/remove strategy, update sanctions list) требует
роли DEFAULT_ADMIN; вызывающий передаётся явно. Каждая мутация публикует
событие через EventEmitter.
"""

import logging
from dataclasses import dataclass
from typing import Final, List, Optional

from src.core.domain.events import (
    AddSentryStrategy,
    EventEmitter,
    RemoveSentryStrategy,
    UpdateSanctionsList,
)
from src.sentry.access_control import AccessControl, Role, SentryError
from src.sentry.strategies import SanctionsList, SentryStrategy

_log = logging.getLogger(__name__)

# Максимальное количество стратегий
MAX_STRATEGIES: Final[int] = 10


# =============================================================================
# EXCEPTIONS
# =============================================================================


class StrategyCapacityExceeded(SentryError):
    """Зарегистрировано MAX_STRATEGIES стратегий, добавить ещё нельзя."""

    pass


class DuplicateStrategy(SentryError):
    """Стратегия с таким address уже зарегистрирована."""

    pass


class StrategyNotFound(SentryError):
    """Стратегия с таким address не зарегистрирована."""

    pass


# =============================================================================
# RESULT
# =============================================================================


@dataclass(frozen=True)
class SentryDecision:
    """Результат оценки допуска."""

    allowed: bool
    block_reason: str

    # address стратегии/списка, отклонившего аккаунт ("" при допуске)
    blocked_by: str


# =============================================================================
# SENTRY
# =============================================================================


class Sentry:
    """Allow-list с pluggable стратегиями и sanctions lookup."""

    def __init__(
        self,
        access_control: AccessControl,
        events: Optional[EventEmitter] = None,
        max_strategies: int = MAX_STRATEGIES,
    ):
        """
        Args:
            access_control: реестр ролей
            events: emitter событий администрирования
            max_strategies: ёмкость списка стратегий (default 10)
        """
        self.access_control = access_control
        self.events = events or EventEmitter()
        self.max_strategies = max_strategies

        self._strategies: List[SentryStrategy] = []
        self._sanctions_list: Optional[SanctionsList] = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def strategies(self) -> tuple[SentryStrategy, ...]:
        return tuple(self._strategies)

    @property
    def sanctions_list(self) -> Optional[SanctionsList]:
        return self._sanctions_list

    def evaluate(self, account: str) -> SentryDecision:
        """Оценка допуска с причиной отказа."""
        # 1. Sanctions (высший приоритет)
        if self._sanctions_list is not None and self._sanctions_list.is_sanctioned(account):
            return SentryDecision(
                allowed=False,
                block_reason="sanctioned",
                blocked_by=self._sanctions_list.address,
            )

        # 2. Стратегии
        for strategy in self._strategies:
            if not strategy.is_allowed(account):
                return SentryDecision(
                    allowed=False,
                    block_reason="strategy_rejected",
                    blocked_by=strategy.address,
                )

        return SentryDecision(allowed=True, block_reason="", blocked_by="")

    def is_allowed(self, account: str) -> bool:
        return self.evaluate(account).allowed

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def add_strategy(self, strategy: SentryStrategy, *, caller: str) -> None:
        """
        Raises:
            Unauthorized: caller не admin
            StrategyCapacityExceeded: уже max_strategies стратегий
            DuplicateStrategy: стратегия уже зарегистрирована
        """
        self.access_control.check_role(Role.DEFAULT_ADMIN, caller)

        if len(self._strategies) >= self.max_strategies:
            raise StrategyCapacityExceeded(
                f"cannot add strategy {strategy.address!r}: "
                f"limit of {self.max_strategies} strategies reached"
            )
        if self._index_of(strategy.address) is not None:
            raise DuplicateStrategy(f"strategy {strategy.address!r} already registered")

        self._strategies.append(strategy)
        _log.info("sentry strategy added: %s by %s", strategy.address, caller)
        self.events.emit(AddSentryStrategy(strategy=strategy.address))

    def remove_strategy(self, strategy_address: str, *, caller: str) -> None:
        """
        Raises:
            Unauthorized: caller не admin
            StrategyNotFound: стратегия не зарегистрирована
        """
        self.access_control.check_role(Role.DEFAULT_ADMIN, caller)

        index = self._index_of(strategy_address)
        if index is None:
            raise StrategyNotFound(f"strategy {strategy_address!r} not registered")

        del self._strategies[index]
        _log.info("sentry strategy removed: %s by %s", strategy_address, caller)
        self.events.emit(RemoveSentryStrategy(strategy=strategy_address))

    def update_sanctions_list(
        self, sanctions_list: Optional[SanctionsList], *, caller: str
    ) -> None:
        """Замена sanctions list (None отключает проверку).

        Raises:
            Unauthorized: caller не admin
        """
        self.access_control.check_role(Role.DEFAULT_ADMIN, caller)

        self._sanctions_list = sanctions_list
        address = sanctions_list.address if sanctions_list is not None else None
        _log.info("sentry sanctions list updated: %s by %s", address, caller)
        self.events.emit(UpdateSanctionsList(sanctions_list=address))

    def _index_of(self, strategy_address: str) -> Optional[int]:
        for i, strategy in enumerate(self._strategies):
            if strategy.address == strategy_address:
                return i
        return None
