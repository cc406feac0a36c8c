"""Sentry — allow-list коллаборатор для гейтинга произвольных действий.

- Pluggable стратегии допуска (до 10)
- Опциональный sanctions lookup
- Мутации только для роли DEFAULT_ADMIN
"""

from .access_control import AccessControl, Role, SentryError, Unauthorized
from .sentry import (
    MAX_STRATEGIES,
    DuplicateStrategy,
    Sentry,
    SentryDecision,
    StrategyCapacityExceeded,
    StrategyNotFound,
)
from .strategies import AllowListStrategy, InMemorySanctionsList, SanctionsList, SentryStrategy

__all__ = [
    "AccessControl",
    "Role",
    "SentryError",
    "Unauthorized",
    "MAX_STRATEGIES",
    "DuplicateStrategy",
    "Sentry",
    "SentryDecision",
    "StrategyCapacityExceeded",
    "StrategyNotFound",
    "AllowListStrategy",
    "InMemorySanctionsList",
    "SanctionsList",
    "SentryStrategy",
]
