"""Sentry strategies — внешние проверки "разрешён ли аккаунт".

- SentryStrategy: протокол стратегии (address + is_allowed)
- SanctionsList: протокол sanctions lookup (address + is_sanctioned)
- AllowListStrategy / InMemorySanctionsList: in-memory реализации
"""

from typing import Iterable, Protocol


class SentryStrategy(Protocol):
    """Стратегия допуска. Идентифицируется по address."""

    address: str

    def is_allowed(self, account: str) -> bool:
        ...


class SanctionsList(Protocol):
    address: str

    def is_sanctioned(self, account: str) -> bool:
        ...


class AllowListStrategy:
    """Разрешены только явно перечисленные аккаунты."""

    def __init__(self, address: str, allowed: Iterable[str] = ()):
        self.address = address
        self._allowed = set(allowed)

    def allow(self, account: str) -> None:
        self._allowed.add(account)

    def disallow(self, account: str) -> None:
        self._allowed.discard(account)

    def is_allowed(self, account: str) -> bool:
        return account in self._allowed


class InMemorySanctionsList:
    def __init__(self, address: str, sanctioned: Iterable[str] = ()):
        self.address = address
        self._sanctioned = set(sanctioned)

    def add(self, account: str) -> None:
        self._sanctioned.add(account)

    def remove(self, account: str) -> None:
        self._sanctioned.discard(account)

    def is_sanctioned(self, account: str) -> bool:
        return account in self._sanctioned
