"""Access Control — роли и явная проверка полномочий вызывающего.

Вызывающий передаётся в мутирующую операцию явно (caller=...), неявной
ambient identity нет.
"""

import logging
from enum import Enum
from typing import Dict, Set

_log = logging.getLogger(__name__)


class Role(str, Enum):
    """Роли sentry."""

    DEFAULT_ADMIN = "DEFAULT_ADMIN"


class SentryError(Exception):
    """Базовый класс ошибок sentry."""

    pass


class Unauthorized(SentryError, PermissionError):
    """У вызывающего нет требуемой роли."""

    def __init__(self, caller: str, role: Role):
        self.caller = caller
        self.role = role
        super().__init__(f"account {caller!r} is missing role {role.value}")


class AccessControl:
    """Реестр ролей: role → множество аккаунтов.

    Роли выдаёт и отзывает только DEFAULT_ADMIN.
    """

    def __init__(self, admin: str):
        if not admin:
            raise ValueError("admin must be a non-empty account identifier")
        self._members: Dict[Role, Set[str]] = {Role.DEFAULT_ADMIN: {admin}}

    def has_role(self, role: Role, account: str) -> bool:
        return account in self._members.get(role, set())

    def check_role(self, role: Role, caller: str) -> None:
        """
        Raises:
            Unauthorized: если у caller нет role
        """
        if not self.has_role(role, caller):
            raise Unauthorized(caller, role)

    def grant_role(self, role: Role, account: str, *, caller: str) -> None:
        self.check_role(Role.DEFAULT_ADMIN, caller)
        if account not in self._members.setdefault(role, set()):
            self._members[role].add(account)
            _log.info("role %s granted to %s by %s", role.value, account, caller)

    def revoke_role(self, role: Role, account: str, *, caller: str) -> None:
        self.check_role(Role.DEFAULT_ADMIN, caller)
        members = self._members.get(role, set())
        if account in members:
            members.discard(account)
            _log.info("role %s revoked from %s by %s", role.value, account, caller)
