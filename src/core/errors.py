"""
Errors — таксономия исключений TWAP oracle

Все ошибки сообщаются синхронно вызывающему коду, внутренних retry нет.
Ни одна ошибка не оставляет частично изменённого состояния.

- EpochNotElapsed: update раньше открытия эпохи (recoverable, retry позже)
- DivisionByZero: нулевой делитель там, где деление безусловно (twap)
- UnknownAsset: запрос по активу вне сконфигурированной пары
- ConfigurationError: нарушение инвариантов при конструировании
"""

from typing import Optional


class OracleError(Exception):
    """Базовый класс ошибок oracle."""

    pass


class EpochNotElapsed(OracleError):
    """
    Эпоха ещё не завершилась: update запрещён.

    Состояние не изменено, вызывающий код может повторить попытку
    после next_epoch_point.
    """

    def __init__(self, now: int, next_epoch_point: int):
        self.now = now
        self.next_epoch_point = next_epoch_point
        super().__init__(
            f"Epoch not elapsed: now={now} < next_epoch_point={next_epoch_point}"
        )


class DivisionByZero(OracleError, ZeroDivisionError):
    """Деление на ноль в fixed-point арифметике (например, time_elapsed == 0)."""

    pass


class UnknownAsset(OracleError, ValueError):
    """Актив не входит в сконфигурированную пару."""

    def __init__(self, asset: str, known: Optional[tuple[str, str]] = None):
        self.asset = asset
        self.known = known
        message = f"Unknown asset: {asset!r}"
        if known is not None:
            message += f" (expected one of {known[0]!r}, {known[1]!r})"
        super().__init__(message)


class ConfigurationError(OracleError, ValueError):
    """
    Нарушение инвариантов при конструировании.

    Oracle в этом случае не создаётся и не может использоваться.
    """

    pass
