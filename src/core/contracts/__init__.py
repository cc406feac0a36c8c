"""
Contract Validation Module

Модуль для валидации JSON контрактов oracle (снапшоты accumulators, события).
"""

from .validators import (
    AccumulatorSnapshotValidator,
    ContractValidator,
    OracleUpdatedValidator,
    SchemaLoader,
    SentryEventValidator,
    validate_accumulator_snapshot,
    validate_event,
    validate_oracle_updated,
    validate_sentry_event,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "AccumulatorSnapshotValidator",
    "OracleUpdatedValidator",
    "SentryEventValidator",
    # Functions
    "validate_event",
    "validate_accumulator_snapshot",
    "validate_oracle_updated",
    "validate_sentry_event",
]
