"""
Domain models and value objects.

Contains fundamental domain entities: Asset, DecimalNormalizer,
AccumulatorSnapshot, Reserves and notification events.
"""

from src.core.domain.assets import (
    REQUIRED_DECIMALS,
    TARGET_DECIMALS,
    Asset,
    DecimalNormalizer,
)
from src.core.domain.events import (
    DEFAULT_HISTORY_LIMIT,
    AddSentryStrategy,
    Event,
    EventEmitter,
    RemoveSentryStrategy,
    UpdateSanctionsList,
    Updated,
)
from src.core.domain.observation import AccumulatorSnapshot, Reserves

__all__ = [
    # Assets
    "REQUIRED_DECIMALS",
    "TARGET_DECIMALS",
    "Asset",
    "DecimalNormalizer",
    # Observation
    "AccumulatorSnapshot",
    "Reserves",
    # Events
    "DEFAULT_HISTORY_LIMIT",
    "Event",
    "EventEmitter",
    "Updated",
    "AddSentryStrategy",
    "RemoveSentryStrategy",
    "UpdateSanctionsList",
]
