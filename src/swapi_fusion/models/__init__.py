"""Models package for SWAPI Fusion.

This module exports the Base class and all model classes.
"""

from swapi_fusion.models.base import Base, UUIDPrimaryKeyMixin
from swapi_fusion.models.history import (
    CUSTOM_PARTITION_PREFIX,
    FUSION_PARTITION_PREFIX,
    HistoryRecord,
    HistorySource,
)

__all__ = [
    # Base and Mixins
    "Base",
    "UUIDPrimaryKeyMixin",
    # History
    "CUSTOM_PARTITION_PREFIX",
    "FUSION_PARTITION_PREFIX",
    "HistoryRecord",
    "HistorySource",
]
