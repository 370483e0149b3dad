"""Repositories package for SWAPI Fusion."""

from swapi_fusion.repositories.base import BaseRepository
from swapi_fusion.repositories.history import (
    HistoryRepository,
    ScanPage,
    ScanPosition,
)

__all__ = [
    "BaseRepository",
    "HistoryRepository",
    "ScanPage",
    "ScanPosition",
]
