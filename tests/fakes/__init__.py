"""Shared test doubles: re-export memory backends."""

from __future__ import annotations

from caseledger.persistence.memory_backend import (
    MemoryActivitySource,
    MemoryCacheBackend,
    MemoryFileStore,
    MemoryPayoutStore,
    MemoryRateTable,
)

__all__ = [
    "MemoryActivitySource",
    "MemoryCacheBackend",
    "MemoryFileStore",
    "MemoryPayoutStore",
    "MemoryRateTable",
]
