"""Re-export persistence protocols from core for convenience."""

from __future__ import annotations

from caseledger.core.protocols import (
    IActivitySource,
    ICacheBackend,
    IFileStore,
    IPayoutStore,
    IRateTable,
)

__all__ = ["IActivitySource", "ICacheBackend", "IFileStore", "IPayoutStore", "IRateTable"]
