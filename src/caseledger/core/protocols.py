"""Protocol interfaces for caseledger collaborators.

The payroll calculator itself is a plain function; everything around it
(activity logs, rate table, payout records, cache, export files) sits behind
these Protocols so backends can be swapped and faked in tests.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional, Protocol, runtime_checkable

from caseledger.core.types import ProcessingRates
from caseledger.models.activity import Client, DayActivity
from caseledger.models.payout import PayoutStatus, ResourcePayout


# ---------------------------------------------------------------------------
# Input: daily activity logs
# ---------------------------------------------------------------------------

@runtime_checkable
class IActivitySource(Protocol):
    """Per-resource daily case logs.

    Returns ``None`` when the month's data is unavailable and an empty list
    when the resource legitimately did no work.
    """

    def get_daily_activity(
        self, resource_id: str, month: int, year: int
    ) -> Optional[list[DayActivity]]: ...


# ---------------------------------------------------------------------------
# Configuration: processing rate table
# ---------------------------------------------------------------------------

@runtime_checkable
class IRateTable(Protocol):
    """Fixed processing rate per case, keyed by client and location."""

    def get_processing_rates(self) -> ProcessingRates: ...

    def set_rate(self, client: Client, location_id: str, rate: Decimal, location_name: str = "") -> None: ...


# ---------------------------------------------------------------------------
# Output: payout records
# ---------------------------------------------------------------------------

@runtime_checkable
class IPayoutStore(Protocol):
    """One payout record per (resource, month, year); last write wins."""

    def get(self, resource_id: str, month: int, year: int) -> Optional[ResourcePayout]: ...

    def put(self, payout: ResourcePayout) -> None: ...

    def list_period(
        self, month: int, year: int, status: Optional[PayoutStatus] = None
    ) -> list[ResourcePayout]: ...


# ---------------------------------------------------------------------------
# Persistence: Cache Backend
# ---------------------------------------------------------------------------

@runtime_checkable
class ICacheBackend(Protocol):
    """Redis-compatible cache interface."""

    def get(self, key: str) -> str | None: ...

    def setex(self, key: str, ttl: int, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


# ---------------------------------------------------------------------------
# Persistence: File Store
# ---------------------------------------------------------------------------

@runtime_checkable
class IFileStore(Protocol):
    """S3-compatible storage for exported workbooks."""

    def read(self, path: str) -> bytes: ...

    def write(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> str: ...

    def list_files(self, prefix: str) -> list[str]: ...
