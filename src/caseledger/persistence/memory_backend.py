"""In-memory backends for unit tests and local runs."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from caseledger.core.types import ProcessingRates
from caseledger.models.activity import Client, DayActivity
from caseledger.models.payout import PayoutStatus, ResourcePayout


class MemoryActivitySource:
    """Dict-backed IActivitySource."""

    def __init__(self) -> None:
        self._days: dict[str, list[DayActivity]] = {}
        self._unavailable: set[tuple[str, int, int]] = set()

    def add(self, resource_id: str, *days: DayActivity) -> None:
        self._days.setdefault(resource_id, []).extend(days)

    def mark_unavailable(self, resource_id: str, month: int, year: int) -> None:
        self._unavailable.add((resource_id, month, year))

    def get_daily_activity(
        self, resource_id: str, month: int, year: int
    ) -> Optional[list[DayActivity]]:
        if (resource_id, month, year) in self._unavailable:
            return None
        days = [d for d in self._days.get(resource_id, []) if (d.month, d.year) == (month, year)]
        return sorted(days, key=lambda d: d.day)


class MemoryRateTable:
    """Dict-backed IRateTable."""

    def __init__(self, rates: ProcessingRates | None = None) -> None:
        self._rates: ProcessingRates = dict(rates or {})

    def get_processing_rates(self) -> ProcessingRates:
        return dict(self._rates)

    def set_rate(self, client: Client, location_id: str, rate: Decimal, location_name: str = "") -> None:
        self._rates[(Client(client), location_id)] = Decimal(str(rate))


class MemoryPayoutStore:
    """Dict-backed IPayoutStore."""

    def __init__(self) -> None:
        self._payouts: dict[tuple[str, int, int], str] = {}

    def get(self, resource_id: str, month: int, year: int) -> Optional[ResourcePayout]:
        raw = self._payouts.get((resource_id, month, year))
        return ResourcePayout.model_validate_json(raw) if raw is not None else None

    def put(self, payout: ResourcePayout) -> None:
        # Stored serialized so callers can't mutate a record in place.
        self._payouts[(payout.resource_id, payout.month, payout.year)] = payout.model_dump_json()

    def list_period(
        self, month: int, year: int, status: Optional[PayoutStatus] = None
    ) -> list[ResourcePayout]:
        out = []
        for (_, m, y), raw in self._payouts.items():
            if (m, y) != (month, year):
                continue
            payout = ResourcePayout.model_validate_json(raw)
            if status is None or payout.status == status:
                out.append(payout)
        return out


class MemoryCacheBackend:
    """Dict-backed ICacheBackend."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._store.get(key)

    def setex(self, key: str, ttl: int, value: str) -> None:
        self._store[key] = value

    def delete(self, key: str) -> None:
        self._store.pop(key, None)


class MemoryFileStore:
    """Dict-backed IFileStore."""

    def __init__(self) -> None:
        self._files: dict[str, bytes] = {}

    def read(self, path: str) -> bytes:
        return self._files[path]

    def write(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        self._files[path] = data
        return path

    def list_files(self, prefix: str) -> list[str]:
        return [k for k in self._files if k.startswith(prefix)]
