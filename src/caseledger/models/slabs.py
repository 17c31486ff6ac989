"""Logging slab table and the payout rules that carry it."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from caseledger.core.exceptions import SlabConfigurationError


class SlabBand(BaseModel):
    """Average cases/hour band ``[lower, upper)`` paying ``rate`` per logged case."""

    lower: Decimal
    upper: Optional[Decimal] = None  # None = no upper bound
    rate: Decimal

    def contains(self, avg_cases_per_hour: Decimal) -> bool:
        if avg_cases_per_hour < self.lower:
            return False
        return self.upper is None or avg_cases_per_hour < self.upper


def default_slabs() -> list[SlabBand]:
    return [
        SlabBand(lower=Decimal("0"), upper=Decimal("13"), rate=Decimal("0.50")),
        SlabBand(lower=Decimal("13"), upper=Decimal("16"), rate=Decimal("0.55")),
        SlabBand(lower=Decimal("16"), upper=Decimal("21"), rate=Decimal("0.60")),
        SlabBand(lower=Decimal("21"), upper=None, rate=Decimal("0.65")),
    ]


class PayoutRules(BaseModel):
    """Rate configuration the payroll calculator is evaluated against."""

    slabs: list[SlabBand] = Field(default_factory=default_slabs)
    complete_logging_rate: Decimal = Decimal("0.65")
    include_datavant_in_logging: bool = True

    @model_validator(mode="after")
    def _check_partition(self) -> "PayoutRules":
        if not self.slabs:
            raise SlabConfigurationError("Slab table is empty")
        if self.slabs[0].lower != 0:
            raise SlabConfigurationError(f"First slab must start at 0, not {self.slabs[0].lower}")
        for band, following in zip(self.slabs, self.slabs[1:]):
            if band.upper is None:
                raise SlabConfigurationError("Only the last slab may be unbounded")
            if band.upper <= band.lower:
                raise SlabConfigurationError(f"Empty slab [{band.lower}, {band.upper})")
            if following.lower != band.upper:
                raise SlabConfigurationError(
                    f"Slabs are not contiguous: {band.upper} is followed by {following.lower}"
                )
        if self.slabs[-1].upper is not None:
            raise SlabConfigurationError("Last slab must have no upper bound")
        if any(band.rate < 0 for band in self.slabs) or self.complete_logging_rate < 0:
            raise SlabConfigurationError("Rates must be non-negative")
        return self

    def slab_for(self, avg_cases_per_hour: Decimal) -> SlabBand:
        """Return the unique band containing a non-negative average."""
        for band in self.slabs:
            if band.contains(avg_cases_per_hour):
                return band
        raise SlabConfigurationError(f"No slab covers average {avg_cases_per_hour}")
