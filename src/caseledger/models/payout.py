"""Resource payout record: the per resource/month output of the payroll calculator."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, Field

from caseledger.models.activity import Client


class PayoutStatus(StrEnum):
    DRAFT = "draft"
    CALCULATED = "calculated"
    APPROVED = "approved"
    PAID = "paid"


class Resource(BaseModel):
    """Worker metadata carried onto payout records and exports."""

    resource_id: str
    name: str = ""
    email: Optional[str] = None


class ProcessingBreakdownEntry(BaseModel):
    """Processing cases at one location, paid at the location's fixed rate."""

    location_id: str
    location_name: str = ""
    cases: int = 0
    rate: Decimal = Decimal("0")
    amount: Decimal = Decimal("0")  # cases * rate


class DailyBreakdownEntry(BaseModel):
    """One calendar day of the day-wise report."""

    day: date
    day_name: str
    verisma_cases: int = 0
    mro_cases: int = 0
    datavant_cases: int = 0
    hours_worked: Decimal = Decimal("0")
    total_cases: int = 0


class ResourcePayout(BaseModel):
    """Fully itemized monthly payout for one resource."""

    # --- Identity ---
    resource_id: str
    resource_name: str = ""
    resource_email: Optional[str] = None
    month: int
    year: int

    # --- Processing payout (fixed rate per location) ---
    verisma_processing_cases: int = 0
    verisma_processing_amount: Decimal = Decimal("0")
    verisma_processing_breakdown: list[ProcessingBreakdownEntry] = Field(default_factory=list)
    mro_processing_cases: int = 0
    mro_processing_amount: Decimal = Decimal("0")
    mro_processing_breakdown: list[ProcessingBreakdownEntry] = Field(default_factory=list)
    datavant_processing_cases: int = 0
    datavant_processing_amount: Decimal = Decimal("0")
    datavant_processing_breakdown: list[ProcessingBreakdownEntry] = Field(default_factory=list)

    # --- Logging payout (slab based) ---
    total_logging_cases: int = 0
    total_logging_hours: Decimal = Decimal("0")
    total_working_days: int = 0
    avg_cases_per_hour: Decimal = Decimal("0")
    logging_slab_min: Decimal = Decimal("0")
    logging_slab_max: Optional[Decimal] = None  # None for the top slab
    logging_rate_per_case: Decimal = Decimal("0")
    logging_base_amount: Decimal = Decimal("0")
    verisma_logging_cases: int = 0
    mro_logging_cases: int = 0
    datavant_logging_cases: int = 0

    # --- Complete logging bonus ---
    complete_logging_cases: int = 0
    complete_logging_bonus_rate: Decimal = Decimal("0")  # complete rate - slab rate
    complete_logging_bonus_amount: Decimal = Decimal("0")

    # --- Totals ---
    total_processing_amount: Decimal = Decimal("0")
    total_logging_amount: Decimal = Decimal("0")
    total_bonus_amount: Decimal = Decimal("0")
    grand_total_payout: Decimal = Decimal("0")

    daily_breakdown: list[DailyBreakdownEntry] = Field(default_factory=list)

    # --- Workflow ---
    status: PayoutStatus = PayoutStatus.CALCULATED
    calculated_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    payment_reference: Optional[str] = None
    notes: str = ""

    @property
    def period_key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def total_processing_cases(self) -> int:
        return self.verisma_processing_cases + self.mro_processing_cases + self.datavant_processing_cases

    @property
    def is_locked(self) -> bool:
        """Approved and paid payouts are frozen."""
        return self.status in (PayoutStatus.APPROVED, PayoutStatus.PAID)

    def processing_breakdown(self, client: Client) -> list[ProcessingBreakdownEntry]:
        return {
            Client.VERISMA: self.verisma_processing_breakdown,
            Client.MRO: self.mro_processing_breakdown,
            Client.DATAVANT: self.datavant_processing_breakdown,
        }[Client(client)]


class PayoutSummary(BaseModel):
    """Aggregated totals over a set of payouts."""

    total_processing: Decimal = Decimal("0")
    total_logging: Decimal = Decimal("0")
    total_bonus: Decimal = Decimal("0")
    grand_total: Decimal = Decimal("0")
    total_resources: int = 0


class LocationPayrollRow(BaseModel):
    """One location of a client's processing payroll: cases per resource at the location rate."""

    location_id: str
    location_name: str = ""
    cost_per_case: Decimal
    resource_cases: dict[str, int] = Field(default_factory=dict)  # resource_id -> cases
    total_cases: int = 0
    total_payout: Decimal = Decimal("0")


class LocationPayrollReport(BaseModel):
    """Location x resource processing grid for one client and month."""

    client: Client
    month: int
    year: int
    resources: list[Resource] = Field(default_factory=list)  # grid columns, by name
    locations: list[LocationPayrollRow] = Field(default_factory=list)
    total_processing: int = 0
    total_payout: Decimal = Decimal("0")
