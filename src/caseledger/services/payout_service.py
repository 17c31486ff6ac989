"""PayoutService: runs the calculator against stored activity and owns the payout workflow."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from caseledger.core.exceptions import (
    EmptyPeriodError,
    InvalidStatusTransitionError,
    PayoutCalculationError,
    PayoutLockedError,
    PayoutNotFoundError,
)
from caseledger.core.protocols import IActivitySource, IPayoutStore, IRateTable
from caseledger.models.activity import Client, DayActivity
from caseledger.models.payout import (
    LocationPayrollReport,
    PayoutStatus,
    PayoutSummary,
    Resource,
    ResourcePayout,
)
from caseledger.models.slabs import PayoutRules
from caseledger.services.location_report import build_location_report
from caseledger.services.payout_calculator import compute_payout

logger = logging.getLogger(__name__)

# Allowed status changes after calculation.
TRANSITIONS: dict[PayoutStatus, set[PayoutStatus]] = {
    PayoutStatus.DRAFT: {PayoutStatus.CALCULATED},
    PayoutStatus.CALCULATED: {PayoutStatus.APPROVED},
    PayoutStatus.APPROVED: {PayoutStatus.PAID},
    PayoutStatus.PAID: set(),
}


class CalculationFailure(BaseModel):
    resource_id: str
    error: str
    message: str


class PeriodCalculation(BaseModel):
    """Outcome of calculating a whole month for many resources."""

    month: int
    year: int
    payouts: list[ResourcePayout] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)  # no activity this month
    failures: list[CalculationFailure] = Field(default_factory=list)


class PayoutService:
    def __init__(
        self,
        *,
        activity_source: IActivitySource,
        rate_table: IRateTable,
        store: IPayoutStore,
        rules: Optional[PayoutRules] = None,
    ) -> None:
        self._activity = activity_source
        self._rates = rate_table
        self._store = store
        self._rules = rules or PayoutRules()

    @property
    def rules(self) -> PayoutRules:
        return self._rules

    def calculate(
        self, resource: Resource, month: int, year: int, *, calculated_at: Optional[datetime] = None
    ) -> ResourcePayout:
        """Compute and store one resource's payout, replacing any unlocked record."""
        days = self._activity.get_daily_activity(resource.resource_id, month, year)
        return self._calculate(resource, month, year, days, calculated_at)

    def _calculate(
        self, resource: Resource, month: int, year: int,
        days: Optional[list[DayActivity]], calculated_at: Optional[datetime],
    ) -> ResourcePayout:
        existing = self._store.get(resource.resource_id, month, year)
        if existing is not None and existing.is_locked:
            raise PayoutLockedError(resource.resource_id, month, year, existing.status)
        if days is None:
            raise EmptyPeriodError(resource.resource_id, month, year, reason="activity data unavailable")

        payout = compute_payout(
            resource.resource_id,
            month,
            year,
            days,
            self._rates.get_processing_rates(),
            rules=self._rules,
            resource_name=resource.name,
            resource_email=resource.email,
            calculated_at=calculated_at,
        )
        self._store.put(payout)
        logger.info(
            "Calculated payout for %s %s: %s (processing %s, logging %s, bonus %s)",
            resource.resource_id, payout.period_key, payout.grand_total_payout,
            payout.total_processing_amount, payout.total_logging_amount, payout.total_bonus_amount,
        )
        return payout

    def calculate_period(
        self, resources: Iterable[Resource], month: int, year: int,
        *, calculated_at: Optional[datetime] = None,
    ) -> PeriodCalculation:
        """Calculate every resource for a month; one failing resource does not stop the rest."""
        result = PeriodCalculation(month=month, year=year)
        for resource in resources:
            days = self._activity.get_daily_activity(resource.resource_id, month, year)
            if days is not None and not days:
                logger.info("No activity for %s in %d-%02d, skipping", resource.resource_id, year, month)
                result.skipped.append(resource.resource_id)
                continue
            try:
                result.payouts.append(self._calculate(resource, month, year, days, calculated_at))
            except (PayoutCalculationError, PayoutLockedError) as exc:
                logger.warning("Payout for %s failed: %s", resource.resource_id, exc)
                result.failures.append(CalculationFailure(
                    resource_id=resource.resource_id,
                    error=type(exc).__name__,
                    message=str(exc),
                ))
        return result

    def get(self, resource_id: str, month: int, year: int) -> ResourcePayout:
        payout = self._store.get(resource_id, month, year)
        if payout is None:
            raise PayoutNotFoundError(f"No payout for resource {resource_id} in {year}-{month:02d}")
        return payout

    def list_payouts(
        self, month: int, year: int, *, status: Optional[PayoutStatus] = None,
        search: Optional[str] = None,
    ) -> list[ResourcePayout]:
        """Payouts for a month, highest grand total first."""
        payouts = self._store.list_period(month, year, status)
        if search:
            needle = search.lower()
            payouts = [
                p for p in payouts
                if needle in p.resource_name.lower() or needle in (p.resource_email or "").lower()
            ]
        return sorted(payouts, key=lambda p: (-p.grand_total_payout, p.resource_id))

    def summary(self, month: int, year: int, *, status: Optional[PayoutStatus] = None) -> PayoutSummary:
        payouts = self._store.list_period(month, year, status)
        return PayoutSummary(
            total_processing=sum((p.total_processing_amount for p in payouts), Decimal("0")),
            total_logging=sum((p.total_logging_amount for p in payouts), Decimal("0")),
            total_bonus=sum((p.total_bonus_amount for p in payouts), Decimal("0")),
            grand_total=sum((p.grand_total_payout for p in payouts), Decimal("0")),
            total_resources=len(payouts),
        )

    def location_report(
        self, client: Client, month: int, year: int, *, status: Optional[PayoutStatus] = None
    ) -> LocationPayrollReport:
        """Processing cases per location and resource for one client, priced at location rates."""
        return build_location_report(client, month, year, self._store.list_period(month, year, status))

    def _transition(self, payout: ResourcePayout, target: PayoutStatus) -> None:
        if target not in TRANSITIONS[payout.status]:
            raise InvalidStatusTransitionError(payout.status, target)
        payout.status = target

    def approve(self, resource_id: str, month: int, year: int, approved_by: str) -> ResourcePayout:
        payout = self.get(resource_id, month, year)
        self._transition(payout, PayoutStatus.APPROVED)
        payout.approved_by = approved_by
        payout.approved_at = datetime.now(timezone.utc)
        self._store.put(payout)
        logger.info("Payout for %s %s approved by %s", resource_id, payout.period_key, approved_by)
        return payout

    def mark_paid(
        self, resource_id: str, month: int, year: int, payment_reference: Optional[str] = None
    ) -> ResourcePayout:
        payout = self.get(resource_id, month, year)
        self._transition(payout, PayoutStatus.PAID)
        payout.paid_at = datetime.now(timezone.utc)
        payout.payment_reference = payment_reference
        self._store.put(payout)
        logger.info("Payout for %s %s marked paid", resource_id, payout.period_key)
        return payout
