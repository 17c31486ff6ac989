"""Payroll calculator: monthly resource payout from daily case logs.

Processing cases are paid at each location's fixed rate. Logging cases
(Verisma + MRO, plus Datavant unless the rules exclude it) are paid at the
slab rate selected by the month's average cases per hour. Complete-logging
cases are already counted as logging cases; they additionally earn a bonus
that tops them up to the complete-logging rate.

The calculator is a pure function of its arguments. ``calculated_at`` is the
only field that is not derived from the inputs.
"""

from __future__ import annotations

import calendar
import logging
from collections.abc import Mapping, Sequence
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from caseledger.core.exceptions import EmptyPeriodError, InvariantViolationError, MissingRateError
from caseledger.core.types import ProcessingRates, RateKey
from caseledger.models.activity import Client, DayActivity, day_abbr
from caseledger.models.payout import (
    DailyBreakdownEntry,
    PayoutStatus,
    ProcessingBreakdownEntry,
    ResourcePayout,
)
from caseledger.models.slabs import PayoutRules

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def days_in_month(month: int, year: int) -> list[date]:
    """Every calendar day of the month, in order."""
    _, last = calendar.monthrange(year, month)
    return [date(year, month, d) for d in range(1, last + 1)]


def _validate_activity(
    resource_id: str, month: int, year: int, daily_activity: Sequence[DayActivity]
) -> None:
    if not 1 <= month <= 12:
        raise InvariantViolationError(f"Month must be 1-12, got {month}")
    if not daily_activity:
        raise EmptyPeriodError(resource_id, month, year)

    previous: Optional[date] = None
    for entry in daily_activity:
        if (entry.year, entry.month) != (year, month):
            raise InvariantViolationError(
                f"Activity dated {entry.day} is outside {year}-{month:02d}"
            )
        if previous is not None and entry.day <= previous:
            raise InvariantViolationError(
                f"Activity dates must be unique and ascending: {entry.day} follows {previous}"
            )
        if entry.hours_worked < 0:
            raise InvariantViolationError(f"Negative hours on {entry.day}: {entry.hours_worked}")
        counts = [
            entry.verisma_logging_cases,
            entry.mro_logging_cases,
            entry.datavant_logging_cases,
            entry.complete_logging_cases,
            *(loc.cases for loc in entry.processing),
        ]
        if any(c < 0 for c in counts):
            raise InvariantViolationError(f"Negative case count on {entry.day}")
        previous = entry.day


def _normalize_rates(processing_rates: Mapping[RateKey, Decimal]) -> ProcessingRates:
    """Coerce client keys to ``Client`` so plain-string keys look up the same rates."""
    rates: ProcessingRates = {}
    for (client, location_id), rate in processing_rates.items():
        try:
            key = (Client(client), location_id)
        except ValueError as exc:
            raise InvariantViolationError(f"Unknown client {client!r} in processing rates") from exc
        rates[key] = Decimal(str(rate))
    return rates


def _processing_breakdown(
    daily_activity: Sequence[DayActivity], processing_rates: Mapping[RateKey, Decimal]
) -> dict[Client, list[ProcessingBreakdownEntry]]:
    """Group processing cases by (client, location) and price each group."""
    cases_by_location: dict[RateKey, int] = {}
    names: dict[RateKey, str] = {}
    for entry in daily_activity:
        for loc in entry.processing:
            key = (loc.client, loc.location_id)
            cases_by_location[key] = cases_by_location.get(key, 0) + loc.cases
            if loc.location_name:
                names.setdefault(key, loc.location_name)

    breakdown: dict[Client, list[ProcessingBreakdownEntry]] = {c: [] for c in Client}
    for key in sorted(cases_by_location):
        cases = cases_by_location[key]
        if cases == 0:
            continue
        client, location_id = key
        if key not in processing_rates:
            raise MissingRateError(client, location_id, cases)
        rate = processing_rates[key]
        if rate < 0:
            raise InvariantViolationError(f"Negative rate for {client}/{location_id}: {rate}")
        breakdown[client].append(
            ProcessingBreakdownEntry(
                location_id=location_id,
                location_name=names.get(key, location_id),
                cases=cases,
                rate=rate,
                amount=cases * rate,
            )
        )
    return breakdown


def _daily_breakdown(
    daily_activity: Sequence[DayActivity], month: int, year: int
) -> list[DailyBreakdownEntry]:
    """One row per calendar day; days missing from the input are zero rows."""
    by_day = {entry.day: entry for entry in daily_activity}
    rows: list[DailyBreakdownEntry] = []
    for day in days_in_month(month, year):
        entry = by_day.get(day)
        if entry is None:
            rows.append(DailyBreakdownEntry(day=day, day_name=day_abbr(day)))
            continue
        verisma = entry.client_cases(Client.VERISMA)
        mro = entry.client_cases(Client.MRO)
        datavant = entry.client_cases(Client.DATAVANT)
        rows.append(
            DailyBreakdownEntry(
                day=day,
                day_name=entry.day_name,
                verisma_cases=verisma,
                mro_cases=mro,
                datavant_cases=datavant,
                hours_worked=entry.hours_worked,
                total_cases=verisma + mro + datavant,
            )
        )
    return rows


def compute_payout(
    resource_id: str,
    month: int,
    year: int,
    daily_activity: Sequence[DayActivity],
    processing_rates: Mapping[RateKey, Decimal],
    complete_logging_cases: Optional[int] = None,
    *,
    rules: Optional[PayoutRules] = None,
    resource_name: str = "",
    resource_email: Optional[str] = None,
    calculated_at: Optional[datetime] = None,
) -> ResourcePayout:
    """Compute the itemized payout for one resource and month.

    Args:
        resource_id: Resource the activity belongs to.
        month: Calendar month, 1-12.
        year: Calendar year.
        daily_activity: Day entries within the month, unique and ascending.
            Days with no work may be omitted; they appear as zero rows in the
            day-wise breakdown.
        processing_rates: Fixed rate per case keyed by ``(client, location_id)``.
            Client keys may be ``Client`` members or their string values.
        complete_logging_cases: Complete-logging cases for the period. When
            omitted, the per-day ``complete_logging_cases`` are summed.
        rules: Slab table and bonus rate; defaults to the standard table.
        calculated_at: Timestamp stamped on the record; defaults to now (UTC).

    Raises:
        EmptyPeriodError: ``daily_activity`` is empty.
        MissingRateError: A location with cases has no processing rate.
        InvariantViolationError: Negative values, dates outside the period or
            out of order, more complete-logging cases than logging cases, or a
            rate keyed by an unknown client.
    """
    rules = rules or PayoutRules()
    _validate_activity(resource_id, month, year, daily_activity)

    # 1. Processing
    processing = _processing_breakdown(daily_activity, _normalize_rates(processing_rates))
    processing_cases = {c: sum(e.cases for e in processing[c]) for c in Client}
    processing_amounts = {c: sum((e.amount for e in processing[c]), ZERO) for c in Client}
    total_processing_amount = sum(processing_amounts.values(), ZERO)

    # 2. Logging
    logging_cases = {c: sum(e.logging_cases(c) for e in daily_activity) for c in Client}
    slab_clients = [Client.VERISMA, Client.MRO]
    if rules.include_datavant_in_logging:
        slab_clients.append(Client.DATAVANT)
    total_logging_cases = sum(logging_cases[c] for c in slab_clients)
    total_hours = sum((e.hours_worked for e in daily_activity), ZERO)
    working_days = sum(1 for e in daily_activity if e.has_activity)

    if complete_logging_cases is None:
        complete_logging_cases = sum(e.complete_logging_cases for e in daily_activity)
    if complete_logging_cases < 0:
        raise InvariantViolationError(f"Negative complete-logging cases: {complete_logging_cases}")
    if complete_logging_cases > total_logging_cases:
        raise InvariantViolationError(
            f"Complete-logging cases ({complete_logging_cases}) exceed "
            f"total logging cases ({total_logging_cases})"
        )

    # 3-4. Throughput and slab
    avg_cases_per_hour = Decimal(total_logging_cases) / total_hours if total_hours > 0 else ZERO
    slab = rules.slab_for(avg_cases_per_hour)
    logger.debug(
        "Resource %s %d-%02d: %d logging cases / %s h = %s per hour -> rate %s",
        resource_id, year, month, total_logging_cases, total_hours, avg_cases_per_hour, slab.rate,
    )

    # 5-7. Amounts
    logging_base_amount = total_logging_cases * slab.rate
    bonus_rate = max(ZERO, rules.complete_logging_rate - slab.rate)
    bonus_amount = complete_logging_cases * bonus_rate
    grand_total = total_processing_amount + logging_base_amount + bonus_amount

    return ResourcePayout(
        resource_id=resource_id,
        resource_name=resource_name,
        resource_email=resource_email,
        month=month,
        year=year,
        verisma_processing_cases=processing_cases[Client.VERISMA],
        verisma_processing_amount=processing_amounts[Client.VERISMA],
        verisma_processing_breakdown=processing[Client.VERISMA],
        mro_processing_cases=processing_cases[Client.MRO],
        mro_processing_amount=processing_amounts[Client.MRO],
        mro_processing_breakdown=processing[Client.MRO],
        datavant_processing_cases=processing_cases[Client.DATAVANT],
        datavant_processing_amount=processing_amounts[Client.DATAVANT],
        datavant_processing_breakdown=processing[Client.DATAVANT],
        total_logging_cases=total_logging_cases,
        total_logging_hours=total_hours,
        total_working_days=working_days,
        avg_cases_per_hour=avg_cases_per_hour,
        logging_slab_min=slab.lower,
        logging_slab_max=slab.upper,
        logging_rate_per_case=slab.rate,
        logging_base_amount=logging_base_amount,
        verisma_logging_cases=logging_cases[Client.VERISMA],
        mro_logging_cases=logging_cases[Client.MRO],
        datavant_logging_cases=logging_cases[Client.DATAVANT],
        complete_logging_cases=complete_logging_cases,
        complete_logging_bonus_rate=bonus_rate,
        complete_logging_bonus_amount=bonus_amount,
        total_processing_amount=total_processing_amount,
        total_logging_amount=logging_base_amount,
        total_bonus_amount=bonus_amount,
        grand_total_payout=grand_total,
        daily_breakdown=_daily_breakdown(daily_activity, month, year),
        status=PayoutStatus.CALCULATED,
        calculated_at=calculated_at or datetime.now(timezone.utc),
    )
