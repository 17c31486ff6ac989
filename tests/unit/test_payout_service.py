"""Tests for PayoutService against the memory backends."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from caseledger.core.exceptions import (
    EmptyPeriodError,
    InvalidStatusTransitionError,
    MissingRateError,
    PayoutLockedError,
    PayoutNotFoundError,
)
from caseledger.models.activity import Client, DayActivity, LocationCases
from caseledger.models.payout import PayoutStatus, Resource
from caseledger.services.payout_service import PayoutService
from tests.fakes import MemoryActivitySource, MemoryPayoutStore, MemoryRateTable

STAMP = datetime(2024, 4, 1, tzinfo=timezone.utc)

ASHA = Resource(resource_id="r-asha", name="Asha Rao", email="asha@example.com")
BEN = Resource(resource_id="r-ben", name="Ben Ortiz", email="ben@example.com")
CHEN = Resource(resource_id="r-chen", name="Chen Li")


def _day(d: int, **kwargs) -> DayActivity:
    return DayActivity(day=date(2024, 3, d), hours_worked=Decimal("8"), **kwargs)


@pytest.fixture
def activity():
    source = MemoryActivitySource()
    source.add(ASHA.resource_id, _day(1, verisma_logging_cases=10), _day(2, verisma_logging_cases=27))
    source.add(BEN.resource_id, _day(1, mro_logging_cases=144, complete_logging_cases=5))
    return source


@pytest.fixture
def store():
    return MemoryPayoutStore()


@pytest.fixture
def rates():
    return MemoryRateTable({(Client.MRO, "mro-nyu"): Decimal("1.25")})


@pytest.fixture
def service(activity, rates, store):
    return PayoutService(activity_source=activity, rate_table=rates, store=store)


class TestCalculate:
    def test_stores_computed_payout(self, service, store):
        payout = service.calculate(ASHA, 3, 2024, calculated_at=STAMP)
        assert payout.grand_total_payout == Decimal("18.50")
        assert payout.resource_email == "asha@example.com"
        assert store.get(ASHA.resource_id, 3, 2024) == payout

    def test_recalculation_replaces_unlocked_record(self, service, activity, store):
        service.calculate(ASHA, 3, 2024, calculated_at=STAMP)
        activity.add(ASHA.resource_id, _day(3, verisma_logging_cases=3))
        payout = service.calculate(ASHA, 3, 2024, calculated_at=STAMP)
        assert payout.total_logging_cases == 40
        assert len(store.list_period(3, 2024)) == 1

    def test_unavailable_activity_raises(self, service, activity):
        activity.mark_unavailable(ASHA.resource_id, 3, 2024)
        with pytest.raises(EmptyPeriodError):
            service.calculate(ASHA, 3, 2024)

    def test_no_activity_raises(self, service):
        with pytest.raises(EmptyPeriodError):
            service.calculate(CHEN, 3, 2024)

    def test_locked_payout_is_not_recalculated(self, service):
        service.calculate(ASHA, 3, 2024, calculated_at=STAMP)
        service.approve(ASHA.resource_id, 3, 2024, approved_by="ops")
        with pytest.raises(PayoutLockedError):
            service.calculate(ASHA, 3, 2024)

    def test_uses_rate_table(self, service, activity):
        activity.add(CHEN.resource_id, _day(4, processing=[
            LocationCases(client=Client.MRO, location_id="mro-nyu", cases=4),
        ]))
        assert service.calculate(CHEN, 3, 2024).total_processing_amount == Decimal("5.00")

    def test_rate_change_applies_to_next_calculation(self, service, activity, rates):
        activity.add(CHEN.resource_id, _day(4, processing=[
            LocationCases(client=Client.MRO, location_id="mro-nyu", cases=4),
        ]))
        rates.set_rate(Client.MRO, "mro-nyu", Decimal("2.00"))
        assert service.calculate(CHEN, 3, 2024).total_processing_amount == Decimal("8.00")


class TestCalculatePeriod:
    def test_calculates_each_resource(self, service):
        result = service.calculate_period([ASHA, BEN], 3, 2024, calculated_at=STAMP)
        assert [p.resource_id for p in result.payouts] == [ASHA.resource_id, BEN.resource_id]
        assert result.skipped == []
        assert result.failures == []

    def test_skips_resources_without_activity(self, service):
        result = service.calculate_period([ASHA, CHEN], 3, 2024)
        assert result.skipped == [CHEN.resource_id]
        assert len(result.payouts) == 1

    def test_failures_do_not_stop_the_period(self, service, activity):
        activity.add(CHEN.resource_id, _day(5, processing=[
            LocationCases(client=Client.VERISMA, location_id="no-rate", cases=2),
        ]))
        activity.mark_unavailable(BEN.resource_id, 3, 2024)

        result = service.calculate_period([ASHA, BEN, CHEN], 3, 2024)

        assert [p.resource_id for p in result.payouts] == [ASHA.resource_id]
        errors = {f.resource_id: f.error for f in result.failures}
        assert errors == {BEN.resource_id: "EmptyPeriodError", CHEN.resource_id: MissingRateError.__name__}

    def test_locked_payout_reported_as_failure(self, service):
        service.calculate(ASHA, 3, 2024)
        service.approve(ASHA.resource_id, 3, 2024, approved_by="ops")
        result = service.calculate_period([ASHA], 3, 2024)
        assert result.failures[0].error == "PayoutLockedError"


class TestQueries:
    def test_get_missing_raises(self, service):
        with pytest.raises(PayoutNotFoundError):
            service.get("nobody", 3, 2024)

    def test_list_orders_by_grand_total(self, service):
        service.calculate_period([ASHA, BEN], 3, 2024)
        assert [p.resource_id for p in service.list_payouts(3, 2024)] == [BEN.resource_id, ASHA.resource_id]

    def test_list_filters_by_status_and_search(self, service):
        service.calculate_period([ASHA, BEN], 3, 2024)
        service.approve(BEN.resource_id, 3, 2024, approved_by="ops")
        approved = service.list_payouts(3, 2024, status=PayoutStatus.APPROVED)
        assert [p.resource_id for p in approved] == [BEN.resource_id]
        assert [p.resource_id for p in service.list_payouts(3, 2024, search="ASHA")] == [ASHA.resource_id]
        assert service.list_payouts(3, 2024, search="ben@") != []

    def test_list_other_month_is_empty(self, service):
        service.calculate_period([ASHA], 3, 2024)
        assert service.list_payouts(4, 2024) == []

    def test_summary_totals(self, service):
        result = service.calculate_period([ASHA, BEN], 3, 2024)
        summary = service.summary(3, 2024)
        assert summary.total_resources == 2
        assert summary.grand_total == sum(p.grand_total_payout for p in result.payouts)
        assert summary.total_bonus == Decimal("0.25")
        assert summary.grand_total == summary.total_processing + summary.total_logging + summary.total_bonus


class TestWorkflow:
    def test_approve_then_pay(self, service, store):
        service.calculate(ASHA, 3, 2024)
        approved = service.approve(ASHA.resource_id, 3, 2024, approved_by="finance")
        assert approved.status == PayoutStatus.APPROVED
        assert approved.approved_by == "finance"
        assert approved.approved_at is not None

        paid = service.mark_paid(ASHA.resource_id, 3, 2024, payment_reference="TXN-42")
        assert paid.status == PayoutStatus.PAID
        assert paid.payment_reference == "TXN-42"
        assert store.get(ASHA.resource_id, 3, 2024).status == PayoutStatus.PAID

    def test_cannot_pay_before_approval(self, service):
        service.calculate(ASHA, 3, 2024)
        with pytest.raises(InvalidStatusTransitionError):
            service.mark_paid(ASHA.resource_id, 3, 2024)

    def test_cannot_approve_twice(self, service):
        service.calculate(ASHA, 3, 2024)
        service.approve(ASHA.resource_id, 3, 2024, approved_by="finance")
        with pytest.raises(InvalidStatusTransitionError):
            service.approve(ASHA.resource_id, 3, 2024, approved_by="finance")

    def test_approve_missing_raises(self, service):
        with pytest.raises(PayoutNotFoundError):
            service.approve("nobody", 3, 2024, approved_by="finance")


class TestLocationReport:
    def test_reports_stored_processing_for_client(self, service, activity):
        activity.add(CHEN.resource_id, _day(4, processing=[
            LocationCases(client=Client.MRO, location_id="mro-nyu", location_name="NYU", cases=4),
        ]))
        service.calculate_period([ASHA, BEN, CHEN], 3, 2024)

        report = service.location_report(Client.MRO, 3, 2024)

        assert [r.resource_id for r in report.resources] == [CHEN.resource_id]
        assert report.locations[0].resource_cases == {CHEN.resource_id: 4}
        assert report.total_payout == Decimal("5.00")

    def test_status_filter(self, service, activity):
        activity.add(CHEN.resource_id, _day(4, processing=[
            LocationCases(client=Client.MRO, location_id="mro-nyu", cases=4),
        ]))
        service.calculate(CHEN, 3, 2024)
        assert service.location_report(Client.MRO, 3, 2024, status=PayoutStatus.APPROVED).locations == []
