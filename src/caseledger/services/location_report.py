"""Location-wise processing payroll for one client, built from stored payout records."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from caseledger.models.activity import Client
from caseledger.models.payout import (
    LocationPayrollReport,
    LocationPayrollRow,
    Resource,
    ResourcePayout,
)


def build_location_report(
    client: Client, month: int, year: int, payouts: Iterable[ResourcePayout]
) -> LocationPayrollReport:
    """Pivot each payout's processing breakdown for ``client`` into a location x resource grid.

    Only resources with processing cases for the client get a column.
    ``cost_per_case`` is the rate on the first record that priced the
    location; ``total_payout`` sums what each record was actually paid, so a
    rate changed between recalculations is still reflected exactly.
    """
    client = Client(client)
    ordered = sorted(
        (p for p in payouts if (p.month, p.year) == (month, year)),
        key=lambda p: ((p.resource_name or p.resource_id).lower(), p.resource_id),
    )

    resources: list[Resource] = []
    rows: dict[str, LocationPayrollRow] = {}
    for payout in ordered:
        entries = payout.processing_breakdown(client)
        if not entries:
            continue
        resources.append(Resource(
            resource_id=payout.resource_id,
            name=payout.resource_name,
            email=payout.resource_email,
        ))
        for entry in entries:
            row = rows.get(entry.location_id)
            if row is None:
                row = rows[entry.location_id] = LocationPayrollRow(
                    location_id=entry.location_id,
                    location_name=entry.location_name,
                    cost_per_case=entry.rate,
                )
            row.resource_cases[payout.resource_id] = row.resource_cases.get(payout.resource_id, 0) + entry.cases
            row.total_cases += entry.cases
            row.total_payout += entry.amount

    locations = [rows[key] for key in sorted(rows)]
    return LocationPayrollReport(
        client=client,
        month=month,
        year=year,
        resources=resources,
        locations=locations,
        total_processing=sum(row.total_cases for row in locations),
        total_payout=sum((row.total_payout for row in locations), Decimal("0")),
    )
