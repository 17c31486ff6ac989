"""Excel export of monthly payouts (openpyxl).

Sheets: per-resource payout summary with a TOTAL row, logging slab analysis,
the day-wise case grid, and one location-wise processing payroll per client
that has processing cases in the period.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal
from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from caseledger.models.activity import Client, day_abbr
from caseledger.models.payout import LocationPayrollReport, ResourcePayout
from caseledger.models.slabs import PayoutRules
from caseledger.services.location_report import build_location_report
from caseledger.services.payout_calculator import days_in_month

HEADER_YELLOW = "FFFFCC00"
HEADER_ORANGE = "FFFF9900"
COST_GREEN = "FF92D050"
DATA_GREEN = "FF00B050"
DATA_RED = "FFFF6B6B"
WEEKEND_YELLOW = "FFFFF2CC"
LOCATION_ORANGE = "FFF4B183"
SLAB_COLORS = ["FFFF0000", "FFFFFF00", "FF00FF00", "FF00B0F0"]

CURRENCY_FORMAT = '"$"#,##0.00'

CLIENT_LABELS = {Client.VERISMA: "Verisma", Client.MRO: "MRO", Client.DATAVANT: "Datavant"}

PAYOUT_HEADERS = [
    "Resource Name",
    "Email",
    "Working Days",
    "Total Hours",
    "Logging Cases",
    "Avg Cases/Hour",
    "Slab Rate",
    "Processing Cases",
    "Processing Amount",
    "Logging Amount",
    "Complete Logging Cases",
    "Bonus Amount",
    "Grand Total",
]
CURRENCY_COLUMNS = {7, 9, 10, 12, 13}
# Columns summed in the TOTAL row.
SUMMED_COLUMNS = {3, 4, 5, 8, 9, 10, 11, 12, 13}

_thin = Side(style="thin")
_medium = Side(style="medium")
CELL_BORDER = Border(top=_thin, bottom=_thin, left=_thin, right=_thin)
TOTAL_BORDER = Border(top=_medium, bottom=_medium, left=_thin, right=_thin)


def _fill(argb: str) -> PatternFill:
    return PatternFill(start_color=argb, end_color=argb, fill_type="solid")


def _two_places(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _style_header(ws: Worksheet, row: int = 1, argb: str = HEADER_YELLOW) -> None:
    for cell in ws[row]:
        if cell.value is None:
            continue
        cell.font = Font(bold=True)
        cell.fill = _fill(argb)
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
        cell.border = CELL_BORDER


def _slab_color(rules: PayoutRules, rate: Decimal) -> str:
    for idx, band in enumerate(rules.slabs):
        if band.rate == rate:
            return SLAB_COLORS[min(idx, len(SLAB_COLORS) - 1)]
    return SLAB_COLORS[0]


def payout_row(payout: ResourcePayout) -> list:
    """Values of one resource row, in PAYOUT_HEADERS order."""
    return [
        payout.resource_name or payout.resource_id,
        payout.resource_email or "",
        payout.total_working_days,
        payout.total_logging_hours,
        payout.total_logging_cases,
        _two_places(payout.avg_cases_per_hour),
        payout.logging_rate_per_case,
        payout.total_processing_cases,
        payout.total_processing_amount,
        payout.total_logging_amount,
        payout.complete_logging_cases,
        payout.total_bonus_amount,
        payout.grand_total_payout,
    ]


def totals_row(payouts: Sequence[ResourcePayout]) -> list:
    """TOTAL row: numeric columns summed, average recomputed over all resources."""
    rows = [payout_row(p) for p in payouts]
    totals: list = ["TOTAL", ""]
    for col in range(3, len(PAYOUT_HEADERS) + 1):
        if col in SUMMED_COLUMNS:
            totals.append(sum((r[col - 1] for r in rows), 0))
        else:
            totals.append("")
    hours = totals[3]
    totals[5] = _two_places(Decimal(totals[4]) / hours) if hours else Decimal("0.00")
    return totals


def write_payout_sheet(ws: Worksheet, payouts: Sequence[ResourcePayout], rules: PayoutRules) -> None:
    ws.title = "Resource Payouts"
    ws.append(PAYOUT_HEADERS)
    _style_header(ws)
    ws.freeze_panes = "B2"

    for payout in payouts:
        ws.append(payout_row(payout))
        for cell in ws[ws.max_row]:
            col = cell.column
            cell.border = CELL_BORDER
            cell.alignment = Alignment(horizontal="left" if col <= 2 else "center")
            if col in CURRENCY_COLUMNS:
                cell.number_format = CURRENCY_FORMAT
            if col == 7:
                cell.fill = _fill(_slab_color(rules, payout.logging_rate_per_case))
            if col == 13:
                cell.fill = _fill(COST_GREEN)
                cell.font = Font(bold=True)

    ws.append(totals_row(payouts))
    for cell in ws[ws.max_row]:
        cell.font = Font(bold=True)
        cell.fill = _fill(COST_GREEN)
        cell.border = TOTAL_BORDER
        if cell.column in CURRENCY_COLUMNS:
            cell.number_format = CURRENCY_FORMAT

    ws.column_dimensions["A"].width = 25
    ws.column_dimensions["B"].width = 30
    for col in range(3, len(PAYOUT_HEADERS) + 1):
        ws.column_dimensions[get_column_letter(col)].width = 14


def write_slab_sheet(ws: Worksheet, payouts: Sequence[ResourcePayout], rules: PayoutRules) -> None:
    ws.title = "Logging Slabs"
    ws.append(["Metric", "All Resources", *(p.resource_name or p.resource_id for p in payouts)])
    _style_header(ws)

    total_cases = sum(p.total_logging_cases for p in payouts)
    total_hours = sum((p.total_logging_hours for p in payouts), Decimal("0"))
    metrics = [
        ("Total Logged Cases", total_cases, lambda p: p.total_logging_cases, HEADER_ORANGE),
        ("Working Days", sum(p.total_working_days for p in payouts), lambda p: p.total_working_days, "FFE0E0E0"),
        ("Total Hours", total_hours, lambda p: p.total_logging_hours, HEADER_YELLOW),
        (
            "Avg Cases/Hour",
            _two_places(Decimal(total_cases) / total_hours) if total_hours else Decimal("0.00"),
            lambda p: _two_places(p.avg_cases_per_hour),
            COST_GREEN,
        ),
    ]
    for label, overall, getter, argb in metrics:
        ws.append([label, overall, *(getter(p) for p in payouts)])
        ws.cell(row=ws.max_row, column=1).fill = _fill(argb)
        ws.cell(row=ws.max_row, column=1).font = Font(bold=True)

    ws.append([])
    ws.append(["Avg Cases/Hour", "Rate/Case"])
    _style_header(ws, row=ws.max_row)
    for idx, band in enumerate(rules.slabs):
        label = f"{band.lower} and above" if band.upper is None else f"{band.lower} to below {band.upper}"
        ws.append([label, band.rate])
        color = _fill(SLAB_COLORS[min(idx, len(SLAB_COLORS) - 1)])
        ws.cell(row=ws.max_row, column=1).fill = color
        ws.cell(row=ws.max_row, column=2).fill = color
        ws.cell(row=ws.max_row, column=2).number_format = CURRENCY_FORMAT

    ws.column_dimensions["A"].width = 22
    ws.column_dimensions["B"].width = 14


def write_daywise_sheet(ws: Worksheet, payouts: Sequence[ResourcePayout], month: int, year: int) -> None:
    ws.title = "Day-wise"
    ws.append(["Date", "Day", "Overall", *(p.resource_name or p.resource_id for p in payouts)])
    _style_header(ws)
    ws.cell(row=1, column=3).fill = _fill(HEADER_ORANGE)
    ws.freeze_panes = "D2"

    by_resource = [{row.day: row.total_cases for row in p.daily_breakdown} for p in payouts]
    for day in days_in_month(month, year):
        counts = [cases.get(day, 0) for cases in by_resource]
        ws.append([day, day_abbr(day), sum(counts), *counts])
        row = ws[ws.max_row]
        row[0].number_format = "d-mmm-yy"
        if day.weekday() >= 5:
            row[1].fill = _fill(WEEKEND_YELLOW)
        for cell, value in zip(row[3:], counts):
            cell.fill = _fill(DATA_GREEN if value > 0 else DATA_RED)

    resource_totals = [sum(cases.values()) for cases in by_resource]
    ws.append(["Grand Total", "", sum(resource_totals), *resource_totals])
    for cell in ws[ws.max_row]:
        cell.font = Font(bold=True)
        cell.fill = _fill(COST_GREEN)
        cell.border = TOTAL_BORDER

    ws.column_dimensions["A"].width = 12
    ws.column_dimensions["B"].width = 6
    ws.column_dimensions["C"].width = 10


def write_location_sheet(ws: Worksheet, report: LocationPayrollReport) -> None:
    """Location x resource processing grid with cost per case and payout per location."""
    ws.title = f"{CLIENT_LABELS[report.client]} Payroll"
    ws.append(["Location", "Cost", "Total", "Payout", *(r.name or r.resource_id for r in report.resources)])
    _style_header(ws)
    ws.cell(row=1, column=1).fill = _fill(LOCATION_ORANGE)
    ws.cell(row=1, column=2).fill = _fill(COST_GREEN)
    ws.cell(row=1, column=3).fill = _fill(HEADER_ORANGE)
    ws.freeze_panes = "C2"

    for loc in report.locations:
        cases = [loc.resource_cases.get(r.resource_id, 0) for r in report.resources]
        ws.append([loc.location_name or loc.location_id, loc.cost_per_case, loc.total_cases, loc.total_payout, *cases])
        row = ws[ws.max_row]
        for cell in row:
            cell.border = CELL_BORDER
            cell.alignment = Alignment(horizontal="left" if cell.column == 1 else "center")
        row[0].fill = _fill(LOCATION_ORANGE)
        row[1].fill = _fill(COST_GREEN)
        row[1].number_format = CURRENCY_FORMAT
        row[3].number_format = CURRENCY_FORMAT
        for cell, value in zip(row[4:], cases):
            if value > 0:
                cell.fill = _fill(DATA_GREEN)
                cell.font = Font(color="FFFFFFFF")

    resource_totals = [
        sum(loc.resource_cases.get(r.resource_id, 0) for loc in report.locations) for r in report.resources
    ]
    ws.append(["Total processing", "", report.total_processing, report.total_payout, *resource_totals])
    ws.append(["Total Payout", report.total_payout])
    for row_idx in (ws.max_row - 1, ws.max_row):
        for cell in ws[row_idx]:
            cell.font = Font(bold=True)
            cell.fill = _fill(HEADER_ORANGE if row_idx < ws.max_row else COST_GREEN)
            cell.border = TOTAL_BORDER
    ws.cell(row=ws.max_row - 1, column=4).number_format = CURRENCY_FORMAT
    ws.cell(row=ws.max_row, column=2).number_format = CURRENCY_FORMAT

    ws.column_dimensions["A"].width = 30
    for col in range(2, len(report.resources) + 5):
        ws.column_dimensions[get_column_letter(col)].width = 10


def build_payroll_workbook(
    payouts: Sequence[ResourcePayout], month: int, year: int, rules: PayoutRules | None = None
) -> Workbook:
    rules = rules or PayoutRules()
    wb = Workbook()
    wb.properties.creator = "caseledger"
    write_payout_sheet(wb.active, payouts, rules)
    write_slab_sheet(wb.create_sheet(), payouts, rules)
    write_daywise_sheet(wb.create_sheet(), payouts, month, year)
    for client in Client:
        report = build_location_report(client, month, year, payouts)
        if report.locations:
            write_location_sheet(wb.create_sheet(), report)
    return wb


def export_payroll_workbook(
    payouts: Sequence[ResourcePayout], month: int, year: int, rules: PayoutRules | None = None
) -> bytes:
    """Render the payroll workbook to xlsx bytes."""
    buffer = BytesIO()
    build_payroll_workbook(payouts, month, year, rules).save(buffer)
    return buffer.getvalue()


def export_filename(month: int, year: int) -> str:
    return f"resource_payouts_{year:04d}_{month:02d}.xlsx"
