"""Payout endpoints: calculate, list, detail, slabs, processing payroll, approve, paid, export.

Handlers are plain ``def``: the backends are blocking boto3/redis clients, so
FastAPI runs them in its threadpool off the event loop.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from pydantic import BaseModel, Field

from caseledger.models.activity import Client
from caseledger.models.payout import (
    LocationPayrollReport,
    PayoutStatus,
    PayoutSummary,
    Resource,
    ResourcePayout,
)
from caseledger.models.slabs import PayoutRules
from caseledger.persistence.s3_backend import XLSX_CONTENT_TYPE
from caseledger.services.excel_export import export_filename, export_payroll_workbook
from caseledger.services.payout_service import PayoutService, PeriodCalculation

router = APIRouter(tags=["payouts"])


def get_service(request: Request) -> PayoutService:
    return request.app.state.service


class CalculateRequest(BaseModel):
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=2000)
    resources: list[Resource]


class ApproveRequest(BaseModel):
    month: int = Field(ge=1, le=12)
    year: int
    approved_by: str


class PaidRequest(BaseModel):
    month: int = Field(ge=1, le=12)
    year: int
    payment_reference: Optional[str] = None


class PayoutList(BaseModel):
    payouts: list[ResourcePayout]
    total: int
    summary: PayoutSummary


@router.post("/calculate")
def calculate(body: CalculateRequest, service: PayoutService = Depends(get_service)) -> PeriodCalculation:
    """Recalculate payouts for the listed resources."""
    return service.calculate_period(body.resources, body.month, body.year)


@router.get("")
def list_payouts(
    month: int = Query(ge=1, le=12),
    year: int = Query(),
    status: Optional[PayoutStatus] = None,
    search: Optional[str] = None,
    service: PayoutService = Depends(get_service),
) -> PayoutList:
    payouts = service.list_payouts(month, year, status=status, search=search)
    return PayoutList(
        payouts=payouts,
        total=len(payouts),
        summary=service.summary(month, year, status=status),
    )


@router.get("/slabs")
def slabs(service: PayoutService = Depends(get_service)) -> PayoutRules:
    """Logging slab table and complete-logging rate in effect."""
    return service.rules


@router.get("/processing/{client}")
def processing_payroll(
    client: Client,
    month: int = Query(ge=1, le=12),
    year: int = Query(),
    status: Optional[PayoutStatus] = None,
    service: PayoutService = Depends(get_service),
) -> LocationPayrollReport:
    """Location-wise processing payroll for one client."""
    return service.location_report(client, month, year, status=status)


@router.get("/export")
def export(
    request: Request,
    month: int = Query(ge=1, le=12),
    year: int = Query(),
    status: Optional[PayoutStatus] = None,
    service: PayoutService = Depends(get_service),
) -> Response:
    """Download the payroll workbook; a copy is kept in the export store."""
    payouts = service.list_payouts(month, year, status=status)
    data = export_payroll_workbook(payouts, month, year, service.rules)
    filename = export_filename(month, year)
    prefix = request.app.state.settings.s3.export_prefix
    request.app.state.persistence.file_store.write(f"{prefix}{filename}", data, XLSX_CONTENT_TYPE)
    return Response(
        content=data,
        media_type=XLSX_CONTENT_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{resource_id}")
def get_payout(
    resource_id: str,
    month: int = Query(ge=1, le=12),
    year: int = Query(),
    service: PayoutService = Depends(get_service),
) -> ResourcePayout:
    return service.get(resource_id, month, year)


@router.patch("/{resource_id}/approve")
def approve(
    resource_id: str, body: ApproveRequest, service: PayoutService = Depends(get_service)
) -> ResourcePayout:
    return service.approve(resource_id, body.month, body.year, body.approved_by)


@router.patch("/{resource_id}/paid")
def mark_paid(
    resource_id: str, body: PaidRequest, service: PayoutService = Depends(get_service)
) -> ResourcePayout:
    return service.mark_paid(resource_id, body.month, body.year, body.payment_reference)
