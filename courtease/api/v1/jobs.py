"""Job trigger endpoints for the external scheduler."""

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from courtease.api.deps import Gateway, get_db, require_job_trigger
from courtease.schemas.payment import SweepReportResponse
from courtease.services.expiry_service import (
    SweepReport,
    sweep_overdue_payments,
    sweep_stale_bookings,
)

router = APIRouter(dependencies=[Depends(require_job_trigger)])


def _response(report: SweepReport, run_time: datetime) -> SweepReportResponse:
    return SweepReportResponse(
        processed=report.processed,
        updated=report.updated,
        failed=report.failed,
        errors=report.errors,
        run_time=run_time,
    )


@router.post("/expire-stale-bookings", response_model=SweepReportResponse)
async def expire_stale_bookings(
    db: Annotated[AsyncSession, Depends(get_db)],
    gateway: Gateway,
) -> SweepReportResponse:
    """Re-verify and expire unpaid bookings older than the staleness threshold."""
    run_time = datetime.now(UTC)
    report = await sweep_stale_bookings(db, gateway, now=run_time)
    return _response(report, run_time)


@router.post("/expire-overdue-payments", response_model=SweepReportResponse)
async def expire_overdue_payments(
    db: Annotated[AsyncSession, Depends(get_db)],
    gateway: Gateway,
) -> SweepReportResponse:
    """Re-verify and expire bookings past their payment deadline."""
    run_time = datetime.now(UTC)
    report = await sweep_overdue_payments(db, gateway, now=run_time)
    return _response(report, run_time)
