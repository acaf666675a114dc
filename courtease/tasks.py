"""Celery background tasks.

Sync Celery entry points wrapping the async expiry sweeps.
"""

import asyncio
import logging
from dataclasses import asdict

from celery import shared_task

from courtease.database import close_db, get_db_context
from courtease.services.expiry_service import sweep_overdue_payments, sweep_stale_bookings
from courtease.services.gateway_service import get_payment_gateway

logger = logging.getLogger(__name__)


def run_async(coro):
    """Run async function in sync context."""
    return asyncio.run(coro)


@shared_task(bind=True, max_retries=3)
def expire_stale_bookings(self):
    """Expire unpaid bookings older than the staleness threshold.

    Runs every 30 minutes. Per-booking failures are reported, not retried;
    only a failure of the whole run is retried.
    """
    try:
        return run_async(_expire_stale_bookings())
    except Exception as exc:
        logger.exception("Stale booking sweep failed")
        raise self.retry(exc=exc, countdown=60)


async def _expire_stale_bookings() -> dict:
    try:
        async with get_db_context() as db:
            report = await sweep_stale_bookings(db, get_payment_gateway())
    finally:
        # Pooled connections belong to this run's event loop.
        await close_db()
    return asdict(report)


@shared_task(bind=True, max_retries=3)
def expire_overdue_payments(self):
    """Expire bookings whose payment deadline has passed."""
    try:
        return run_async(_expire_overdue_payments())
    except Exception as exc:
        logger.exception("Overdue payment sweep failed")
        raise self.retry(exc=exc, countdown=60)


async def _expire_overdue_payments() -> dict:
    try:
        async with get_db_context() as db:
            report = await sweep_overdue_payments(db, get_payment_gateway())
    finally:
        # Pooled connections belong to this run's event loop.
        await close_db()
    return asdict(report)
