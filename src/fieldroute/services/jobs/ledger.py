"""Payments and material receipts recorded against jobs."""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from ...models.domain import Payment, Receipt
from ...persistence.store import JobStore
from .service import _today

logger = logging.getLogger(__name__)


async def record_payment(
    store: JobStore,
    user_id: str,
    job_id: str,
    image_id: str,
    amount: float,
    payment_date: str,
    *,
    payer_name: Optional[str] = None,
    detected_address: Optional[str] = None,
    today: Optional[date] = None,
) -> Payment:
    """Store a payment and mark the job paid as of ``today``."""
    payment = await store.create_payment(
        Payment(
            payment_id="",
            user_id=user_id,
            job_id=job_id,
            image_id=image_id,
            amount=amount,
            date=payment_date,
            payer_name=payer_name,
            detected_address=detected_address,
        )
    )
    await store.update_job(user_id, job_id, status="paid", paid_on=(today or _today()).isoformat())
    logger.info(f"Recorded payment {payment.payment_id} of {amount:.2f} for job {job_id}")
    return payment


async def get_payment(store: JobStore, user_id: str, job_id: str) -> Optional[Payment]:
    payments = await store.list_payments(user_id, job_id)
    return payments[0] if payments else None


async def remove_payment(store: JobStore, user_id: str, payment_id: str) -> None:
    """Delete a payment; a job still marked paid drops back to completed."""
    payment = await store.get_payment(user_id, payment_id)
    job = await store.get_job(user_id, payment.job_id)
    if job.status == "paid":
        await store.update_job(user_id, job.job_id, status="completed", paid_on=None)
    await store.delete_payment(user_id, payment_id)
    logger.info(f"Removed payment {payment_id} from job {job.job_id}")


async def add_receipt(
    store: JobStore,
    user_id: str,
    job_id: str,
    image_id: str,
    store_name: str,
    total: float,
    receipt_date: str,
    *,
    store_location: Optional[str] = None,
    summary: Optional[str] = None,
) -> Receipt:
    return await store.create_receipt(
        Receipt(
            receipt_id="",
            user_id=user_id,
            job_id=job_id,
            image_id=image_id,
            store_name=store_name,
            total=total,
            date=receipt_date,
            store_location=store_location,
            summary=summary,
        )
    )


async def receipts_total(store: JobStore, user_id: str, job_id: str) -> float:
    return sum(receipt.total for receipt in await store.list_receipts(user_id, job_id))
