"""Payment and receipt endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status

from ...errors import JobNotFoundError, RecordNotFoundError
from ...persistence.store import JobStore
from ...schemas.ledger import (
    PaymentCreateRequest,
    PaymentModel,
    ReceiptCreateRequest,
    ReceiptModel,
    ReceiptTotalResponse,
)
from ...services.jobs import ledger
from ..dependencies import get_store, get_user_id

router = APIRouter(tags=["ledger"])


def _not_found(exc: LookupError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.post("/jobs/{job_id}/payment", response_model=PaymentModel, status_code=status.HTTP_201_CREATED)
async def record_payment(
    job_id: str,
    payload: PaymentCreateRequest,
    user_id: str = Depends(get_user_id),
    store: JobStore = Depends(get_store),
) -> PaymentModel:
    """Attach a payment to the job and mark it paid."""
    try:
        payment = await ledger.record_payment(
            store,
            user_id,
            job_id,
            payload.image_id,
            payload.amount,
            payload.date,
            payer_name=payload.payer_name,
            detected_address=payload.detected_address,
        )
    except JobNotFoundError as exc:
        raise _not_found(exc) from exc
    return PaymentModel.from_domain(payment)


@router.get("/jobs/{job_id}/payment", response_model=Optional[PaymentModel])
async def get_payment(
    job_id: str,
    user_id: str = Depends(get_user_id),
    store: JobStore = Depends(get_store),
) -> Optional[PaymentModel]:
    payment = await ledger.get_payment(store, user_id, job_id)
    return PaymentModel.from_domain(payment) if payment else None


@router.delete("/payments/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_payment(
    payment_id: str,
    user_id: str = Depends(get_user_id),
    store: JobStore = Depends(get_store),
) -> Response:
    try:
        await ledger.remove_payment(store, user_id, payment_id)
    except (RecordNotFoundError, JobNotFoundError) as exc:
        raise _not_found(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/jobs/{job_id}/receipts", response_model=ReceiptModel, status_code=status.HTTP_201_CREATED)
async def add_receipt(
    job_id: str,
    payload: ReceiptCreateRequest,
    user_id: str = Depends(get_user_id),
    store: JobStore = Depends(get_store),
) -> ReceiptModel:
    try:
        receipt = await ledger.add_receipt(
            store,
            user_id,
            job_id,
            payload.image_id,
            payload.store_name,
            payload.total,
            payload.date,
            store_location=payload.store_location,
            summary=payload.summary,
        )
    except JobNotFoundError as exc:
        raise _not_found(exc) from exc
    return ReceiptModel.from_domain(receipt)


@router.get("/jobs/{job_id}/receipts", response_model=List[ReceiptModel])
async def list_receipts(
    job_id: str,
    user_id: str = Depends(get_user_id),
    store: JobStore = Depends(get_store),
) -> List[ReceiptModel]:
    return [ReceiptModel.from_domain(receipt) for receipt in await store.list_receipts(user_id, job_id)]


@router.get("/jobs/{job_id}/receipts/total", response_model=ReceiptTotalResponse)
async def receipts_total(
    job_id: str,
    user_id: str = Depends(get_user_id),
    store: JobStore = Depends(get_store),
) -> ReceiptTotalResponse:
    return ReceiptTotalResponse(job_id=job_id, total=await ledger.receipts_total(store, user_id, job_id))


@router.delete("/receipts/{receipt_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_receipt(
    receipt_id: str,
    user_id: str = Depends(get_user_id),
    store: JobStore = Depends(get_store),
) -> Response:
    try:
        await store.delete_receipt(user_id, receipt_id)
    except RecordNotFoundError as exc:
        raise _not_found(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
