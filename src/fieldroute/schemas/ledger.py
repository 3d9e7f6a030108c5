"""Payment and receipt schemas."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from ..models.domain import Payment, Receipt


class PaymentModel(BaseModel):
    payment_id: str
    job_id: str
    image_id: str
    amount: float
    date: str
    payer_name: Optional[str] = None
    detected_address: Optional[str] = None
    created_at: float = 0.0

    @classmethod
    def from_domain(cls, payment: Payment) -> "PaymentModel":
        return cls(
            payment_id=payment.payment_id,
            job_id=payment.job_id,
            image_id=payment.image_id,
            amount=payment.amount,
            date=payment.date,
            payer_name=payment.payer_name,
            detected_address=payment.detected_address,
            created_at=payment.created_at,
        )


class PaymentCreateRequest(BaseModel):
    image_id: str = Field(..., min_length=1)
    amount: float = Field(..., ge=0)
    date: str = Field(..., min_length=1)
    payer_name: Optional[str] = None
    detected_address: Optional[str] = None


class ReceiptModel(BaseModel):
    receipt_id: str
    job_id: str
    image_id: str
    store_name: str
    total: float
    date: str
    store_location: Optional[str] = None
    summary: Optional[str] = None
    created_at: float = 0.0

    @classmethod
    def from_domain(cls, receipt: Receipt) -> "ReceiptModel":
        return cls(
            receipt_id=receipt.receipt_id,
            job_id=receipt.job_id,
            image_id=receipt.image_id,
            store_name=receipt.store_name,
            total=receipt.total,
            date=receipt.date,
            store_location=receipt.store_location,
            summary=receipt.summary,
            created_at=receipt.created_at,
        )


class ReceiptCreateRequest(BaseModel):
    image_id: str = Field(..., min_length=1)
    store_name: str = Field(..., min_length=1)
    total: float = Field(..., ge=0)
    date: str = Field(..., min_length=1)
    store_location: Optional[str] = None
    summary: Optional[str] = None


class ReceiptTotalResponse(BaseModel):
    job_id: str
    total: float
