"""Payment router - FastAPI endpoints for payments and refunds"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import Actor, get_current_actor
from ...database import get_db
from ...models_invoice import PaymentMethod, PaymentStatus
from ...shared.pagination import PageParams, get_page_params
from .schemas import InvoiceBalance, PaymentCreate, PaymentRefund, PaymentResponse, PaymentResult
from .service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db)


def _result(payment, invoice) -> PaymentResult:
    return PaymentResult(
        payment=PaymentResponse.model_validate(payment),
        invoice=InvoiceBalance.model_validate(invoice),
    )


@router.get("", response_model=list[PaymentResponse])
async def list_payments(
    customer_id: Optional[int] = Query(None),
    invoice_id: Optional[int] = Query(None),
    status: Optional[PaymentStatus] = Query(None),
    method: Optional[PaymentMethod] = Query(None),
    processed_from: Optional[datetime] = Query(None),
    processed_to: Optional[datetime] = Query(None),
    page: PageParams = Depends(get_page_params),
    current_actor: Actor = Depends(get_current_actor),
    service: PaymentService = Depends(get_payment_service),
):
    """List payments, most recent first"""
    return service.list_payments(
        page,
        customer_id=customer_id,
        invoice_id=invoice_id,
        status=status.value if status else None,
        method=method.value if method else None,
        processed_from=processed_from,
        processed_to=processed_to,
    )


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: int,
    current_actor: Actor = Depends(get_current_actor),
    service: PaymentService = Depends(get_payment_service),
):
    return service.get_payment(payment_id)


@router.post("", response_model=PaymentResult, status_code=201)
async def apply_payment(
    data: PaymentCreate,
    current_actor: Actor = Depends(get_current_actor),
    service: PaymentService = Depends(get_payment_service),
):
    """Apply a payment to an invoice"""
    payment, invoice = service.apply_payment(data, current_actor)
    return _result(payment, invoice)


@router.post("/{payment_id}/refund", response_model=PaymentResult)
async def refund_payment(
    payment_id: int,
    data: PaymentRefund,
    current_actor: Actor = Depends(get_current_actor),
    service: PaymentService = Depends(get_payment_service),
):
    """Refund a completed payment"""
    payment, invoice = service.refund_payment(payment_id, data.reason, current_actor)
    return _result(payment, invoice)
