"""Payment domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ...models_invoice import PaymentMethod


class PaymentCreate(BaseModel):
    """Schema for applying a payment to an invoice"""

    invoice_id: int
    amount: float = Field(..., gt=0)
    method: PaymentMethod
    reference: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=500)


class PaymentRefund(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)


class PaymentResponse(BaseModel):
    """Schema for payment response"""

    id: int
    payment_number: str
    invoice_id: int
    customer_id: int
    amount: float
    method: str
    status: str
    reference: Optional[str]
    notes: Optional[str]
    processed_at: Optional[datetime]
    processed_by: int
    refunded_at: Optional[datetime]
    refund_reason: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class InvoiceBalance(BaseModel):
    id: int
    status: str
    total: float
    amount_paid: float
    amount_due: float

    class Config:
        from_attributes = True


class PaymentResult(BaseModel):
    """A payment together with the invoice balance it produced"""

    payment: PaymentResponse
    invoice: InvoiceBalance
