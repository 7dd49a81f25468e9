"""Invoice domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ...schemas import LineItemCreate, LineItemResponse


class InvoiceCreate(BaseModel):
    """Schema for creating an invoice directly (counter sales, adjustments)"""

    customer_id: int
    vehicle_id: int
    line_items: list[LineItemCreate] = []
    discount_amount: float = Field(0, ge=0)
    tax_rate: Optional[float] = Field(None, ge=0, le=100)  # Defaults to the shop rate
    due_date: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=500)
    payment_terms: Optional[str] = Field(None, max_length=200)


class InvoiceUpdate(BaseModel):
    """Schema for editing a draft invoice; line_items replaces the whole list"""

    line_items: Optional[list[LineItemCreate]] = None
    discount_amount: Optional[float] = Field(None, ge=0)
    tax_rate: Optional[float] = Field(None, ge=0, le=100)
    due_date: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=500)
    payment_terms: Optional[str] = Field(None, max_length=200)


class InvoicePaymentSummary(BaseModel):
    id: int
    payment_number: str
    amount: float
    method: str
    status: str
    processed_at: Optional[datetime]

    class Config:
        from_attributes = True


class InvoiceResponse(BaseModel):
    """Schema for invoice response"""

    id: int
    invoice_number: str
    customer_id: int
    vehicle_id: int
    work_order_id: Optional[int]
    subtotal: float
    discount_amount: float
    tax_rate: float
    tax_amount: float
    total: float
    amount_paid: float
    amount_due: float
    status: str
    notes: Optional[str]
    payment_terms: Optional[str]
    due_date: datetime
    sent_at: Optional[datetime]
    paid_at: Optional[datetime]
    created_at: Optional[datetime]
    line_items: list[LineItemResponse]
    payments: list[InvoicePaymentSummary]

    class Config:
        from_attributes = True
