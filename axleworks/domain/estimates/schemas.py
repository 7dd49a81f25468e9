"""Estimate domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ...models_work_order import WorkOrderPriority, WorkOrderType
from ...schemas import LineItemCreate, LineItemResponse


class EstimateCreate(BaseModel):
    """Schema for creating a new estimate"""

    customer_id: int
    vehicle_id: int
    appointment_id: Optional[int] = None
    line_items: list[LineItemCreate] = []
    discount_amount: float = Field(0, ge=0)
    tax_rate: Optional[float] = Field(None, ge=0, le=100)  # Defaults to the shop rate
    valid_until: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=500)
    terms: Optional[str] = Field(None, max_length=500)


class EstimateUpdate(BaseModel):
    """Schema for updating a draft/sent estimate; line_items replaces the whole list"""

    line_items: Optional[list[LineItemCreate]] = None
    discount_amount: Optional[float] = Field(None, ge=0)
    tax_rate: Optional[float] = Field(None, ge=0, le=100)
    valid_until: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=500)
    terms: Optional[str] = Field(None, max_length=500)


class EstimateReject(BaseModel):
    reason: str = Field(..., min_length=1, max_length=200)


class EstimateConvert(BaseModel):
    """Work order seed supplied when converting an approved estimate"""

    mileage_in: int = Field(..., ge=0)
    work_type: WorkOrderType = WorkOrderType.REPAIR
    priority: WorkOrderPriority = WorkOrderPriority.NORMAL
    customer_concerns: Optional[str] = Field(None, max_length=500)
    internal_notes: Optional[str] = Field(None, max_length=500)


class EstimateResponse(BaseModel):
    """Schema for estimate response"""

    id: int
    estimate_number: str
    customer_id: int
    vehicle_id: int
    appointment_id: Optional[int]
    subtotal: float
    discount_amount: float
    tax_rate: float
    tax_amount: float
    total: float
    status: str
    valid_until: datetime
    notes: Optional[str]
    terms: Optional[str]
    sent_at: Optional[datetime]
    approved_at: Optional[datetime]
    rejected_at: Optional[datetime]
    rejection_reason: Optional[str]
    converted_to_work_order_id: Optional[int]
    created_at: Optional[datetime]
    line_items: list[LineItemResponse]

    class Config:
        from_attributes = True
