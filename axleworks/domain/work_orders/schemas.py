"""Work order domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ...models_work_order import JobStatus, WorkOrderPriority, WorkOrderStatus, WorkOrderType


class JobCreate(BaseModel):
    description: str = Field(..., min_length=1, max_length=200)
    estimated_hours: float = Field(0, ge=0)
    actual_hours: Optional[float] = Field(None, ge=0)
    technician_id: Optional[int] = None
    notes: Optional[str] = None


class JobUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1, max_length=200)
    estimated_hours: Optional[float] = Field(None, ge=0)
    actual_hours: Optional[float] = Field(None, ge=0)
    status: Optional[JobStatus] = None
    technician_id: Optional[int] = None
    notes: Optional[str] = None


class JobResponse(BaseModel):
    id: int
    description: str
    estimated_hours: float
    actual_hours: Optional[float]
    status: str
    technician_id: Optional[int]
    notes: Optional[str]
    started_at: Optional[datetime]
    completed_at: Optional[datetime]

    class Config:
        from_attributes = True


class PartCreate(BaseModel):
    part_number: str = Field(..., min_length=1, max_length=50)
    description: str = Field(..., min_length=1, max_length=200)
    quantity: float = Field(1, ge=1)
    unit_cost: float = Field(0, ge=0)
    unit_price: float = Field(..., ge=0)
    inventory_item_id: Optional[int] = None


class PartUpdate(BaseModel):
    part_number: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = Field(None, min_length=1, max_length=200)
    quantity: Optional[float] = Field(None, ge=1)
    unit_cost: Optional[float] = Field(None, ge=0)
    unit_price: Optional[float] = Field(None, ge=0)


class PartResponse(BaseModel):
    id: int
    part_number: str
    description: str
    quantity: float
    unit_cost: float
    unit_price: float
    total: float
    inventory_item_id: Optional[int]

    class Config:
        from_attributes = True


class WorkOrderCreate(BaseModel):
    """Schema for opening a work order directly (without an estimate)"""

    customer_id: int
    vehicle_id: int
    appointment_id: Optional[int] = None
    priority: WorkOrderPriority = WorkOrderPriority.NORMAL
    work_type: WorkOrderType = WorkOrderType.REPAIR
    assigned_technician_id: Optional[int] = None
    mileage_in: int = Field(..., ge=0)
    customer_concerns: Optional[str] = Field(None, max_length=500)
    internal_notes: Optional[str] = Field(None, max_length=500)
    jobs: list[JobCreate] = []
    parts: list[PartCreate] = []


class WorkOrderUpdate(BaseModel):
    priority: Optional[WorkOrderPriority] = None
    work_type: Optional[WorkOrderType] = None
    assigned_technician_id: Optional[int] = None
    mileage_in: Optional[int] = Field(None, ge=0)
    mileage_out: Optional[int] = Field(None, ge=0)
    customer_concerns: Optional[str] = Field(None, max_length=500)
    technician_notes: Optional[str] = Field(None, max_length=1000)
    internal_notes: Optional[str] = Field(None, max_length=500)
    tax_amount: Optional[float] = Field(None, ge=0)


class WorkOrderStatusUpdate(BaseModel):
    status: WorkOrderStatus


class GenerateInvoiceRequest(BaseModel):
    send: bool = False
    notes: Optional[str] = Field(None, max_length=500)
    payment_terms: Optional[str] = Field(None, max_length=200)


class WorkOrderResponse(BaseModel):
    """Schema for work order response"""

    id: int
    work_order_number: str
    customer_id: int
    vehicle_id: int
    appointment_id: Optional[int]
    estimate_id: Optional[int]
    status: str
    priority: str
    work_type: str
    assigned_technician_id: Optional[int]
    mileage_in: int
    mileage_out: Optional[int]
    customer_concerns: Optional[str]
    technician_notes: Optional[str]
    internal_notes: Optional[str]
    labour_rate: float
    labour_total: float
    parts_total: float
    tax_amount: float
    total: float
    invoice_id: Optional[int]
    started_at: Optional[datetime]
    completed_at: Optional[datetime]
    created_at: Optional[datetime]
    jobs: list[JobResponse]
    parts: list[PartResponse]

    class Config:
        from_attributes = True
