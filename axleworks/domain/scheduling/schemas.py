"""Scheduling domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from ...models_appointment import AppointmentStatus, ServiceType


class AppointmentCreate(BaseModel):
    """Schema for booking an appointment"""

    customer_id: int
    vehicle_id: int
    service_type: ServiceType
    scheduled_date: date
    scheduled_time: str = Field(..., max_length=5)  # HH:MM, checked against business hours
    estimated_duration: int = Field(60, ge=1, le=24 * 60)
    estimated_cost: Optional[float] = Field(None, ge=0)
    description: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = None


class AppointmentUpdate(BaseModel):
    """Schema for rescheduling or editing a pending/confirmed appointment"""

    vehicle_id: Optional[int] = None
    service_type: Optional[ServiceType] = None
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[str] = Field(None, max_length=5)
    estimated_duration: Optional[int] = Field(None, ge=1, le=24 * 60)
    estimated_cost: Optional[float] = Field(None, ge=0)
    description: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = None


class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus


class AppointmentCancel(BaseModel):
    reason: Optional[str] = Field(None, max_length=200)


class AppointmentResponse(BaseModel):
    """Schema for appointment response"""

    id: int
    customer_id: int
    vehicle_id: int
    service_type: str
    description: Optional[str]
    scheduled_date: date
    scheduled_time: str
    estimated_duration: int
    estimated_cost: Optional[float]
    status: str
    notes: Optional[str]
    cancelled_reason: Optional[str]
    work_order_id: Optional[int]
    confirmed_at: Optional[datetime]
    completed_at: Optional[datetime]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class AvailableSlotsResponse(BaseModel):
    scheduled_date: date
    duration: int
    slots: list[str]
