"""Appointment router - FastAPI endpoints for booking"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import Actor, get_current_actor
from ...config import ShopSettings, get_shop_settings
from ...database import get_db
from ...models_appointment import AppointmentStatus
from ...shared.pagination import PageParams, get_page_params
from .schemas import (
    AppointmentCancel,
    AppointmentCreate,
    AppointmentResponse,
    AppointmentStatusUpdate,
    AppointmentUpdate,
    AvailableSlotsResponse,
)
from .service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_appointment_service(
    db: Session = Depends(get_db),
    settings: ShopSettings = Depends(get_shop_settings),
) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db, settings)


@router.get("", response_model=list[AppointmentResponse])
async def list_appointments(
    customer_id: Optional[int] = Query(None),
    status: Optional[AppointmentStatus] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    page: PageParams = Depends(get_page_params),
    current_actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    """List appointments, soonest first"""
    return service.list_appointments(
        page, customer_id, status.value if status else None, date_from, date_to
    )


@router.get("/today", response_model=list[AppointmentResponse])
async def get_todays_appointments(
    current_actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Today's non-cancelled appointments in time order"""
    return service.get_todays_appointments()


@router.get("/slots", response_model=AvailableSlotsResponse)
async def get_available_slots(
    date: date = Query(..., description="Day to check (YYYY-MM-DD)"),
    duration: int = Query(60, ge=1, le=24 * 60, description="Requested length in minutes"),
    current_actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Free slots for a day"""
    slots = service.get_available_slots(date, duration)
    return AvailableSlotsResponse(scheduled_date=date, duration=duration, slots=slots)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    current_actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.get_appointment(appointment_id)


@router.post("", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
    data: AppointmentCreate,
    current_actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Book an appointment"""
    return service.create_appointment(data, current_actor)


@router.put("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: int,
    data: AppointmentUpdate,
    current_actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Edit or reschedule a pending/confirmed appointment"""
    return service.update_appointment(appointment_id, data)


@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
async def update_appointment_status(
    appointment_id: int,
    data: AppointmentStatusUpdate,
    current_actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.update_status(appointment_id, data.status)


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: int,
    data: Optional[AppointmentCancel] = None,
    current_actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Cancel an appointment and free its slot"""
    return service.cancel_appointment(appointment_id, data.reason if data else None)
