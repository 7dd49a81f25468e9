"""Appointment service - Booking workflow and status changes"""

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...auth import Actor
from ...config import ShopSettings
from ...errors import BadRequestError, InvalidTransitionError, NotFoundError
from ...models_appointment import (
    EDITABLE_APPOINTMENT_STATUSES,
    Appointment,
    AppointmentStatus,
)
from ...services.status_automation import APPOINTMENT_TRANSITIONS, can_transition
from ...shared.pagination import PageParams
from ...utils.sanitization import sanitize_string
from ..collaborators import get_customer, get_vehicle
from .availability_service import SLOT_TAKEN_MESSAGE, AvailabilityService
from .repository import AppointmentRepository
from .schemas import AppointmentCreate, AppointmentUpdate

logger = logging.getLogger(__name__)


class AppointmentService:
    """Service layer for appointment booking"""

    def __init__(self, db: Session, settings: ShopSettings):
        self.db = db
        self.settings = settings
        self.repo = AppointmentRepository()
        self.availability = AvailabilityService(db, settings)

    def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.repo.get_by_id(self.db, appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")
        return appointment

    def list_appointments(
        self,
        page: PageParams,
        customer_id: Optional[int] = None,
        status: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Appointment]:
        return self.repo.list_appointments(self.db, page, customer_id, status, date_from, date_to)

    def get_todays_appointments(self, today: Optional[date] = None) -> list[Appointment]:
        return self.repo.get_booked_on(self.db, today or date.today())

    def get_available_slots(self, scheduled_date: date, duration_minutes: int = 60) -> list[str]:
        return self.availability.get_available_slots(scheduled_date, duration_minutes)

    def _save_booking(self, appointment: Appointment) -> Appointment:
        """Commit a booking; losing a concurrent race for the slot is a taken slot"""
        slot_key = appointment.sync_slot_key()
        if slot_key:
            appointment.claim_slots(self.availability.covered_slot_keys(appointment))
        try:
            return self.repo.save(self.db, appointment)
        except IntegrityError:
            self.db.rollback()
            logger.warning(f"⚠️ Concurrent booking lost for slot {slot_key}")
            raise BadRequestError(SLOT_TAKEN_MESSAGE) from None

    def create_appointment(self, data: AppointmentCreate, actor: Actor) -> Appointment:
        """Book an appointment into a free slot"""
        logger.info(
            f"📅 Booking {data.service_type.value} for customer {data.customer_id} "
            f"on {data.scheduled_date} {data.scheduled_time}"
        )

        get_customer(self.db, data.customer_id)
        get_vehicle(self.db, data.vehicle_id, data.customer_id)

        scheduled_time = self.availability.validate_bookable_time(data.scheduled_time)
        self.availability.ensure_slot_free(
            data.scheduled_date, scheduled_time, data.estimated_duration
        )

        appointment = Appointment(
            customer_id=data.customer_id,
            vehicle_id=data.vehicle_id,
            service_type=data.service_type.value,
            description=sanitize_string(data.description),
            scheduled_date=data.scheduled_date,
            scheduled_time=scheduled_time,
            estimated_duration=data.estimated_duration,
            estimated_cost=data.estimated_cost,
            notes=sanitize_string(data.notes),
            status=AppointmentStatus.PENDING.value,
            created_by=actor.id,
        )
        appointment = self._save_booking(appointment)
        logger.info(f"✅ Appointment {appointment.id} booked ({appointment.slot_key})")
        return appointment

    def update_appointment(self, appointment_id: int, data: AppointmentUpdate) -> Appointment:
        """Edit or reschedule; only before the appointment has started"""
        appointment = self.get_appointment(appointment_id)

        if appointment.status not in EDITABLE_APPOINTMENT_STATUSES:
            logger.warning(f"⚠️ Appointment {appointment_id} is {appointment.status}, update refused")
            raise BadRequestError(f"Cannot update an appointment that is {appointment.status}")

        updates = data.model_dump(exclude_unset=True)

        if "vehicle_id" in updates and updates["vehicle_id"] is not None:
            get_vehicle(self.db, updates["vehicle_id"], appointment.customer_id)

        new_date = updates.get("scheduled_date") or appointment.scheduled_date
        new_time = appointment.scheduled_time
        if updates.get("scheduled_time") is not None:
            new_time = self.availability.validate_bookable_time(updates["scheduled_time"])
        new_duration = updates.get("estimated_duration") or appointment.estimated_duration

        rescheduled = (
            new_date != appointment.scheduled_date
            or new_time != appointment.scheduled_time
            or new_duration != appointment.estimated_duration
        )
        if rescheduled:
            self.availability.ensure_slot_free(new_date, new_time, new_duration, appointment.id)

        appointment.scheduled_date = new_date
        appointment.scheduled_time = new_time
        appointment.estimated_duration = new_duration
        if updates.get("vehicle_id") is not None:
            appointment.vehicle_id = updates["vehicle_id"]
        if updates.get("service_type") is not None:
            appointment.service_type = updates["service_type"].value
        if "estimated_cost" in updates:
            appointment.estimated_cost = updates["estimated_cost"]
        if "description" in updates:
            appointment.description = sanitize_string(updates["description"])
        if "notes" in updates:
            appointment.notes = sanitize_string(updates["notes"])

        return self._save_booking(appointment)

    def update_status(self, appointment_id: int, new_status: AppointmentStatus) -> Appointment:
        """Move an appointment along APPOINTMENT_TRANSITIONS"""
        appointment = self.get_appointment(appointment_id)
        current = appointment.status
        target = new_status.value

        if not can_transition(APPOINTMENT_TRANSITIONS, current, target):
            logger.warning(f"⚠️ Appointment {appointment_id}: rejected transition {current} → {target}")
            raise InvalidTransitionError("appointment", current, target)

        now = datetime.utcnow()
        appointment.status = target
        if target == AppointmentStatus.CONFIRMED.value:
            appointment.confirmed_at = now
        elif target == AppointmentStatus.COMPLETED.value:
            appointment.completed_at = now

        appointment = self.repo.save(self.db, appointment)
        logger.info(f"✅ Appointment {appointment.id} transitioned: {current} → {target}")
        return appointment

    def cancel_appointment(self, appointment_id: int, reason: Optional[str] = None) -> Appointment:
        """Cancel a pending/confirmed appointment and release its slot"""
        appointment = self.get_appointment(appointment_id)

        if appointment.status not in EDITABLE_APPOINTMENT_STATUSES:
            logger.warning(f"⚠️ Appointment {appointment_id} is {appointment.status}, cancel refused")
            raise InvalidTransitionError(
                "appointment",
                appointment.status,
                AppointmentStatus.CANCELLED.value,
                f"Cannot cancel an appointment that is {appointment.status}",
            )

        appointment.status = AppointmentStatus.CANCELLED.value
        appointment.cancelled_reason = sanitize_string(reason)

        appointment = self.repo.save(self.db, appointment)
        logger.info(f"🚫 Appointment {appointment.id} cancelled")
        return appointment
