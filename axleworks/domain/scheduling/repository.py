"""Appointment repository - Database operations for appointments"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models_appointment import Appointment, AppointmentStatus, SLOT_HOLDING_STATUSES
from ...shared.pagination import PageParams


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def get_by_id(db: Session, appointment_id: int) -> Optional[Appointment]:
        return db.query(Appointment).filter(Appointment.id == appointment_id).first()

    @staticmethod
    def list_appointments(
        db: Session,
        page: PageParams,
        customer_id: Optional[int] = None,
        status: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Appointment]:
        """List appointments with optional filters, soonest first"""
        query = db.query(Appointment)

        if customer_id:
            query = query.filter(Appointment.customer_id == customer_id)
        if status:
            query = query.filter(Appointment.status == status)
        if date_from:
            query = query.filter(Appointment.scheduled_date >= date_from)
        if date_to:
            query = query.filter(Appointment.scheduled_date <= date_to)

        query = query.order_by(Appointment.scheduled_date.asc(), Appointment.scheduled_time.asc())
        return page.apply(query).all()

    @staticmethod
    def get_booked_on(db: Session, scheduled_date: date) -> list[Appointment]:
        """Every non-cancelled appointment on a date (what the slot grid treats as taken)"""
        return (
            db.query(Appointment)
            .filter(
                Appointment.scheduled_date == scheduled_date,
                Appointment.status != AppointmentStatus.CANCELLED.value,
            )
            .order_by(Appointment.scheduled_time.asc())
            .all()
        )

    @staticmethod
    def get_slot_holders_on(
        db: Session, scheduled_date: date, exclude_id: Optional[int] = None
    ) -> list[Appointment]:
        """Appointments on a date that still hold their slot (not cancelled or completed)"""
        query = db.query(Appointment).filter(
            Appointment.scheduled_date == scheduled_date,
            Appointment.status.in_(SLOT_HOLDING_STATUSES),
        )
        if exclude_id:
            query = query.filter(Appointment.id != exclude_id)
        return query.all()

    @staticmethod
    def find_slot_holder(
        db: Session, scheduled_date: date, scheduled_time: str, exclude_id: Optional[int] = None
    ) -> Optional[Appointment]:
        query = db.query(Appointment).filter(
            Appointment.scheduled_date == scheduled_date,
            Appointment.scheduled_time == scheduled_time,
            Appointment.status.in_(SLOT_HOLDING_STATUSES),
        )
        if exclude_id:
            query = query.filter(Appointment.id != exclude_id)
        return query.first()

    @staticmethod
    def save(db: Session, appointment: Appointment) -> Appointment:
        """Sync the slot key and commit; IntegrityError propagates on a taken slot"""
        appointment.sync_slot_key()
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment
