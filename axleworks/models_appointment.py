"""
Appointment Models for Service Bay Booking
"""

import enum
from typing import Optional

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class AppointmentStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class ServiceType(str, enum.Enum):
    INSPECTION = "inspection"
    OIL_CHANGE = "oil_change"
    BRAKE_SERVICE = "brake_service"
    TIRE_SERVICE = "tire_service"
    DIAGNOSTIC = "diagnostic"
    REPAIR = "repair"
    MAINTENANCE = "maintenance"
    OTHER = "other"


# Statuses that keep holding their (date, time) slot
SLOT_HOLDING_STATUSES = frozenset(
    {
        AppointmentStatus.PENDING.value,
        AppointmentStatus.CONFIRMED.value,
        AppointmentStatus.IN_PROGRESS.value,
        AppointmentStatus.NO_SHOW.value,
    }
)

# Only appointments that have not started can be rescheduled or cancelled
EDITABLE_APPOINTMENT_STATUSES = frozenset(
    {AppointmentStatus.PENDING.value, AppointmentStatus.CONFIRMED.value}
)


def build_slot_key(scheduled_date, scheduled_time: str) -> str:
    return f"{scheduled_date.isoformat()}T{scheduled_time}"


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False)

    service_type = Column(String(30), nullable=False)
    description = Column(String(500), nullable=True)
    scheduled_date = Column(Date, nullable=False, index=True)
    scheduled_time = Column(String(5), nullable=False)  # HH:MM
    estimated_duration = Column(Integer, default=60, nullable=False)  # minutes
    estimated_cost = Column(Float, nullable=True)

    status = Column(String(20), default=AppointmentStatus.PENDING.value, nullable=False, index=True)
    notes = Column(Text, nullable=True)
    cancelled_reason = Column(String(200), nullable=True)

    # "YYYY-MM-DDTHH:MM" while the appointment occupies its slot, NULL once released.
    # The unique index is what stops two bookings of one slot from both committing.
    slot_key = Column(String(16), unique=True, nullable=True)

    # Set when a work order is opened from this appointment
    work_order_id = Column(Integer, nullable=True)

    confirmed_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    created_by = Column(Integer, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Every tick the booking covers, only claimed when overlap matching is on
    slot_claims = relationship(
        "AppointmentSlotClaim",
        back_populates="appointment",
        cascade="all, delete-orphan",
        order_by="AppointmentSlotClaim.slot_key",
    )

    def sync_slot_key(self) -> Optional[str]:
        """Hold the slot while the status holds it, release it otherwise"""
        if self.status in SLOT_HOLDING_STATUSES:
            self.slot_key = build_slot_key(self.scheduled_date, self.scheduled_time)
        else:
            self.slot_key = None
            self.claim_slots([])
        return self.slot_key

    def claim_slots(self, slot_keys: list[str]) -> None:
        """Hold exactly these tick keys, keeping the rows of ticks already held"""
        wanted = set(slot_keys)
        for claim in list(self.slot_claims):
            if claim.slot_key not in wanted:
                self.slot_claims.remove(claim)

        held = {claim.slot_key for claim in self.slot_claims}
        for slot_key in slot_keys:
            if slot_key not in held:
                self.slot_claims.append(AppointmentSlotClaim(slot_key=slot_key))
                held.add(slot_key)


class AppointmentSlotClaim(Base):
    """One covered tick of an appointment; the unique key stops overlapping bookings"""

    __tablename__ = "appointment_slot_claims"

    id = Column(Integer, primary_key=True)
    appointment_id = Column(
        Integer, ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    slot_key = Column(String(16), unique=True, nullable=False)

    appointment = relationship("Appointment", back_populates="slot_claims")
