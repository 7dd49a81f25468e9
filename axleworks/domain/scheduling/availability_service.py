"""Availability service - free ticks and slot conflicts for a business day"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...config import ShopSettings
from ...errors import BadRequestError
from ...models_appointment import Appointment, build_slot_key
from .repository import AppointmentRepository
from .time_calculator import (
    generate_ticks,
    intervals_overlap,
    is_on_tick,
    to_minutes,
    to_time_string,
)

logger = logging.getLogger(__name__)

SLOT_TAKEN_MESSAGE = "This time slot is not available"


def _busy_interval(appointment: Appointment) -> tuple[int, int]:
    start = to_minutes(appointment.scheduled_time)
    return start, start + (appointment.estimated_duration or 0)


class AvailabilityService:
    """
    Two matching modes, chosen by ShopSettings.slot_overlap_matching:
      exact (default): a tick is taken only by an appointment starting at that tick
      overlap: a tick is taken when [tick, tick + duration) overlaps any
               appointment's [start, start + estimated_duration)
    """

    def __init__(self, db: Session, settings: ShopSettings):
        self.db = db
        self.settings = settings

    def ticks(self) -> list[str]:
        return generate_ticks(
            self.settings.business_hours_start,
            self.settings.business_hours_end,
            self.settings.slot_granularity_minutes,
        )

    def validate_bookable_time(self, scheduled_time: str) -> str:
        """Reject malformed times and times that are not a tick inside business hours"""
        try:
            on_tick = is_on_tick(
                scheduled_time,
                self.settings.business_hours_start,
                self.settings.business_hours_end,
                self.settings.slot_granularity_minutes,
            )
        except ValueError as e:
            raise BadRequestError(str(e)) from None

        if not on_tick:
            raise BadRequestError(
                f"Time must be a {self.settings.slot_granularity_minutes}-minute slot between "
                f"{self.settings.business_hours_start} and {self.settings.business_hours_end}"
            )
        return scheduled_time.strip()

    def get_available_slots(self, scheduled_date: date, duration_minutes: int = 60) -> list[str]:
        """Ordered list of free ticks on a date"""
        booked = AppointmentRepository.get_booked_on(self.db, scheduled_date)

        if not self.settings.slot_overlap_matching:
            # duration_minutes is accepted but unused: occupancy is by start time only
            taken = {appointment.scheduled_time for appointment in booked}
            return [tick for tick in self.ticks() if tick not in taken]

        busy = [_busy_interval(appointment) for appointment in booked]
        close = to_minutes(self.settings.business_hours_end)
        available = []
        for tick in self.ticks():
            start = to_minutes(tick)
            end = start + duration_minutes
            if end > close:
                continue
            if any(intervals_overlap(start, end, b_start, b_end) for b_start, b_end in busy):
                continue
            available.append(tick)
        return available

    def find_conflict(
        self,
        scheduled_date: date,
        scheduled_time: str,
        duration_minutes: int,
        exclude_id: Optional[int] = None,
    ) -> Optional[Appointment]:
        """The appointment already holding the requested slot, if any"""
        if not self.settings.slot_overlap_matching:
            return AppointmentRepository.find_slot_holder(
                self.db, scheduled_date, scheduled_time, exclude_id
            )

        start = to_minutes(scheduled_time)
        end = start + duration_minutes
        for appointment in AppointmentRepository.get_slot_holders_on(
            self.db, scheduled_date, exclude_id
        ):
            b_start, b_end = _busy_interval(appointment)
            if intervals_overlap(start, end, b_start, b_end):
                return appointment
        return None

    def covered_slot_keys(self, appointment: Appointment) -> list[str]:
        """
        Keys of the ticks an appointment covers in overlap mode, empty in exact mode.

        Bookings start on ticks, so two overlapping bookings always share the
        later one's start tick and cannot both hold their claims.
        """
        if not self.settings.slot_overlap_matching:
            return []

        start, end = _busy_interval(appointment)
        return [
            build_slot_key(appointment.scheduled_date, to_time_string(minutes))
            for minutes in range(start, max(end, start + 1), self.settings.slot_granularity_minutes)
        ]

    def ensure_slot_free(
        self,
        scheduled_date: date,
        scheduled_time: str,
        duration_minutes: int,
        exclude_id: Optional[int] = None,
    ) -> None:
        conflict = self.find_conflict(scheduled_date, scheduled_time, duration_minutes, exclude_id)
        if conflict:
            logger.warning(
                f"⚠️ Slot {scheduled_date} {scheduled_time} already held by appointment {conflict.id}"
            )
            raise BadRequestError(SLOT_TAKEN_MESSAGE)
