"""Time parsing and calculations for appointment slots"""

from ...shared.validators import validate_time_string


def to_minutes(value: str) -> int:
    """'09:30' -> 570. Raises ValueError for anything that is not HH:MM"""
    hours, minutes = validate_time_string(value).split(":")
    return int(hours) * 60 + int(minutes)


def to_time_string(minutes: int) -> str:
    """570 -> '09:30'"""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def generate_ticks(start: str, end: str, granularity_minutes: int) -> list[str]:
    """Every tick from start (inclusive) to end (exclusive)"""
    if granularity_minutes <= 0:
        raise ValueError("Slot granularity must be positive")

    ticks = []
    current = to_minutes(start)
    close = to_minutes(end)
    while current < close:
        ticks.append(to_time_string(current))
        current += granularity_minutes
    return ticks


def is_on_tick(value: str, start: str, end: str, granularity_minutes: int) -> bool:
    """True when value is one of the bookable ticks of the business day"""
    minutes = to_minutes(value)
    opening = to_minutes(start)
    if minutes < opening or minutes >= to_minutes(end):
        return False
    return (minutes - opening) % granularity_minutes == 0


def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open [start, end) intervals in minutes; touching intervals do not overlap"""
    return start_a < end_b and start_b < end_a
