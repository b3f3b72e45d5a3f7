"""Time window helpers for booking availability"""

from datetime import date, datetime, time
from typing import Iterable, Optional

# Statuses that hold a slot; cancelled and completed bookings never conflict
ACTIVE_STATUSES = ("pending", "confirmed")

SLOT_STEP_MINUTES = 30


def overlaps(start_a: time, end_a: time, start_b: time, end_b: time) -> bool:
    """Half-open interval test: [start_a, end_a) and [start_b, end_b) share a moment"""
    return start_a < end_b and end_a > start_b


def find_conflicts(bookings: Iterable, start_time: time, end_time: time) -> list:
    """Bookings (anything with start_time/end_time) overlapping the proposed window"""
    return [b for b in bookings if overlaps(b.start_time, b.end_time, start_time, end_time)]


def parse_hhmm(value: str) -> time:
    """Parse an "HH:MM" opening-hours value"""
    return datetime.strptime(value, "%H:%M").time()


def _add_minutes(moment: time, minutes: int) -> Optional[time]:
    """moment + minutes, or None when the result would cross midnight"""
    total = moment.hour * 60 + moment.minute + minutes
    if total >= 24 * 60:
        return None
    return time(total // 60, total % 60)


def day_schedule(opening_hours: Optional[dict], day: date) -> Optional[tuple[time, time]]:
    """(open, close) for a date, or None when the salon is closed or has no hours that day"""
    if not opening_hours:
        return None

    schedule = opening_hours.get(day.strftime("%A").lower())
    if not schedule or schedule.get("isClosed") or not schedule.get("open") or not schedule.get("close"):
        return None

    return parse_hhmm(schedule["open"]), parse_hhmm(schedule["close"])


def generate_slots(
    open_time: time,
    close_time: time,
    duration_minutes: int,
    busy: Iterable,
    step_minutes: int = SLOT_STEP_MINUTES,
) -> list[time]:
    """
    Start times, every step_minutes from opening, for which a service of
    duration_minutes ends by closing time and overlaps no busy window.
    """
    busy = list(busy)
    slots = []
    current: Optional[time] = open_time

    while current is not None and current < close_time:
        end = _add_minutes(current, duration_minutes)
        if end is not None and end <= close_time and not find_conflicts(busy, current, end):
            slots.append(current)
        current = _add_minutes(current, step_minutes)

    return slots

