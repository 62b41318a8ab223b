# rezervi/availability.py

"""
Availability calculation for a single business and date.

Pure functions only: no database, no clock, no I/O. Callers pass in the
settings (or the default-settings constant when the business has none) and the
reservations already booked for that date.
"""

from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, List

from .core import TimeOfDay, weekday_name
from .exceptions import ValidationError


@dataclass(frozen=True)
class Slot:
    time: TimeOfDay
    available: bool
    booked: int
    max: int

    def as_dict(self) -> dict:
        return {
            "time": str(self.time),
            "available": self.available,
            "booked": self.booked,
            "max": self.max,
        }


def setting(settings: Any, name: str) -> Any:
    """Read a field from a settings row or a plain mapping."""
    if isinstance(settings, Mapping):
        return settings[name]
    return getattr(settings, name)


def _positive_int(settings: Any, name: str) -> int:
    value = setting(settings, name)
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError(f"{name} must be a positive integer, got {value!r}")
    return value


def _reservation_time(reservation: Any) -> str:
    if isinstance(reservation, Mapping):
        return reservation["time"]
    return reservation.time


def candidate_times(settings: Any, on_date: date) -> List[TimeOfDay]:
    """Slot start times for the date, before reservations are taken into account."""
    working_hours = setting(settings, "working_hours") or {}
    day = working_hours.get(weekday_name(on_date))
    if not day or not day.get("enabled"):
        return []  # closed that day

    step = _positive_int(settings, "slot_duration_minutes")
    opens = TimeOfDay.parse(day["open"])
    closes = TimeOfDay.parse(day["close"])

    # the last slot only has to start before closing time
    return [TimeOfDay(m) for m in range(opens.minutes, closes.minutes, step)]


def calculate_availability(
    settings: Any,
    on_date: date,
    existing_reservations: Iterable[Any],
) -> List[Slot]:
    """
    Bookable slots for a business on a date, earliest first.

    Slots whose booked count has reached ``max_simultaneous_bookings`` are
    left out entirely rather than returned as unavailable.
    """
    capacity = _positive_int(settings, "max_simultaneous_bookings")
    times = candidate_times(settings, on_date)
    if not times:
        return []

    booked = Counter(_reservation_time(r) for r in existing_reservations)

    slots = []
    for t in times:
        count = booked[str(t)]
        if count < capacity:
            slots.append(Slot(time=t, available=True, booked=count, max=capacity))
    return slots
