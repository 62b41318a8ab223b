# rezervi/core.py

from dataclasses import dataclass
from datetime import date

from .exceptions import ValidationError

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True, order=True)
class TimeOfDay:
    """A naive time of day stored as minutes since midnight."""

    minutes: int

    def __post_init__(self):
        if not (0 <= self.minutes < MINUTES_PER_DAY):
            raise ValidationError(f"Time of day out of range: {self.minutes} minutes")

    @classmethod
    def parse(cls, value: str) -> "TimeOfDay":
        """Parse an ``HH:MM`` string ("9:05" is accepted, "09:5" is not)."""
        if not isinstance(value, str):
            raise ValidationError(f"Time must be an HH:MM string, got {value!r}")
        hours, sep, minutes = value.strip().partition(":")
        # isdigit() alone accepts "²" and other digits int() cannot read
        digits = (hours + minutes).isascii() and hours.isdigit() and minutes.isdigit()
        if not sep or not digits or len(minutes) != 2:
            raise ValidationError(f"Time must be in HH:MM format, got {value!r}")
        hour, minute = int(hours), int(minutes)
        if hour > 23 or minute > 59:
            raise ValidationError(f"Time must be in HH:MM format, got {value!r}")
        return cls(hour * 60 + minute)

    @property
    def hour(self) -> int:
        return self.minutes // 60

    @property
    def minute(self) -> int:
        return self.minutes % 60

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


def weekday_name(on_date: date) -> str:
    # 0 = Monday, ..., 6 = Sunday
    return WEEKDAYS[on_date.weekday()]


def parse_date(value) -> date:
    """Accept a date or an ISO ``YYYY-MM-DD`` string."""
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError(f"Date must be in YYYY-MM-DD format, got {value!r}")
