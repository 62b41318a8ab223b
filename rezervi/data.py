# rezervi/data.py

from types import MappingProxyType

from .core import WEEKDAYS

PAYMENT_METHODS = ("cash", "online")


def default_working_hours() -> dict:
    return {day: {"enabled": True, "open": "09:00", "close": "17:00"} for day in WEEKDAYS}


# Used when a business has no settings row yet
DEFAULT_SETTINGS = MappingProxyType({
    "slot_duration_minutes": 30,
    "working_hours": MappingProxyType(
        {day: MappingProxyType(hours) for day, hours in default_working_hours().items()}
    ),
    "max_simultaneous_bookings": 1,
    "online_payment_enabled": False,
    "accept_walkins": False,
})
