# rezervi/booking.py

"""
Booking admission.

BookingService validates a booking request, re-checks that the slot still has
capacity, persists the reservation and returns a confirmation code. The store
is expected to reject an insert that would take an ordinal already held by
another active reservation for the same slot, so two requests racing past the
capacity check cannot both commit.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, List, Optional, Protocol, Set, Union

from .availability import Slot, calculate_availability, candidate_times, setting
from .core import TimeOfDay, parse_date
from .data import DEFAULT_SETTINGS, PAYMENT_METHODS
from .exceptions import ConflictError, NotFoundError, SlotUnavailableError, ValidationError
from .integrations import LoggingNotifier, NoopPaymentProcessor, Notifier, PaymentProcessor
from .models import Business, BusinessSettings, Reservation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """Authenticated caller as seen by the booking flow."""

    id: int
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None


@dataclass
class BookingRequest:
    business_id: Optional[int]
    date: Union[date, str, None]
    time: Optional[str]
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    notes: Optional[str] = None
    payment_method: Optional[str] = "cash"


@dataclass(frozen=True)
class BookingConfirmation:
    reservation: Reservation
    business: Business
    confirmation_code: str


class ReservationStore(Protocol):
    def get_business(self, business_id: int) -> Optional[Business]:
        ...

    def get_settings(self, business_id: int) -> Optional[BusinessSettings]:
        ...

    def get_reservations(self, business_id: int, on_date: date) -> List[Reservation]:
        """Active reservations for the business on the date."""

    def active_ordinals(self, business_id: int, on_date: date, time: str) -> Set[int]:
        """Slot ordinals held by active reservations at (business, date, time)."""

    def insert_reservation(self, reservation: Reservation) -> Reservation:
        """Persist; raises SlotUnavailableError on an ordinal clash, PersistenceError otherwise."""

    def move_reservation(self, reservation: Reservation, on_date: date, time: str, slot_ordinal: int) -> Reservation:
        """Move to another slot in one write; same errors as insert_reservation."""


def confirmation_code(reservation_id: Any) -> str:
    return f"RZ{str(reservation_id).replace('-', '')[-6:].upper()}"


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class BookingService:
    def __init__(
        self,
        store: ReservationStore,
        default_settings: Any = DEFAULT_SETTINGS,
        notifier: Optional[Notifier] = None,
        payments: Optional[PaymentProcessor] = None,
    ):
        self.store = store
        self.default_settings = default_settings
        self.notifier = notifier or LoggingNotifier()
        self.payments = payments or NoopPaymentProcessor()

    def settings_for(self, business_id: int) -> Any:
        settings = self.store.get_settings(business_id)
        if settings is None:
            logger.debug("Using default settings for business %s", business_id)
            return self.default_settings
        return settings

    def _get_business(self, business_id: int) -> Business:
        business = self.store.get_business(business_id)
        if business is None:
            raise NotFoundError("Business not found")
        return business

    def availability(self, business_id: int, on_date: date) -> List[Slot]:
        business = self._get_business(business_id)
        settings = self.settings_for(business.id)
        reservations = self.store.get_reservations(business.id, on_date)
        return calculate_availability(settings, on_date, reservations)

    def _resolve_customer(self, request: BookingRequest, principal: Optional[Principal]) -> dict:
        name = principal.name if principal else None
        phone = principal.phone if principal else None
        email = principal.email if principal else None

        # request fields fill whatever the profile is missing
        name = name if not _blank(name) else request.customer_name
        phone = phone if not _blank(phone) else request.customer_phone
        email = email if not _blank(email) else request.customer_email

        if _blank(name) or _blank(phone):
            raise ValidationError("Customer name and phone are required")
        return {"name": name.strip(), "phone": phone.strip(), "email": email or None}

    def book(self, request: BookingRequest, principal: Optional[Principal] = None) -> BookingConfirmation:
        # 1) Required fields
        missing = [f for f in ("business_id", "date", "time") if _blank(getattr(request, f))]
        if missing:
            raise ValidationError(f"Missing required booking information: {', '.join(missing)}")
        on_date = parse_date(request.date)
        slot_time = TimeOfDay.parse(request.time)

        payment_method = request.payment_method or "cash"
        if payment_method not in PAYMENT_METHODS:
            raise ValidationError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")

        # 2) Who is booking
        customer = self._resolve_customer(request, principal)

        # 3) Business and slot grid
        business = self._get_business(request.business_id)
        settings = self.settings_for(business.id)
        self._check_on_grid(settings, on_date, slot_time)

        # 4) Freshness re-check
        ordinal = self._free_ordinal(business.id, settings, on_date, slot_time)

        # 5) Persist
        reservation = Reservation(
            business_id=business.id,
            client_id=principal.id if principal else None,
            date=on_date,
            time=str(slot_time),
            slot_ordinal=ordinal,
            customer_name=customer["name"],
            customer_phone=customer["phone"],
            customer_email=customer["email"],
            notes=request.notes,
            payment_status="paid" if payment_method == "online" else "unpaid",
            status="pending",
        )
        reservation = self.store.insert_reservation(reservation)
        code = confirmation_code(reservation.id)
        logger.info("Booked %s %s at business %s (%s)", reservation.date, reservation.time, business.id, code)

        # 6) Hooks; the reservation is already committed at this point
        self._run_hooks(reservation, business, payment_method)

        return BookingConfirmation(reservation=reservation, business=business, confirmation_code=code)

    def reschedule(self, reservation: Reservation, new_date: Any, new_time: Any) -> Reservation:
        """
        Move an active reservation to another slot of the same business.

        The new slot goes through the same grid and capacity checks as a new
        booking. Status and payment are kept.
        """
        if _blank(new_date) or _blank(new_time):
            raise ValidationError("Date and time are required for rescheduling")
        if reservation.status in ("cancelled", "completed") or reservation.slot_ordinal is None:
            raise ConflictError(f"A {reservation.status} reservation cannot be rescheduled")
        on_date = parse_date(new_date)
        slot_time = TimeOfDay.parse(new_time)

        business = self._get_business(reservation.business_id)
        settings = self.settings_for(business.id)
        self._check_on_grid(settings, on_date, slot_time)
        if (reservation.date, reservation.time) == (on_date, str(slot_time)):
            return reservation

        ordinal = self._free_ordinal(business.id, settings, on_date, slot_time)
        previous = f"{reservation.date} {reservation.time}"
        reservation = self.store.move_reservation(reservation, on_date, str(slot_time), ordinal)
        logger.info("Rescheduled %s at business %s from %s to %s %s",
                    reservation.id, business.id, previous, reservation.date, reservation.time)
        return reservation

    def _check_on_grid(self, settings: Any, on_date: date, slot_time: TimeOfDay) -> None:
        if slot_time not in candidate_times(settings, on_date):
            raise ValidationError(f"{slot_time} is not a bookable time on {on_date.isoformat()}")

    def _free_ordinal(self, business_id: int, settings: Any, on_date: date, slot_time: TimeOfDay) -> int:
        capacity = setting(settings, "max_simultaneous_bookings")
        taken = self.store.active_ordinals(business_id, on_date, str(slot_time))
        if len(taken) >= capacity:
            logger.warning(
                "Slot %s %s for business %s is full (%d/%d)",
                on_date, slot_time, business_id, len(taken), capacity,
            )
            raise SlotUnavailableError("This time slot is no longer available")
        return min(set(range(capacity)) - taken)

    def _run_hooks(self, reservation: Reservation, business: Business, payment_method: str) -> None:
        if payment_method == "online":
            try:
                self.payments.process(reservation)
            except Exception:
                logger.exception("Payment hook %s failed for reservation %s", self.payments.provider_name, reservation.id)
        try:
            self.notifier.booking_created(reservation, business)
        except Exception:
            logger.exception("Notification failed for reservation %s", reservation.id)
