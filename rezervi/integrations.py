# rezervi/integrations.py

"""Notification and payment hooks run after a booking is committed."""

from __future__ import annotations

import logging
from typing import Protocol

from .models import Business, Reservation

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Tells a business about a new booking (email, SMS, ...)."""

    def booking_created(self, reservation: Reservation, business: Business) -> None:
        ...


class PaymentProcessor(Protocol):
    """Charges a reservation booked with the online payment method."""

    provider_name: str

    def process(self, reservation: Reservation) -> None:
        ...


class LoggingNotifier:
    def booking_created(self, reservation: Reservation, business: Business) -> None:
        logger.info(
            "New booking %s for business %s on %s at %s (customer: %s)",
            reservation.id, business.id, reservation.date, reservation.time, reservation.customer_name,
        )


class NoopPaymentProcessor:
    provider_name = "noop"

    def process(self, reservation: Reservation) -> None:
        # No charge is made; payment_status was already set from the payment method
        logger.info("Online payment for reservation %s recorded without a charge", reservation.id)
