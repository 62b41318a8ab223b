# rezervi/store.py

import logging
from datetime import date
from typing import List, Optional, Set

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, col, select

from .exceptions import ConflictError, PersistenceError, SlotUnavailableError
from .models import SLOT_CONSTRAINT, Business, BusinessSettings, Reservation, utcnow

logger = logging.getLogger(__name__)


def is_slot_clash(exc: IntegrityError) -> bool:
    """True when the violation is the one-ordinal-per-slot constraint."""
    message = str(exc.orig)
    # Postgres names the constraint, SQLite lists its columns
    return SLOT_CONSTRAINT in message or "reservation.slot_ordinal" in message


class SqlReservationStore:
    """ReservationStore backed by a SQLModel session."""

    def __init__(self, session: Session):
        self.session = session

    def get_business(self, business_id: int) -> Optional[Business]:
        return self.session.get(Business, business_id)

    def get_settings(self, business_id: int) -> Optional[BusinessSettings]:
        return self.session.get(BusinessSettings, business_id)

    def get_reservations(self, business_id: int, on_date: date) -> List[Reservation]:
        return list(self.session.exec(
            select(Reservation)
            .where(Reservation.business_id == business_id)
            .where(Reservation.date == on_date)
            .where(col(Reservation.slot_ordinal).is_not(None))
            .order_by(Reservation.time)
        ).all())

    def active_ordinals(self, business_id: int, on_date: date, time: str) -> Set[int]:
        rows = self.session.exec(
            select(Reservation.slot_ordinal)
            .where(Reservation.business_id == business_id)
            .where(Reservation.date == on_date)
            .where(Reservation.time == time)
            .where(col(Reservation.slot_ordinal).is_not(None))
        ).all()
        return set(rows)

    def insert_reservation(self, reservation: Reservation) -> Reservation:
        self.session.add(reservation)
        return self._commit_reservation(reservation, "Failed to create reservation")

    def move_reservation(self, reservation: Reservation, on_date: date, time: str, slot_ordinal: int) -> Reservation:
        # one UPDATE frees the old ordinal and claims the new one
        reservation.date = on_date
        reservation.time = time
        reservation.slot_ordinal = slot_ordinal
        reservation.updated_at = utcnow()
        self.session.add(reservation)
        return self._commit_reservation(reservation, "Failed to reschedule reservation")

    def _commit_reservation(self, reservation: Reservation, failure: str) -> Reservation:
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            if is_slot_clash(exc):
                # another request took the same ordinal between our check and this write
                raise SlotUnavailableError("This time slot is no longer available")
            logger.error("%s: %s", failure, exc)
            raise PersistenceError(failure) from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("%s: %s", failure, exc)
            raise PersistenceError(failure) from exc

        self.session.refresh(reservation)
        return reservation

    def save(self, obj):
        self.session.add(obj)
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("Failed to save %s: %s", type(obj).__name__, exc)
            raise PersistenceError(f"Failed to save {type(obj).__name__.lower()}") from exc
        self.session.refresh(obj)
        return obj


def release_slot(reservation: Reservation, reason: Optional[str] = None) -> Reservation:
    """Mark a reservation cancelled and free its ordinal for new bookings."""
    if reservation.status == "cancelled":
        raise ConflictError("Reservation is already cancelled")
    reservation.status = "cancelled"
    reservation.slot_ordinal = None
    if reason:
        reservation.decline_reason = reason
    reservation.updated_at = utcnow()
    return reservation
