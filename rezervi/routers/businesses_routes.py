# rezervi/routers/businesses_routes.py

import logging
import uuid
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from rezervi.auth import get_current_user
from rezervi.data import DEFAULT_SETTINGS
from rezervi.db import get_session
from rezervi.deps import get_owned_business, get_store, require_role
from rezervi.exceptions import ConflictError, NotFoundError, ValidationError
from rezervi.models import Business, BusinessSettings, Reservation, utcnow
from rezervi.schemas import (
    BookingPublic,
    BusinessCreate,
    BusinessPublic,
    BusinessUpdate,
    DeclineRequest,
    ReservationStats,
    ReservationStatus,
    ReservationUpdate,
    SettingsResponse,
    SettingsUpdate,
    booking_public,
)
from rezervi.store import SqlReservationStore, release_slot

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/business",
    tags=["business"],
)


def settings_as_dict(settings) -> dict:
    if isinstance(settings, BusinessSettings):
        return settings.model_dump()
    # default constant is read-only; copy it out
    return {
        **settings,
        "working_hours": {day: dict(hours) for day, hours in settings["working_hours"].items()},
    }


def _get_reservation(session: Session, reservation_id: uuid.UUID, business: Business) -> Reservation:
    reservation = session.get(Reservation, reservation_id)
    if reservation is None or reservation.business_id != business.id:
        raise NotFoundError("Reservation not found or access denied.")
    return reservation


@router.post("/register", response_model=BusinessPublic, status_code=201)
def register_business(
    business: BusinessCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "business")

    existing = session.exec(
        select(Business).where(Business.user_id == current_user["id"])
    ).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="This account already has a registered business")

    db_business = Business(user_id=current_user["id"], **business.model_dump(mode="json"))
    store = SqlReservationStore(session)
    store.save(db_business)

    logger.info("Registered business %s (%s) for user %s", db_business.id, db_business.type, current_user["id"])
    return db_business


@router.get("/user-business", response_model=BusinessPublic)
def get_user_business(business: Business = Depends(get_owned_business)):
    return business


@router.put("/update", response_model=BusinessPublic)
def update_business(
    changes: BusinessUpdate,
    business: Business = Depends(get_owned_business),
    store: SqlReservationStore = Depends(get_store),
):
    updates = changes.model_dump(mode="json", exclude_unset=True)

    # keep existing coordinates unless both are given
    if ("latitude" in updates) != ("longitude" in updates):
        raise ValidationError("latitude and longitude must be updated together")

    for field, value in updates.items():
        if value is None and field in ("name", "type"):
            continue
        setattr(business, field, value)
    business.updated_at = utcnow()

    return store.save(business)


@router.get("/settings", response_model=SettingsResponse)
def get_business_settings(
    business: Business = Depends(get_owned_business),
    store: SqlReservationStore = Depends(get_store),
):
    settings = store.get_settings(business.id)
    if settings is None:
        return {"settings": settings_as_dict(DEFAULT_SETTINGS), "is_default": True}
    return {"settings": settings_as_dict(settings), "is_default": False}


@router.put("/settings", response_model=SettingsResponse)
def update_business_settings(
    payload: SettingsUpdate,
    business: Business = Depends(get_owned_business),
    store: SqlReservationStore = Depends(get_store),
):
    values = payload.model_dump()

    # DB upsert: one settings row per business
    settings = store.get_settings(business.id)
    if settings is None:
        settings = BusinessSettings(business_id=business.id, **values)
    else:
        for field, value in values.items():
            setattr(settings, field, value)
        settings.updated_at = utcnow()

    store.save(settings)
    logger.info(
        "Settings updated for business %s: %d-minute slots, max %d per slot",
        business.id, settings.slot_duration_minutes, settings.max_simultaneous_bookings,
    )
    return {"settings": settings_as_dict(settings), "is_default": False}


@router.get("/reservations", response_model=List[BookingPublic])
def list_reservations(
    status: Optional[str] = "all",
    on_date: Optional[date] = None,
    session: Session = Depends(get_session),
    business: Business = Depends(get_owned_business),
):
    if status != "all" and status not in ReservationStatus.__members__:
        raise ValidationError("status must be 'all' or one of: " + ", ".join(ReservationStatus.__members__))

    stmt = select(Reservation).where(Reservation.business_id == business.id)
    if on_date is not None:
        stmt = stmt.where(Reservation.date == on_date)
    if status != "all":
        stmt = stmt.where(Reservation.status == status)
    stmt = stmt.order_by(Reservation.date, Reservation.time)

    return [booking_public(r, business) for r in session.exec(stmt).all()]


@router.get("/reservations/stats", response_model=ReservationStats)
def reservation_stats(
    session: Session = Depends(get_session),
    business: Business = Depends(get_owned_business),
):
    reservations = session.exec(
        select(Reservation).where(Reservation.business_id == business.id)
    ).all()

    today = date.today()
    stats = {s.value: 0 for s in ReservationStatus}
    for r in reservations:
        stats[r.status] = stats.get(r.status, 0) + 1

    return {
        "total": len(reservations),
        **stats,
        "today": sum(1 for r in reservations if r.date == today),
        "this_month": sum(1 for r in reservations if (r.date.year, r.date.month) == (today.year, today.month)),
    }


@router.put("/reservations/{reservation_id}", response_model=BookingPublic)
def update_reservation(
    reservation_id: uuid.UUID,
    changes: ReservationUpdate,
    session: Session = Depends(get_session),
    business: Business = Depends(get_owned_business),
):
    if changes.status is None and changes.payment_status is None:
        raise ValidationError("No valid fields provided for update.")

    reservation = _get_reservation(session, reservation_id, business)
    previous = reservation.status

    if changes.status is not None and changes.status.value != reservation.status:
        if changes.status == ReservationStatus.cancelled:
            release_slot(reservation)
        elif reservation.status == "cancelled":
            # the slot may have been rebooked since it was released
            raise ConflictError("A cancelled reservation cannot be reopened")
        else:
            reservation.status = changes.status.value
    if changes.payment_status is not None:
        reservation.payment_status = changes.payment_status.value
    reservation.updated_at = utcnow()

    SqlReservationStore(session).save(reservation)
    logger.info(
        "Reservation %s updated by business %s: %s -> %s",
        reservation.id, business.id, previous, reservation.status,
    )
    return booking_public(reservation, business)


@router.put("/reservations/{reservation_id}/accept", response_model=BookingPublic)
def accept_reservation(
    reservation_id: uuid.UUID,
    session: Session = Depends(get_session),
    business: Business = Depends(get_owned_business),
):
    reservation = _get_reservation(session, reservation_id, business)
    if reservation.status == "confirmed":
        raise ConflictError("Reservation is already confirmed.")
    if reservation.status == "cancelled":
        raise ConflictError("A cancelled reservation cannot be accepted")

    reservation.status = "confirmed"
    reservation.updated_at = utcnow()
    SqlReservationStore(session).save(reservation)

    logger.info("Reservation %s ACCEPTED by business %s", reservation.id, business.id)
    return booking_public(reservation, business)


@router.put("/reservations/{reservation_id}/decline", response_model=BookingPublic)
def decline_reservation(
    reservation_id: uuid.UUID,
    payload: Optional[DeclineRequest] = None,
    session: Session = Depends(get_session),
    business: Business = Depends(get_owned_business),
):
    reservation = _get_reservation(session, reservation_id, business)
    reason = payload.reason if payload else None

    release_slot(reservation, reason=reason)
    SqlReservationStore(session).save(reservation)

    logger.info(
        "Reservation %s DECLINED by business %s%s",
        reservation.id, business.id, f" (reason: {reason})" if reason else "",
    )
    return booking_public(reservation, business)
