# rezervi/routers/clients_routes.py

import logging
import uuid
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from rezervi.auth import get_current_user, get_optional_user, to_principal
from rezervi.booking import BookingRequest, BookingService
from rezervi.db import get_session
from rezervi.deps import get_booking_service
from rezervi.exceptions import NotFoundError, PermissionDenied
from rezervi.models import Business, Reservation
from rezervi.schemas import (
    AvailabilityResponse,
    BookingCreate,
    BookingPublic,
    BookingResponse,
    BusinessPublic,
    BusinessType,
    RescheduleRequest,
    booking_public,
)
from rezervi.store import SqlReservationStore, release_slot

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["clients"],
)


@router.get("/businesses/discover", response_model=List[BusinessPublic])
def discover_businesses(
    type: Optional[BusinessType] = None,
    session: Session = Depends(get_session),
):
    stmt = select(Business)
    if type is not None:
        stmt = stmt.where(Business.type == type.value)
    return session.exec(stmt.order_by(Business.name)).all()


@router.get("/businesses/{business_id}", response_model=BusinessPublic)
def get_business_details(
    business_id: int,
    session: Session = Depends(get_session),
):
    business = session.get(Business, business_id)
    if business is None:
        raise NotFoundError("Business not found")
    return business


def _availability(business_id: int, on_date: date, service: BookingService) -> dict:
    slots = service.availability(business_id, on_date)
    return {
        "business_id": business_id,
        "date": on_date,
        "slots": [s.as_dict() for s in slots],
    }


@router.get("/businesses/{business_id}/availability", response_model=AvailabilityResponse)
def business_availability(
    business_id: int,
    date: date,
    service: BookingService = Depends(get_booking_service),
):
    return _availability(business_id, date, service)


@router.get("/availability", response_model=AvailabilityResponse)
def availability(
    business_id: int,
    date: date,
    service: BookingService = Depends(get_booking_service),
):
    return _availability(business_id, date, service)


@router.post("/bookings", response_model=BookingResponse, status_code=201)
def create_booking(
    booking: BookingCreate,
    service: BookingService = Depends(get_booking_service),
    current_user: Optional[dict] = Depends(get_optional_user),
):
    # Booking works with or without an account
    request = BookingRequest(**booking.model_dump())
    confirmation = service.book(request, principal=to_principal(current_user))

    return {
        "booking": booking_public(confirmation.reservation, confirmation.business),
        "confirmationCode": confirmation.confirmation_code,
        "message": "Reservation created successfully",
    }


@router.get("/bookings", response_model=List[BookingPublic])
def list_my_bookings(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    rows = session.exec(
        select(Reservation, Business)
        .join(Business, Business.id == Reservation.business_id)
        .where(Reservation.client_id == current_user["id"])
        .order_by(Reservation.date, Reservation.time)
    ).all()
    return [booking_public(reservation, business) for reservation, business in rows]


def _own_booking(session: Session, booking_id: uuid.UUID, current_user: dict) -> Reservation:
    reservation = session.get(Reservation, booking_id)
    if reservation is None:
        raise NotFoundError("Booking not found")
    # only the client who booked; owners use the business routes
    if reservation.client_id != current_user["id"]:
        raise PermissionDenied("Not authorized to update this booking")
    return reservation


@router.get("/bookings/{booking_id}", response_model=BookingPublic)
def get_booking_details(
    booking_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    reservation = session.get(Reservation, booking_id)
    if reservation is None or reservation.client_id != current_user["id"]:
        raise NotFoundError("Booking not found")
    return booking_public(reservation, session.get(Business, reservation.business_id))


@router.patch("/bookings/{booking_id}/reschedule", response_model=BookingPublic)
def reschedule_booking(
    booking_id: uuid.UUID,
    payload: RescheduleRequest,
    session: Session = Depends(get_session),
    service: BookingService = Depends(get_booking_service),
    current_user: dict = Depends(get_current_user),
):
    reservation = _own_booking(session, booking_id, current_user)
    reservation = service.reschedule(reservation, payload.date, payload.time)
    return booking_public(reservation, session.get(Business, reservation.business_id))


@router.patch("/bookings/{booking_id}/cancel", response_model=BookingPublic)
def cancel_booking(
    booking_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    reservation = _own_booking(session, booking_id, current_user)

    # Cancel and free the slot
    release_slot(reservation)
    SqlReservationStore(session).save(reservation)

    logger.info("Booking %s cancelled by client %s", reservation.id, current_user["id"])
    return booking_public(reservation, session.get(Business, reservation.business_id))
