# rezervi/deps.py

from fastapi import Depends, HTTPException
from sqlmodel import Session, select

from .auth import get_current_user
from .booking import BookingService
from .db import get_session
from .models import Business
from .store import SqlReservationStore


def require_role(user: dict, role: str):
    if user["role"] != role:
        raise HTTPException(status_code=403, detail="Forbidden")


def get_store(session: Session = Depends(get_session)) -> SqlReservationStore:
    return SqlReservationStore(session)


def get_booking_service(store: SqlReservationStore = Depends(get_store)) -> BookingService:
    return BookingService(store)


def get_owned_business(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
) -> Business:
    require_role(current_user, "business")
    business = session.exec(
        select(Business).where(Business.user_id == current_user["id"])
    ).first()
    if business is None:
        raise HTTPException(status_code=404, detail="Business not found for this user. Please register your business first.")
    return business
