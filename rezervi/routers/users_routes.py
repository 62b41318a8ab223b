# rezervi/routers/users_routes.py

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from rezervi.auth import get_current_user, hash_password
from rezervi.db import get_session
from rezervi.models import User
from rezervi.schemas import UserCreate, UserPublic

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["users"],
)


@router.get("/me", response_model=UserPublic)
def me(current_user: dict = Depends(get_current_user)):
    return current_user


@router.post("/users", status_code=201, response_model=UserPublic)
def create_user(
    user: UserCreate,
    session: Session = Depends(get_session),
):
    email = user.email.strip().lower()

    # 1) One account per email
    existing = session.exec(select(User).where(User.email == email)).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Email already registered")

    # 2) Clients and business owners share the table; role decides what they can do
    db_user = User(
        email=email,
        password_hash=hash_password(user.password),
        role=user.role.value,
        full_name=user.full_name.strip(),
        phone=user.phone.strip() if user.phone else None,
    )
    session.add(db_user)
    try:
        session.commit()
    except IntegrityError:
        # a concurrent signup took the email after the check above
        session.rollback()
        raise HTTPException(status_code=409, detail="Email already registered")
    session.refresh(db_user)

    logger.info("Created %s account %s", db_user.role, db_user.id)
    return db_user
