# rezervi/db.py

from sqlmodel import SQLModel, create_engine, Session

from .config import DATABASE_URL, SQL_ECHO


def make_engine(url: str = DATABASE_URL, **kwargs):
    if url.startswith("sqlite"):
        # required for SQLite + FastAPI
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return create_engine(url, echo=SQL_ECHO, **kwargs)


engine = make_engine()


def init_db(bind=None):
    from . import models  # noqa: F401  registers the tables

    SQLModel.metadata.create_all(bind or engine)


# Dependency: one session per request
def get_session():
    with Session(engine) as session:
        yield session
