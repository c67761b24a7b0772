from __future__ import annotations

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from app.settings import settings


def build_engine(database_url: str, *, timeout_seconds: float = 5.0) -> Engine:
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            echo=False,
            connect_args={"check_same_thread": False, "timeout": timeout_seconds},
        )
    return create_engine(
        database_url,
        echo=False,
        pool_timeout=timeout_seconds,
        pool_pre_ping=True,
        connect_args={
            "connect_timeout": max(1, int(timeout_seconds)),
            # Bounds every statement, including waits on row locks.
            "options": f"-c statement_timeout={int(timeout_seconds * 1000)}",
        },
    )


engine = build_engine(settings.database_url, timeout_seconds=settings.store_timeout_seconds)


def init_db(bind: Engine | None = None) -> None:
    SQLModel.metadata.create_all(bind or engine)


def reset_db(bind: Engine | None = None) -> None:
    target = bind or engine
    SQLModel.metadata.drop_all(target)
    SQLModel.metadata.create_all(target)


def get_session():
    with Session(engine) as session:
        yield session
