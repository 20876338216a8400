from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel, Session, create_engine

from . import config


class QuoteRecord(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    company: str
    customer: str = ""
    car_model: str = ""
    vehicle_type: str = "electric"
    profile: str = "tariff-aware"
    total: str
    page_count: int = 1
    path: str = Field(index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)


engine = create_engine(f"sqlite:///{config.DB_PATH}")


def reset_engine() -> None:
    global engine
    engine = create_engine(f"sqlite:///{config.DB_PATH}")


def init_db() -> None:
    config.OUT_DIR.mkdir(parents=True, exist_ok=True)
    SQLModel.metadata.create_all(engine)


def get_session() -> Session:
    return Session(engine, expire_on_commit=False)
