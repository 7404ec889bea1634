from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from appointment_scheduler.scheduling.time_range import utc_naive_now


class Client(SQLModel, table=True):
    __tablename__ = "clients"
    id: int | None = Field(default=None, primary_key=True)
    name: str
    email: str = Field(unique=True, index=True)
    phone: str | None = None
    created_at: datetime = Field(default_factory=utc_naive_now, sa_type=DateTime(timezone=False))
    updated_at: datetime = Field(default_factory=utc_naive_now, sa_type=DateTime(timezone=False))
