from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from appointment_scheduler.scheduling.time_range import utc_naive_now


class Provider(SQLModel, table=True):
    __tablename__ = "providers"
    id: int | None = Field(default=None, primary_key=True)
    name: str
    email: str = Field(unique=True, index=True)
    created_at: datetime = Field(default_factory=utc_naive_now, sa_type=DateTime(timezone=False))
    updated_at: datetime = Field(default_factory=utc_naive_now, sa_type=DateTime(timezone=False))
