from collections.abc import Iterable
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, Index
from sqlmodel import Field, SQLModel

from appointment_scheduler.scheduling.time_range import TimeRange, contains, overlaps, utc_naive_now

if TYPE_CHECKING:
    from appointment_scheduler.models.appointment import Appointment


class Availability(SQLModel, table=True):
    """A continuous block during which a provider may be booked."""

    __tablename__ = "availabilities"
    __table_args__ = (
        CheckConstraint("ends_at > starts_at", name="ck_availabilities_ends_after_starts"),
        Index("ix_availabilities_provider_id_starts_at_ends_at", "provider_id", "starts_at", "ends_at"),
    )

    id: int | None = Field(default=None, primary_key=True)
    provider_id: int = Field(foreign_key="providers.id", ondelete="CASCADE", index=True)
    # Idempotency key of the upstream feed: "<slot id>-<YYYY-MM-DD>"
    external_id: str = Field(unique=True, index=True)
    starts_at: datetime = Field(sa_type=DateTime(timezone=False))
    ends_at: datetime = Field(sa_type=DateTime(timezone=False))
    source: str
    created_at: datetime = Field(default_factory=utc_naive_now, sa_type=DateTime(timezone=False))
    updated_at: datetime = Field(default_factory=utc_naive_now, sa_type=DateTime(timezone=False))

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(self.starts_at, self.ends_at)

    def contains_time_range(self, start: datetime, end: datetime) -> bool:
        return contains(self.time_range, TimeRange(start, end))

    def is_free_for(
        self,
        start: datetime,
        end: datetime,
        active_appointments: Iterable["Appointment"],
    ) -> bool:
        """True if [start, end) fits in this window and no live appointment of this provider overlaps it.

        Cancelled appointments are skipped even if the caller passes them in.
        """
        if not self.contains_time_range(start, end):
            return False
        requested = TimeRange(start, end)
        for appointment in active_appointments:
            if not appointment.is_active or appointment.provider_id != self.provider_id:
                continue
            if overlaps(appointment.time_range, requested):
                return False
        return True
