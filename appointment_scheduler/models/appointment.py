from datetime import datetime
from enum import Enum

from sqlalchemy import DDL, CheckConstraint, DateTime, Index, event
from sqlmodel import Field, SQLModel

from appointment_scheduler.scheduling.time_range import TimeRange, utc_naive_now

# Shared by the PostgreSQL exclusion constraint and the SQLite triggers so a
# commit-time violation can be recognised from the driver error text.
OVERLAP_CONSTRAINT_NAME = "appointments_no_overlap_per_provider"


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    # Reserved: no operation moves an appointment into this state yet.
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    __table_args__ = (
        CheckConstraint("ends_at > starts_at", name="ck_appointments_ends_after_starts"),
        CheckConstraint("duration_minutes > 0", name="ck_appointments_duration_positive"),
        CheckConstraint(
            "status IN ('scheduled', 'confirmed', 'cancelled')",
            name="ck_appointments_status",
        ),
        Index("ix_appointments_provider_id_starts_at_ends_at", "provider_id", "starts_at", "ends_at"),
        Index("ix_appointments_availability_id_starts_at_ends_at", "availability_id", "starts_at", "ends_at"),
    )

    id: int | None = Field(default=None, primary_key=True)
    # All datetime columns hold naive UTC
    client_id: int = Field(foreign_key="clients.id", ondelete="CASCADE", index=True)
    provider_id: int = Field(foreign_key="providers.id", ondelete="CASCADE", index=True)
    availability_id: int = Field(foreign_key="availabilities.id", ondelete="CASCADE", index=True)
    starts_at: datetime = Field(sa_type=DateTime(timezone=False))
    ends_at: datetime = Field(sa_type=DateTime(timezone=False))
    duration_minutes: int
    status: str = Field(default=AppointmentStatus.SCHEDULED.value, index=True)
    created_at: datetime = Field(default_factory=utc_naive_now, sa_type=DateTime(timezone=False))
    updated_at: datetime = Field(default_factory=utc_naive_now, sa_type=DateTime(timezone=False))

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(self.starts_at, self.ends_at)

    @property
    def is_active(self) -> bool:
        return self.status != AppointmentStatus.CANCELLED.value

    @property
    def is_cancelled(self) -> bool:
        return self.status == AppointmentStatus.CANCELLED.value


class AppointmentPublic(SQLModel):
    id: int
    client_id: int
    provider_id: int
    availability_id: int
    starts_at: datetime
    ends_at: datetime
    duration_minutes: int
    status: str
    created_at: datetime


# Storage-level non-overlap guard over active rows. The application check in
# appointment_service runs first; these make a stale check fail at commit.
_PG_BTREE_GIST = DDL("CREATE EXTENSION IF NOT EXISTS btree_gist")
_PG_EXCLUDE_OVERLAP = DDL(
    f"ALTER TABLE appointments ADD CONSTRAINT {OVERLAP_CONSTRAINT_NAME} "
    "EXCLUDE USING gist (provider_id WITH =, tsrange(starts_at, ends_at, '[)') WITH &&) "
    "WHERE (status <> 'cancelled')"
)
_SQLITE_OVERLAP_INSERT = DDL(
    f"CREATE TRIGGER IF NOT EXISTS {OVERLAP_CONSTRAINT_NAME}_insert "
    "BEFORE INSERT ON appointments "
    "WHEN NEW.status <> 'cancelled' "
    "BEGIN "
    f"SELECT RAISE(ABORT, '{OVERLAP_CONSTRAINT_NAME}') "
    "WHERE EXISTS (SELECT 1 FROM appointments "
    "WHERE provider_id = NEW.provider_id AND status <> 'cancelled' "
    "AND starts_at < NEW.ends_at AND ends_at > NEW.starts_at); "
    "END"
)
_SQLITE_OVERLAP_UPDATE = DDL(
    f"CREATE TRIGGER IF NOT EXISTS {OVERLAP_CONSTRAINT_NAME}_update "
    "BEFORE UPDATE OF provider_id, starts_at, ends_at, status ON appointments "
    "WHEN NEW.status <> 'cancelled' "
    "BEGIN "
    f"SELECT RAISE(ABORT, '{OVERLAP_CONSTRAINT_NAME}') "
    "WHERE EXISTS (SELECT 1 FROM appointments "
    "WHERE id <> NEW.id AND provider_id = NEW.provider_id AND status <> 'cancelled' "
    "AND starts_at < NEW.ends_at AND ends_at > NEW.starts_at); "
    "END"
)

_table = Appointment.__table__
event.listen(_table, "before_create", _PG_BTREE_GIST.execute_if(dialect="postgresql"))
event.listen(_table, "after_create", _PG_EXCLUDE_OVERLAP.execute_if(dialect="postgresql"))
event.listen(_table, "after_create", _SQLITE_OVERLAP_INSERT.execute_if(dialect="sqlite"))
event.listen(_table, "after_create", _SQLITE_OVERLAP_UPDATE.execute_if(dialect="sqlite"))
