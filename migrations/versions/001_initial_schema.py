"""Initial schema: providers, clients, availabilities, appointments.

Revision ID: 001_initial
Revises:
Create Date: 2025-09-29

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

OVERLAP_CONSTRAINT = "appointments_no_overlap_per_provider"


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "providers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_providers_email"), "providers", ["email"], unique=True)

    op.create_table(
        "clients",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_clients_email"), "clients", ["email"], unique=True)

    op.create_table(
        "availabilities",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("provider_id", sa.Integer(), nullable=False),
        sa.Column("external_id", sa.String(), nullable=False),
        sa.Column("starts_at", sa.DateTime(), nullable=False),
        sa.Column("ends_at", sa.DateTime(), nullable=False),
        sa.Column("source", sa.String(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("ends_at > starts_at", name="ck_availabilities_ends_after_starts"),
        sa.ForeignKeyConstraint(["provider_id"], ["providers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_availabilities_provider_id"), "availabilities", ["provider_id"], unique=False)
    op.create_index(op.f("ix_availabilities_external_id"), "availabilities", ["external_id"], unique=True)
    op.create_index(
        "ix_availabilities_provider_id_starts_at_ends_at",
        "availabilities",
        ["provider_id", "starts_at", "ends_at"],
        unique=False,
    )

    op.create_table(
        "appointments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("client_id", sa.Integer(), nullable=False),
        sa.Column("provider_id", sa.Integer(), nullable=False),
        sa.Column("availability_id", sa.Integer(), nullable=False),
        sa.Column("starts_at", sa.DateTime(), nullable=False),
        sa.Column("ends_at", sa.DateTime(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="scheduled"),
        *_timestamps(),
        sa.CheckConstraint("ends_at > starts_at", name="ck_appointments_ends_after_starts"),
        sa.CheckConstraint("duration_minutes > 0", name="ck_appointments_duration_positive"),
        sa.CheckConstraint(
            "status IN ('scheduled', 'confirmed', 'cancelled')",
            name="ck_appointments_status",
        ),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["provider_id"], ["providers.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["availability_id"], ["availabilities.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_appointments_client_id"), "appointments", ["client_id"], unique=False)
    op.create_index(op.f("ix_appointments_provider_id"), "appointments", ["provider_id"], unique=False)
    op.create_index(op.f("ix_appointments_availability_id"), "appointments", ["availability_id"], unique=False)
    op.create_index(op.f("ix_appointments_status"), "appointments", ["status"], unique=False)
    op.create_index(
        "ix_appointments_provider_id_starts_at_ends_at",
        "appointments",
        ["provider_id", "starts_at", "ends_at"],
        unique=False,
    )
    op.create_index(
        "ix_appointments_availability_id_starts_at_ends_at",
        "appointments",
        ["availability_id", "starts_at", "ends_at"],
        unique=False,
    )

    if op.get_bind().dialect.name == "postgresql":
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute(
            f"""
            ALTER TABLE appointments
              ADD CONSTRAINT {OVERLAP_CONSTRAINT}
              EXCLUDE USING gist (
                provider_id WITH =,
                tsrange(starts_at, ends_at, '[)') WITH &&
              )
              WHERE (status <> 'cancelled')
            """
        )
    elif op.get_bind().dialect.name == "sqlite":
        for event, guard in (("INSERT", ""), ("UPDATE OF provider_id, starts_at, ends_at, status", "id <> NEW.id AND ")):
            suffix = "insert" if event == "INSERT" else "update"
            op.execute(
                f"""
                CREATE TRIGGER {OVERLAP_CONSTRAINT}_{suffix}
                BEFORE {event} ON appointments
                WHEN NEW.status <> 'cancelled'
                BEGIN
                  SELECT RAISE(ABORT, '{OVERLAP_CONSTRAINT}')
                  WHERE EXISTS (
                    SELECT 1 FROM appointments
                    WHERE {guard}provider_id = NEW.provider_id AND status <> 'cancelled'
                      AND starts_at < NEW.ends_at AND ends_at > NEW.starts_at
                  );
                END
                """
            )


def downgrade() -> None:
    if op.get_bind().dialect.name == "postgresql":
        op.execute(f"ALTER TABLE appointments DROP CONSTRAINT IF EXISTS {OVERLAP_CONSTRAINT}")
    elif op.get_bind().dialect.name == "sqlite":
        op.execute(f"DROP TRIGGER IF EXISTS {OVERLAP_CONSTRAINT}_insert")
        op.execute(f"DROP TRIGGER IF EXISTS {OVERLAP_CONSTRAINT}_update")
    op.drop_index("ix_appointments_availability_id_starts_at_ends_at", table_name="appointments")
    op.drop_index("ix_appointments_provider_id_starts_at_ends_at", table_name="appointments")
    op.drop_index(op.f("ix_appointments_status"), table_name="appointments")
    op.drop_index(op.f("ix_appointments_availability_id"), table_name="appointments")
    op.drop_index(op.f("ix_appointments_provider_id"), table_name="appointments")
    op.drop_index(op.f("ix_appointments_client_id"), table_name="appointments")
    op.drop_table("appointments")
    op.drop_index("ix_availabilities_provider_id_starts_at_ends_at", table_name="availabilities")
    op.drop_index(op.f("ix_availabilities_external_id"), table_name="availabilities")
    op.drop_index(op.f("ix_availabilities_provider_id"), table_name="availabilities")
    op.drop_table("availabilities")
    op.drop_index(op.f("ix_clients_email"), table_name="clients")
    op.drop_table("clients")
    op.drop_index(op.f("ix_providers_email"), table_name="providers")
    op.drop_table("providers")
