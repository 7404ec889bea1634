from datetime import datetime

from pydantic import BaseModel, Field


class FreeSlotInfo(BaseModel):
    starts_at: datetime
    ends_at: datetime
    duration_minutes: int


class AvailabilityWindowInfo(BaseModel):
    id: int
    external_id: str
    starts_at: datetime
    ends_at: datetime
    source: str
    available_slots: list[FreeSlotInfo]
    total_appointments: int


class ProviderAvailabilitiesResponse(BaseModel):
    provider_id: int
    provider_name: str
    from_: datetime = Field(serialization_alias="from")
    to: datetime
    availabilities: list[AvailabilityWindowInfo]
