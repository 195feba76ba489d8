from datetime import UTC, date, datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def _utc_now() -> datetime:
    return datetime.now(UTC)


class ScheduleOverrideBase(SQLModel):
    override_date: date = Field(index=True)
    # holiday | extended_hours | reduced_hours
    override_type: str = "holiday"
    start_time: str | None = None
    end_time: str | None = None
    reason: str = ""
    is_active: bool = True


class ScheduleOverride(ScheduleOverrideBase, table=True):
    __tablename__ = "schedule_overrides"
    id: int | None = Field(default=None, primary_key=True)
    doctor_id: int = Field(foreign_key="doctors.id", index=True, ondelete="CASCADE")
    created_at: datetime = Field(default_factory=_utc_now, sa_type=DateTime(timezone=True))


class ScheduleOverrideCreate(ScheduleOverrideBase):
    pass


class ScheduleOverridePublic(ScheduleOverrideBase):
    id: int
    doctor_id: int
