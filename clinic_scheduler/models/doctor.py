from pydantic import field_validator, model_validator
from sqlmodel import Field, SQLModel

from clinic_scheduler.core.times import parse_time, parse_time_range

_TIME_FIELDS = ("morning_start_time", "morning_end_time", "evening_start_time", "evening_end_time")
_RANGE_FIELDS = ("morning_time", "evening_time")


class DoctorHoursInput(SQLModel):
    """Checks the working-hour fields of doctor create/update payloads."""

    @field_validator(*_TIME_FIELDS, check_fields=False)
    @classmethod
    def check_time(cls, value: str | None) -> str | None:
        if value and parse_time(value) is None:
            raise ValueError(f"invalid time {value!r}, expected HH:MM or H:MM AM/PM")
        return value

    @field_validator(*_RANGE_FIELDS, check_fields=False)
    @classmethod
    def check_range(cls, value: str | None) -> str | None:
        if value and parse_time_range(value) is None:
            raise ValueError(f"invalid time range {value!r}, expected e.g. 9:00 AM - 1:00 PM")
        return value

    @model_validator(mode="after")
    def check_windows(self):
        for session in ("morning", "evening"):
            start = parse_time(getattr(self, f"{session}_start_time", None))
            end = parse_time(getattr(self, f"{session}_end_time", None))
            if start is not None and end is not None and start >= end:
                raise ValueError(f"{session} session must end after it starts")
            legacy = parse_time_range(getattr(self, f"{session}_time", None))
            if legacy and legacy[0] >= legacy[1]:
                raise ValueError(f"{session} session must end after it starts")
        return self


class DoctorBase(SQLModel):
    name: str
    specialization: str | None = None
    email: str | None = None
    # Session hours in "HH:MM" or "H:MM AM/PM"; missing values use the clinic defaults
    morning_start_time: str | None = None
    morning_end_time: str | None = None
    evening_start_time: str | None = None
    evening_end_time: str | None = None
    # Older records keep each session as one "9:00 AM - 1:00 PM" string
    morning_time: str | None = None
    evening_time: str | None = None
    consultation_duration: int | None = None
    is_active: bool = True


class Doctor(DoctorBase, table=True):
    __tablename__ = "doctors"
    id: int | None = Field(default=None, primary_key=True)


class DoctorCreate(DoctorBase, DoctorHoursInput):
    consultation_duration: int | None = Field(default=None, gt=0)


class DoctorUpdate(DoctorHoursInput):
    name: str | None = None
    specialization: str | None = None
    email: str | None = None
    morning_start_time: str | None = None
    morning_end_time: str | None = None
    evening_start_time: str | None = None
    evening_end_time: str | None = None
    morning_time: str | None = None
    evening_time: str | None = None
    consultation_duration: int | None = Field(default=None, gt=0)
    is_active: bool | None = None


class DoctorPublic(DoctorBase):
    id: int
