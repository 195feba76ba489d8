from datetime import UTC, date, datetime

from sqlalchemy import DateTime, Index, text
from sqlmodel import Field, SQLModel


def _utc_now() -> datetime:
    return datetime.now(UTC)


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    # One live appointment per doctor per slot; concurrent bookings of the same slot fail here
    __table_args__ = (
        Index(
            "uq_appointments_doctor_slot",
            "doctor_id",
            "appointment_date",
            "appointment_time",
            unique=True,
            postgresql_where=text("status != 'cancelled'"),
            sqlite_where=text("status != 'cancelled'"),
        ),
    )
    id: int | None = Field(default=None, primary_key=True)
    doctor_id: int = Field(foreign_key="doctors.id", index=True, ondelete="CASCADE")
    patient_name: str
    patient_phone: str | None = None
    patient_email: str | None = None
    appointment_date: date = Field(index=True)
    appointment_time: str  # "HH:MM", 24-hour
    session: str = Field(index=True)
    token_number: str
    status: str = Field(default="scheduled", index=True)
    reason: str | None = None
    is_emergency: bool = False
    created_at: datetime = Field(default_factory=_utc_now, sa_type=DateTime(timezone=True))


class AppointmentCreate(SQLModel):
    doctor_id: int
    patient_name: str
    patient_phone: str | None = None
    patient_email: str | None = None
    appointment_date: date
    session: str
    reason: str | None = None
    is_emergency: bool = False


class AppointmentPublic(SQLModel):
    id: int
    doctor_id: int
    patient_name: str
    patient_phone: str | None = None
    patient_email: str | None = None
    appointment_date: date
    appointment_time: str
    appointment_time_label: str
    session: str
    token_number: str
    status: str
    reason: str | None = None
    is_emergency: bool
    created_at: datetime
