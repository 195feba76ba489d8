from datetime import date

from pydantic import BaseModel, Field

from clinic_scheduler.core.times import format_time, parse_time
from clinic_scheduler.models.appointment import Appointment, AppointmentPublic
from clinic_scheduler.services.queue_service import QueueView
from clinic_scheduler.services.slot_service import SessionCapacity, SessionType


class SlotInfo(BaseModel):
    time: str  # HH:MM
    label: str  # 9:20 AM
    available: bool


class AvailableSlotsResponse(BaseModel):
    doctor_id: int
    date: date
    session: SessionType
    session_hours: str
    consultation_duration: int
    capacity: SessionCapacity
    next_slot: str | None = None
    slots: list[SlotInfo]


class BookableSessionsResponse(BaseModel):
    doctor_id: int
    date: date
    sessions: list[SessionType]
    unavailable: dict[str, str] = {}


class BookAppointmentRequest(BaseModel):
    doctor_id: int
    patient_name: str = Field(min_length=1)
    patient_phone: str | None = None
    patient_email: str | None = None
    appointment_date: date
    session: SessionType
    reason: str | None = None


class StatusUpdateRequest(BaseModel):
    status: str


class CallNextRequest(BaseModel):
    doctor_id: int
    date: date


class QueueResponse(BaseModel):
    doctor_id: int
    date: date
    current: AppointmentPublic | None = None
    waiting: list[AppointmentPublic]
    completed: list[AppointmentPublic]
    skipped: list[AppointmentPublic]


def to_public(a: Appointment) -> AppointmentPublic:
    minutes = parse_time(a.appointment_time)
    label = format_time(minutes, as24h=False) if minutes is not None else a.appointment_time
    return AppointmentPublic(
        id=a.id,
        doctor_id=a.doctor_id,
        patient_name=a.patient_name,
        patient_phone=a.patient_phone,
        patient_email=a.patient_email,
        appointment_date=a.appointment_date,
        appointment_time=a.appointment_time,
        appointment_time_label=label,
        session=a.session,
        token_number=a.token_number,
        status=a.status,
        reason=a.reason,
        is_emergency=a.is_emergency,
        created_at=a.created_at,
    )


def queue_response(doctor_id: int, on_date: date, queue: QueueView) -> QueueResponse:
    return QueueResponse(
        doctor_id=doctor_id,
        date=on_date,
        current=to_public(queue.current) if queue.current else None,
        waiting=[to_public(a) for a in queue.waiting],
        completed=[to_public(a) for a in queue.completed],
        skipped=[to_public(a) for a in queue.skipped],
    )
