import logging
from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.core.config import settings
from clinic_scheduler.core.times import format_time
from clinic_scheduler.models.appointment import Appointment, AppointmentCreate
from clinic_scheduler.services.doctor_service import doctor_schedule_config, get_doctor
from clinic_scheduler.services.override_service import leave_reason, list_overrides
from clinic_scheduler.services.slot_service import (
    CANCELLED,
    SessionType,
    booked_times_for_session,
    can_book_session,
    get_appointments_for_day,
    next_available_slot,
    occupied_times,
    resolve_session_window,
    scheduling_defaults,
)
from clinic_scheduler.services.token_service import next_token

logger = logging.getLogger(__name__)

APPOINTMENT_STATUSES = (
    "scheduled",
    "confirmed",
    "approved",
    "checked_in",
    "in_consultation",
    "completed",
    "skipped",
    "no_show",
    CANCELLED,
)


class BookingError(Exception):
    """Base exception for booking operations."""


class DoctorNotFound(BookingError):
    """Raised when the doctor does not exist or no longer takes appointments."""


class DoctorOnLeave(BookingError):
    """Raised when a schedule override blocks the requested session."""


class SessionUnavailable(BookingError):
    """Raised for past dates and sessions that have already ended."""


class SessionFull(BookingError):
    """Raised when the session has no free slot left."""


class SlotConflict(BookingError):
    """Raised when another booking took the computed slot first."""


async def book_appointment(
    session: AsyncSession, data: AppointmentCreate, now: datetime | None = None
) -> Appointment:
    """Assign the next free slot and token of a session and store the appointment.

    Read, compute and insert are not atomic: the unique slot index turns a
    concurrent booking of the same slot into SlotConflict. Tokens carry no such
    guarantee. Every appointment that still holds its slot also keeps its
    token, so numbers are never reused after check-in or completion.
    """
    doctor = await get_doctor(session, data.doctor_id)
    if not doctor or not doctor.is_active:
        raise DoctorNotFound(f"doctor {data.doctor_id} not found")

    defaults = scheduling_defaults()
    config = doctor_schedule_config(doctor)
    session_type = SessionType(data.session)
    window = resolve_session_window(config, session_type, defaults)

    overrides = await list_overrides(session, doctor.id, data.appointment_date)
    reason = leave_reason(overrides, data.appointment_date, window)
    if reason:
        raise DoctorOnLeave(reason)

    check = can_book_session(data.appointment_date, window, now or datetime.now())
    if not check.can_book:
        raise SessionUnavailable(check.reason)

    existing = await get_appointments_for_day(session, doctor.id, data.appointment_date)
    active = [a for a in existing if a.status in settings.active_statuses_list]
    active_in_session = booked_times_for_session(active, session_type, config, defaults)
    if len(active_in_session) >= settings.max_appointments_per_session:
        raise SessionFull(f"This {session_type.value} session is fully booked")

    booked = occupied_times(existing)
    slot = next_available_slot(config, data.appointment_date, session_type, booked, defaults)
    if slot is None:
        raise SessionFull(f"This {session_type.value} session is fully booked")

    token_session = session_type if settings.token_scope == "session" else None
    token = next_token(existing, data.appointment_date, token_session, config, defaults)
    appointment_time = format_time(slot)

    appointment = Appointment(
        doctor_id=doctor.id,
        patient_name=data.patient_name,
        patient_phone=data.patient_phone,
        patient_email=data.patient_email,
        appointment_date=data.appointment_date,
        appointment_time=appointment_time,
        session=session_type.value,
        token_number=token,
        status="confirmed" if data.is_emergency else "scheduled",
        reason=data.reason,
        is_emergency=data.is_emergency,
    )
    session.add(appointment)
    try:
        await session.flush()
    except IntegrityError as e:
        await session.rollback()
        logger.warning(
            "Slot %s on %s for doctor %s was taken concurrently", appointment_time, data.appointment_date, data.doctor_id
        )
        raise SlotConflict("Slot was just booked by someone else, please retry") from e
    await session.refresh(appointment)
    logger.info(
        "Booked %s %s at %s on %s for doctor %s%s",
        appointment.token_number,
        session_type.value,
        appointment.appointment_time,
        appointment.appointment_date,
        doctor.id,
        " (emergency)" if appointment.is_emergency else "",
    )
    return appointment


async def list_appointments(
    session: AsyncSession,
    doctor_id: int | None = None,
    on_date: date | None = None,
    status: str | None = None,
) -> list[Appointment]:
    q = select(Appointment).order_by(Appointment.appointment_date, Appointment.appointment_time)
    if doctor_id is not None:
        q = q.where(Appointment.doctor_id == doctor_id)
    if on_date:
        q = q.where(Appointment.appointment_date == on_date)
    if status:
        q = q.where(Appointment.status == status)
    result = await session.execute(q)
    return list(result.scalars().all())


async def update_status(session: AsyncSession, appointment_id: int, status: str) -> Appointment | None:
    appointment = await session.get(Appointment, appointment_id)
    if not appointment:
        return None
    appointment.status = status
    session.add(appointment)
    try:
        await session.flush()
    except IntegrityError as e:
        await session.rollback()
        raise SlotConflict("Slot has been given to another appointment") from e
    await session.refresh(appointment)
    return appointment


async def cancel_appointment(session: AsyncSession, appointment_id: int) -> bool:
    """Mark the appointment cancelled, which frees its slot."""
    appointment = await session.get(Appointment, appointment_id)
    if not appointment or appointment.status == CANCELLED:
        return False
    appointment.status = CANCELLED
    session.add(appointment)
    await session.flush()
    return True
