from datetime import date, datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.api.deps import get_doctor_or_404, get_session
from clinic_scheduler.api.schemas.appointment import (
    AvailableSlotsResponse,
    BookableSessionsResponse,
    SlotInfo,
)
from clinic_scheduler.core.times import format_time
from clinic_scheduler.models.doctor import Doctor
from clinic_scheduler.services.doctor_service import doctor_schedule_config
from clinic_scheduler.services.override_service import leave_reason, list_overrides
from clinic_scheduler.services.slot_service import (
    SessionType,
    available_slots,
    bookable_sessions,
    can_book_session,
    generate_slots,
    get_appointments_for_day,
    next_available_slot,
    occupied_times,
    resolve_duration,
    resolve_session_window,
    scheduling_defaults,
    session_capacity,
)

router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("/available", response_model=AvailableSlotsResponse)
async def list_available_slots(
    date_param: date = Query(..., alias="date"),
    session_param: SessionType = Query(..., alias="session"),
    doctor: Doctor = Depends(get_doctor_or_404),
    session: AsyncSession = Depends(get_session),
) -> AvailableSlotsResponse:
    """Every slot of the session with its availability, plus the slot the next booking gets."""
    defaults = scheduling_defaults()
    config = doctor_schedule_config(doctor)
    window = resolve_session_window(config, session_param, defaults)
    duration = resolve_duration(config, defaults)
    existing = await get_appointments_for_day(session, doctor.id, date_param)
    booked = occupied_times(existing)
    free = set(available_slots(config, session_param, booked, defaults))
    next_slot = next_available_slot(config, date_param, session_param, booked, defaults)
    return AvailableSlotsResponse(
        doctor_id=doctor.id,
        date=date_param,
        session=session_param,
        session_hours=window.label,
        consultation_duration=duration,
        capacity=session_capacity(config, session_param, booked, defaults),
        next_slot=format_time(next_slot) if next_slot is not None else None,
        slots=[
            SlotInfo(time=format_time(s), label=format_time(s, as24h=False), available=s in free)
            for s in generate_slots(window, duration)
        ],
    )


@router.get("/sessions", response_model=BookableSessionsResponse)
async def list_bookable_sessions(
    date_param: date = Query(..., alias="date"),
    doctor: Doctor = Depends(get_doctor_or_404),
    session: AsyncSession = Depends(get_session),
) -> BookableSessionsResponse:
    """Sessions that are neither over nor blocked by a leave override, with reasons for the rest."""
    defaults = scheduling_defaults()
    config = doctor_schedule_config(doctor)
    overrides = await list_overrides(session, doctor.id, date_param)
    now = datetime.now()
    open_sessions = bookable_sessions(date_param, config, now, defaults)
    sessions: list[SessionType] = []
    unavailable: dict[str, str] = {}
    for session_type in SessionType:
        window = resolve_session_window(config, session_type, defaults)
        if session_type not in open_sessions:
            unavailable[session_type.value] = can_book_session(date_param, window, now).reason
            continue
        reason = leave_reason(overrides, date_param, window)
        if reason:
            unavailable[session_type.value] = reason
        else:
            sessions.append(session_type)
    return BookableSessionsResponse(doctor_id=doctor.id, date=date_param, sessions=sessions, unavailable=unavailable)
