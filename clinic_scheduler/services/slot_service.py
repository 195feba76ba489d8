import logging
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.core.config import settings
from clinic_scheduler.core.times import format_time, parse_time, parse_time_range
from clinic_scheduler.models.appointment import Appointment

logger = logging.getLogger(__name__)

CANCELLED = "cancelled"


class SessionType(str, Enum):
    MORNING = "morning"
    EVENING = "evening"


class SessionWindow(BaseModel):
    """Working hours of one session, as minutes since midnight.

    ``start < end`` is deliberately not validated: an inverted window simply
    produces no slots.
    """

    model_config = ConfigDict(frozen=True)

    start: int = Field(ge=0, le=1439)
    end: int = Field(ge=0, le=1439)

    def contains(self, minutes: int) -> bool:
        return self.start <= minutes < self.end

    def overlaps(self, start: int, end: int) -> bool:
        return start < self.end and self.start < end

    @property
    def label(self) -> str:
        return f"{format_time(self.start, as24h=False)} - {format_time(self.end, as24h=False)}"


class SchedulingDefaults(BaseModel):
    """Fallback hours used for any doctor field that is missing or unreadable."""

    model_config = ConfigDict(frozen=True)

    morning: SessionWindow = SessionWindow(start=9 * 60, end=13 * 60)
    evening: SessionWindow = SessionWindow(start=14 * 60, end=18 * 60)
    consultation_duration: int = 20
    session_cutoff: int = 14 * 60

    @classmethod
    def from_strings(
        cls,
        *,
        morning_start: str,
        morning_end: str,
        evening_start: str,
        evening_end: str,
        consultation_duration: int,
        session_cutoff: str,
    ) -> "SchedulingDefaults":
        base = cls()
        return cls(
            morning=SessionWindow(
                start=parse_time(morning_start, base.morning.start),
                end=parse_time(morning_end, base.morning.end),
            ),
            evening=SessionWindow(
                start=parse_time(evening_start, base.evening.start),
                end=parse_time(evening_end, base.evening.end),
            ),
            consultation_duration=consultation_duration,
            session_cutoff=parse_time(session_cutoff, base.session_cutoff),
        )

    def window(self, session: SessionType) -> SessionWindow:
        return self.morning if session == SessionType.MORNING else self.evening


DEFAULT_SCHEDULING = SchedulingDefaults()


def scheduling_defaults() -> SchedulingDefaults:
    """Clinic-wide fallback hours from the current settings."""
    return SchedulingDefaults.from_strings(
        morning_start=settings.default_morning_start,
        morning_end=settings.default_morning_end,
        evening_start=settings.default_evening_start,
        evening_end=settings.default_evening_end,
        consultation_duration=settings.default_consultation_duration,
        session_cutoff=settings.session_cutoff,
    )


class DoctorScheduleConfig(BaseModel):
    """Working-time fields of a doctor record.

    Accepts both the camelCase keys stored on doctor documents
    (``morningStartTime``) and snake_case. Times may be in either string format;
    ``morning_time``/``evening_time`` are older "9:00 AM - 1:00 PM" range strings.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    morning_start_time: str | None = None
    morning_end_time: str | None = None
    evening_start_time: str | None = None
    evening_end_time: str | None = None
    morning_time: str | None = None
    evening_time: str | None = None
    consultation_duration: int | None = None


class SessionCapacity(BaseModel):
    total: int
    booked: int
    available: int


class BookingCheck(BaseModel):
    can_book: bool
    reason: str | None = None


DoctorConfigLike = DoctorScheduleConfig | Mapping[str, Any] | None


def _as_config(config: DoctorConfigLike) -> DoctorScheduleConfig | None:
    if config is None or isinstance(config, DoctorScheduleConfig):
        return config
    return DoctorScheduleConfig.model_validate(dict(config))


def resolve_session_window(
    config: DoctorConfigLike,
    session: SessionType,
    defaults: SchedulingDefaults = DEFAULT_SCHEDULING,
) -> SessionWindow:
    """Doctor's window for a session: explicit field, then legacy range, then default."""
    fallback = defaults.window(session)
    config = _as_config(config)
    if config is None:
        return fallback
    if session == SessionType.MORNING:
        raw_start, raw_end, legacy = config.morning_start_time, config.morning_end_time, config.morning_time
    else:
        raw_start, raw_end, legacy = config.evening_start_time, config.evening_end_time, config.evening_time
    legacy_range = parse_time_range(legacy)
    start = parse_time(raw_start)
    if start is None:
        start = legacy_range[0] if legacy_range else fallback.start
    end = parse_time(raw_end)
    if end is None:
        end = legacy_range[1] if legacy_range else fallback.end
    return SessionWindow(start=start, end=end)


def resolve_duration(config: DoctorConfigLike, defaults: SchedulingDefaults = DEFAULT_SCHEDULING) -> int:
    config = _as_config(config)
    if config is None or not config.consultation_duration:
        return defaults.consultation_duration
    return config.consultation_duration


def generate_slots(window: SessionWindow, duration: int) -> list[int]:
    """Slot start times from window.start, each leaving room for a full appointment."""
    slots: list[int] = []
    if duration <= 0 or window.start >= window.end:
        return slots
    current = window.start
    while current + duration <= window.end:
        slots.append(current)
        current += duration
    return slots


def session_of(
    minutes: int,
    config: DoctorConfigLike = None,
    defaults: SchedulingDefaults = DEFAULT_SCHEDULING,
) -> SessionType:
    """Session a time belongs to; times outside both windows split at the cutoff."""
    for session in SessionType:
        if resolve_session_window(config, session, defaults).contains(minutes):
            return session
    return SessionType.MORNING if minutes < defaults.session_cutoff else SessionType.EVENING


def _booked_minutes(booked_slots: Iterable[str]) -> set[int]:
    booked: set[int] = set()
    for raw in booked_slots:
        minutes = parse_time(raw)
        if minutes is not None:
            booked.add(minutes)
    return booked


def available_slots(
    doctor_config: DoctorConfigLike,
    session: SessionType,
    booked_slots: Iterable[str],
    defaults: SchedulingDefaults = DEFAULT_SCHEDULING,
) -> list[int]:
    window = resolve_session_window(doctor_config, session, defaults)
    duration = resolve_duration(doctor_config, defaults)
    booked = _booked_minutes(booked_slots)
    return [slot for slot in generate_slots(window, duration) if slot not in booked]


def next_available_slot(
    doctor_config: DoctorConfigLike,
    appointment_date: date,
    session: SessionType,
    booked_slots: Iterable[str],
    defaults: SchedulingDefaults = DEFAULT_SCHEDULING,
) -> int | None:
    """Earliest free slot of the session (first fit), or None when it is full."""
    free = available_slots(doctor_config, session, booked_slots, defaults)
    if not free:
        logger.debug("No free %s slot on %s", session.value, appointment_date)
        return None
    return free[0]


def session_capacity(
    doctor_config: DoctorConfigLike,
    session: SessionType,
    booked_slots: Iterable[str],
    defaults: SchedulingDefaults = DEFAULT_SCHEDULING,
) -> SessionCapacity:
    window = resolve_session_window(doctor_config, session, defaults)
    slots = generate_slots(window, resolve_duration(doctor_config, defaults))
    booked = _booked_minutes(booked_slots).intersection(slots)
    return SessionCapacity(total=len(slots), booked=len(booked), available=len(slots) - len(booked))


def can_book_session(appointment_date: date, window: SessionWindow, now: datetime) -> BookingCheck:
    today = now.date()
    if appointment_date < today:
        return BookingCheck(can_book=False, reason="Cannot book appointments for past dates")
    # A session already in progress can still be booked; one that has ended cannot.
    if appointment_date == today and window.end <= now.hour * 60 + now.minute:
        return BookingCheck(can_book=False, reason="This session has already ended")
    return BookingCheck(can_book=True)


def bookable_sessions(
    appointment_date: date,
    doctor_config: DoctorConfigLike,
    now: datetime,
    defaults: SchedulingDefaults = DEFAULT_SCHEDULING,
) -> list[SessionType]:
    return [
        session
        for session in SessionType
        if can_book_session(appointment_date, resolve_session_window(doctor_config, session, defaults), now).can_book
    ]


async def get_appointments_for_day(
    session: AsyncSession, doctor_id: int, appointment_date: date
) -> list[Appointment]:
    """Every appointment of the doctor on that date that still holds its slot."""
    result = await session.execute(
        select(Appointment)
        .where(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_date == appointment_date,
            Appointment.status != CANCELLED,
        )
        .order_by(Appointment.appointment_time)
    )
    return list(result.scalars().all())


def booked_times_for_session(
    appointments: Iterable[Appointment],
    session: SessionType,
    doctor_config: DoctorConfigLike = None,
    defaults: SchedulingDefaults = DEFAULT_SCHEDULING,
) -> list[str]:
    """Appointment times already taken in a session, as stored (either format)."""
    booked: list[str] = []
    for appointment in appointments:
        minutes = parse_time(appointment.appointment_time)
        if minutes is None:
            logger.warning(
                "Ignoring appointment %s with unreadable time %r", appointment.id, appointment.appointment_time
            )
            continue
        if (appointment.session or session_of(minutes, doctor_config, defaults)) == session:
            booked.append(appointment.appointment_time)
    return booked


def occupied_times(appointments: Iterable[Appointment]) -> list[str]:
    """Every time held on the day, whatever session booked it.

    The unique slot index spans the doctor's whole day, so a slot taken by one
    session is unavailable to the other when their windows overlap.
    """
    return [appointment.appointment_time for appointment in appointments]
