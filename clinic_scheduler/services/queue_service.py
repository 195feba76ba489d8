import logging
from dataclasses import dataclass, field
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.core.config import settings
from clinic_scheduler.core.times import parse_time
from clinic_scheduler.models.appointment import Appointment
from clinic_scheduler.services.slot_service import get_appointments_for_day
from clinic_scheduler.services.token_service import parse_token_number

logger = logging.getLogger(__name__)

CHECKED_IN = "checked_in"
IN_CONSULTATION = "in_consultation"
COMPLETED = "completed"
SKIPPED = "skipped"


class QueueError(Exception):
    """Raised when an appointment cannot move to the requested queue state."""


@dataclass
class QueueView:
    """A doctor's queue for one day, each list ordered by token."""

    current: Appointment | None = None
    waiting: list[Appointment] = field(default_factory=list)
    completed: list[Appointment] = field(default_factory=list)
    skipped: list[Appointment] = field(default_factory=list)


def queue_order(appointment: Appointment) -> tuple[int, int]:
    minutes = parse_time(appointment.appointment_time)
    return parse_token_number(appointment.token_number), minutes if minutes is not None else 0


async def get_queue(session: AsyncSession, doctor_id: int, on_date: date) -> QueueView:
    appointments = sorted(await get_appointments_for_day(session, doctor_id, on_date), key=queue_order)
    current = [a for a in appointments if a.status == IN_CONSULTATION]
    if len(current) > 1:
        logger.warning("Doctor %s has %d patients in consultation on %s", doctor_id, len(current), on_date)
    return QueueView(
        current=current[0] if current else None,
        waiting=[a for a in appointments if a.status == CHECKED_IN],
        completed=[a for a in appointments if a.status == COMPLETED],
        skipped=[a for a in appointments if a.status == SKIPPED],
    )


async def _move(session: AsyncSession, appointment: Appointment, status: str) -> Appointment:
    logger.info("Appointment %s (%s): %s -> %s", appointment.id, appointment.token_number, appointment.status, status)
    appointment.status = status
    session.add(appointment)
    await session.flush()
    await session.refresh(appointment)
    return appointment


async def _get_in_status(
    session: AsyncSession, appointment_id: int, allowed: tuple[str, ...] | list[str], action: str
) -> Appointment | None:
    appointment = await session.get(Appointment, appointment_id)
    if not appointment:
        return None
    if appointment.status not in allowed:
        raise QueueError(f"Cannot {action} an appointment that is {appointment.status}")
    return appointment


async def check_in(session: AsyncSession, appointment_id: int) -> Appointment | None:
    """Patient has arrived: a booked appointment joins the waiting list."""
    appointment = await _get_in_status(session, appointment_id, settings.active_statuses_list, "check in")
    if not appointment:
        return None
    return await _move(session, appointment, CHECKED_IN)


async def call_next(session: AsyncSession, doctor_id: int, on_date: date) -> Appointment | None:
    """Finish the current consultation and call the lowest waiting token.

    Returns the newly called appointment, or None when nobody is waiting.
    """
    queue = await get_queue(session, doctor_id, on_date)
    if queue.current:
        await _move(session, queue.current, COMPLETED)
    if not queue.waiting:
        return None
    return await _move(session, queue.waiting[0], IN_CONSULTATION)


async def skip(session: AsyncSession, appointment_id: int) -> Appointment | None:
    appointment = await _get_in_status(session, appointment_id, (CHECKED_IN, IN_CONSULTATION), "skip")
    if not appointment:
        return None
    return await _move(session, appointment, SKIPPED)


async def complete(session: AsyncSession, appointment_id: int) -> Appointment | None:
    appointment = await _get_in_status(session, appointment_id, (CHECKED_IN, IN_CONSULTATION), "complete")
    if not appointment:
        return None
    return await _move(session, appointment, COMPLETED)


async def reinsert(session: AsyncSession, appointment_id: int) -> Appointment | None:
    """Put a skipped patient back in the waiting list at their token position."""
    appointment = await _get_in_status(session, appointment_id, (SKIPPED,), "reinsert")
    if not appointment:
        return None
    return await _move(session, appointment, CHECKED_IN)
