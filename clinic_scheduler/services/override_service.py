import logging
from collections.abc import Iterable
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.core.times import parse_time
from clinic_scheduler.models.schedule_override import ScheduleOverride, ScheduleOverrideCreate
from clinic_scheduler.services.slot_service import SessionWindow

logger = logging.getLogger(__name__)

OVERRIDE_TYPES = ("holiday", "extended_hours", "reduced_hours")
BLOCKING_TYPES = ("holiday",)


def leave_reason(
    overrides: Iterable[ScheduleOverride], appointment_date: date, window: SessionWindow
) -> str | None:
    """Why the doctor is unavailable for this session on this date, or None.

    An active holiday without times covers the whole day; with times it covers
    any session whose hours overlap it.
    """
    for override in overrides:
        if not override.is_active or override.override_type not in BLOCKING_TYPES:
            continue
        if override.override_date != appointment_date:
            continue
        start = parse_time(override.start_time)
        end = parse_time(override.end_time)
        if start is None or end is None:
            if override.start_time or override.end_time:
                logger.warning("Override %s has unreadable hours, treating as full day", override.id)
            return f"Doctor is on leave: {override.reason}"
        if window.overlaps(start, end):
            return f"Doctor is on leave: {override.reason}"
    return None


async def list_overrides(
    session: AsyncSession, doctor_id: int, on_date: date | None = None
) -> list[ScheduleOverride]:
    q = (
        select(ScheduleOverride)
        .where(ScheduleOverride.doctor_id == doctor_id)
        .order_by(ScheduleOverride.override_date)
    )
    if on_date:
        q = q.where(ScheduleOverride.override_date == on_date)
    result = await session.execute(q)
    return list(result.scalars().all())


async def create_override(
    session: AsyncSession, doctor_id: int, data: ScheduleOverrideCreate
) -> ScheduleOverride:
    override = ScheduleOverride(doctor_id=doctor_id, **data.model_dump())
    session.add(override)
    await session.flush()
    await session.refresh(override)
    logger.info("Schedule override %s added for doctor %s on %s", override.id, doctor_id, override.override_date)
    return override


async def delete_override(session: AsyncSession, override_id: int) -> bool:
    override = await session.get(ScheduleOverride, override_id)
    if not override:
        return False
    await session.delete(override)
    await session.flush()
    return True
