from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.api.deps import get_doctor_or_404, get_session
from clinic_scheduler.core.times import parse_time
from clinic_scheduler.models.doctor import Doctor
from clinic_scheduler.models.schedule_override import (
    ScheduleOverride,
    ScheduleOverrideCreate,
    ScheduleOverridePublic,
)
from clinic_scheduler.services.override_service import (
    OVERRIDE_TYPES,
    create_override,
    delete_override,
    list_overrides,
)

router = APIRouter(tags=["overrides"])


@router.post(
    "/doctors/{doctor_id}/overrides",
    response_model=ScheduleOverridePublic,
    status_code=status.HTTP_201_CREATED,
)
async def add_override(
    body: ScheduleOverrideCreate,
    doctor: Doctor = Depends(get_doctor_or_404),
    session: AsyncSession = Depends(get_session),
) -> ScheduleOverride:
    if body.override_type not in OVERRIDE_TYPES:
        raise HTTPException(
            status_code=422,
            detail=f"override_type must be one of {', '.join(OVERRIDE_TYPES)}",
        )
    for value in (body.start_time, body.end_time):
        if value and parse_time(value) is None:
            raise HTTPException(
                status_code=422,
                detail=f"Invalid time {value!r}",
            )
    return await create_override(session, doctor.id, body)


@router.get("/doctors/{doctor_id}/overrides", response_model=list[ScheduleOverridePublic])
async def get_overrides(
    date_param: date | None = Query(None, alias="date"),
    doctor: Doctor = Depends(get_doctor_or_404),
    session: AsyncSession = Depends(get_session),
) -> list[ScheduleOverride]:
    return await list_overrides(session, doctor.id, date_param)


@router.delete("/overrides/{override_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_override(
    override_id: int,
    session: AsyncSession = Depends(get_session),
) -> None:
    if not await delete_override(session, override_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Override not found")
