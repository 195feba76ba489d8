from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.core.db import get_session
from clinic_scheduler.models.doctor import Doctor
from clinic_scheduler.services.doctor_service import get_doctor

__all__ = ["get_session", "get_doctor_or_404"]


async def get_doctor_or_404(
    doctor_id: int,
    session: AsyncSession = Depends(get_session),
) -> Doctor:
    doctor = await get_doctor(session, doctor_id)
    if not doctor:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Doctor not found",
        )
    return doctor
