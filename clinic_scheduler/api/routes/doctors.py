from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.api.deps import get_doctor_or_404, get_session
from clinic_scheduler.models.doctor import Doctor, DoctorCreate, DoctorPublic, DoctorUpdate
from clinic_scheduler.services.doctor_service import create_doctor, list_doctors, update_doctor

router = APIRouter(prefix="/doctors", tags=["doctors"])


@router.post("", response_model=DoctorPublic, status_code=status.HTTP_201_CREATED)
async def add_doctor(
    body: DoctorCreate,
    session: AsyncSession = Depends(get_session),
) -> Doctor:
    return await create_doctor(session, body)


@router.get("", response_model=list[DoctorPublic])
async def get_doctors(
    active_only: bool = Query(False),
    session: AsyncSession = Depends(get_session),
) -> list[Doctor]:
    return await list_doctors(session, active_only=active_only)


@router.get("/{doctor_id}", response_model=DoctorPublic)
async def get_one_doctor(doctor: Doctor = Depends(get_doctor_or_404)) -> Doctor:
    return doctor


@router.patch("/{doctor_id}", response_model=DoctorPublic)
async def edit_doctor(
    doctor_id: int,
    body: DoctorUpdate,
    session: AsyncSession = Depends(get_session),
) -> Doctor:
    """Update profile or working hours; later bookings use the new slot grid."""
    doctor = await update_doctor(session, doctor_id, body)
    if not doctor:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Doctor not found")
    return doctor
