from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.models.doctor import Doctor, DoctorCreate, DoctorUpdate
from clinic_scheduler.services.slot_service import DoctorScheduleConfig


def doctor_schedule_config(doctor: Doctor) -> DoctorScheduleConfig:
    return DoctorScheduleConfig(
        morning_start_time=doctor.morning_start_time,
        morning_end_time=doctor.morning_end_time,
        evening_start_time=doctor.evening_start_time,
        evening_end_time=doctor.evening_end_time,
        morning_time=doctor.morning_time,
        evening_time=doctor.evening_time,
        consultation_duration=doctor.consultation_duration,
    )


async def get_doctor(session: AsyncSession, doctor_id: int) -> Doctor | None:
    return await session.get(Doctor, doctor_id)


async def list_doctors(session: AsyncSession, active_only: bool = False) -> list[Doctor]:
    q = select(Doctor).order_by(Doctor.name)
    if active_only:
        q = q.where(Doctor.is_active.is_(True))
    result = await session.execute(q)
    return list(result.scalars().all())


async def create_doctor(session: AsyncSession, data: DoctorCreate) -> Doctor:
    doctor = Doctor.model_validate(data)
    session.add(doctor)
    await session.flush()
    await session.refresh(doctor)
    return doctor


async def update_doctor(session: AsyncSession, doctor_id: int, data: DoctorUpdate) -> Doctor | None:
    doctor = await session.get(Doctor, doctor_id)
    if not doctor:
        return None
    doctor.sqlmodel_update(data.model_dump(exclude_unset=True))
    session.add(doctor)
    await session.flush()
    await session.refresh(doctor)
    return doctor
