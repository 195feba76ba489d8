from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.api.deps import get_doctor_or_404, get_session
from clinic_scheduler.api.schemas.appointment import CallNextRequest, QueueResponse, queue_response, to_public
from clinic_scheduler.models.appointment import AppointmentPublic
from clinic_scheduler.models.doctor import Doctor
from clinic_scheduler.services import queue_service
from clinic_scheduler.services.doctor_service import get_doctor
from clinic_scheduler.services.queue_service import QueueError

router = APIRouter(prefix="/queue", tags=["queue"])


@router.get("", response_model=QueueResponse)
async def view_queue(
    date_param: date = Query(..., alias="date"),
    doctor: Doctor = Depends(get_doctor_or_404),
    session: AsyncSession = Depends(get_session),
) -> QueueResponse:
    """Current patient plus waiting, completed and skipped lists, ordered by token."""
    queue = await queue_service.get_queue(session, doctor.id, date_param)
    return queue_response(doctor.id, date_param, queue)


@router.post("/call-next", response_model=QueueResponse)
async def call_next_patient(
    body: CallNextRequest,
    session: AsyncSession = Depends(get_session),
) -> QueueResponse:
    if not await get_doctor(session, body.doctor_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Doctor not found")
    await queue_service.call_next(session, body.doctor_id, body.date)
    queue = await queue_service.get_queue(session, body.doctor_id, body.date)
    return queue_response(body.doctor_id, body.date, queue)


async def _transition(action, session: AsyncSession, appointment_id: int) -> AppointmentPublic:
    try:
        appointment = await action(session, appointment_id)
    except QueueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    if not appointment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")
    return to_public(appointment)


@router.post("/{appointment_id}/check-in", response_model=AppointmentPublic)
async def check_in_patient(appointment_id: int, session: AsyncSession = Depends(get_session)) -> AppointmentPublic:
    return await _transition(queue_service.check_in, session, appointment_id)


@router.post("/{appointment_id}/skip", response_model=AppointmentPublic)
async def skip_patient(appointment_id: int, session: AsyncSession = Depends(get_session)) -> AppointmentPublic:
    return await _transition(queue_service.skip, session, appointment_id)


@router.post("/{appointment_id}/complete", response_model=AppointmentPublic)
async def complete_patient(appointment_id: int, session: AsyncSession = Depends(get_session)) -> AppointmentPublic:
    return await _transition(queue_service.complete, session, appointment_id)


@router.post("/{appointment_id}/reinsert", response_model=AppointmentPublic)
async def reinsert_patient(appointment_id: int, session: AsyncSession = Depends(get_session)) -> AppointmentPublic:
    return await _transition(queue_service.reinsert, session, appointment_id)
