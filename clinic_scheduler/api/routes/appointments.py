import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.api.deps import get_session
from clinic_scheduler.api.schemas.appointment import BookAppointmentRequest, StatusUpdateRequest, to_public
from clinic_scheduler.models.appointment import AppointmentCreate, AppointmentPublic
from clinic_scheduler.services.appointment_service import (
    APPOINTMENT_STATUSES,
    BookingError,
    DoctorNotFound,
    SessionUnavailable,
    book_appointment,
    cancel_appointment,
    list_appointments,
    update_status,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/appointments", tags=["appointments"])


def _booking_error(exc: BookingError) -> HTTPException:
    if isinstance(exc, DoctorNotFound):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, SessionUnavailable):
        code = 422
    else:
        code = status.HTTP_409_CONFLICT
    return HTTPException(status_code=code, detail=str(exc))


async def _book(body: BookAppointmentRequest, session: AsyncSession, is_emergency: bool) -> AppointmentPublic:
    data = AppointmentCreate(
        doctor_id=body.doctor_id,
        patient_name=body.patient_name.strip(),
        patient_phone=body.patient_phone,
        patient_email=body.patient_email,
        appointment_date=body.appointment_date,
        session=body.session.value,
        reason=body.reason,
        is_emergency=is_emergency,
    )
    try:
        appointment = await book_appointment(session, data)
    except BookingError as e:
        logger.info("Booking refused for doctor %s on %s: %s", body.doctor_id, body.appointment_date, e)
        raise _booking_error(e) from e
    return to_public(appointment)


@router.post("", response_model=AppointmentPublic, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    body: BookAppointmentRequest,
    session: AsyncSession = Depends(get_session),
) -> AppointmentPublic:
    return await _book(body, session, is_emergency=False)


@router.post("/emergency", response_model=AppointmentPublic, status_code=status.HTTP_201_CREATED)
async def create_emergency_appointment(
    body: BookAppointmentRequest,
    session: AsyncSession = Depends(get_session),
) -> AppointmentPublic:
    """Walk-in emergency: booked straight into the confirmed state."""
    return await _book(body, session, is_emergency=True)


@router.get("", response_model=list[AppointmentPublic])
async def list_all_appointments(
    doctor_id: int | None = Query(None),
    date_param: date | None = Query(None, alias="date"),
    status_param: str | None = Query(None, alias="status"),
    session: AsyncSession = Depends(get_session),
) -> list[AppointmentPublic]:
    appointments = await list_appointments(session, doctor_id=doctor_id, on_date=date_param, status=status_param)
    return [to_public(a) for a in appointments]


@router.patch("/{appointment_id}/status", response_model=AppointmentPublic)
async def change_status(
    appointment_id: int,
    body: StatusUpdateRequest,
    session: AsyncSession = Depends(get_session),
) -> AppointmentPublic:
    new_status = body.status.strip().lower()
    if new_status not in APPOINTMENT_STATUSES:
        raise HTTPException(
            status_code=422,
            detail=f"Unknown status {body.status!r}",
        )
    try:
        appointment = await update_status(session, appointment_id, new_status)
    except BookingError as e:
        raise _booking_error(e) from e
    if not appointment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")
    return to_public(appointment)


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel(
    appointment_id: int,
    session: AsyncSession = Depends(get_session),
) -> None:
    ok = await cancel_appointment(session, appointment_id)
    if not ok:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Appointment not found or already cancelled",
        )
