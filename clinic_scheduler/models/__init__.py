from clinic_scheduler.models.doctor import Doctor, DoctorCreate, DoctorPublic, DoctorUpdate
from clinic_scheduler.models.appointment import Appointment, AppointmentCreate, AppointmentPublic
from clinic_scheduler.models.schedule_override import (
    ScheduleOverride,
    ScheduleOverrideCreate,
    ScheduleOverridePublic,
)

__all__ = [
    "Doctor",
    "DoctorCreate",
    "DoctorPublic",
    "DoctorUpdate",
    "Appointment",
    "AppointmentCreate",
    "AppointmentPublic",
    "ScheduleOverride",
    "ScheduleOverrideCreate",
    "ScheduleOverridePublic",
]
