from datetime import date, datetime, timedelta

import pytest

from clinic_scheduler.core.config import settings
from clinic_scheduler.models.appointment import Appointment, AppointmentCreate
from clinic_scheduler.models.doctor import DoctorCreate
from clinic_scheduler.services import appointment_service
from clinic_scheduler.services.appointment_service import SlotConflict, book_appointment
from clinic_scheduler.services.doctor_service import create_doctor


def booking(doctor_id: int, on: date, session: str = "morning", name: str = "Asha") -> dict:
    return {
        "doctor_id": doctor_id,
        "patient_name": name,
        "patient_phone": "+91 98765 43210",
        "appointment_date": on.isoformat(),
        "session": session,
    }


# =========================================================
# TEST: POST /appointments
# =========================================================
async def test_bookings_fill_slots_in_order(client, make_doctor, tomorrow):
    doctor = await make_doctor()

    first = await client.post("/api/v1/appointments", json=booking(doctor["id"], tomorrow))
    second = await client.post("/api/v1/appointments", json=booking(doctor["id"], tomorrow, name="Ravi"))

    assert first.status_code == 201
    assert second.status_code == 201
    assert first.json()["appointment_time"] == "09:00"
    assert first.json()["appointment_time_label"] == "9:00 AM"
    assert first.json()["token_number"] == "#1"
    assert first.json()["status"] == "scheduled"
    assert second.json()["appointment_time"] == "09:20"
    assert second.json()["token_number"] == "#2"


async def test_tokens_continue_across_sessions_by_default(client, make_doctor, tomorrow):
    doctor = await make_doctor()
    await client.post("/api/v1/appointments", json=booking(doctor["id"], tomorrow))

    evening = await client.post("/api/v1/appointments", json=booking(doctor["id"], tomorrow, "evening"))

    assert evening.status_code == 201
    assert evening.json()["appointment_time"] == "14:00"
    assert evening.json()["session"] == "evening"
    assert evening.json()["token_number"] == "#2"


async def test_tokens_restart_per_session_when_configured(client, make_doctor, tomorrow, monkeypatch):
    monkeypatch.setattr(settings, "token_scope", "session")
    doctor = await make_doctor()
    await client.post("/api/v1/appointments", json=booking(doctor["id"], tomorrow))

    evening = await client.post("/api/v1/appointments", json=booking(doctor["id"], tomorrow, "evening"))

    assert evening.json()["token_number"] == "#1"


async def test_doctor_hours_and_duration_drive_the_slot_grid(client, make_doctor, tomorrow):
    doctor = await make_doctor(
        morning_start_time="8:30 AM", morning_end_time="10:00", consultation_duration=45
    )

    times = []
    for _ in range(2):
        response = await client.post("/api/v1/appointments", json=booking(doctor["id"], tomorrow))
        times.append(response.json()["appointment_time"])
    full = await client.post("/api/v1/appointments", json=booking(doctor["id"], tomorrow))

    assert times == ["08:30", "09:15"]
    assert full.status_code == 409
    assert "fully booked" in full.json()["detail"]


async def test_legacy_twelve_hour_booking_is_respected(client, make_doctor, db_session, tomorrow):
    doctor = await make_doctor()
    db_session.add(
        Appointment(
            doctor_id=doctor["id"],
            patient_name="Legacy",
            appointment_date=tomorrow,
            appointment_time="9:00 AM",
            session="morning",
            token_number="#1",
        )
    )
    await db_session.commit()

    response = await client.post("/api/v1/appointments", json=booking(doctor["id"], tomorrow))

    assert response.json()["appointment_time"] == "09:20"
    assert response.json()["token_number"] == "#2"


async def test_max_appointments_per_session(client, make_doctor, tomorrow, monkeypatch):
    monkeypatch.setattr(settings, "max_appointments_per_session", 1)
    doctor = await make_doctor()
    await client.post("/api/v1/appointments", json=booking(doctor["id"], tomorrow))

    response = await client.post("/api/v1/appointments", json=booking(doctor["id"], tomorrow))

    assert response.status_code == 409


async def test_unknown_doctor(client, tomorrow):
    response = await client.post("/api/v1/appointments", json=booking(999, tomorrow))
    assert response.status_code == 404


async def test_past_date_is_rejected(client, make_doctor):
    doctor = await make_doctor()
    yesterday = date.today() - timedelta(days=1)

    response = await client.post("/api/v1/appointments", json=booking(doctor["id"], yesterday))

    assert response.status_code == 422
    assert response.json()["detail"] == "Cannot book appointments for past dates"


async def test_invalid_session_is_rejected(client, make_doctor, tomorrow):
    doctor = await make_doctor()
    response = await client.post("/api/v1/appointments", json=booking(doctor["id"], tomorrow, "night"))
    assert response.status_code == 422


async def test_doctor_on_leave(client, make_doctor, tomorrow):
    doctor = await make_doctor()
    await client.post(
        f"/api/v1/doctors/{doctor['id']}/overrides",
        json={"override_date": tomorrow.isoformat(), "start_time": "14:00", "end_time": "18:00", "reason": "Surgery"},
    )

    morning = await client.post("/api/v1/appointments", json=booking(doctor["id"], tomorrow))
    evening = await client.post("/api/v1/appointments", json=booking(doctor["id"], tomorrow, "evening"))

    assert morning.status_code == 201
    assert evening.status_code == 409
    assert evening.json()["detail"] == "Doctor is on leave: Surgery"


# =========================================================
# TEST: POST /appointments/emergency
# =========================================================
async def test_emergency_booking(client, make_doctor, tomorrow):
    doctor = await make_doctor()
    await client.post("/api/v1/appointments", json=booking(doctor["id"], tomorrow))

    response = await client.post("/api/v1/appointments/emergency", json=booking(doctor["id"], tomorrow))

    assert response.status_code == 201
    data = response.json()
    assert data["is_emergency"] is True
    assert data["status"] == "confirmed"
    assert data["appointment_time"] == "09:20"
    assert data["token_number"] == "#2"


# =========================================================
# TEST: GET /appointments, PATCH status, DELETE
# =========================================================
async def test_list_and_cancel_frees_the_slot(client, make_doctor, tomorrow):
    doctor = await make_doctor()
    first = (await client.post("/api/v1/appointments", json=booking(doctor["id"], tomorrow))).json()
    await client.post("/api/v1/appointments", json=booking(doctor["id"], tomorrow))

    cancelled = await client.delete(f"/api/v1/appointments/{first['id']}")
    again = await client.delete(f"/api/v1/appointments/{first['id']}")
    rebooked = await client.post("/api/v1/appointments", json=booking(doctor["id"], tomorrow))
    listed = await client.get(
        "/api/v1/appointments", params={"doctor_id": doctor["id"], "date": tomorrow.isoformat()}
    )

    assert cancelled.status_code == 204
    assert again.status_code == 404
    assert rebooked.json()["appointment_time"] == "09:00"
    assert rebooked.json()["token_number"] == "#3"
    assert sorted(a["status"] for a in listed.json()) == ["cancelled", "scheduled", "scheduled"]


async def test_completed_appointment_keeps_its_slot(client, make_doctor, tomorrow):
    doctor = await make_doctor()
    first = (await client.post("/api/v1/appointments", json=booking(doctor["id"], tomorrow))).json()

    updated = await client.patch(f"/api/v1/appointments/{first['id']}/status", json={"status": "Completed"})
    after = await client.post("/api/v1/appointments", json=booking(doctor["id"], tomorrow))

    assert updated.status_code == 200
    assert updated.json()["status"] == "completed"
    assert after.json()["appointment_time"] == "09:20"


async def test_token_not_reused_after_status_change(client, make_doctor, tomorrow):
    doctor = await make_doctor()
    await client.post("/api/v1/appointments", json=booking(doctor["id"], tomorrow, name="A"))
    second = (await client.post("/api/v1/appointments", json=booking(doctor["id"], tomorrow, name="B"))).json()

    await client.patch(f"/api/v1/appointments/{second['id']}/status", json={"status": "checked_in"})
    third = await client.post("/api/v1/appointments", json=booking(doctor["id"], tomorrow, name="C"))

    assert second["token_number"] == "#2"
    assert third.json()["token_number"] == "#3"
    assert third.json()["appointment_time"] == "09:40"


async def test_overlapping_sessions_skip_times_held_by_the_other(client, make_doctor, tomorrow):
    doctor = await make_doctor(morning_start_time="09:00", morning_end_time="09:40")
    evening = await client.post("/api/v1/appointments", json=booking(doctor["id"], tomorrow, session="evening"))
    await client.patch(
        f"/api/v1/doctors/{doctor['id']}", json={"morning_start_time": "14:00", "morning_end_time": "15:00"}
    )

    slots = await client.get(
        "/api/v1/slots/available",
        params={"doctor_id": doctor["id"], "date": tomorrow.isoformat(), "session": "morning"},
    )
    morning = [
        await client.post("/api/v1/appointments", json=booking(doctor["id"], tomorrow, name=name))
        for name in ("A", "B", "C")
    ]

    assert evening.json()["appointment_time"] == "14:00"
    assert slots.json()["next_slot"] == "14:20"
    assert slots.json()["capacity"] == {"total": 3, "booked": 1, "available": 2}
    assert [r.status_code for r in morning] == [201, 201, 409]
    assert [r.json()["appointment_time"] for r in morning[:2]] == ["14:20", "14:40"]
    assert morning[2].json()["detail"] == "This morning session is fully booked"


async def test_unknown_status_and_appointment(client, make_doctor, tomorrow):
    doctor = await make_doctor()
    first = (await client.post("/api/v1/appointments", json=booking(doctor["id"], tomorrow))).json()

    bad_status = await client.patch(f"/api/v1/appointments/{first['id']}/status", json={"status": "teleported"})
    missing = await client.patch("/api/v1/appointments/999/status", json={"status": "completed"})

    assert bad_status.status_code == 422
    assert missing.status_code == 404


# =========================================================
# Concurrent booking of the same slot
# =========================================================
async def test_stale_snapshot_hits_unique_slot_index(db_session, monkeypatch):
    doctor = await create_doctor(db_session, DoctorCreate(name="Dr. Race"))
    await db_session.commit()
    day = date(2030, 1, 7)
    data = AppointmentCreate(doctor_id=doctor.id, patient_name="A", appointment_date=day, session="morning")
    now = datetime(2030, 1, 6, 9, 0)

    async def stale_snapshot(*args, **kwargs):
        return []

    # Both bookings read the same empty snapshot, as two concurrent requests would
    monkeypatch.setattr(appointment_service, "get_appointments_for_day", stale_snapshot)
    first = await book_appointment(db_session, data, now=now)
    await db_session.commit()
    assert first.appointment_time == "09:00"

    with pytest.raises(SlotConflict):
        await book_appointment(db_session, data, now=now)
