from datetime import date, timedelta


# =========================================================
# TEST: GET /slots/available
# =========================================================
async def test_available_slots_for_default_morning(client, make_doctor, tomorrow):
    doctor = await make_doctor()

    response = await client.get(
        "/api/v1/slots/available",
        params={"doctor_id": doctor["id"], "date": tomorrow.isoformat(), "session": "morning"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["session_hours"] == "9:00 AM - 1:00 PM"
    assert data["consultation_duration"] == 20
    assert len(data["slots"]) == 12
    assert data["slots"][0] == {"time": "09:00", "label": "9:00 AM", "available": True}
    assert data["slots"][-1]["time"] == "12:40"
    assert data["next_slot"] == "09:00"
    assert data["capacity"] == {"total": 12, "booked": 0, "available": 12}


async def test_available_slots_reflect_bookings(client, make_doctor, tomorrow):
    doctor = await make_doctor(evening_start_time="4:00 PM", evening_end_time="5:00 PM", consultation_duration=30)
    payload = {
        "doctor_id": doctor["id"],
        "patient_name": "Meera",
        "appointment_date": tomorrow.isoformat(),
        "session": "evening",
    }
    await client.post("/api/v1/appointments", json=payload)

    response = await client.get(
        "/api/v1/slots/available",
        params={"doctor_id": doctor["id"], "date": tomorrow.isoformat(), "session": "evening"},
    )

    data = response.json()
    assert [(s["time"], s["available"]) for s in data["slots"]] == [("16:00", False), ("16:30", True)]
    assert data["next_slot"] == "16:30"
    assert data["capacity"]["booked"] == 1

    await client.post("/api/v1/appointments", json=payload)
    full = await client.get(
        "/api/v1/slots/available",
        params={"doctor_id": doctor["id"], "date": tomorrow.isoformat(), "session": "evening"},
    )
    assert full.json()["next_slot"] is None
    assert full.json()["capacity"]["available"] == 0


async def test_available_slots_unknown_doctor(client, tomorrow):
    response = await client.get(
        "/api/v1/slots/available", params={"doctor_id": 999, "date": tomorrow.isoformat(), "session": "morning"}
    )
    assert response.status_code == 404


# =========================================================
# TEST: GET /slots/sessions
# =========================================================
async def test_bookable_sessions(client, make_doctor, tomorrow):
    doctor = await make_doctor()

    response = await client.get("/api/v1/slots/sessions", params={"doctor_id": doctor["id"], "date": tomorrow.isoformat()})

    assert response.status_code == 200
    assert response.json()["sessions"] == ["morning", "evening"]


async def test_bookable_sessions_skip_leave_and_past_dates(client, make_doctor, tomorrow):
    doctor = await make_doctor()
    await client.post(
        f"/api/v1/doctors/{doctor['id']}/overrides",
        json={"override_date": tomorrow.isoformat(), "start_time": "9:00 AM", "end_time": "12:00 PM", "reason": "Conference"},
    )
    yesterday = date.today() - timedelta(days=1)

    on_leave = await client.get("/api/v1/slots/sessions", params={"doctor_id": doctor["id"], "date": tomorrow.isoformat()})
    past = await client.get("/api/v1/slots/sessions", params={"doctor_id": doctor["id"], "date": yesterday.isoformat()})

    assert on_leave.json()["sessions"] == ["evening"]
    assert past.json()["sessions"] == []
    assert on_leave.json()["unavailable"] == {"morning": "Doctor is on leave: Conference"}
    assert past.json()["unavailable"]["evening"] == "Cannot book appointments for past dates"
