from datetime import date

import pytest

from clinic_scheduler.models.appointment import Appointment
from clinic_scheduler.services.slot_service import SessionType
from clinic_scheduler.services.token_service import format_token, next_token, parse_token_number

DAY = date(2026, 3, 2)


def appointment(time: str, token: str | None, on: date = DAY, session: str | None = None) -> Appointment:
    return Appointment(
        doctor_id=1,
        patient_name="Patient",
        appointment_date=on,
        appointment_time=time,
        session=session,
        token_number=token,
    )


@pytest.mark.parametrize(
    "token, expected",
    [("#1", 1), ("#42", 42), ("Token #7", 7), ("7", 0), ("", 0), (None, 0), (12, 0), ("#x", 0)],
)
def test_parse_token_number(token, expected):
    assert parse_token_number(token) == expected


def test_format_token_round_trips_with_parse():
    assert format_token(12) == "#12"
    assert parse_token_number(format_token(12)) == 12


def test_first_token_of_the_day():
    assert next_token([], DAY) == "#1"


def test_next_token_follows_highest_not_count():
    appointments = [appointment("09:00", "#1"), appointment("09:20", "#3"), appointment("09:40", "#7")]
    assert next_token(appointments, DAY) == "#8"


def test_other_dates_and_bad_tokens_are_ignored():
    appointments = [
        appointment("09:00", "#2"),
        appointment("09:20", "#9", on=date(2026, 3, 1)),
        appointment("09:40", "walk-in"),
        appointment("10:00", None),
    ]
    assert next_token(appointments, DAY) == "#3"
    assert next_token(appointments, "2026-03-02") == "#3"


def test_session_scoped_tokens():
    appointments = [
        appointment("09:00", "#1", session="morning"),
        appointment("09:20", "#2", session="morning"),
        appointment("14:00", "#1", session="evening"),
        # no stored session: classified from the time
        appointment("2:20 PM", "#4"),
    ]
    assert next_token(appointments, DAY, SessionType.MORNING) == "#3"
    assert next_token(appointments, DAY, SessionType.EVENING) == "#5"
    assert next_token(appointments, DAY) == "#5"


def test_session_classification_uses_doctor_hours():
    config = {"morningStartTime": "10:00", "morningEndTime": "15:00"}
    appointments = [appointment("14:30", "#6")]
    assert next_token(appointments, DAY, SessionType.MORNING, config) == "#7"
    assert next_token(appointments, DAY, SessionType.EVENING, config) == "#1"


def test_plain_documents_with_camel_case_keys():
    documents = [
        {"appointmentDate": "2026-03-02", "appointmentTime": "9:00 AM", "tokenNumber": "#4"},
        {"appointmentDate": "2026-03-02T00:00:00", "appointmentTime": "09:20", "tokenNumber": "#5"},
        {"appointment_date": DAY, "appointment_time": "14:00", "token_number": "#2", "session": "evening"},
    ]
    assert next_token(documents, DAY) == "#6"
    assert next_token(documents, DAY, SessionType.EVENING) == "#3"
