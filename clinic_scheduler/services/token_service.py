"""Queue token numbers ("#1", "#2", ...).

Tokens are derived from the appointments already booked rather than read from a
stored counter, so two bookings computed from the same snapshot receive the same
token. Nothing in the database prevents that; see DESIGN.md.
"""

import re
from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any

from clinic_scheduler.core.times import parse_time
from clinic_scheduler.services.slot_service import (
    DEFAULT_SCHEDULING,
    DoctorConfigLike,
    SchedulingDefaults,
    SessionType,
    session_of,
)

TOKEN_RE = re.compile(r"#(\d+)")

_FIELD_ALIASES = {
    "appointment_date": "appointmentDate",
    "appointment_time": "appointmentTime",
    "token_number": "tokenNumber",
    "session": "session",
}
_SESSION_VALUES = {s.value for s in SessionType}


def parse_token_number(token: Any) -> int:
    if not isinstance(token, str):
        return 0
    match = TOKEN_RE.search(token)
    return int(match.group(1)) if match else 0


def format_token(number: int) -> str:
    return f"#{number}"


def _field(appointment: Any, name: str) -> Any:
    if isinstance(appointment, Mapping):
        if name in appointment:
            return appointment[name]
        return appointment.get(_FIELD_ALIASES[name])
    return getattr(appointment, name, None)


def _as_date(value: Any) -> date | None:
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def _appointment_session(
    appointment: Any, doctor_config: DoctorConfigLike, defaults: SchedulingDefaults
) -> SessionType | None:
    stored = str(_field(appointment, "session") or "").lower()
    if stored in _SESSION_VALUES:
        return SessionType(stored)
    minutes = parse_time(_field(appointment, "appointment_time"))
    if minutes is None:
        return None
    return session_of(minutes, doctor_config, defaults)


def next_token(
    appointments: Iterable[Any],
    appointment_date: date | str,
    session: SessionType | None = None,
    doctor_config: DoctorConfigLike = None,
    defaults: SchedulingDefaults = DEFAULT_SCHEDULING,
) -> str:
    """Highest token on the date (and session, if given) plus one."""
    target = _as_date(appointment_date)
    highest = 0
    for appointment in appointments:
        if _as_date(_field(appointment, "appointment_date")) != target:
            continue
        if session is not None and _appointment_session(appointment, doctor_config, defaults) != session:
            continue
        highest = max(highest, parse_token_number(_field(appointment, "token_number")))
    return format_token(highest + 1)
