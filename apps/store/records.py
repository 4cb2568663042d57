"""Conversion between remote table rows and Participant values.

The `acolhidas` table stores one JSON-ish row per participant with
camelCase column names; attendance and evaluations are JSON columns.
Rows written by older clients may have nulls anywhere, so reading is
lenient and fills defaults rather than failing.
"""
import logging
from datetime import date

from apps.acolhidas.models import (
    STATUS_ACTIVE,
    AttendanceEntry,
    Evaluation,
    Participant,
)

logger = logging.getLogger(__name__)

# Participant attribute -> table column
COLUMN_NAMES = {
    "id": "id",
    "name": "name",
    "email": "email",
    "cpf": "cpf",
    "phone": "phone",
    "start_date": "startDate",
    "end_date": "endDate",
    "observations": "observations",
    "groups": "groups",
    "status": "status",
    "departure_reason": "departureReason",
    "therapist_name": "therapistName",
    "therapist_phone": "therapistPhone",
    "therapist_email": "therapistEmail",
    "is_on_waiting_list": "isOnWaitingList",
    "is_on_waiting_list_social": "isOnWaitingListSocial",
    "attendance": "attendance",
    "evaluations": "evaluations",
}

INVALID_NAME = "Nome Inválido"


def _parse_date(value):
    if not value:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        logger.warning("Ignoring unparseable date %r in store record", value)
        return None


def _text(value):
    return value if isinstance(value, str) else ""


def attendance_from_json(data):
    ledger = {}
    for day, raw in (data or {}).items():
        if not isinstance(raw, dict):
            continue
        ledger[day] = AttendanceEntry(
            status=raw.get("status") or None,
            evolution=raw.get("evolution"),
            time=raw.get("time") or None,
        )
    return ledger


def attendance_to_json(ledger):
    """Serialise the ledger, dropping unset fields like the table expects."""
    data = {}
    for day, entry in ledger.items():
        data[day] = {
            key: getattr(entry, key)
            for key in AttendanceEntry.FIELDS
            if getattr(entry, key) is not None
        }
    return data


def evaluations_from_json(data):
    evaluations = []
    for raw in data if isinstance(data, list) else []:
        if not isinstance(raw, dict):
            continue
        evaluations.append(Evaluation(
            id=str(raw.get("id", "")),
            date=_parse_date(raw.get("date")),
            notes=_text(raw.get("notes")),
        ))
    return tuple(evaluations)


def evaluations_to_json(evaluations):
    return [
        {
            "id": ev.id,
            "date": ev.date.isoformat() if ev.date else None,
            "notes": ev.notes,
        }
        for ev in evaluations
    ]


def participant_from_record(record):
    """Build a Participant from a table row, filling defaults for nulls."""
    groups = record.get("groups")
    return Participant(
        id=str(record["id"]) if record.get("id") is not None else None,
        name=record.get("name") or INVALID_NAME,
        email=_text(record.get("email")),
        cpf=_text(record.get("cpf")),
        phone=_text(record.get("phone")),
        start_date=_parse_date(record.get("startDate")),
        end_date=_parse_date(record.get("endDate")),
        observations=_text(record.get("observations")),
        groups=tuple(groups) if isinstance(groups, list) else (),
        status=record.get("status") or STATUS_ACTIVE,
        departure_reason=_text(record.get("departureReason")),
        therapist_name=_text(record.get("therapistName")),
        therapist_phone=_text(record.get("therapistPhone")),
        therapist_email=_text(record.get("therapistEmail")),
        is_on_waiting_list=bool(record.get("isOnWaitingList")),
        is_on_waiting_list_social=bool(record.get("isOnWaitingListSocial")),
        attendance=attendance_from_json(record.get("attendance")),
        evaluations=evaluations_from_json(record.get("evaluations")),
    )


def _column_value(participant, attr):
    value = getattr(participant, attr)
    if attr == "attendance":
        return attendance_to_json(value)
    if attr == "evaluations":
        return evaluations_to_json(value)
    if attr == "groups":
        return list(value)
    if attr in ("start_date", "end_date"):
        return value.isoformat() if value else None
    if attr in ("departure_reason", "therapist_name", "therapist_phone", "therapist_email"):
        # Cleared fields are stored as NULL, not empty strings
        return value or None
    return value


def participant_to_record(participant, fields=None):
    """Build the JSON payload for insert/update.

    `fields` limits the payload to some Participant attributes (for partial
    updates). The id is never sent: the store assigns it on insert and the
    update URL carries it.
    """
    attrs = fields or [a for a in COLUMN_NAMES if a != "id"]
    return {
        COLUMN_NAMES[attr]: _column_value(participant, attr)
        for attr in attrs
        if attr != "id"
    }
