"""Attendance ledger updates and the two-absence deactivation rule.

The ledger maps ISO dates to AttendanceEntry values. Updates merge a
partial entry into whatever is already recorded for that date and return
a new Participant, so the caller can persist the result in one write.
"""
import logging
from dataclasses import dataclass, replace

from apps.acolhidas.models import (
    ATTENDANCE_ABSENT,
    STATUS_INACTIVE,
    AttendanceEntry,
    Participant,
)

logger = logging.getLogger(__name__)

# Absences (over the participant's whole history) that end an enrollment
ABSENCE_LIMIT = 2


def _date_key(day):
    return day if isinstance(day, str) else day.isoformat()


def set_attendance(participant, day, partial):
    """Merge `partial` into the entry at `day` and return a new participant.

    Keys present in `partial` overwrite; keys absent keep their value. No
    content validation: any string is accepted for time and evolution.
    """
    unknown = set(partial) - set(AttendanceEntry.FIELDS)
    if unknown:
        raise ValueError(f"Unknown attendance field(s): {', '.join(sorted(unknown))}")

    key = _date_key(day)
    current = participant.attendance.get(key) or AttendanceEntry()
    ledger = dict(participant.attendance)
    ledger[key] = replace(current, **partial)
    return replace(participant, attendance=ledger)


@dataclass(frozen=True)
class AttendanceOutcome:
    participant: Participant
    deactivated: bool = False


def record_attendance(participant, day, partial):
    """Apply an attendance change plus the automatic deactivation rule.

    Marking an active participant absent counts every absence in the
    updated ledger, consecutive or not. At ABSENCE_LIMIT the participant
    becomes inactive in the same returned value. The departure reason is
    left for an operator to fill in. Present marks and note/time edits
    never change the status.
    """
    updated = set_attendance(participant, day, partial)
    if partial.get("status") != ATTENDANCE_ABSENT or not participant.is_active:
        return AttendanceOutcome(participant=updated)

    if updated.absence_count < ABSENCE_LIMIT:
        return AttendanceOutcome(participant=updated)

    logger.info(
        "Participant %s deactivated after %d absences",
        participant.id, updated.absence_count,
    )
    return AttendanceOutcome(
        participant=replace(updated, status=STATUS_INACTIVE),
        deactivated=True,
    )
