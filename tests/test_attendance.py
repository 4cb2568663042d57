"""Tests for the attendance ledger and the two-absence deactivation rule."""
from datetime import date

from django.test import SimpleTestCase

from apps.acolhidas.models import (
    ATTENDANCE_ABSENT,
    ATTENDANCE_PRESENT,
    GROUP_INDIVIDUAL_THERAPY,
    GROUP_WOMENS_CIRCLE,
    STATUS_ACTIVE,
    STATUS_INACTIVE,
    AttendanceEntry,
    Participant,
)
from apps.attendance.ledger import record_attendance, set_attendance


def _participant(attendance=None, status=STATUS_ACTIVE):
    return Participant(
        id="p-1",
        name="Beatriz",
        start_date=date(2025, 10, 1),
        groups=(GROUP_WOMENS_CIRCLE,),
        status=status,
        attendance=attendance or {},
    )


class SetAttendanceTest(SimpleTestCase):

    def test_creates_entry(self):
        updated = set_attendance(_participant(), date(2025, 10, 8), {"status": ATTENDANCE_PRESENT})
        self.assertEqual(updated.attendance["2025-10-08"], AttendanceEntry(status=ATTENDANCE_PRESENT))

    def test_merge_keeps_other_fields(self):
        participant = _participant({"2025-10-08": AttendanceEntry(status=ATTENDANCE_PRESENT, time="10:00")})
        updated = set_attendance(participant, "2025-10-08", {"evolution": "Chegou animada"})
        self.assertEqual(
            updated.attendance["2025-10-08"],
            AttendanceEntry(status=ATTENDANCE_PRESENT, evolution="Chegou animada", time="10:00"),
        )

    def test_does_not_mutate_input(self):
        participant = _participant({"2025-10-08": AttendanceEntry(status=ATTENDANCE_PRESENT)})
        set_attendance(participant, date(2025, 10, 8), {"status": ATTENDANCE_ABSENT})
        set_attendance(participant, date(2025, 10, 15), {"status": ATTENDANCE_ABSENT})
        self.assertEqual(participant.attendance, {"2025-10-08": AttendanceEntry(status=ATTENDANCE_PRESENT)})

    def test_idempotent(self):
        partial = {"status": ATTENDANCE_PRESENT, "evolution": "ok"}
        once = set_attendance(_participant(), date(2025, 10, 8), partial)
        twice = set_attendance(once, date(2025, 10, 8), partial)
        self.assertEqual(once.attendance, twice.attendance)

    def test_time_and_evolution_not_validated(self):
        updated = set_attendance(_participant(), date(2025, 10, 8), {"time": "whenever", "evolution": ""})
        self.assertEqual(updated.attendance["2025-10-08"].time, "whenever")

    def test_unknown_key_rejected(self):
        with self.assertRaises(ValueError):
            set_attendance(_participant(), date(2025, 10, 8), {"mood": "good"})


class RecordAttendanceTest(SimpleTestCase):

    def test_first_absence_keeps_active(self):
        outcome = record_attendance(_participant(), date(2025, 10, 8), {"status": ATTENDANCE_ABSENT})
        self.assertFalse(outcome.deactivated)
        self.assertEqual(outcome.participant.status, STATUS_ACTIVE)

    def test_second_absence_deactivates(self):
        participant = _participant({"2025-10-08": AttendanceEntry(status=ATTENDANCE_ABSENT)})
        outcome = record_attendance(participant, date(2025, 10, 22), {"status": ATTENDANCE_ABSENT})
        self.assertTrue(outcome.deactivated)
        self.assertEqual(outcome.participant.status, STATUS_INACTIVE)
        self.assertEqual(outcome.participant.attendance["2025-10-22"].status, ATTENDANCE_ABSENT)
        self.assertEqual(outcome.participant.departure_reason, "")

    def test_absences_need_not_be_consecutive(self):
        participant = _participant({
            "2025-10-08": AttendanceEntry(status=ATTENDANCE_ABSENT),
            "2025-10-15": AttendanceEntry(status=ATTENDANCE_PRESENT),
        })
        outcome = record_attendance(participant, date(2025, 10, 22), {"status": ATTENDANCE_ABSENT})
        self.assertTrue(outcome.deactivated)

    def test_present_never_deactivates(self):
        participant = _participant({
            "2025-10-08": AttendanceEntry(status=ATTENDANCE_ABSENT),
            "2025-10-15": AttendanceEntry(status=ATTENDANCE_ABSENT),
        })
        outcome = record_attendance(participant, date(2025, 10, 22), {"status": ATTENDANCE_PRESENT})
        self.assertFalse(outcome.deactivated)
        self.assertEqual(outcome.participant.status, STATUS_ACTIVE)

    def test_note_edit_never_deactivates(self):
        participant = _participant({
            "2025-10-08": AttendanceEntry(status=ATTENDANCE_ABSENT),
            "2025-10-15": AttendanceEntry(status=ATTENDANCE_ABSENT),
        })
        outcome = record_attendance(participant, "2025-10-15", {"evolution": "Ligou avisando"})
        self.assertFalse(outcome.deactivated)

    def test_inactive_participant_not_reported_again(self):
        participant = _participant(
            {"2025-10-08": AttendanceEntry(status=ATTENDANCE_ABSENT)}, status=STATUS_INACTIVE,
        )
        outcome = record_attendance(participant, date(2025, 10, 22), {"status": ATTENDANCE_ABSENT})
        self.assertFalse(outcome.deactivated)
        self.assertEqual(outcome.participant.status, STATUS_INACTIVE)

    def test_reactivated_participant_retriggers(self):
        """History is kept when an operator reverts the status."""
        participant = _participant({
            "2025-10-08": AttendanceEntry(status=ATTENDANCE_ABSENT),
            "2025-10-15": AttendanceEntry(status=ATTENDANCE_ABSENT),
        })
        outcome = record_attendance(participant, date(2025, 10, 29), {"status": ATTENDANCE_ABSENT})
        self.assertTrue(outcome.deactivated)
        self.assertEqual(outcome.participant.absence_count, 3)

    def test_therapy_session_absence_counts(self):
        participant = Participant(
            name="Carla",
            start_date=date(2025, 10, 1),
            groups=(GROUP_INDIVIDUAL_THERAPY,),
            attendance={"2025-11-04": AttendanceEntry(status=ATTENDANCE_ABSENT, time="14:00")},
        )
        outcome = record_attendance(participant, "2025-11-11", {"status": ATTENDANCE_ABSENT})
        self.assertTrue(outcome.deactivated)
