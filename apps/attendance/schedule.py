"""Meeting schedules: which dates a participant is expected to attend.

Two regimes, picked once per participant by get_meeting_plan():

- Weekly groups meet on a fixed weekday. Their dates are every matching
  weekday inside the participant's enrollment, clipped to the program
  window. A participant in several weekly groups gets the union of the
  weekdays.
- Therapy groups have no fixed dates. Staff pick a day on a month calendar
  and give it a time; the ledger records it (see ledger.set_attendance).

A participant may hold both, one, or neither. Neither means "no meetings
scheduled", which is not an error.
"""
import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from itertools import groupby
from typing import Optional
from urllib.parse import quote

from django.conf import settings

from apps.acolhidas.models import (
    GROUP_EMERGENCY_INTAKE,
    GROUP_HEALING_CIRCLE,
    GROUP_WOMENS_CIRCLE,
    THERAPY_GROUPS,
)

# date.weekday(): Monday is 0
WEEKLY_GROUP_WEEKDAYS = {
    GROUP_EMERGENCY_INTAKE: calendar.TUESDAY,
    GROUP_WOMENS_CIRCLE: calendar.WEDNESDAY,
    GROUP_HEALING_CIRCLE: calendar.THURSDAY,
}

SESSION_LENGTH = timedelta(minutes=50)


def get_program_window():
    """Return (start, end) of the program from settings."""
    return settings.PROGRAM_START_DATE, settings.PROGRAM_END_DATE


def effective_window(participant, program_start, program_end):
    """Intersect the enrollment with the program window.

    Returns (start, end), or None when they don't overlap. An open
    enrollment runs to the end of the program.
    """
    if participant.start_date is None:
        return None
    start = max(program_start, participant.start_date)
    end = min(program_end, participant.end_date or program_end)
    if start > end:
        return None
    return start, end


@dataclass(frozen=True)
class WeeklyMeetings:
    """Fixed-weekday group meetings."""

    weekdays: frozenset

    def dates(self, participant, program_start, program_end):
        """Every meeting date in the effective window, ascending."""
        window = effective_window(participant, program_start, program_end)
        if window is None or not self.weekdays:
            return []
        start, end = window
        day = start
        result = []
        while day <= end:
            if day.weekday() in self.weekdays:
                result.append(day)
            day += timedelta(days=1)
        return result


@dataclass(frozen=True)
class CalendarDay:
    date: date
    entry: Optional[object] = None

    @property
    def is_scheduled(self):
        return self.entry is not None and self.entry.is_scheduled

    @property
    def iso(self):
        return self.date.isoformat()


@dataclass(frozen=True)
class TherapyCalendar:
    """Free scheduling: any day of a month can hold a session."""

    def month(self, participant, year, month):
        """One CalendarDay per day of the month, carrying its ledger entry."""
        _first_weekday, days_in_month = calendar.monthrange(year, month)
        return [
            CalendarDay(date=d, entry=participant.attendance_for(d))
            for d in (date(year, month, n) for n in range(1, days_in_month + 1))
        ]

    def leading_blanks(self, year, month):
        """Empty cells before day 1 in a Sunday-first week grid."""
        return (date(year, month, 1).weekday() + 1) % 7


@dataclass(frozen=True)
class MeetingPlan:
    """The regimes that apply to one participant."""

    weekly: Optional[WeeklyMeetings] = None
    therapy: Optional[TherapyCalendar] = None

    @property
    def has_meetings(self):
        return self.weekly is not None or self.therapy is not None


def get_meeting_plan(participant):
    """Select the schedule regimes for a participant's groups."""
    weekdays = frozenset(
        WEEKLY_GROUP_WEEKDAYS[g] for g in participant.groups
        if g in WEEKLY_GROUP_WEEKDAYS
    )
    has_therapy = any(g in THERAPY_GROUPS for g in participant.groups)
    return MeetingPlan(
        weekly=WeeklyMeetings(weekdays=weekdays) if weekdays else None,
        therapy=TherapyCalendar() if has_therapy else None,
    )


def group_dates_by_month(dates):
    """Bucket dates by calendar month.

    Returns [(first_of_month, [dates...]), ...] with buckets ordered by
    their first date and dates kept in the order given.
    """
    ordered = sorted(set(dates))
    return [
        (date(year, month, 1), list(days))
        for (year, month), days in groupby(ordered, key=lambda d: (d.year, d.month))
    ]


def initial_calendar_month(today, program_start, program_end):
    """First day of the month the therapy calendar should open on.

    Today's month, clamped to the months of the program window.
    """
    current = date(today.year, today.month, 1)
    first = date(program_start.year, program_start.month, 1)
    last = date(program_end.year, program_end.month, 1)
    return min(max(current, first), last)


def shift_month(month_start, delta):
    """Move a first-of-month date by `delta` months."""
    index = month_start.year * 12 + (month_start.month - 1) + delta
    return date(index // 12, index % 12 + 1, 1)


def google_calendar_link(participant, day, entry):
    """Link that opens a pre-filled Google Calendar event for a session.

    Times are the naive local time the operator typed; the participant and
    therapist are added as guests when they have an email. Returns None
    when the entry's time is not HH:MM.
    """
    try:
        session_time = datetime.strptime((entry.time or "")[:5], "%H:%M").time()
    except ValueError:
        return None
    start = datetime.combine(day, session_time)
    end = start + SESSION_LENGTH
    fmt = "%Y%m%dT%H%M%S"
    title = f"Sessão de Terapia - {participant.name}"
    details = f"Sessão de terapia com {participant.therapist_name or 'terapeuta'}."
    guests = ",".join(e for e in (participant.email, participant.therapist_email) if e)
    return (
        "https://calendar.google.com/calendar/render?action=TEMPLATE"
        f"&text={quote(title)}"
        f"&dates={start.strftime(fmt)}/{end.strftime(fmt)}"
        f"&details={quote(details)}"
        f"&add={quote(guests)}"
    )
