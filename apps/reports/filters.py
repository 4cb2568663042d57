"""Participant report selection and summary counts.

Pure functions over the fetched roster. The whole roster is re-filtered on
every call; it is a human-scale list, so there is no caching.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from apps.acolhidas.models import STATUS_ACTIVE, STATUS_INACTIVE

ALL = "all"


@dataclass(frozen=True)
class ReportCriteria:
    """Report filters. None / ALL / empty mean "no constraint"."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: str = ALL
    departure_reason: str = ALL
    groups: tuple = field(default_factory=tuple)

    @property
    def departure_reason_applies(self):
        # Active participants have no departure reason to match
        return self.status != STATUS_ACTIVE and self.departure_reason != ALL


@dataclass(frozen=True)
class ReportResult:
    participants: list
    total: int
    active_count: int
    inactive_count: int


def matches(participant, criteria):
    """True if the participant passes every filter in `criteria`."""
    start = participant.start_date
    if criteria.start_date or criteria.end_date:
        if start is None:
            return False
        if criteria.start_date and start < criteria.start_date:
            return False
        if criteria.end_date and start > criteria.end_date:
            return False
    # Enrollments that finished before the report window don't resurface
    if (
        criteria.start_date
        and participant.end_date
        and participant.end_date < criteria.start_date
    ):
        return False

    if criteria.status != ALL and participant.status != criteria.status:
        return False

    if (
        criteria.departure_reason_applies
        and participant.departure_reason != criteria.departure_reason
    ):
        return False

    if criteria.groups and not set(participant.groups) & set(criteria.groups):
        return False

    return True


def build_report(participants, criteria):
    """Filter the roster and count the result by status."""
    selected = sorted(
        (p for p in participants if matches(p, criteria)),
        key=lambda p: p.name.lower(),
    )
    return ReportResult(
        participants=selected,
        total=len(selected),
        active_count=sum(1 for p in selected if p.status == STATUS_ACTIVE),
        inactive_count=sum(1 for p in selected if p.status == STATUS_INACTIVE),
    )


def departure_reasons(participants):
    """Distinct non-empty departure reasons, for the filter's choices."""
    return sorted({p.departure_reason for p in participants if p.departure_reason})
