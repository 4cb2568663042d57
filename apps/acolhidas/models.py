"""Participant ("acolhida") domain values.

Participants are not Django models: their records live in the remote
record store (see apps.store). These frozen dataclasses are what the rest
of the app passes around. Every change goes through a function that
returns a new value, so a view can compute the next state, send it to the
store, and only then swap it in.

Stored values for groups and status match the existing remote table; the
labels are translatable display text.
"""
import uuid
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Optional

from django.utils.translation import gettext_lazy as _


# ---------------------------------------------------------------------------
# Vocabularies
# ---------------------------------------------------------------------------

GROUP_EMERGENCY_INTAKE = "Acolhimento Emergencial"
GROUP_WOMENS_CIRCLE = "Florescer Feminino"
GROUP_HEALING_CIRCLE = "Círculo de Cura"
GROUP_INDIVIDUAL_THERAPY = "Terapia Individual"
GROUP_SOCIAL_THERAPY = "Terapia com valores sociais"
GROUP_OTHER = "Outro"

GROUP_CHOICES = [
    (GROUP_EMERGENCY_INTAKE, _("Emergency Intake")),
    (GROUP_WOMENS_CIRCLE, _("Women's Circle")),
    (GROUP_HEALING_CIRCLE, _("Healing Circle")),
    (GROUP_INDIVIDUAL_THERAPY, _("Individual Therapy")),
    (GROUP_SOCIAL_THERAPY, _("Values-Based Group Therapy")),
    (GROUP_OTHER, _("Other")),
]
GROUP_VALUES = [value for value, _label in GROUP_CHOICES]

# Groups with a therapist attached and free (per-day) session scheduling.
THERAPY_GROUPS = (GROUP_INDIVIDUAL_THERAPY, GROUP_SOCIAL_THERAPY)

# Weekly groups; members of these may be queued for a therapy group.
WEEKLY_GROUPS = (GROUP_EMERGENCY_INTAKE, GROUP_WOMENS_CIRCLE, GROUP_HEALING_CIRCLE)

STATUS_ACTIVE = "ativa"
STATUS_INACTIVE = "inativa"
STATUS_CHOICES = [
    (STATUS_ACTIVE, _("Active")),
    (STATUS_INACTIVE, _("Inactive")),
]

ATTENDANCE_PRESENT = "present"
ATTENDANCE_ABSENT = "absent"
ATTENDANCE_STATUS_CHOICES = [
    (ATTENDANCE_PRESENT, _("Present")),
    (ATTENDANCE_ABSENT, _("Absent")),
]


def group_label(value):
    """Display label for a stored group value; unknown values show as-is."""
    return dict(GROUP_CHOICES).get(value, value)


def status_label(value):
    return dict(STATUS_CHOICES).get(value, value)


class ParticipantValidationError(ValueError):
    """Raised when a participant cannot be persisted as-is."""


# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AttendanceEntry:
    """What happened on one meeting date. Every field is optional."""

    status: Optional[str] = None
    evolution: Optional[str] = None
    time: Optional[str] = None

    FIELDS = ("status", "evolution", "time")

    @property
    def is_scheduled(self):
        return bool(self.time)


@dataclass(frozen=True)
class Evaluation:
    id: str
    date: date
    notes: str = ""


@dataclass(frozen=True)
class Participant:
    """One person enrolled in the program."""

    name: str
    start_date: date
    id: Optional[str] = None
    email: str = ""
    cpf: str = ""
    phone: str = ""
    end_date: Optional[date] = None
    observations: str = ""
    groups: tuple = ()
    status: str = STATUS_ACTIVE
    departure_reason: str = ""
    therapist_name: str = ""
    therapist_phone: str = ""
    therapist_email: str = ""
    is_on_waiting_list: bool = False
    is_on_waiting_list_social: bool = False
    # ISO date string -> AttendanceEntry
    attendance: dict = field(default_factory=dict)
    evaluations: tuple = ()

    def __str__(self):
        return self.name or _("Unnamed participant")

    @property
    def is_active(self):
        return self.status == STATUS_ACTIVE

    @property
    def has_therapy_group(self):
        return any(g in THERAPY_GROUPS for g in self.groups)

    @property
    def has_weekly_group(self):
        return any(g in WEEKLY_GROUPS for g in self.groups)

    @property
    def is_waiting_list_applicable(self):
        return self.has_weekly_group

    @property
    def is_on_any_waiting_list(self):
        return self.is_on_waiting_list or self.is_on_waiting_list_social

    @property
    def absence_count(self):
        return sum(
            1 for entry in self.attendance.values()
            if entry.status == ATTENDANCE_ABSENT
        )

    @property
    def group_labels(self):
        return [group_label(g) for g in self.groups]

    def attendance_for(self, day):
        """Return the entry for a date (or ISO string), or None."""
        key = day if isinstance(day, str) else day.isoformat()
        return self.attendance.get(key)


# ---------------------------------------------------------------------------
# State transitions
# ---------------------------------------------------------------------------

def new_participant_template(today):
    """Blank participant for the "new" form: default group, starts today."""
    return Participant(
        name="",
        start_date=today,
        groups=(GROUP_EMERGENCY_INTAKE,),
        status=STATUS_ACTIVE,
    )


def apply_group_change(participant, groups):
    """Return the participant with a new group set.

    Joining a therapy group takes the participant off that group's
    waiting list.
    """
    groups = tuple(groups)
    added = set(groups) - set(participant.groups)
    changes = {"groups": groups}
    if GROUP_INDIVIDUAL_THERAPY in added:
        changes["is_on_waiting_list"] = False
    if GROUP_SOCIAL_THERAPY in added:
        changes["is_on_waiting_list_social"] = False
    return replace(participant, **changes)


def prepare_for_save(participant):
    """Enforce the persistence invariants and return the cleaned value.

    - at least one group;
    - therapist contact only kept while a therapy group is held;
    - departure reason only kept while inactive.
    """
    if not participant.groups:
        raise ParticipantValidationError(
            _("Please select at least one group for the participant.")
        )
    changes = {}
    if not participant.has_therapy_group:
        changes.update(therapist_name="", therapist_phone="", therapist_email="")
    if participant.is_active:
        changes["departure_reason"] = ""
    return replace(participant, **changes) if changes else participant


def add_evaluation(participant, day, notes):
    """Append an evaluation; earlier evaluations are never touched."""
    evaluation = Evaluation(id=str(uuid.uuid4()), date=day, notes=notes)
    return replace(participant, evaluations=participant.evaluations + (evaluation,))
