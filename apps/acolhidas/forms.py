"""Forms for participant registration, attendance and CSV import.

Plain Forms (not ModelForms): participants live in the remote store, so
each form builds a new Participant value instead of saving a model.
"""
from dataclasses import replace

from django import forms
from django.utils.translation import gettext_lazy as _

from apps.acolhidas.models import (
    ATTENDANCE_STATUS_CHOICES,
    GROUP_CHOICES,
    STATUS_CHOICES,
    ParticipantValidationError,
    apply_group_change,
    prepare_for_save,
)

ALL_CHOICE = ("all", _("All"))

PROFILE_FIELDS = (
    "name", "email", "cpf", "phone", "start_date", "end_date", "status",
    "departure_reason", "therapist_name", "therapist_phone", "therapist_email",
    "observations", "is_on_waiting_list", "is_on_waiting_list_social",
)


class ParticipantForm(forms.Form):
    """Create or edit a participant.

    Pass the current participant (or the new-participant template) as
    `participant`; to_participant() returns the edited copy with the save
    rules applied.
    """

    name = forms.CharField(max_length=255, label=_("Participant name"))
    email = forms.EmailField(required=False, label=_("Participant email"))
    cpf = forms.CharField(max_length=20, required=False, label=_("CPF"))
    phone = forms.CharField(max_length=40, label=_("Participant phone"))
    start_date = forms.DateField(
        label=_("Start"),
        widget=forms.DateInput(attrs={"type": "date"}),
    )
    end_date = forms.DateField(
        required=False,
        label=_("End (optional)"),
        widget=forms.DateInput(attrs={"type": "date"}),
    )
    status = forms.ChoiceField(choices=STATUS_CHOICES, label=_("Status"))
    departure_reason = forms.CharField(
        required=False,
        label=_("Departure reason"),
        widget=forms.Textarea(attrs={"rows": 3}),
        help_text=_("Only kept while the participant is inactive."),
    )
    groups = forms.MultipleChoiceField(
        choices=GROUP_CHOICES,
        widget=forms.CheckboxSelectMultiple,
        label=_("Groups"),
        error_messages={
            "required": _("Please select at least one group for the participant."),
        },
    )
    therapist_name = forms.CharField(max_length=255, required=False, label=_("Therapist name"))
    therapist_phone = forms.CharField(max_length=40, required=False, label=_("Therapist phone"))
    therapist_email = forms.EmailField(required=False, label=_("Therapist email"))
    observations = forms.CharField(
        required=False,
        label=_("General observations"),
        widget=forms.Textarea(attrs={"rows": 4}),
    )
    is_on_waiting_list = forms.BooleanField(
        required=False,
        label=_("Refer to the Individual Therapy waiting list"),
    )
    is_on_waiting_list_social = forms.BooleanField(
        required=False,
        label=_("Refer to the Values-Based Group Therapy waiting list"),
    )

    def __init__(self, *args, participant, **kwargs):
        self.participant = participant
        initial = {name: getattr(participant, name) for name in PROFILE_FIELDS}
        initial["groups"] = list(participant.groups)
        kwargs.setdefault("initial", initial)
        super().__init__(*args, **kwargs)
        # Imported rows can carry group names outside the vocabulary; keep
        # them selectable so editing doesn't silently drop them.
        known = {value for value, _label in GROUP_CHOICES}
        extra = [(g, g) for g in participant.groups if g not in known]
        if extra:
            self.fields["groups"].choices = GROUP_CHOICES + extra

    def clean(self):
        cleaned = super().clean()
        if self.errors:
            return cleaned
        try:
            self._result = self._build(cleaned)
        except ParticipantValidationError as exc:
            raise forms.ValidationError(str(exc))
        return cleaned

    def _build(self, cleaned):
        changes = {name: cleaned.get(name) for name in PROFILE_FIELDS}
        for name in ("email", "cpf", "departure_reason", "therapist_name",
                     "therapist_phone", "therapist_email", "observations"):
            changes[name] = changes[name] or ""
        edited = replace(self.participant, **changes)
        edited = apply_group_change(edited, cleaned["groups"])
        return prepare_for_save(edited)

    def to_participant(self):
        """The validated participant, ready to persist."""
        return self._result


class AttendanceForm(forms.Form):
    """Mark a meeting date present/absent and/or write its evolution note."""

    date = forms.DateField()
    status = forms.ChoiceField(choices=ATTENDANCE_STATUS_CHOICES, required=False)
    evolution = forms.CharField(required=False, widget=forms.Textarea(attrs={"rows": 2}))

    def partial_entry(self):
        """Only the fields that were actually submitted."""
        partial = {}
        if self.cleaned_data.get("status"):
            partial["status"] = self.cleaned_data["status"]
        if "evolution" in self.data:
            partial["evolution"] = self.cleaned_data["evolution"]
        return partial

    def clean(self):
        cleaned = super().clean()
        if not cleaned.get("status") and "evolution" not in self.data:
            raise forms.ValidationError(_("Nothing to record."))
        return cleaned


class ScheduleSessionForm(forms.Form):
    """Give a therapy calendar day a session time."""

    date = forms.DateField()
    time = forms.CharField(
        max_length=10,
        initial="10:00",
        label=_("Time"),
        widget=forms.TimeInput(attrs={"type": "time"}),
    )


class EvaluationForm(forms.Form):
    date = forms.DateField(label=_("Date"), widget=forms.DateInput(attrs={"type": "date"}))
    notes = forms.CharField(label=_("Notes"), widget=forms.Textarea(attrs={"rows": 4}))


class RosterFilterForm(forms.Form):
    """Search box and filters on the participant list."""

    q = forms.CharField(
        required=False,
        label=_("Search"),
        widget=forms.TextInput(attrs={"placeholder": _("Search by name, CPF, email...")}),
    )
    status = forms.ChoiceField(
        choices=[ALL_CHOICE] + STATUS_CHOICES, required=False, label=_("Status"),
    )
    group = forms.ChoiceField(
        choices=[ALL_CHOICE] + GROUP_CHOICES, required=False, label=_("Group"),
    )
    waiting_list = forms.BooleanField(required=False, label=_("Waiting list only"))


class CSVImportForm(forms.Form):
    csv_file = forms.FileField(
        label=_("CSV file"),
        help_text=_(
            'Columns: name, startDate (YYYY-MM-DD) and groups are required; '
            'cpf, phone, email, observations are optional. Separate several '
            'groups with "|".'
        ),
    )
