"""Forms for the reports app: participant report filtering."""
from django import forms
from django.utils.translation import gettext_lazy as _

from apps.acolhidas.models import GROUP_CHOICES, STATUS_ACTIVE, STATUS_CHOICES

from .filters import ALL, ReportCriteria


class ReportFilterForm(forms.Form):
    """Filter form for the participant report and its exports.

    Pass the departure reasons found in the roster as `departure_reasons`;
    they become the reason filter's choices.
    """

    start_date = forms.DateField(
        required=False,
        label=_("Start date"),
        widget=forms.DateInput(attrs={"type": "date"}),
    )
    end_date = forms.DateField(
        required=False,
        label=_("End date"),
        widget=forms.DateInput(attrs={"type": "date"}),
    )
    status = forms.ChoiceField(
        choices=[(ALL, _("All"))] + STATUS_CHOICES,
        required=False,
        initial=ALL,
        label=_("Status"),
    )
    departure_reason = forms.ChoiceField(
        required=False,
        initial=ALL,
        label=_("Departure reason"),
        help_text=_("Not used when filtering active participants."),
    )
    groups = forms.MultipleChoiceField(
        choices=GROUP_CHOICES,
        required=False,
        widget=forms.CheckboxSelectMultiple,
        label=_("Groups"),
    )

    def __init__(self, *args, departure_reasons=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["departure_reason"].choices = (
            [(ALL, _("All"))] + [(reason, reason) for reason in departure_reasons]
        )
        if self.data.get("status") == STATUS_ACTIVE:
            self.fields["departure_reason"].disabled = True

    def clean(self):
        cleaned = super().clean()
        start, end = cleaned.get("start_date"), cleaned.get("end_date")
        if start and end and start > end:
            self.add_error("end_date", _("End date must be on or after the start date."))
        return cleaned

    def get_criteria(self):
        """Build ReportCriteria from the cleaned data."""
        data = self.cleaned_data
        return ReportCriteria(
            start_date=data.get("start_date"),
            end_date=data.get("end_date"),
            status=data.get("status") or ALL,
            departure_reason=data.get("departure_reason") or ALL,
            groups=tuple(data.get("groups") or ()),
        )
