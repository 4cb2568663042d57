"""Participant views: list, create, detail, edit, attendance, evaluations, import."""
import logging

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.http import Http404
from django.shortcuts import redirect, render
from django.urls import reverse
from django.utils import timezone
from django.utils.translation import gettext as _
from django.views.decorators.http import require_POST

from apps.attendance.ledger import record_attendance, set_attendance
from apps.attendance.schedule import (
    get_meeting_plan,
    get_program_window,
    google_calendar_link,
    group_dates_by_month,
    initial_calendar_month,
    shift_month,
)
from apps.store.client import (
    RecordNotFoundError,
    RecordStoreError,
    RelationNotFoundError,
    get_record_store,
)

from .csv_import import CSVImportError, parse_acolhidas_csv
from .forms import (
    AttendanceForm,
    CSVImportForm,
    EvaluationForm,
    ParticipantForm,
    RosterFilterForm,
    ScheduleSessionForm,
)
from .models import add_evaluation, new_participant_template
from .roster import ALL, filter_roster

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def store_error_message(exc):
    """Operator-facing text for a failed store call."""
    if isinstance(exc, RelationNotFoundError):
        return _(
            "Connection error: the 'acolhidas' table was not found in the "
            "database. Check that the setup SQL script was run in your "
            "Supabase project."
        )
    return _("Could not reach the database. Check your connection and the Supabase configuration.")


def _load_participant(store, participant_id):
    try:
        return store.get(participant_id)
    except RecordNotFoundError:
        raise Http404


def _parse_month(value, default):
    """Parse ?month=YYYY-MM into a first-of-month date."""
    try:
        year, month = (int(part) for part in (value or "").split("-"))
        return default.replace(year=year, month=month, day=1)
    except ValueError:
        return default


def _detail_url(participant_id, month=None):
    url = reverse("acolhidas:participant_detail", kwargs={"participant_id": participant_id})
    if month:
        url += f"?month={month}"
    return url


# ---------------------------------------------------------------------------
# List
# ---------------------------------------------------------------------------

@login_required
def participant_list(request):
    """Roster with search and filters."""
    form = RosterFilterForm(request.GET or None)
    filters = form.cleaned_data if form.is_valid() else {}

    participants = []
    try:
        participants = get_record_store().fetch_all()
    except RecordStoreError as exc:
        logger.exception("Failed to load participants")
        messages.error(request, store_error_message(exc))

    results = filter_roster(
        participants,
        search=filters.get("q", ""),
        status=filters.get("status") or ALL,
        group=filters.get("group") or ALL,
        waiting_list_only=filters.get("waiting_list", False),
    )
    return render(request, "acolhidas/participant_list.html", {
        "participants": results,
        "form": form,
        "has_filters": any(filters.values()) if filters else False,
        "nav_active": "acolhidas",
    })


# ---------------------------------------------------------------------------
# Create / edit
# ---------------------------------------------------------------------------

@login_required
def participant_create(request):
    """Register a new participant."""
    template = new_participant_template(timezone.localdate())
    if request.method == "POST":
        form = ParticipantForm(request.POST, participant=template)
        if form.is_valid():
            try:
                saved = get_record_store().insert(form.to_participant())
            except RecordStoreError:
                logger.exception("Failed to insert participant")
                messages.error(request, _("Save failed. Please try again."))
            else:
                messages.success(request, _("Participant registered."))
                return redirect(_detail_url(saved.id))
    else:
        form = ParticipantForm(participant=template)

    return render(request, "acolhidas/participant_form.html", {
        "form": form,
        "is_edit": False,
        "nav_active": "acolhidas",
    })


@login_required
def participant_edit(request, participant_id):
    """Edit a participant's profile, groups and status."""
    store = get_record_store()
    try:
        participant = _load_participant(store, participant_id)
    except RecordStoreError as exc:
        logger.exception("Failed to load participant %s", participant_id)
        messages.error(request, store_error_message(exc))
        return redirect("acolhidas:participant_list")

    if request.method == "POST":
        form = ParticipantForm(request.POST, participant=participant)
        if form.is_valid():
            try:
                store.update(participant_id, form.to_participant())
            except RecordStoreError:
                logger.exception("Failed to update participant %s", participant_id)
                messages.error(request, _("Save failed. Please try again."))
            else:
                messages.success(request, _("Changes saved."))
                return redirect(_detail_url(participant_id))
    else:
        form = ParticipantForm(participant=participant)

    return render(request, "acolhidas/participant_form.html", {
        "form": form,
        "participant": participant,
        "is_edit": True,
        "nav_active": "acolhidas",
    })


# ---------------------------------------------------------------------------
# Detail
# ---------------------------------------------------------------------------

@login_required
def participant_detail(request, participant_id):
    """Profile, meeting schedule with attendance, and evaluations."""
    try:
        participant = _load_participant(get_record_store(), participant_id)
    except RecordStoreError as exc:
        logger.exception("Failed to load participant %s", participant_id)
        messages.error(request, store_error_message(exc))
        return redirect("acolhidas:participant_list")

    program_start, program_end = get_program_window()
    plan = get_meeting_plan(participant)
    context = {
        "participant": participant,
        "plan": plan,
        "evaluation_form": EvaluationForm(initial={"date": timezone.localdate()}),
        "nav_active": "acolhidas",
    }

    if plan.weekly:
        dates = plan.weekly.dates(participant, program_start, program_end)
        context["weekly_months"] = [
            (month, [(d, participant.attendance_for(d)) for d in days])
            for month, days in group_dates_by_month(dates)
        ]

    if plan.therapy:
        default_month = initial_calendar_month(timezone.localdate(), program_start, program_end)
        month = _parse_month(request.GET.get("month"), default_month)
        days = plan.therapy.month(participant, month.year, month.month)
        context.update({
            "calendar_month": month,
            "calendar_blanks": range(plan.therapy.leading_blanks(month.year, month.month)),
            "calendar_days": [
                (day, google_calendar_link(participant, day.date, day.entry) if day.is_scheduled else None)
                for day in days
            ],
            "prev_month": shift_month(month, -1).strftime("%Y-%m"),
            "next_month": shift_month(month, 1).strftime("%Y-%m"),
        })

    return render(request, "acolhidas/participant_detail.html", context)


# ---------------------------------------------------------------------------
# Attendance & sessions
# ---------------------------------------------------------------------------

@login_required
@require_POST
def attendance_record(request, participant_id):
    """Mark a date present/absent or save its evolution note."""
    form = AttendanceForm(request.POST)
    month = request.POST.get("month")
    if not form.is_valid():
        messages.error(request, _("Invalid attendance entry."))
        return redirect(_detail_url(participant_id, month))

    store = get_record_store()
    try:
        participant = _load_participant(store, participant_id)
        outcome = record_attendance(
            participant, form.cleaned_data["date"], form.partial_entry(),
        )
        # Ledger and status go out in one write
        store.update(participant_id, outcome.participant, fields=["attendance", "status"])
    except RecordStoreError as exc:
        logger.exception("Failed to record attendance for %s", participant_id)
        messages.error(request, store_error_message(exc))
        return redirect(_detail_url(participant_id, month))

    if outcome.deactivated:
        messages.warning(request, _(
            "%(name)s was marked inactive after two absences. You can revert "
            "the status by editing the record."
        ) % {"name": participant.name})
    return redirect(_detail_url(participant_id, month))


@login_required
@require_POST
def session_schedule(request, participant_id):
    """Give a therapy calendar day a session time."""
    form = ScheduleSessionForm(request.POST)
    month = request.POST.get("month")
    if not form.is_valid():
        messages.error(request, _("Choose a date and a time for the session."))
        return redirect(_detail_url(participant_id, month))

    store = get_record_store()
    try:
        participant = _load_participant(store, participant_id)
        updated = set_attendance(
            participant, form.cleaned_data["date"], {"time": form.cleaned_data["time"]},
        )
        store.update(participant_id, updated, fields=["attendance"])
    except RecordStoreError as exc:
        logger.exception("Failed to schedule session for %s", participant_id)
        messages.error(request, store_error_message(exc))
    else:
        messages.success(request, _("Session scheduled."))
    return redirect(_detail_url(participant_id, month))


@login_required
@require_POST
def evaluation_add(request, participant_id):
    """Append an evaluation to the participant's record."""
    form = EvaluationForm(request.POST)
    if not form.is_valid():
        messages.error(request, _("An evaluation needs a date and notes."))
        return redirect(_detail_url(participant_id))

    store = get_record_store()
    try:
        participant = _load_participant(store, participant_id)
        updated = add_evaluation(
            participant, form.cleaned_data["date"], form.cleaned_data["notes"],
        )
        store.update(participant_id, updated, fields=["evaluations"])
    except RecordStoreError as exc:
        logger.exception("Failed to add evaluation for %s", participant_id)
        messages.error(request, store_error_message(exc))
    else:
        messages.success(request, _("Evaluation added."))
    return redirect(_detail_url(participant_id))


# ---------------------------------------------------------------------------
# CSV import
# ---------------------------------------------------------------------------

@login_required
def participant_import(request):
    """Upload a CSV file and insert its rows as new participants."""
    skipped = []
    if request.method == "POST":
        form = CSVImportForm(request.POST, request.FILES)
        if form.is_valid():
            try:
                text = form.cleaned_data["csv_file"].read().decode("utf-8-sig")
            except UnicodeDecodeError:
                form.add_error("csv_file", _("The file could not be read as UTF-8 text."))
            else:
                try:
                    result = parse_acolhidas_csv(text)
                except CSVImportError as exc:
                    form.add_error("csv_file", str(exc))
                else:
                    skipped = result.skipped
                    try:
                        created = get_record_store().insert_many(result.drafts)
                    except RecordStoreError:
                        logger.exception("CSV import insert failed")
                        messages.error(request, _("Import failed. Check the logs for details."))
                    else:
                        messages.success(
                            request,
                            _("%(count)d participants imported successfully!") % {"count": len(created)},
                        )
                        for line_number, reason in skipped:
                            messages.warning(
                                request,
                                _("Line %(line)d skipped: %(reason)s") % {"line": line_number, "reason": reason},
                            )
                        return redirect("acolhidas:participant_list")
    else:
        form = CSVImportForm()

    return render(request, "acolhidas/participant_import.html", {
        "form": form,
        "skipped": skipped,
        "nav_active": "acolhidas",
    })
