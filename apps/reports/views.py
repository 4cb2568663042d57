"""Participant report page and its spreadsheet/PDF exports."""
import logging

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.http import HttpResponse
from django.shortcuts import redirect, render
from django.utils.translation import gettext as _

from apps.acolhidas.views import store_error_message
from apps.store.client import RecordStoreError, get_record_store

from .export_engine import generate_report_pdf, generate_report_xlsx, report_filename
from .filters import build_report, departure_reasons
from .forms import ReportFilterForm
from .pdf_utils import get_pdf_unavailable_reason, is_pdf_available

logger = logging.getLogger(__name__)

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _load_report(request):
    """Fetch the roster and apply the filters in the query string.

    Returns (form, report). `report` is None until the form is submitted
    and valid. Raises RecordStoreError if the roster can't be fetched.
    """
    participants = get_record_store().fetch_all()
    form = ReportFilterForm(
        request.GET if "generate" in request.GET else None,
        departure_reasons=departure_reasons(participants),
    )
    if not form.is_bound or not form.is_valid():
        return form, None
    criteria = form.get_criteria()
    return form, build_report(participants, criteria)


@login_required
def participant_report(request):
    """Filter form plus the resulting table and counts."""
    try:
        form, report = _load_report(request)
    except RecordStoreError as exc:
        logger.exception("Failed to load participants for report")
        messages.error(request, store_error_message(exc))
        form, report = ReportFilterForm(), None

    return render(request, "reports/participant_report.html", {
        "form": form,
        "report": report,
        "query_string": request.GET.urlencode(),
        "pdf_available": is_pdf_available(),
        "nav_active": "reports",
    })


@login_required
def export_xlsx(request):
    """Download the current report as a spreadsheet."""
    try:
        form, report = _load_report(request)
    except RecordStoreError as exc:
        messages.error(request, store_error_message(exc))
        return redirect("reports:participant_report")
    if report is None:
        messages.error(request, _("Please generate a report first."))
        return redirect("reports:participant_report")

    response = HttpResponse(generate_report_xlsx(report), content_type=XLSX_CONTENT_TYPE)
    response["Content-Disposition"] = f'attachment; filename="{report_filename("xlsx")}"'
    return response


@login_required
def export_pdf(request):
    """Download the current report as a PDF."""
    if not is_pdf_available():
        return render(
            request,
            "reports/pdf_unavailable.html",
            {"reason": get_pdf_unavailable_reason()},
            status=503,
        )
    try:
        form, report = _load_report(request)
    except RecordStoreError as exc:
        messages.error(request, store_error_message(exc))
        return redirect("reports:participant_report")
    if report is None:
        messages.error(request, _("Please generate a report first."))
        return redirect("reports:participant_report")

    return generate_report_pdf(
        report, form.get_criteria(), generated_by=request.user.get_username(),
    )
