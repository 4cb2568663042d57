"""Report export: spreadsheet (openpyxl) and PDF (WeasyPrint).

Both formats take the same ReportResult the report page shows, so an
export always matches what the operator just looked at.
"""
import io
import logging

from django.utils import timezone
from django.utils.translation import gettext_lazy as _
from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from apps.acolhidas.models import group_label, status_label

from .pdf_utils import render_pdf

logger = logging.getLogger(__name__)

MISSING = "-"

# (header, width in characters, value getter)
SPREADSHEET_COLUMNS = [
    (_("Name"), 30, lambda p: p.name),
    (_("CPF"), 15, lambda p: p.cpf),
    (_("Phone"), 15, lambda p: p.phone),
    (_("Email"), 30, lambda p: p.email or MISSING),
    (_("Groups"), 40, lambda p: ", ".join(str(group_label(g)) for g in p.groups)),
    (_("Status"), 10, lambda p: str(status_label(p.status))),
    (_("Start"), 12, lambda p: format_date(p.start_date)),
    (_("End"), 12, lambda p: format_date(p.end_date)),
    (_("Departure reason"), 40, lambda p: p.departure_reason or MISSING),
    (_("Therapist"), 30, lambda p: p.therapist_name or MISSING),
    (_("General observations"), 50, lambda p: p.observations),
]


def format_date(value):
    return value.strftime("%d/%m/%Y") if value else MISSING


def report_filename(extension):
    return f"Relatorio_Efemera_{timezone.localdate():%d-%m-%Y}.{extension}"


def report_rows(report):
    """Header row followed by one row per participant."""
    yield [str(header) for header, _width, _getter in SPREADSHEET_COLUMNS]
    for participant in report.participants:
        yield [getter(participant) for _header, _width, getter in SPREADSHEET_COLUMNS]


def generate_report_xlsx(report):
    """Return the report as .xlsx bytes."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = str(_("Participant report"))[:31]  # Excel's sheet name limit

    for row in report_rows(report):
        sheet.append(row)
    for cell in sheet[1]:
        cell.font = Font(bold=True)
    for index, (_header, width, _getter) in enumerate(SPREADSHEET_COLUMNS, start=1):
        sheet.column_dimensions[get_column_letter(index)].width = width

    buffer = io.BytesIO()
    workbook.save(buffer)
    logger.info("Generated xlsx report with %d participant(s)", report.total)
    return buffer.getvalue()


def generate_report_pdf(report, criteria, generated_by):
    """Return an HttpResponse with the report rendered as PDF."""
    context = {
        "report": report,
        "criteria": criteria,
        "generated_at": timezone.now(),
        "generated_by": generated_by,
    }
    logger.info("Generating PDF report with %d participant(s)", report.total)
    return render_pdf("reports/pdf_report.html", context, report_filename("pdf"))
