"""CSV import of participants.

Deliberately simple format: comma-separated, no quoting, first line is the
header. Required columns: name, startDate (YYYY-MM-DD), groups
(pipe-separated). Optional: cpf, phone, email, observations.

A bad header or an empty file fails the whole import. A bad row is skipped
with a warning and the remaining rows still import.
"""
import logging
import re
from dataclasses import dataclass, field
from datetime import date

from django.utils.translation import gettext as _

from .models import STATUS_ACTIVE, Participant

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("name", "startDate", "groups")
OPTIONAL_COLUMNS = ("cpf", "phone", "email", "observations")

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class CSVImportError(Exception):
    """The file as a whole cannot be imported."""


@dataclass
class ImportResult:
    drafts: list = field(default_factory=list)
    # (line number, reason) for every skipped row
    skipped: list = field(default_factory=list)


def parse_acolhidas_csv(text):
    """Parse CSV text into draft participants (no ids yet)."""
    lines = text.strip().splitlines()
    if len(lines) < 2:
        raise CSVImportError(_("The CSV file is empty or only contains the header."))

    header = [h.strip() for h in lines[0].split(",")]
    for column in REQUIRED_COLUMNS:
        if column not in header:
            raise CSVImportError(
                _('Invalid CSV file. The required column "%(column)s" was not found.')
                % {"column": column}
            )

    result = ImportResult()
    for line_number, line in enumerate(lines[1:], start=2):
        values = line.split(",")
        row = {
            column: values[index].strip() if index < len(values) else ""
            for index, column in enumerate(header)
        }

        if not all(row[column] for column in REQUIRED_COLUMNS):
            _skip(result, line_number, _("missing required data (name, startDate, groups)"))
            continue
        if not DATE_PATTERN.match(row["startDate"]):
            _skip(result, line_number, _("invalid startDate format (expected YYYY-MM-DD)"))
            continue
        try:
            start_date = date.fromisoformat(row["startDate"])
        except ValueError:
            _skip(result, line_number, _("startDate is not a real calendar date"))
            continue

        result.drafts.append(Participant(
            name=row["name"],
            start_date=start_date,
            cpf=row.get("cpf", ""),
            phone=row.get("phone", ""),
            email=row.get("email", ""),
            observations=row.get("observations", ""),
            groups=tuple(g.strip() for g in row["groups"].split("|")),
            status=STATUS_ACTIVE,
        ))
    return result


def _skip(result, line_number, reason):
    logger.warning("Skipping CSV line %d: %s", line_number, reason)
    result.skipped.append((line_number, str(reason)))
