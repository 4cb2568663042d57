"""PDF rendering with WeasyPrint.

WeasyPrint needs native libraries (Pango, cairo) that are not always
present on a developer machine. Availability is probed once; views check
is_pdf_available() and show a friendly page instead of a 500.
"""
import logging

from django.http import HttpResponse
from django.template.loader import render_to_string

logger = logging.getLogger(__name__)

_probe = None


def _probe_weasyprint():
    """Return (HTML class or None, reason string)."""
    global _probe
    if _probe is None:
        try:
            from weasyprint import HTML
            _probe = (HTML, "")
        except (ImportError, OSError) as exc:
            logger.warning("WeasyPrint unavailable: %s", exc)
            _probe = (None, str(exc))
    return _probe


def is_pdf_available():
    return _probe_weasyprint()[0] is not None


def get_pdf_unavailable_reason():
    return _probe_weasyprint()[1]


def render_pdf_bytes(template_name, context, base_url=None):
    """Render a template to PDF bytes. Raises RuntimeError if unavailable."""
    html_cls, reason = _probe_weasyprint()
    if html_cls is None:
        raise RuntimeError(f"PDF generation is unavailable: {reason}")
    html = render_to_string(template_name, context)
    return html_cls(string=html, base_url=base_url).write_pdf()


def render_pdf(template_name, context, filename):
    """Render a template to a downloadable PDF response."""
    response = HttpResponse(
        render_pdf_bytes(template_name, context), content_type="application/pdf",
    )
    response["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response
