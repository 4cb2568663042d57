"""
Django system check for the remote record store configuration.

Check IDs:
    efemera.E001: SUPABASE_URL missing or not https
    efemera.E002: SUPABASE_KEY missing

Run checks manually:
    python manage.py check
"""

from django.conf import settings
from django.core.checks import Error, register


@register()
def check_record_store_settings(app_configs, **kwargs):
    """E001/E002: the app cannot read or write participants without these."""
    errors = []
    url = settings.SUPABASE_URL
    if not url or not url.startswith("https://"):
        errors.append(
            Error(
                "SUPABASE_URL is missing or is not an https:// URL.",
                hint="Set SUPABASE_URL to your project URL, e.g. https://xyz.supabase.co",
                id="efemera.E001",
            )
        )
    if not settings.SUPABASE_KEY:
        errors.append(
            Error(
                "SUPABASE_KEY is not set.",
                hint="Copy the project's API key from the Supabase dashboard.",
                id="efemera.E002",
            )
        )
    return errors
