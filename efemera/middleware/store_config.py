"""Show a configuration page while the record store settings are invalid."""
import logging

from django.conf import settings
from django.template.response import TemplateResponse

from apps.store.client import validate_store_settings

logger = logging.getLogger(__name__)


class StoreConfigMiddleware:
    """
    Block every page with a 503 until SUPABASE_URL and SUPABASE_KEY are valid.

    Without them no participant page can load, so a clear setup screen is
    more useful than a wall of connection errors. Static files and the
    Django admin stay reachable.
    """

    EXEMPT_PREFIXES = (
        "/static/",
        "/django-admin/",
    )

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if request.path.startswith(self.EXEMPT_PREFIXES):
            return self.get_response(request)

        problems = validate_store_settings(settings.SUPABASE_URL, settings.SUPABASE_KEY)
        if problems:
            logger.error("Record store not configured: %s", " ".join(problems))
            response = TemplateResponse(
                request,
                "store_unconfigured.html",
                {"problems": problems},
                status=503,
            )
            return response.render()
        return self.get_response(request)
