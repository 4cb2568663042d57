"""Custom error handlers that render styled error pages."""

from django.template.response import TemplateResponse


def not_found_view(request, exception):
    """Custom 404 handler, mostly hit by stale participant links."""
    return TemplateResponse(request, "404.html", {}, status=404)
