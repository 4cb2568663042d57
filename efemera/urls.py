"""Root URL configuration.

The participant routes are mounted at the root with a catch-all
`<participant_id>/` segment, so they must stay last.
"""
from django.contrib import admin
from django.contrib.auth import views as auth_views
from django.urls import include, path

handler404 = "efemera.error_views.not_found_view"

urlpatterns = [
    path("auth/login/", auth_views.LoginView.as_view(), name="login"),
    path("auth/logout/", auth_views.LogoutView.as_view(), name="logout"),
    path("django-admin/", admin.site.urls),
    path("reports/", include("apps.reports.urls")),
    path("", include("apps.acolhidas.urls")),
]
