from django.urls import path

from . import views

app_name = "reports"

urlpatterns = [
    path("", views.participant_report, name="participant_report"),
    path("export/xlsx/", views.export_xlsx, name="export_xlsx"),
    path("export/pdf/", views.export_pdf, name="export_pdf"),
]
