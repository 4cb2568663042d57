from django.urls import path

from . import views

app_name = "acolhidas"

urlpatterns = [
    path("", views.participant_list, name="participant_list"),
    path("new/", views.participant_create, name="participant_create"),
    path("import/", views.participant_import, name="participant_import"),
    path("<str:participant_id>/", views.participant_detail, name="participant_detail"),
    path("<str:participant_id>/edit/", views.participant_edit, name="participant_edit"),
    path("<str:participant_id>/attendance/", views.attendance_record, name="attendance_record"),
    path("<str:participant_id>/sessions/", views.session_schedule, name="session_schedule"),
    path("<str:participant_id>/evaluations/", views.evaluation_add, name="evaluation_add"),
]
