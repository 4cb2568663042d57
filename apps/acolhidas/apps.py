from django.apps import AppConfig


class AcolhidasConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.acolhidas"
    label = "acolhidas"
    verbose_name = "Participants"
