from django.apps import AppConfig


class StoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.store"
    label = "store"
    verbose_name = "Participant Record Store"

    def ready(self):
        import apps.store.checks  # noqa: F401
