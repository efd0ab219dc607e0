from django.apps import AppConfig
from django.conf import settings


class MarketplaceConfig(AppConfig):
    name = "marketplace"
    default_auto_field = "django.db.models.BigAutoField"

    def ready(self) -> None:
        from marketplace import signals  # noqa: F401
        from marketplace.dependencies import build_stores

        self.stores = build_stores(settings.MARKETPLACE_STORE_BACKEND)
