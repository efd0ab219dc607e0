"""Wiring of stores and services.

Stores are built once per application by MarketplaceConfig.ready() and handed
to services explicitly; nothing below reads module-level state.
"""

from dataclasses import dataclass

from django.apps import apps

from marketplace.services import CatalogService, ReservationService
from marketplace.stores import (
    DjangoLessonStore,
    DjangoOrderStore,
    InMemoryLessonStore,
    InMemoryOrderStore,
    LessonStore,
    OrderStore,
)

BACKENDS = ("django", "memory")


@dataclass(frozen=True)
class Stores:
    lessons: LessonStore
    orders: OrderStore


def build_stores(backend: str) -> Stores:
    """Construct the store pair for a backend name."""
    if backend == "django":
        return Stores(lessons=DjangoLessonStore(), orders=DjangoOrderStore())
    if backend == "memory":
        lessons = InMemoryLessonStore()
        return Stores(lessons=lessons, orders=InMemoryOrderStore(lessons))
    raise ValueError(f"Unknown store backend {backend!r}; expected one of {BACKENDS}")


def get_stores() -> Stores:
    return apps.get_app_config("marketplace").stores


def catalog_service() -> CatalogService:
    stores = get_stores()
    return CatalogService(stores.lessons, stores.orders)


def reservation_service() -> ReservationService:
    stores = get_stores()
    return ReservationService(stores.lessons, stores.orders)
