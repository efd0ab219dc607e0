from marketplace.stores.django_store import DjangoLessonStore, DjangoOrderStore
from marketplace.stores.interfaces import LessonStore, OrderStore
from marketplace.stores.memory_store import InMemoryLessonStore, InMemoryOrderStore

__all__ = [
    "LessonStore",
    "OrderStore",
    "DjangoLessonStore",
    "DjangoOrderStore",
    "InMemoryLessonStore",
    "InMemoryOrderStore",
]
