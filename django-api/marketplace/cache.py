"""Cache keys and invalidation for catalog reads."""

from django.conf import settings
from django.core.cache import cache


def lesson_key(lesson_id: str) -> str:
    return f"lessons:{lesson_id}"


def get_lesson(lesson_id: str) -> dict | None:
    return cache.get(lesson_key(lesson_id))


def set_lesson(lesson_id: str, payload: dict) -> None:
    cache.set(lesson_key(lesson_id), payload, settings.MARKETPLACE_LESSON_CACHE_TTL)


def invalidate_lesson(lesson_id: str) -> None:
    cache.delete(lesson_key(lesson_id))


def invalidate_lessons(lesson_ids) -> None:
    cache.delete_many([lesson_key(lesson_id) for lesson_id in lesson_ids])
