"""Catalog service - lesson administration and browsing.

Services:
- Depend only on interfaces (stores)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or domain errors
"""

import logging
from collections.abc import Mapping
from typing import Any

from marketplace import cache
from marketplace.domain import (
    Capacity,
    Lesson,
    LessonChanges,
    LessonDraft,
    LessonFilter,
    LessonId,
    Money,
    NonEmptyText,
)
from marketplace.domain.errors import (
    InvalidLessonIdError,
    LessonInUseError,
    LessonNotFoundError,
    ValidationError,
)
from marketplace.stores.interfaces import LessonStore, OrderStore

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("subject", "location", "price", "capacity")


def parse_lesson_id(lesson_id: str) -> LessonId:
    """Parse a lesson ID, raising InvalidLessonIdError when malformed."""
    try:
        return LessonId.from_string(lesson_id)
    except (ValueError, TypeError, AttributeError) as exc:
        raise InvalidLessonIdError() from exc


def _field(name: str, factory, value):
    try:
        return factory(value)
    except ValueError as exc:
        raise ValidationError(f"{name}: {exc}") from exc


class CatalogService:
    """Service for lesson catalog operations."""

    def __init__(self, lessons: LessonStore, orders: OrderStore) -> None:
        self._lessons = lessons
        self._orders = orders

    def list_lessons(self, search: str | None = None, ordering: str | None = None) -> list[Lesson]:
        """Return lessons, optionally narrowed by a search term and sorted.

        Raises:
            ValidationError: If the ordering names an unsupported field.
        """
        try:
            lesson_filter = LessonFilter(
                search=search.strip() if search and search.strip() else None,
                ordering=ordering or "-created_at",
            )
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        return self._lessons.list_lessons(lesson_filter)

    def get_lesson(self, lesson_id: str) -> Lesson:
        """Return a lesson by ID.

        Raises:
            InvalidLessonIdError: If the lesson_id is not a valid UUID.
            LessonNotFoundError: If the lesson does not exist.
        """
        parsed = parse_lesson_id(lesson_id)
        lesson = self._lessons.get_lesson(parsed)
        if lesson is None:
            raise LessonNotFoundError(lesson_id)
        return lesson

    def create_lesson(self, subject: str, location: str, price: Any, capacity: Any) -> Lesson:
        """Create a lesson with all of its seats available.

        Raises:
            ValidationError: If a field is empty, negative, or of the wrong type.
        """
        draft = LessonDraft(
            subject=_field("subject", NonEmptyText, subject).value,
            location=_field("location", NonEmptyText, location).value,
            price=_field("price", Money, price),
            capacity=_field("capacity", Capacity, capacity),
        )
        lesson = self._lessons.create_lesson(draft)
        logger.info("Created lesson %s (%s, capacity %d)", lesson.id, lesson.subject, lesson.capacity.value)
        return lesson

    def update_lesson(self, lesson_id: str, fields: Mapping[str, Any]) -> Lesson:
        """Replace lesson metadata.

        Seat availability is never written directly; a capacity change moves
        it by the same delta and clamps at zero.

        Raises:
            InvalidLessonIdError: If the lesson_id is not a valid UUID.
            ValidationError: If no editable field is given or a value is invalid.
            LessonNotFoundError: If the lesson does not exist.
        """
        parsed = parse_lesson_id(lesson_id)
        unknown = sorted(set(fields) - set(EDITABLE_FIELDS))
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(unknown)}")

        changes = LessonChanges(
            subject=_field("subject", NonEmptyText, fields["subject"]).value
            if "subject" in fields
            else None,
            location=_field("location", NonEmptyText, fields["location"]).value
            if "location" in fields
            else None,
            price=_field("price", Money, fields["price"]) if "price" in fields else None,
            capacity=_field("capacity", Capacity, fields["capacity"])
            if "capacity" in fields
            else None,
        )
        if changes.is_empty():
            raise ValidationError("No fields to update")

        lesson = self._lessons.update_lesson(parsed, changes)
        if lesson is None:
            raise LessonNotFoundError(lesson_id)
        cache.invalidate_lesson(str(parsed))
        return lesson

    def delete_lesson(self, lesson_id: str) -> None:
        """Delete a lesson that no confirmed order references.

        Raises:
            InvalidLessonIdError: If the lesson_id is not a valid UUID.
            LessonInUseError: If confirmed orders reference the lesson.
            LessonNotFoundError: If the lesson does not exist.
        """
        parsed = parse_lesson_id(lesson_id)
        if self._orders.lesson_has_orders(parsed):
            raise LessonInUseError(lesson_id)
        if not self._lessons.delete_lesson(parsed):
            raise LessonNotFoundError(lesson_id)
        cache.invalidate_lesson(str(parsed))
        logger.info("Deleted lesson %s", parsed)
