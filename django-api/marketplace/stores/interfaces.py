"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
"""

from abc import ABC, abstractmethod

from marketplace.domain import (
    Lesson,
    LessonChanges,
    LessonDraft,
    LessonFilter,
    LessonId,
    Money,
    Order,
    OrderId,
    OrderLine,
)


class LessonStore(ABC):
    """Interface for lesson persistence and the seat counter primitives."""

    @abstractmethod
    def list_lessons(self, lesson_filter: LessonFilter | None = None) -> list[Lesson]:
        """Return lessons matching the filter, newest first by default."""
        ...

    @abstractmethod
    def get_lesson(self, lesson_id: LessonId) -> Lesson | None:
        """Return a lesson by ID, or None if not found."""
        ...

    @abstractmethod
    def create_lesson(self, draft: LessonDraft) -> Lesson:
        """Persist a new lesson with every seat available."""
        ...

    @abstractmethod
    def update_lesson(self, lesson_id: LessonId, changes: LessonChanges) -> Lesson | None:
        """Apply metadata changes, or return None if the lesson does not exist.

        A capacity change shifts available_slots by the same delta, clamped
        at zero. available_slots is never set directly.
        """
        ...

    @abstractmethod
    def delete_lesson(self, lesson_id: LessonId) -> bool:
        """Delete a lesson. Return False if it did not exist.

        Raises:
            LessonInUseError: If the backend itself enforces order references
                and confirmed order lines still point at the lesson.
        """
        ...

    @abstractmethod
    def try_reserve(self, lesson_id: LessonId, quantity: int) -> Lesson:
        """Atomically take `quantity` seats if at least that many are free.

        Returns the lesson as it stood right after the decrement.

        Raises:
            LessonNotFoundError: If the lesson does not exist.
            InsufficientCapacityError: If fewer seats are free; nothing changes.
        """
        ...

    @abstractmethod
    def release(self, lesson_id: LessonId, quantity: int) -> bool:
        """Atomically give back `quantity` seats, never beyond capacity.

        Returns False if the lesson no longer exists.
        """
        ...


class OrderStore(ABC):
    """Interface for order persistence operations."""

    @abstractmethod
    def create_order(
        self,
        customer_name: str,
        customer_phone: str,
        lines: list[OrderLine],
        total: Money,
    ) -> Order:
        """Persist a confirmed order together with its lines.

        Raises:
            LessonNotFoundError: If a line references a lesson that no longer
                exists; nothing is persisted.
        """
        ...

    @abstractmethod
    def get_order(self, order_id: OrderId) -> Order | None:
        """Return an order by ID, or None if not found."""
        ...

    @abstractmethod
    def lesson_has_orders(self, lesson_id: LessonId) -> bool:
        """Check if any confirmed order line references the lesson."""
        ...
