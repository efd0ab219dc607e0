"""Domain error codes for the marketplace module."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_LESSON_ID = "INVALID_LESSON_ID"
    INVALID_ORDER_ID = "INVALID_ORDER_ID"
    LESSON_NOT_FOUND = "LESSON_NOT_FOUND"
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    INSUFFICIENT_CAPACITY = "INSUFFICIENT_CAPACITY"
    LESSON_IN_USE = "LESSON_IN_USE"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(DomainError):
    """Raised when input breaks a field or request rule."""

    def __init__(self, message: str, lesson_id: str | None = None) -> None:
        super().__init__(code=ErrorCode.VALIDATION_ERROR, message=message)
        self.lesson_id = lesson_id


class InvalidLessonIdError(DomainError):
    """Raised when a lesson ID is invalid."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.INVALID_LESSON_ID,
            message="Invalid lesson ID format",
        )


class InvalidOrderIdError(DomainError):
    """Raised when an order ID is invalid."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.INVALID_ORDER_ID,
            message="Invalid order ID format",
        )


class LessonNotFoundError(DomainError):
    """Raised when a lesson is not found."""

    def __init__(self, lesson_id: str) -> None:
        super().__init__(
            code=ErrorCode.LESSON_NOT_FOUND,
            message="Lesson not found",
        )
        self.lesson_id = lesson_id


class OrderNotFoundError(DomainError):
    """Raised when an order is not found."""

    def __init__(self, order_id: str) -> None:
        super().__init__(
            code=ErrorCode.ORDER_NOT_FOUND,
            message="Order not found",
        )
        self.order_id = order_id


class InsufficientCapacityError(DomainError):
    """Raised when a lesson has fewer free seats than requested."""

    def __init__(self, lesson_id: str, requested: int) -> None:
        super().__init__(
            code=ErrorCode.INSUFFICIENT_CAPACITY,
            message="Not enough available seats for lesson",
        )
        self.lesson_id = lesson_id
        self.requested = requested


class LessonInUseError(DomainError):
    """Raised when deleting a lesson that confirmed orders still reference."""

    def __init__(self, lesson_id: str) -> None:
        super().__init__(
            code=ErrorCode.LESSON_IN_USE,
            message="Lesson is referenced by confirmed orders",
        )
        self.lesson_id = lesson_id


class StoreUnavailableError(DomainError):
    """Raised when the backing store cannot be reached."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.STORE_UNAVAILABLE,
            message="Storage is temporarily unavailable",
        )
