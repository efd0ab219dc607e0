from marketplace.handlers.views import (
    LessonDetailView,
    LessonListView,
    OrderDetailView,
    OrderListView,
)

__all__ = ["LessonListView", "LessonDetailView", "OrderListView", "OrderDetailView"]
