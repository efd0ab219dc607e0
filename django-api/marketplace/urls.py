from django.urls import path

from marketplace.handlers import (
    LessonDetailView,
    LessonListView,
    OrderDetailView,
    OrderListView,
)

urlpatterns = [
    path("lessons", LessonListView.as_view(), name="lesson-list"),
    path("lessons/<str:lesson_id>", LessonDetailView.as_view(), name="lesson-detail"),
    path("orders", OrderListView.as_view(), name="order-list"),
    path("orders/<str:order_id>", OrderDetailView.as_view(), name="order-detail"),
]
