"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Map domain errors to HTTP responses (see handlers/exceptions.py)
- Never contain business logic
- Never expose internal error details
"""

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from marketplace import cache
from marketplace.dependencies import catalog_service, reservation_service
from marketplace.handlers.serializers import (
    CheckoutSerializer,
    LessonCreateSerializer,
    LessonListQuerySerializer,
    LessonSerializer,
    LessonUpdateSerializer,
    OrderSerializer,
)
from marketplace.services import parse_checkout


class LessonListView(APIView):
    """Handler for GET/POST /api/lessons"""

    def get(self, request: Request) -> Response:
        query = LessonListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        lessons = catalog_service().list_lessons(
            search=query.validated_data.get("search"),
            ordering=query.validated_data.get("ordering"),
        )
        return Response(LessonSerializer(lessons, many=True).data)

    def post(self, request: Request) -> Response:
        body = LessonCreateSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        lesson = catalog_service().create_lesson(**body.validated_data)
        return Response(LessonSerializer(lesson).data, status=status.HTTP_201_CREATED)


class LessonDetailView(APIView):
    """Handler for GET/PUT/DELETE /api/lessons/{lesson_id}"""

    def get(self, request: Request, lesson_id: str) -> Response:
        payload = cache.get_lesson(lesson_id)
        if payload is None:
            lesson = catalog_service().get_lesson(lesson_id)
            payload = dict(LessonSerializer(lesson).data)
            cache.set_lesson(str(lesson.id), payload)
        return Response(payload)

    def put(self, request: Request, lesson_id: str) -> Response:
        body = LessonUpdateSerializer(data=request.data, partial=True)
        body.is_valid(raise_exception=True)
        catalog_service().update_lesson(lesson_id, body.validated_data)
        return Response({"message": "Lesson updated successfully"})

    def delete(self, request: Request, lesson_id: str) -> Response:
        catalog_service().delete_lesson(lesson_id)
        return Response({"message": "Lesson deleted successfully"})


class OrderListView(APIView):
    """Handler for POST /api/orders"""

    def post(self, request: Request) -> Response:
        body = CheckoutSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        checkout = parse_checkout(
            body.validated_data["customer_name"],
            body.validated_data["customer_phone"],
            body.validated_data["lines"],
        )
        order = reservation_service().checkout(checkout)
        return Response({"order": OrderSerializer(order).data}, status=status.HTTP_201_CREATED)


class OrderDetailView(APIView):
    """Handler for GET /api/orders/{order_id}"""

    def get(self, request: Request, order_id: str) -> Response:
        order = reservation_service().get_order(order_id)
        return Response({"order": OrderSerializer(order).data})
