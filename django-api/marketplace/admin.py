from django.contrib import admin

from marketplace.dependencies import catalog_service
from marketplace.models import Lesson, Order, OrderLine


class OrderLineInline(admin.TabularInline):
    model = OrderLine
    extra = 0
    readonly_fields = ["lesson", "position", "quantity", "unit_price"]
    can_delete = False


@admin.register(Lesson)
class LessonAdmin(admin.ModelAdmin):
    list_display = ["subject", "location", "price", "capacity", "available_slots", "created_at"]
    search_fields = ["subject", "location"]
    readonly_fields = ["available_slots"]

    def save_model(self, request, obj, form, change):
        if not change:
            obj.available_slots = obj.capacity
            super().save_model(request, obj, form, change)
            return
        # Edits go through the service so a stale form never overwrites seat counts.
        changes = {field: getattr(obj, field) for field in form.changed_data}
        if changes:
            catalog_service().update_lesson(str(obj.pk), changes)


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ["customer_name", "customer_phone", "total", "status", "created_at"]
    list_filter = ["status"]
    readonly_fields = ["customer_name", "customer_phone", "total", "status", "created_at"]
    inlines = [OrderLineInline]
