"""Django signals for cache invalidation.

Seat counter updates go through queryset.update() and never emit these
signals; the services invalidate those keys themselves.
"""

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from marketplace import cache
from marketplace.models import Lesson, OrderLine


@receiver([post_save, post_delete], sender=Lesson)
def invalidate_lesson_cache(sender, instance, **kwargs):
    """Invalidate the cached lesson when it is saved or deleted."""
    cache.invalidate_lesson(str(instance.pk))


@receiver([post_save, post_delete], sender=OrderLine)
def invalidate_order_line_cache(sender, instance, **kwargs):
    """Invalidate the referenced lesson when an order line changes."""
    cache.invalidate_lesson(str(instance.lesson_id))
