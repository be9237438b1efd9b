"""
Cache invalidation signals
Automatically invalidate cache when data changes
"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging
import threading
from contextlib import contextmanager

from tajmap.library.models import Book
from tajmap.locations.models import Location, LocationType, LocationMedia
from .cache_utils import (
    LOCATION_LIST_KEY_PREFIX, LOCATION_TYPE_LIST_KEY_PREFIX, BOOK_LIST_KEY_PREFIX,
    invalidate_list, invalidate_location_media, invalidate_all,
)

logger = logging.getLogger(__name__)

# Thread-local storage to track signal suspension
_thread_locals = threading.local()


@contextmanager
def suspend_cache_signals():
    """
    Context manager to temporarily suspend cache invalidation signals.
    Useful for bulk operations to prevent excessive cache clearing.
    Everything cached is dropped once the block exits.
    """
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = False
        invalidate_all()


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


@receiver([post_save, post_delete], sender=Location)
def invalidate_location_cache(sender, instance, **kwargs):
    if is_suspended():
        return
    invalidate_list(LOCATION_LIST_KEY_PREFIX)
    # Type list carries per-type location counts
    invalidate_list(LOCATION_TYPE_LIST_KEY_PREFIX)
    invalidate_location_media(instance.pk)


@receiver([post_save, post_delete], sender=LocationType)
def invalidate_location_type_cache(sender, instance, **kwargs):
    if is_suspended():
        return
    invalidate_list(LOCATION_TYPE_LIST_KEY_PREFIX)


@receiver([post_save, post_delete], sender=LocationMedia)
def invalidate_location_media_cache(sender, instance, **kwargs):
    if is_suspended():
        return
    invalidate_location_media(instance.location_id)


@receiver([post_save, post_delete], sender=Book)
def invalidate_book_cache(sender, instance, **kwargs):
    if is_suspended():
        return
    invalidate_list(BOOK_LIST_KEY_PREFIX)
