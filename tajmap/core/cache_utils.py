"""
Caching for the public read endpoints: location list, location type list,
book list and per-location media galleries.

Cached payloads are serializer output, which is language dependent, so every
key carries the content language. Invalidation drops the key for all
languages (see cache_signals).
"""
from django.core.cache import cache
import logging

from .localization import content_languages

logger = logging.getLogger(__name__)

# Cache key prefixes
LOCATION_LIST_KEY_PREFIX = 'location_list:'
LOCATION_TYPE_LIST_KEY_PREFIX = 'location_type_list:'
BOOK_LIST_KEY_PREFIX = 'book_list:'
LOCATION_MEDIA_KEY_PREFIX = 'location_media:'

# Cache TTL (Time To Live) in seconds
LOCATION_LIST_CACHE_TTL = 600  # 10 minutes
LOCATION_TYPE_LIST_CACHE_TTL = 900  # 15 minutes (change rarely)
BOOK_LIST_CACHE_TTL = 600  # 10 minutes
LOCATION_MEDIA_CACHE_TTL = 600  # 10 minutes


def list_cache_key(prefix: str, language: str) -> str:
    """Get cache key for a list endpoint in a given language"""
    return f"{prefix}{language}"


def location_media_cache_key(location_id: int, language: str) -> str:
    """Get cache key for a location's media gallery"""
    return f"{LOCATION_MEDIA_KEY_PREFIX}{location_id}:{language}"


def get_cached(cache_key: str):
    cached_data = cache.get(cache_key)
    if cached_data is not None:
        logger.debug(f"Cache HIT: {cache_key}")
    else:
        logger.debug(f"Cache MISS: {cache_key}")
    return cached_data


def set_cached(cache_key: str, data, ttl: int):
    cache.set(cache_key, data, ttl)
    logger.debug(f"Cached {cache_key} for {ttl}s")


def invalidate_list(prefix: str):
    """Drop a cached list in every content language"""
    cache.delete_many([list_cache_key(prefix, language) for language in content_languages()])
    logger.debug(f"Invalidated cache for {prefix}*")


def invalidate_location_media(location_id: int):
    cache.delete_many([location_media_cache_key(location_id, language) for language in content_languages()])
    logger.debug(f"Invalidated media cache for location {location_id}")


def invalidate_all():
    """Drop every cached list; used after bulk operations"""
    invalidate_list(LOCATION_LIST_KEY_PREFIX)
    invalidate_list(LOCATION_TYPE_LIST_KEY_PREFIX)
    invalidate_list(BOOK_LIST_KEY_PREFIX)
