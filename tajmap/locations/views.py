import logging

from django.db import transaction
from django.db.models import Count, OuterRef, Subquery, IntegerField
from django.db.models.functions import Coalesce
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from tajmap.core.cache_utils import (
    LOCATION_LIST_KEY_PREFIX, LOCATION_LIST_CACHE_TTL,
    LOCATION_TYPE_LIST_KEY_PREFIX, LOCATION_TYPE_LIST_CACHE_TTL,
    LOCATION_MEDIA_CACHE_TTL,
    list_cache_key, location_media_cache_key, get_cached, set_cached, invalidate_list,
    invalidate_location_media,
)
from tajmap.core.localization import resolve_language
from tajmap.core.permissions import IsAdmin, IsAdminOrReadOnly
from tajmap.core.utils import create_audit_log, collect_changes
from .filters import LocationFilter
from .models import Location, LocationType, LocationMedia
from .serializers import (
    LocationSerializer, LocationTypeSerializer, LocationMediaSerializer, MediaReorderSerializer,
)

logger = logging.getLogger('tajmap.locations')

LOCATION_FILTER_PARAMS = ('type', 'search', 'bbox')


def serializer_context(request):
    return {'request': request, 'language': resolve_language(request)}


def location_types_with_counts():
    """Location types annotated with how many locations use each slug"""
    counts = (
        Location.objects.filter(location_type=OuterRef('slug'))
        .order_by()
        .values('location_type')
        .annotate(total=Count('id'))
        .values('total')
    )
    return LocationType.objects.annotate(
        annotated_location_count=Coalesce(Subquery(counts, output_field=IntegerField()), 0)
    )


# Location views
@api_view(['GET', 'POST'])
@permission_classes([IsAdminOrReadOnly])
def location_list_create(request):
    """List all locations or create a new location (create requires admin)"""
    context = serializer_context(request)

    if request.method == 'GET':
        is_filtered = any(param in request.query_params for param in LOCATION_FILTER_PARAMS)
        cache_key = list_cache_key(LOCATION_LIST_KEY_PREFIX, context['language'])
        if not is_filtered:
            cached_data = get_cached(cache_key)
            if cached_data is not None:
                return Response(cached_data)

        filterset = LocationFilter(request.query_params, queryset=Location.objects.all())
        serializer = LocationSerializer(filterset.qs, many=True, context=context)
        response_data = serializer.data

        if not is_filtered:
            set_cached(cache_key, response_data, LOCATION_LIST_CACHE_TTL)
        return Response(response_data)

    logger.info(f"User {request.user.username} creating location with data: {request.data}")
    serializer = LocationSerializer(data=request.data, context=context)
    serializer.is_valid(raise_exception=True)
    location = serializer.save()
    logger.info(f"Location '{location.name}' (ID: {location.id}) created by {request.user.username}")
    create_audit_log(request=request, action='create', model_name='Location',
                     object_id=location.id, object_name=location.name)
    return Response(serializer.data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdminOrReadOnly])
def location_detail(request, pk):
    """Retrieve, update or delete a location (update/delete requires admin)"""
    try:
        location = Location.objects.get(pk=pk)
    except Location.DoesNotExist:
        logger.warning(f"Location {pk} not found")
        return Response({'message': 'Location not found'}, status=status.HTTP_404_NOT_FOUND)

    context = serializer_context(request)

    if request.method == 'GET':
        return Response(LocationSerializer(location, context=context).data)

    if request.method in ('PUT', 'PATCH'):
        # PUT behaves like PATCH: only supplied fields change
        serializer = LocationSerializer(location, data=request.data, partial=True, context=context)
        serializer.is_valid(raise_exception=True)
        changes = collect_changes(location, serializer.validated_data)
        serializer.save()
        logger.info(f"Location {pk} updated by {request.user.username}: {list(changes)}")
        create_audit_log(request=request, action='update', model_name='Location',
                         object_id=pk, object_name=location.name, changes=changes)
        return Response(serializer.data)

    # DELETE - gallery items go with the location (FK cascade)
    name = location.name
    media_count = location.media.count()
    location.delete()
    logger.info(f"Location {pk} ({name}) deleted by {request.user.username} with {media_count} media items")
    create_audit_log(request=request, action='delete', model_name='Location',
                     object_id=pk, object_name=name, changes={'media_deleted': media_count})
    return Response(status=status.HTTP_204_NO_CONTENT)


# Location type views
@api_view(['GET', 'POST'])
@permission_classes([IsAdminOrReadOnly])
def location_type_list_create(request):
    """List location types in display order or create a new type"""
    context = serializer_context(request)

    if request.method == 'GET':
        cache_key = list_cache_key(LOCATION_TYPE_LIST_KEY_PREFIX, context['language'])
        cached_data = get_cached(cache_key)
        if cached_data is not None:
            return Response(cached_data)

        serializer = LocationTypeSerializer(location_types_with_counts(), many=True, context=context)
        response_data = serializer.data
        set_cached(cache_key, response_data, LOCATION_TYPE_LIST_CACHE_TTL)
        return Response(response_data)

    serializer = LocationTypeSerializer(data=request.data, context=context)
    serializer.is_valid(raise_exception=True)
    location_type = serializer.save()
    logger.info(f"Location type '{location_type.slug}' created by {request.user.username}")
    create_audit_log(request=request, action='create', model_name='LocationType',
                     object_id=location_type.id, object_name=location_type.slug)
    return Response(serializer.data, status=status.HTTP_201_CREATED)


def _location_type_detail(request, location_type):
    context = serializer_context(request)

    if request.method == 'GET':
        return Response(LocationTypeSerializer(location_type, context=context).data)

    if request.method in ('PUT', 'PATCH'):
        old_slug = location_type.slug
        serializer = LocationTypeSerializer(location_type, data=request.data, partial=True, context=context)
        serializer.is_valid(raise_exception=True)
        changes = collect_changes(location_type, serializer.validated_data)
        with transaction.atomic():
            location_type = serializer.save()
            if location_type.slug != old_slug:
                moved = Location.objects.filter(location_type=old_slug).update(location_type=location_type.slug)
                changes['locations_moved'] = moved
                logger.info(f"Location type slug renamed {old_slug} -> {location_type.slug}, {moved} locations re-pointed")
        if 'locations_moved' in changes:
            # queryset.update() bypasses the model signals
            invalidate_list(LOCATION_LIST_KEY_PREFIX)
        logger.info(f"Location type {location_type.id} updated by {request.user.username}")
        create_audit_log(request=request, action='update', model_name='LocationType',
                         object_id=location_type.id, object_name=location_type.slug, changes=changes)
        return Response(LocationTypeSerializer(location_type, context=context).data)

    # DELETE - locations keep their (now dangling) slug
    type_id, slug = location_type.id, location_type.slug
    in_use = Location.objects.filter(location_type=slug).count()
    location_type.delete()
    if in_use:
        logger.warning(f"Location type '{slug}' deleted while used by {in_use} locations")
    logger.info(f"Location type {type_id} ({slug}) deleted by {request.user.username}")
    create_audit_log(request=request, action='delete', model_name='LocationType',
                     object_id=type_id, object_name=slug, changes={'locations_using_type': in_use})
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdminOrReadOnly])
def location_type_detail(request, pk):
    """Retrieve, update or delete a location type by id"""
    try:
        location_type = LocationType.objects.get(pk=pk)
    except LocationType.DoesNotExist:
        return Response({'message': 'Location type not found'}, status=status.HTTP_404_NOT_FOUND)
    return _location_type_detail(request, location_type)


@api_view(['GET'])
@permission_classes([IsAdminOrReadOnly])
def location_type_by_slug(request, slug):
    """Retrieve a location type by its slug"""
    try:
        location_type = LocationType.objects.get(slug=slug)
    except LocationType.DoesNotExist:
        return Response({'message': 'Location type not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(LocationTypeSerializer(location_type, context=serializer_context(request)).data)


# Location media views
@api_view(['GET', 'POST'])
@permission_classes([IsAdminOrReadOnly])
def location_media_list_create(request, pk):
    """List a location's gallery in display order or add an item to it"""
    try:
        location = Location.objects.get(pk=pk)
    except Location.DoesNotExist:
        return Response({'message': 'Location not found'}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'GET':
        cache_key = location_media_cache_key(location.id, resolve_language(request))
        cached_data = get_cached(cache_key)
        if cached_data is not None:
            return Response(cached_data)
        serializer = LocationMediaSerializer(location.media.all(), many=True)
        response_data = serializer.data
        set_cached(cache_key, response_data, LOCATION_MEDIA_CACHE_TTL)
        return Response(response_data)

    serializer = LocationMediaSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    extra = {}
    if 'sort_order' not in serializer.validated_data:
        # Appended to the end of the gallery
        extra['sort_order'] = location.media.count()
    media = serializer.save(location=location, **extra)
    logger.info(f"Media {media.id} ({media.media_type}) added to location {location.id} by {request.user.username}")
    create_audit_log(request=request, action='create', model_name='LocationMedia',
                     object_id=media.id, object_name=location.name, changes={'url': media.url})
    return Response(LocationMediaSerializer(media).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAdmin])
def location_media_reorder(request, pk):
    """Rewrite a gallery's sort order to follow the given list of media ids"""
    try:
        location = Location.objects.get(pk=pk)
    except Location.DoesNotExist:
        return Response({'message': 'Location not found'}, status=status.HTTP_404_NOT_FOUND)

    serializer = MediaReorderSerializer(data=request.data, context={'location': location})
    serializer.is_valid(raise_exception=True)
    ids = serializer.validated_data['ids']

    with transaction.atomic():
        for position, media_id in enumerate(ids):
            LocationMedia.objects.filter(pk=media_id, location=location).update(sort_order=position)
    # queryset.update() bypasses the model signals
    invalidate_location_media(location.id)

    logger.info(f"Media of location {location.id} reordered by {request.user.username}")
    create_audit_log(request=request, action='reorder', model_name='LocationMedia',
                     object_id=location.id, object_name=location.name, changes={'order': ids})
    return Response(LocationMediaSerializer(location.media.all(), many=True).data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdminOrReadOnly])
def media_detail(request, pk):
    """Retrieve, update or delete a gallery item"""
    try:
        media = LocationMedia.objects.select_related('location').get(pk=pk)
    except LocationMedia.DoesNotExist:
        return Response({'message': 'Media not found'}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'GET':
        return Response(LocationMediaSerializer(media).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = LocationMediaSerializer(media, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        changes = collect_changes(media, serializer.validated_data)
        media = serializer.save()
        logger.info(f"Media {pk} updated by {request.user.username}: {list(changes)}")
        create_audit_log(request=request, action='update', model_name='LocationMedia',
                         object_id=pk, object_name=media.location.name, changes=changes)
        return Response(serializer.data)

    location_name = media.location.name
    media.delete()
    logger.info(f"Media {pk} of location '{location_name}' deleted by {request.user.username}")
    create_audit_log(request=request, action='delete', model_name='LocationMedia',
                     object_id=pk, object_name=location_name)
    return Response(status=status.HTTP_204_NO_CONTENT)
