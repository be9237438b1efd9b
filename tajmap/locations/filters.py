import django_filters
from django.db.models import Q
from rest_framework.exceptions import ValidationError

from tajmap.core.localization import translated_field_names
from .models import Location


def parse_bbox(value):
    """
    Parse 'min_lng,min_lat,max_lng,max_lat' into four floats.

    Raises ValidationError on malformed input.
    """
    parts = [part.strip() for part in value.split(',')]
    if len(parts) != 4:
        raise ValidationError({'bbox': 'Expected min_lng,min_lat,max_lng,max_lat'})
    try:
        min_lng, min_lat, max_lng, max_lat = (float(part) for part in parts)
    except ValueError:
        raise ValidationError({'bbox': 'Bounding box values must be numbers'})
    if min_lat > max_lat:
        raise ValidationError({'bbox': 'min_lat must not exceed max_lat'})
    return min_lng, min_lat, max_lng, max_lat


class LocationFilter(django_filters.FilterSet):
    """Filter for the public location list"""

    type = django_filters.CharFilter(field_name='location_type', lookup_expr='exact', label='Location type slug')
    search = django_filters.CharFilter(method='filter_search', label='Search')
    bbox = django_filters.CharFilter(method='filter_bbox', label='Bounding box')

    class Meta:
        model = Location
        fields = ['type', 'search', 'bbox']

    def filter_search(self, queryset, name, value):
        """Case-insensitive match on name and description in every language"""
        value = value.strip()
        if not value:
            return queryset
        query = Q()
        for field in translated_field_names('name') + translated_field_names('description'):
            query |= Q(**{f'{field}__icontains': value})
        return queryset.filter(query)

    def filter_bbox(self, queryset, name, value):
        min_lng, min_lat, max_lng, max_lat = parse_bbox(value)
        queryset = queryset.filter(lat__gte=min_lat, lat__lte=max_lat)
        if min_lng <= max_lng:
            return queryset.filter(lng__gte=min_lng, lng__lte=max_lng)
        # Box crossing the antimeridian
        return queryset.filter(Q(lng__gte=min_lng) | Q(lng__lte=max_lng))
