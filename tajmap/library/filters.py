import django_filters
from django.db.models import Q

from tajmap.core.localization import translated_field_names
from .models import Book


class BookFilter(django_filters.FilterSet):
    """Filter for the library list"""

    category = django_filters.CharFilter(field_name='category', lookup_expr='iexact')
    year = django_filters.NumberFilter(field_name='year')
    search = django_filters.CharFilter(method='filter_search', label='Search')

    class Meta:
        model = Book
        fields = ['category', 'year', 'search']

    def filter_search(self, queryset, name, value):
        """Title and description in every language, plus author"""
        value = value.strip()
        if not value:
            return queryset
        query = Q(author__icontains=value)
        for field in translated_field_names('title') + translated_field_names('description'):
            query |= Q(**{f'{field}__icontains': value})
        return queryset.filter(query)
