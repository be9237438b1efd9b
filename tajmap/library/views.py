import logging

from django.db.models import Count
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from tajmap.core.cache_utils import (
    BOOK_LIST_KEY_PREFIX, BOOK_LIST_CACHE_TTL, list_cache_key, get_cached, set_cached,
)
from tajmap.core.exceptions import filter_error_response
from tajmap.core.localization import resolve_language
from tajmap.core.permissions import IsAdminOrReadOnly
from tajmap.core.utils import create_audit_log, collect_changes, paginated_response
from .filters import BookFilter
from .models import Book
from .serializers import BookSerializer, BookCategorySerializer

logger = logging.getLogger('tajmap.library')

BOOK_FILTER_PARAMS = ('category', 'year', 'search', 'page', 'limit')


@api_view(['GET', 'POST'])
@permission_classes([IsAdminOrReadOnly])
def book_list_create(request):
    """List books (optionally paginated) or create a book (create requires admin)"""
    context = {'request': request, 'language': resolve_language(request)}

    if request.method == 'GET':
        is_plain = not any(param in request.query_params for param in BOOK_FILTER_PARAMS)
        cache_key = list_cache_key(BOOK_LIST_KEY_PREFIX, context['language'])
        if is_plain:
            cached_data = get_cached(cache_key)
            if cached_data is not None:
                return Response(cached_data)

        filterset = BookFilter(request.query_params, queryset=Book.objects.all())
        if not filterset.is_valid():
            return filter_error_response(filterset)
        response = paginated_response(request, filterset.qs, BookSerializer, context=context)
        if is_plain:
            set_cached(cache_key, response.data, BOOK_LIST_CACHE_TTL)
        return response

    serializer = BookSerializer(data=request.data, context=context)
    serializer.is_valid(raise_exception=True)
    book = serializer.save()
    logger.info(f"Book '{book.title}' (ID: {book.id}) created by {request.user.username}")
    create_audit_log(request=request, action='create', model_name='Book',
                     object_id=book.id, object_name=book.title)
    return Response(serializer.data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdminOrReadOnly])
def book_detail(request, pk):
    """Retrieve, update or delete a book"""
    try:
        book = Book.objects.get(pk=pk)
    except Book.DoesNotExist:
        return Response({'message': 'Book not found'}, status=status.HTTP_404_NOT_FOUND)

    context = {'request': request, 'language': resolve_language(request)}

    if request.method == 'GET':
        return Response(BookSerializer(book, context=context).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = BookSerializer(book, data=request.data, partial=True, context=context)
        serializer.is_valid(raise_exception=True)
        changes = collect_changes(book, serializer.validated_data)
        serializer.save()
        logger.info(f"Book {pk} updated by {request.user.username}: {list(changes)}")
        create_audit_log(request=request, action='update', model_name='Book',
                         object_id=pk, object_name=book.title, changes=changes)
        return Response(serializer.data)

    title = book.title
    book.delete()
    logger.info(f"Book {pk} ({title}) deleted by {request.user.username}")
    create_audit_log(request=request, action='delete', model_name='Book', object_id=pk, object_name=title)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([AllowAny])
def book_categories(request):
    """Distinct book categories with how many books each holds"""
    rows = (
        Book.objects.order_by()
        .values('category')
        .annotate(count=Count('id'))
        .order_by('category')
    )
    return Response(BookCategorySerializer(rows, many=True).data)
