"""Utility functions for audit logging and list pagination"""
import logging

from django.core.paginator import Paginator
from rest_framework.response import Response

from .models import AuditLog

logger = logging.getLogger(__name__)


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, object_name=None):
    """
    Create an audit log entry

    Args:
        request: Django request object (for user and IP) - optional if user is provided
        action: Action type (create, update, delete, login, logout, upload, reorder)
        model_name: Name of the model being acted upon
        object_id: ID of the object (as string)
        changes: Dictionary of changes made
        user: Optional user override (defaults to request.user if request provided)
        object_name: Human-readable name of the object

    Audit failures are logged and never propagate to the caller.
    """
    try:
        audit_user = user
        if audit_user is None and request is not None and hasattr(request, 'user'):
            audit_user = request.user

        if not action or not model_name or object_id in (None, ''):
            logger.warning(f"Audit log creation skipped: missing required fields (action={action}, model_name={model_name}, object_id={object_id})")
            return None

        return AuditLog.objects.create(
            user=audit_user if audit_user and audit_user.is_authenticated else None,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=(str(object_name)[:255] if object_name else None),
            changes=changes or {},
            ip_address=get_client_ip(request) if request else None,
        )
    except Exception as e:
        logger.error(f"Failed to create audit log: {str(e)}")
        return None


def parse_positive_int(value, default):
    """Parse a query parameter as a positive integer, falling back to default"""
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def paginated_response(request, queryset, serializer_class, context=None, default_limit=50):
    """
    Serialize a queryset page-by-page when the client asks for a page or a
    page size; ``limit`` alone means the first page.

    Without either parameter the whole queryset is returned as a plain list.
    """
    context = context or {'request': request}
    if 'page' not in request.query_params and 'limit' not in request.query_params:
        return Response(serializer_class(queryset, many=True, context=context).data)

    page = parse_positive_int(request.query_params.get('page'), 1)
    limit = min(parse_positive_int(request.query_params.get('limit'), default_limit), 200)

    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)
    serializer = serializer_class(page_obj, many=True, context=context)
    return Response({
        'results': serializer.data,
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page_obj.number,
        'page_size': limit,
        'total_pages': paginator.num_pages,
    })


def collect_changes(instance, validated_data):
    """
    Describe how validated_data would change instance, as
    {field: {'old': ..., 'new': ...}} for audit logging.
    """
    changes = {}
    for field, new_value in validated_data.items():
        old_value = getattr(instance, field, None)
        if old_value != new_value:
            changes[field] = {'old': _jsonable(old_value), 'new': _jsonable(new_value)}
    return changes


def _jsonable(value):
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)
