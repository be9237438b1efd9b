import logging

from django.contrib.auth import authenticate, login, logout
from django.db.models import Q
from django.views.decorators.csrf import ensure_csrf_cookie
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .exceptions import filter_error_response
from .filters import AuditLogFilter
from .localization import resolve_language, translated_field_names
from .models import AuditLog
from .permissions import IsAdmin, is_admin_user
from .serializers import (
    SessionUserSerializer, AdminLoginSerializer, AdminTokenObtainPairSerializer, AuditLogSerializer,
)
from .uploads import UploadError, parse_crop_box, store_upload
from .utils import create_audit_log, get_client_ip

logger = logging.getLogger('tajmap.core')


def session_payload(user):
    if is_admin_user(user):
        return {'is_admin': True, 'user': SessionUserSerializer(user).data}
    return {'is_admin': False}


# Admin session views
@api_view(['POST'])
@permission_classes([AllowAny])
def admin_login(request):
    """Log an admin in and start a session"""
    serializer = AdminLoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    username = serializer.validated_data['username']
    password = serializer.validated_data['password']

    user = authenticate(request, username=username, password=password)
    if user is None or not is_admin_user(user):
        logger.warning(f"Failed admin login for '{username}' from {get_client_ip(request)}")
        return Response({'message': 'Invalid username or password'}, status=status.HTTP_401_UNAUTHORIZED)

    login(request, user)
    logger.info(f"Admin {user.username} logged in")
    create_audit_log(request=request, action='login', model_name='User',
                     object_id=user.id, object_name=user.username, user=user)
    return Response(session_payload(user))


@api_view(['POST'])
@permission_classes([AllowAny])
def admin_logout(request):
    """End the current session; succeeds even without one"""
    user = request.user
    if user.is_authenticated:
        create_audit_log(request=request, action='logout', model_name='User',
                         object_id=user.id, object_name=user.username, user=user)
        logger.info(f"Admin {user.username} logged out")
    logout(request)
    return Response({'is_admin': False})


@ensure_csrf_cookie
@api_view(['GET'])
@permission_classes([AllowAny])
def admin_session(request):
    """Report whether the caller holds an admin session; also issues the CSRF cookie"""
    return Response(session_payload(request.user))


class AdminTokenObtainPairView(TokenObtainPairView):
    serializer_class = AdminTokenObtainPairSerializer


class AdminTokenRefreshView(TokenRefreshView):
    pass


# Upload view
@api_view(['POST'])
@permission_classes([IsAdmin])
@parser_classes([MultiPartParser, FormParser])
def upload_file(request):
    """Store an uploaded photo, video or document and return its URL"""
    uploaded_file = request.FILES.get('file')
    try:
        crop = parse_crop_box(request.data)
        stored = store_upload(uploaded_file, crop=crop)
    except UploadError as e:
        name = getattr(uploaded_file, 'name', None)
        logger.warning(f"Upload '{name}' from {request.user.username} rejected: {e.message}")
        return Response({'message': e.message, 'field': e.field}, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(request=request, action='upload', model_name='Upload',
                     object_id=stored['path'], object_name=stored['name'],
                     changes={'size': stored['size'], 'content_type': stored['content_type']})
    return Response({
        'url': stored['url'],
        'name': stored['name'],
        'size': stored['size'],
        'content_type': stored['content_type'],
        'kind': stored['kind'],
    }, status=status.HTTP_201_CREATED)


# AuditLog views (read-only)
@api_view(['GET'])
@permission_classes([IsAdmin])
def audit_log_list(request):
    """List audit logs with filtering"""
    filterset = AuditLogFilter(request.query_params, queryset=AuditLog.objects.select_related('user'))
    if not filterset.is_valid():
        return filter_error_response(filterset)

    queryset = filterset.qs.order_by('-created_at')[:500]
    serializer = AuditLogSerializer(queryset, many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAdmin])
def audit_log_detail(request, pk):
    """Retrieve an audit log"""
    try:
        audit_log = AuditLog.objects.select_related('user').get(pk=pk)
    except AuditLog.DoesNotExist:
        return Response({'message': 'Audit log not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(AuditLogSerializer(audit_log).data)


@api_view(['GET'])
@permission_classes([AllowAny])
def global_search(request):
    """Search locations, location types and books in every content language"""
    query = request.query_params.get('q', '').strip()

    if not query:
        return Response({
            'locations': [],
            'location_types': [],
            'books': [],
        })

    from tajmap.library.filters import BookFilter
    from tajmap.library.models import Book
    from tajmap.library.serializers import BookSerializer
    from tajmap.locations.filters import LocationFilter
    from tajmap.locations.models import Location, LocationType
    from tajmap.locations.serializers import LocationSerializer, LocationTypeSerializer

    context = {'request': request, 'language': resolve_language(request)}
    results = {}

    locations = LocationFilter({'search': query}, queryset=Location.objects.all()).qs[:20]
    results['locations'] = LocationSerializer(locations, many=True, context=context).data

    type_query = Q(slug__icontains=query)
    for field in translated_field_names('name'):
        type_query |= Q(**{f'{field}__icontains': query})
    location_types = LocationType.objects.filter(type_query)[:20]
    results['location_types'] = LocationTypeSerializer(location_types, many=True, context=context).data

    books = BookFilter({'search': query}, queryset=Book.objects.all()).qs[:20]
    results['books'] = BookSerializer(books, many=True, context=context).data

    return Response(results)
