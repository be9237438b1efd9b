from django.urls import path
from .views import (
    admin_login, admin_logout, admin_session,
    AdminTokenObtainPairView, AdminTokenRefreshView,
    upload_file,
    audit_log_list, audit_log_detail,
    global_search,
)

urlpatterns = [
    # Admin session endpoints (browser)
    path('admin/login/', admin_login, name='admin-login'),
    path('admin/logout/', admin_logout, name='admin-logout'),
    path('admin/session/', admin_session, name='admin-session'),

    # Token endpoints (scripted clients)
    path('auth/token/', AdminTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/token/refresh/', AdminTokenRefreshView.as_view(), name='token_refresh'),

    path('upload/', upload_file, name='upload'),

    # AuditLog endpoints
    path('audit-logs/', audit_log_list, name='audit-log-list'),
    path('audit-logs/<int:pk>/', audit_log_detail, name='audit-log-detail'),

    path('search/', global_search, name='global-search'),
]
