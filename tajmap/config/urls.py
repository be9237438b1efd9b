"""
URL configuration for the tajmap project.

The public map and the admin panel talk to the JSON API under /api/v1/;
Django's own admin site stays available under /admin/.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "TajMap Admin Panel"
admin.site.site_title = "TajMap Admin Portal"
admin.site.index_title = "Map locations, media and library"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('tajmap.core.urls')),
    path('api/v1/', include('tajmap.locations.urls')),
    path('api/v1/', include('tajmap.library.urls')),
    re_path(r'^media/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT}),
    re_path(r'^static/(?P<path>.*)$', serve, {'document_root': settings.STATIC_ROOT}),
]
