from django.urls import path
from .views import (
    location_list_create, location_detail,
    location_type_list_create, location_type_detail, location_type_by_slug,
    location_media_list_create, location_media_reorder, media_detail,
)

urlpatterns = [
    path('locations/', location_list_create, name='location-list-create'),
    path('locations/<int:pk>/', location_detail, name='location-detail'),
    path('locations/<int:pk>/media/', location_media_list_create, name='location-media-list-create'),
    path('locations/<int:pk>/media/reorder/', location_media_reorder, name='location-media-reorder'),
    path('media/<int:pk>/', media_detail, name='media-detail'),
    path('location-types/', location_type_list_create, name='location-type-list-create'),
    path('location-types/<int:pk>/', location_type_detail, name='location-type-detail'),
    path('location-types/slug/<slug:slug>/', location_type_by_slug, name='location-type-by-slug'),
]
