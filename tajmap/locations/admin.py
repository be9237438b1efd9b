from django.contrib import admin
from .models import Location, LocationType, LocationMedia


class LocationMediaInline(admin.TabularInline):
    model = LocationMedia
    extra = 0
    fields = ['media_type', 'url', 'caption', 'sort_order', 'is_primary']
    ordering = ['sort_order', 'id']


@admin.register(LocationType)
class LocationTypeAdmin(admin.ModelAdmin):
    list_display = ['slug', 'name', 'name_ru', 'name_en', 'color', 'marker_animation', 'sort_order']
    list_editable = ['sort_order']
    search_fields = ['slug', 'name', 'name_ru', 'name_en']
    ordering = ['sort_order', 'id']


@admin.register(Location)
class LocationAdmin(admin.ModelAdmin):
    list_display = ['name', 'name_ru', 'location_type', 'lat', 'lng', 'founded_year', 'updated_at']
    list_filter = ['location_type', 'created_at']
    search_fields = ['name', 'name_ru', 'name_en', 'description', 'description_ru', 'description_en']
    ordering = ['name']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [LocationMediaInline]
    fieldsets = (
        ('Names', {'fields': ('name', 'name_ru', 'name_en')}),
        ('Descriptions', {'fields': ('description', 'description_ru', 'description_en')}),
        ('Position', {'fields': ('lat', 'lng', 'location_type')}),
        ('Media', {'fields': ('image_url', 'video_url')}),
        ('Facts', {'fields': ('founded_year', 'worker_count', 'area')}),
        ('Timestamps', {'fields': ('created_at', 'updated_at')}),
    )


@admin.register(LocationMedia)
class LocationMediaAdmin(admin.ModelAdmin):
    list_display = ['location', 'media_type', 'url', 'sort_order', 'is_primary', 'created_at']
    list_filter = ['media_type', 'is_primary']
    search_fields = ['location__name', 'caption', 'url']
    ordering = ['location', 'sort_order']
