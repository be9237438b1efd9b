from django.contrib import admin
from .models import Book


@admin.register(Book)
class BookAdmin(admin.ModelAdmin):
    list_display = ['title', 'author', 'category', 'year', 'sort_order', 'updated_at']
    list_filter = ['category', 'year']
    list_editable = ['sort_order']
    search_fields = ['title', 'title_ru', 'title_en', 'author']
    readonly_fields = ['created_at', 'updated_at']
    fieldsets = (
        ('Titles', {'fields': ('title', 'title_ru', 'title_en', 'author')}),
        ('Descriptions', {'fields': ('description', 'description_ru', 'description_en')}),
        ('Files', {'fields': ('cover_url', 'document_url')}),
        ('Catalogue', {'fields': ('category', 'year', 'sort_order')}),
        ('Timestamps', {'fields': ('created_at', 'updated_at')}),
    )
