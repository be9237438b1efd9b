from django.db import models


class Book(models.Model):
    """Document in the public library: a book, report or brochure"""
    title = models.CharField(max_length=255, db_index=True)  # Tajik
    title_ru = models.CharField(max_length=255, blank=True, null=True)
    title_en = models.CharField(max_length=255, blank=True, null=True)
    description = models.TextField(blank=True, null=True)
    description_ru = models.TextField(blank=True, null=True)
    description_en = models.TextField(blank=True, null=True)
    author = models.CharField(max_length=255, blank=True, null=True)
    cover_url = models.TextField(blank=True, null=True)
    document_url = models.TextField(blank=True, null=True)
    category = models.CharField(max_length=100, default='general', db_index=True)
    year = models.PositiveIntegerField(blank=True, null=True)
    sort_order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.title

    class Meta:
        db_table = 'books'
        ordering = ['sort_order', 'id']
