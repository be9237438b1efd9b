from django.utils import timezone
from rest_framework import serializers

from tajmap.core.serializers import LocalizedSerializerMixin
from .models import Book


class BookSerializer(LocalizedSerializerMixin, serializers.ModelSerializer):
    localized_fields = ('title', 'description')

    class Meta:
        model = Book
        fields = ['id', 'title', 'title_ru', 'title_en', 'description', 'description_ru', 'description_en',
                  'author', 'cover_url', 'document_url', 'category', 'year', 'sort_order', 'display',
                  'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']
        nullable_text_fields = ['title_ru', 'title_en', 'description', 'description_ru', 'description_en',
                                'author', 'cover_url', 'document_url']
        extra_kwargs = {'category': {'allow_blank': True}}

    def validate_title(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Title is required')
        return value

    def validate_category(self, value):
        return value.strip() or 'general'

    def validate_year(self, value):
        if value is not None and value > timezone.now().year + 1:
            raise serializers.ValidationError('Year cannot be in the future')
        return value


class BookCategorySerializer(serializers.Serializer):
    category = serializers.CharField()
    count = serializers.IntegerField()
