from django.utils import timezone
from rest_framework import serializers

from tajmap.core.serializers import LocalizedSerializerMixin
from .models import Location, LocationType, LocationMedia


class LocationTypeSerializer(LocalizedSerializerMixin, serializers.ModelSerializer):
    localized_fields = ('name',)

    location_count = serializers.SerializerMethodField()

    class Meta:
        model = LocationType
        fields = ['id', 'slug', 'name', 'name_ru', 'name_en', 'icon_url', 'color', 'bg_color',
                  'border_color', 'marker_animation', 'sort_order', 'location_count', 'display',
                  'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']
        nullable_text_fields = ['name_ru', 'name_en', 'icon_url']

    def get_location_count(self, obj):
        annotated = getattr(obj, 'annotated_location_count', None)
        if annotated is not None:
            return annotated
        return Location.objects.filter(location_type=obj.slug).count()


class LocationSerializer(LocalizedSerializerMixin, serializers.ModelSerializer):
    localized_fields = ('name', 'description')

    class Meta:
        model = Location
        fields = ['id', 'name', 'name_ru', 'name_en', 'description', 'description_ru', 'description_en',
                  'lat', 'lng', 'image_url', 'video_url', 'location_type', 'founded_year',
                  'worker_count', 'area', 'display', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']
        nullable_text_fields = ['name_ru', 'name_en', 'description', 'description_ru', 'description_en',
                                'image_url', 'video_url', 'location_type', 'area']

    def validate_location_type(self, value):
        if value in (None, ''):
            return None
        if not LocationType.objects.filter(slug=value).exists():
            raise serializers.ValidationError(f"Unknown location type '{value}'")
        return value

    def validate_founded_year(self, value):
        if value is not None and not 1000 <= value <= timezone.now().year:
            raise serializers.ValidationError(f'Founded year must be between 1000 and {timezone.now().year}')
        return value


class LocationMediaSerializer(serializers.ModelSerializer):
    location_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = LocationMedia
        fields = ['id', 'location_id', 'media_type', 'url', 'caption', 'sort_order', 'is_primary', 'created_at']
        read_only_fields = ['created_at']

    def validate_url(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('URL is required')
        return value


class MediaReorderSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)

    def validate_ids(self, value):
        if len(set(value)) != len(value):
            raise serializers.ValidationError('Duplicate media ids')
        location = self.context['location']
        existing = set(location.media.values_list('id', flat=True))
        if set(value) != existing:
            raise serializers.ValidationError("ids must list exactly this location's media")
        return value
