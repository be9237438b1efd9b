from django.core.validators import MinValueValidator, MaxValueValidator, RegexValidator
from django.db import models, transaction


SLUG_VALIDATOR = RegexValidator(
    regex=r'^[a-z0-9_]+$',
    message='Slug may contain only lowercase latin letters, digits and underscores',
)

HEX_COLOR_VALIDATOR = RegexValidator(
    regex=r'^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$',
    message='Enter a hex colour such as #10b981',
)


class LocationType(models.Model):
    """Category of location, controls how its markers look on the map"""
    ANIMATION_CHOICES = [
        ('none', 'No animation'),
        ('pulse', 'Pulse'),
        ('bounce', 'Bounce'),
        ('glow', 'Glow'),
    ]

    slug = models.CharField(max_length=50, unique=True, validators=[SLUG_VALIDATOR])
    name = models.CharField(max_length=200)  # Tajik
    name_ru = models.CharField(max_length=200, blank=True, null=True)
    name_en = models.CharField(max_length=200, blank=True, null=True)
    icon_url = models.TextField(blank=True, null=True)
    color = models.CharField(max_length=20, default='#10b981', validators=[HEX_COLOR_VALIDATOR])
    bg_color = models.CharField(max_length=20, default='#ecfdf5', validators=[HEX_COLOR_VALIDATOR])
    border_color = models.CharField(max_length=20, default='#10b981', validators=[HEX_COLOR_VALIDATOR])
    marker_animation = models.CharField(max_length=20, choices=ANIMATION_CHOICES, default='pulse')
    sort_order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.slug})"

    class Meta:
        db_table = 'location_types'
        ordering = ['sort_order', 'id']


class Location(models.Model):
    """Point of interest shown on the map"""
    name = models.CharField(max_length=255, db_index=True)  # Tajik
    name_ru = models.CharField(max_length=255, blank=True, null=True)
    name_en = models.CharField(max_length=255, blank=True, null=True)
    description = models.TextField(blank=True, null=True)
    description_ru = models.TextField(blank=True, null=True)
    description_en = models.TextField(blank=True, null=True)
    lat = models.FloatField(validators=[MinValueValidator(-90), MaxValueValidator(90)])
    lng = models.FloatField(validators=[MinValueValidator(-180), MaxValueValidator(180)])
    image_url = models.TextField(blank=True, null=True)
    video_url = models.TextField(blank=True, null=True)
    # Slug of a LocationType; kept as plain text so deleting a type leaves its locations in place
    location_type = models.CharField(max_length=50, blank=True, null=True, db_index=True)
    founded_year = models.PositiveIntegerField(blank=True, null=True)
    worker_count = models.PositiveIntegerField(blank=True, null=True)
    area = models.CharField(max_length=100, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'locations'
        ordering = ['id']


class LocationMedia(models.Model):
    """Photo or video in a location's gallery"""
    MEDIA_TYPE_CHOICES = [
        ('photo', 'Photo'),
        ('video', 'Video'),
    ]

    location = models.ForeignKey(Location, on_delete=models.CASCADE, related_name='media')
    media_type = models.CharField(max_length=10, choices=MEDIA_TYPE_CHOICES, default='photo')
    url = models.TextField()
    caption = models.TextField(blank=True, null=True)
    sort_order = models.IntegerField(default=0)
    is_primary = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.location.name} - {self.media_type} #{self.sort_order}"

    def save(self, *args, **kwargs):
        """Keep exactly one primary item per non-empty gallery"""
        with transaction.atomic():
            gallery = LocationMedia.objects.filter(location_id=self.location_id)
            if self.pk is not None:
                gallery = gallery.exclude(pk=self.pk)
            if not self.is_primary and not gallery.filter(is_primary=True).exists():
                # First item of a gallery without a primary becomes primary
                self.is_primary = True
            super().save(*args, **kwargs)
            if self.is_primary:
                # pk is only known after the insert
                siblings = LocationMedia.objects.filter(location_id=self.location_id).exclude(pk=self.pk)
                siblings.filter(is_primary=True).update(is_primary=False)

    def delete(self, *args, **kwargs):
        """Deleting the primary item promotes the next one in gallery order"""
        with transaction.atomic():
            was_primary = self.is_primary
            location_id = self.location_id
            result = super().delete(*args, **kwargs)
            if was_primary:
                successor = LocationMedia.objects.filter(location_id=location_id).order_by('sort_order', 'id').first()
                if successor is not None:
                    LocationMedia.objects.filter(pk=successor.pk).update(is_primary=True)
            return result

    class Meta:
        db_table = 'location_media'
        ordering = ['sort_order', 'id']
        verbose_name_plural = 'location media'
        indexes = [
            models.Index(fields=['location', 'sort_order'], name='location_media_order_idx'),
        ]
