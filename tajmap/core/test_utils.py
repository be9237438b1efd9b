"""
Test utilities and factories for creating test data
"""
import io
import random
import string

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from PIL import Image
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from tajmap.library.models import Book
from tajmap.locations.models import Location, LocationType, LocationMedia

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_lowercase + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', is_staff=False, is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            is_superuser=is_superuser
        )

    @staticmethod
    def create_admin(username=None, password='testpass123'):
        """Create a staff user allowed to use the admin panel"""
        return TestDataFactory.create_user(username=username, password=password, is_staff=True)

    @staticmethod
    def create_location_type(slug=None, name=None, sort_order=0, **extra):
        """Create a test location type"""
        if not slug:
            slug = f'type_{TestDataFactory.random_string(6)}'
        return LocationType.objects.create(
            slug=slug,
            name=name or f'Навъ {slug}',
            sort_order=sort_order,
            **extra
        )

    @staticmethod
    def create_location(name=None, lat=38.5598, lng=68.7870, location_type=None, **extra):
        """Create a test location (defaults to central Dushanbe)"""
        if not name:
            name = f'Location_{TestDataFactory.random_string(6)}'
        if isinstance(location_type, LocationType):
            location_type = location_type.slug
        return Location.objects.create(
            name=name,
            lat=lat,
            lng=lng,
            location_type=location_type,
            **extra
        )

    @staticmethod
    def create_media(location, url=None, media_type='photo', sort_order=0, is_primary=False, caption=None):
        """Create a gallery item"""
        return LocationMedia.objects.create(
            location=location,
            url=url or f'/media/uploads/{TestDataFactory.random_string(8)}.jpg',
            media_type=media_type,
            sort_order=sort_order,
            is_primary=is_primary,
            caption=caption
        )

    @staticmethod
    def create_book(title=None, category='general', year=None, sort_order=0, **extra):
        """Create a test book"""
        if not title:
            title = f'Book_{TestDataFactory.random_string(6)}'
        return Book.objects.create(
            title=title,
            category=category,
            year=year,
            sort_order=sort_order,
            **extra
        )

    @staticmethod
    def create_image_file(name='photo.png', size=(40, 30), color=(16, 185, 129), image_format='PNG',
                          content_type='image/png'):
        """Build an in-memory image upload"""
        buffer = io.BytesIO()
        Image.new('RGB', size, color).save(buffer, format=image_format)
        return SimpleUploadedFile(name, buffer.getvalue(), content_type=content_type)


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
        super().logout()
