"""
Test suite for the core module
Tests: admin sessions, JWT tokens, uploads, error format, audit logs, search and localization
"""
import io
import os
import shutil
import tempfile
from unittest import mock

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, RequestFactory, override_settings
from django.utils import timezone
from PIL import Image
from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework import status
from rest_framework.exceptions import ValidationError

from tajmap.core.exceptions import api_exception_handler, first_error, validation_error_body
from tajmap.core.localization import localized_value, normalize_language, resolve_language
from tajmap.core.models import AuditLog, User
from tajmap.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from tajmap.core.uploads import UploadError, parse_crop_box
from tajmap.core.utils import collect_changes, create_audit_log


class AdminSessionTests(TestCase):
    """Test the browser admin login/logout/session endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin(username='admin', password='s3cret-pass')

    def test_login_success(self):
        """Staff users get a session and the admin flag"""
        response = self.client.post('/api/v1/admin/login/', {'username': 'admin', 'password': 's3cret-pass'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_admin'])
        self.assertEqual(response.data['user']['username'], 'admin')

        response = self.client.get('/api/v1/admin/session/')
        self.assertTrue(response.data['is_admin'])
        self.assertEqual(response.data['user']['username'], 'admin')

    def test_login_trims_credentials(self):
        response = self.client.post('/api/v1/admin/login/', {'username': ' admin ', 'password': 's3cret-pass '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_login_wrong_password(self):
        response = self.client.post('/api/v1/admin/login/', {'username': 'admin', 'password': 'nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['message'], 'Invalid username or password')

    def test_login_non_staff_user(self):
        """Regular users cannot open an admin session"""
        TestDataFactory.create_user(username='visitor', password='s3cret-pass')
        response = self.client.post('/api/v1/admin/login/', {'username': 'visitor', 'password': 's3cret-pass'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_login_missing_password(self):
        response = self.client.post('/api/v1/admin/login/', {'username': 'admin'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['field'], 'password')
        self.assertIn('message', response.data)

    def test_logout(self):
        self.client.post('/api/v1/admin/login/', {'username': 'admin', 'password': 's3cret-pass'}, format='json')
        response = self.client.post('/api/v1/admin/logout/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_admin'])

        response = self.client.get('/api/v1/admin/session/')
        self.assertFalse(response.data['is_admin'])
        self.assertNotIn('user', response.data)

    def test_logout_without_session(self):
        """Logging out always succeeds"""
        response = self.client.post('/api/v1/admin/logout/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_session_sets_csrf_cookie(self):
        response = self.client.get('/api/v1/admin/session/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('csrftoken', response.cookies)

    def test_login_and_logout_are_audited(self):
        self.client.post('/api/v1/admin/login/', {'username': 'admin', 'password': 's3cret-pass'}, format='json')
        self.client.post('/api/v1/admin/logout/')
        self.assertTrue(AuditLog.objects.filter(action='login', user=self.admin).exists())
        self.assertTrue(AuditLog.objects.filter(action='logout', user=self.admin).exists())

    def test_session_login_allows_writes(self):
        """A session cookie is enough to call admin endpoints"""
        self.client.post('/api/v1/admin/login/', {'username': 'admin', 'password': 's3cret-pass'}, format='json')
        response = self.client.post('/api/v1/locations/', {'name': 'Hisor Fortress', 'lat': 38.52, 'lng': 68.55}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)


class TokenAuthTests(TestCase):
    """Test JWT token endpoints used by scripted clients"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin(username='admin', password='s3cret-pass')

    def test_obtain_token_pair(self):
        response = self.client.post('/api/v1/auth/token/', {'username': 'admin', 'password': 's3cret-pass'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

        response = self.client.post('/api/v1/auth/token/refresh/', {'refresh': response.data['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_token_denied_for_non_staff(self):
        TestDataFactory.create_user(username='visitor', password='s3cret-pass')
        response = self.client.post('/api/v1/auth/token/', {'username': 'visitor', 'password': 's3cret-pass'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn('message', response.data)

    def test_token_wrong_password(self):
        response = self.client.post('/api/v1/auth/token/', {'username': 'admin', 'password': 'wrong'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_bearer_token_allows_writes(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/location-types/', {'slug': 'museum', 'name': 'Осорхона'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)


class PermissionTests(TestCase):
    """Reads are public; writes need an admin"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_anonymous_write_rejected(self):
        response = self.client.post('/api/v1/locations/', {'name': 'X', 'lat': 1, 'lng': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn('message', response.data)

    def test_non_admin_write_forbidden(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.post('/api/v1/locations/', {'name': 'X', 'lat': 1, 'lng': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['message'], 'Admin access required')

    def test_anonymous_read_allowed(self):
        response = self.client.get('/api/v1/locations/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)


class ErrorFormatTests(TestCase):
    """Test the API error body"""

    def test_first_error_walks_nested_errors(self):
        detail = {'items': [{}, {'quantity': ['Must be positive']}]}
        self.assertEqual(first_error(detail), ('items.1.quantity', 'Must be positive'))

    def test_non_field_errors_have_no_field(self):
        body = validation_error_body({'non_field_errors': ['Bad combination']})
        self.assertEqual(body['message'], 'Bad combination')
        self.assertNotIn('field', body)

    def test_validation_error_body(self):
        response = api_exception_handler(ValidationError({'lat': ['This field is required.']}), {})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['field'], 'lat')
        self.assertEqual(response.data['message'], 'This field is required.')
        self.assertIn('errors', response.data)

    def test_unexpected_error_becomes_500(self):
        response = api_exception_handler(RuntimeError('boom'), {'view': None})
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {'message': 'An unexpected error occurred'})

    def test_not_found_message(self):
        response = self.client.get('/api/v1/locations/99999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json()['message'], 'Location not found')


class UploadTests(TestCase):
    """Test file uploads (stored under a temporary MEDIA_ROOT)"""

    def setUp(self):
        self.media_root = tempfile.mkdtemp()
        self.settings_override = override_settings(MEDIA_ROOT=self.media_root, MEDIA_URL='/media/')
        self.settings_override.enable()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def tearDown(self):
        self.settings_override.disable()
        shutil.rmtree(self.media_root, ignore_errors=True)

    def stored_path(self, url):
        return os.path.join(self.media_root, url[len('/media/'):])

    def test_upload_image(self):
        response = self.client.post('/api/v1/upload/', {'file': TestDataFactory.create_image_file()}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['kind'], 'image')
        self.assertEqual(response.data['name'], 'photo.png')
        self.assertEqual(response.data['content_type'], 'image/png')
        self.assertRegex(response.data['url'], r'^/media/uploads/\d{4}/\d{2}/[0-9a-f]{32}\.png$')
        self.assertTrue(os.path.exists(self.stored_path(response.data['url'])))

    def test_upload_with_crop(self):
        data = {
            'file': TestDataFactory.create_image_file(name='photo.jpg', image_format='JPEG', content_type='image/jpeg'),
            'crop_x': 5, 'crop_y': 5, 'crop_width': 20, 'crop_height': 10,
        }
        response = self.client.post('/api/v1/upload/', data, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['content_type'], 'image/png')
        self.assertTrue(response.data['url'].endswith('.png'))
        with Image.open(self.stored_path(response.data['url'])) as image:
            self.assertEqual(image.size, (20, 10))

    def test_crop_outside_image_rejected(self):
        data = {
            'file': TestDataFactory.create_image_file(),
            'crop_x': 0, 'crop_y': 0, 'crop_width': 100, 'crop_height': 10,
        }
        response = self.client.post('/api/v1/upload/', data, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['field'], 'crop_width')

    def test_non_finite_crop_value_rejected(self):
        data = {
            'file': TestDataFactory.create_image_file(),
            'crop_x': 'inf', 'crop_y': 0, 'crop_width': 10, 'crop_height': 10,
        }
        response = self.client.post('/api/v1/upload/', data, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['field'], 'crop_x')
        self.assertEqual(response.data['message'], 'crop_x must be a number')

    def test_partial_crop_box_rejected(self):
        data = {'file': TestDataFactory.create_image_file(), 'crop_x': 0}
        response = self.client.post('/api/v1/upload/', data, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['field'], 'crop_y')

    def test_upload_document(self):
        document = SimpleUploadedFile('report.pdf', b'%PDF-1.4 test document', content_type='application/pdf')
        response = self.client.post('/api/v1/upload/', {'file': document}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['kind'], 'document')

    def test_missing_file(self):
        response = self.client.post('/api/v1/upload/', {}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'No file uploaded')

    def test_unsupported_type(self):
        program = SimpleUploadedFile('tool.exe', b'MZ\x90\x00', content_type='application/x-msdownload')
        response = self.client.post('/api/v1/upload/', {'file': program}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Unsupported file type', response.data['message'])

    def test_svg_rejected(self):
        drawing = SimpleUploadedFile(
            'logo.svg', b'<svg xmlns="http://www.w3.org/2000/svg"><script>alert(1)</script></svg>',
            content_type='image/svg+xml',
        )
        response = self.client.post('/api/v1/upload/', {'file': drawing}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Unsupported file type', response.data['message'])

    def test_corrupt_image_rejected(self):
        broken = SimpleUploadedFile('broken.png', b'definitely not a png', content_type='image/png')
        response = self.client.post('/api/v1/upload/', {'file': broken}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'File is not a valid image')

    def test_file_too_large(self):
        with override_settings(MAX_UPLOAD_SIZE=16):
            response = self.client.post('/api/v1/upload/', {'file': TestDataFactory.create_image_file()}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('too large', response.data['message'])

    def test_upload_requires_admin(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.post('/api/v1/upload/', {'file': TestDataFactory.create_image_file()}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_upload_is_audited(self):
        self.client.post('/api/v1/upload/', {'file': TestDataFactory.create_image_file()}, format='multipart')
        self.assertTrue(AuditLog.objects.filter(action='upload', user=self.admin).exists())

    def test_parse_crop_box(self):
        self.assertIsNone(parse_crop_box({}))
        self.assertEqual(
            parse_crop_box({'crop_x': '1', 'crop_y': '2', 'crop_width': '3.0', 'crop_height': '4'}),
            (1, 2, 3, 4),
        )
        with self.assertRaises(UploadError):
            parse_crop_box({'crop_x': '-1', 'crop_y': '0', 'crop_width': '3', 'crop_height': '4'})
        with self.assertRaises(UploadError):
            parse_crop_box({'crop_x': '0', 'crop_y': '0', 'crop_width': '0', 'crop_height': '4'})
        for bad in ('inf', '-inf', 'nan', 'ten'):
            with self.assertRaises(UploadError):
                parse_crop_box({'crop_x': '0', 'crop_y': '0', 'crop_width': bad, 'crop_height': '4'})


class AuditLogTests(TestCase):
    """Test audit log API and helpers"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_mutations_are_logged(self):
        response = self.client.post('/api/v1/locations/', {'name': 'Nurek Dam', 'lat': 38.37, 'lng': 69.35}, format='json')
        location_id = response.data['id']
        self.client.patch(f'/api/v1/locations/{location_id}/', {'name': 'Nurek'}, format='json')
        self.client.delete(f'/api/v1/locations/{location_id}/')

        actions = list(AuditLog.objects.filter(model_name='Location').values_list('action', flat=True))
        self.assertCountEqual(actions, ['create', 'update', 'delete'])
        update_log = AuditLog.objects.get(model_name='Location', action='update')
        self.assertEqual(update_log.changes['name'], {'old': 'Nurek Dam', 'new': 'Nurek'})

    def test_list_and_filter(self):
        create_audit_log(action='create', model_name='Book', object_id=1, user=self.admin)
        create_audit_log(action='delete', model_name='Location', object_id=2, user=self.admin)

        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

        response = self.client.get('/api/v1/audit-logs/', {'action': 'delete'})
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['model_name'], 'Location')

        response = self.client.get('/api/v1/audit-logs/', {'model': 'Book'})
        self.assertEqual(len(response.data), 1)

    def test_filter_by_date(self):
        create_audit_log(action='create', model_name='Book', object_id=1, user=self.admin)
        today = timezone.localdate().isoformat()

        response = self.client.get('/api/v1/audit-logs/', {'date_from': today, 'date_to': today})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

        response = self.client.get('/api/v1/audit-logs/', {'date_from': '2000-01-01', 'date_to': '2000-01-02'})
        self.assertEqual(response.data, [])

    def test_malformed_date_rejected(self):
        response = self.client.get('/api/v1/audit-logs/', {'date_from': 'yesterday'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['field'], 'date_from')
        self.assertIn('message', response.data)

        response = self.client.get('/api/v1/audit-logs/', {'date_to': '2024-13-40'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['field'], 'date_to')

    def test_detail(self):
        log = create_audit_log(action='create', model_name='Book', object_id=7, user=self.admin, object_name='Atlas')
        response = self.client.get(f'/api/v1/audit-logs/{log.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['object_name'], 'Atlas')

        response = self.client.get('/api/v1/audit-logs/99999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_requires_admin(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_incomplete_entry_is_skipped(self):
        self.assertIsNone(create_audit_log(action='create', model_name='Book'))
        self.assertFalse(AuditLog.objects.exists())

    def test_collect_changes(self):
        location = TestDataFactory.create_location(name='Khujand')
        changes = collect_changes(location, {'name': 'Khujand', 'lat': 40.28})
        self.assertEqual(list(changes), ['lat'])


class GlobalSearchTests(TestCase):
    """Test search across locations, location types and books"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        TestDataFactory.create_location_type(slug='reserve', name='Мамнунгоҳ', name_en='Nature reserves')
        TestDataFactory.create_location(name='Искандаркӯл', name_ru='Искандеркуль', name_en='Iskanderkul Lake')
        TestDataFactory.create_location(name='Ҳисор', name_en='Hisor Fortress')
        TestDataFactory.create_book(title='Пиряххои Тоҷикистон', title_en='Glaciers of Tajikistan')

    def test_search_matches_every_language(self):
        response = self.client.get('/api/v1/search/', {'q': 'Искандеркуль'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['locations']), 1)

        response = self.client.get('/api/v1/search/', {'q': 'lake'})
        self.assertEqual(response.data['locations'][0]['name_en'], 'Iskanderkul Lake')

    def test_search_types_and_books(self):
        response = self.client.get('/api/v1/search/', {'q': 'reserve'})
        self.assertEqual(len(response.data['location_types']), 1)

        response = self.client.get('/api/v1/search/', {'q': 'glaciers'})
        self.assertEqual(len(response.data['books']), 1)

    def test_empty_query(self):
        response = self.client.get('/api/v1/search/', {'q': '  '})
        self.assertEqual(response.data, {'locations': [], 'location_types': [], 'books': []})


class LocalizationTests(TestCase):
    """Test content language resolution"""

    def setUp(self):
        self.factory = RequestFactory()

    def test_lang_parameter_wins(self):
        request = self.factory.get('/', {'lang': 'ru'}, HTTP_ACCEPT_LANGUAGE='en')
        self.assertEqual(resolve_language(request), 'ru')

    def test_accept_language(self):
        request = self.factory.get('/', HTTP_ACCEPT_LANGUAGE='fr-FR,en-US;q=0.8,ru;q=0.5')
        self.assertEqual(resolve_language(request), 'en')

    def test_default_language(self):
        request = self.factory.get('/', {'lang': 'de'})
        self.assertEqual(resolve_language(request), 'tj')
        self.assertEqual(resolve_language(None), 'tj')

    def test_iso_code_for_tajik(self):
        self.assertEqual(normalize_language('tg-TJ'), 'tj')
        self.assertIsNone(normalize_language('xx'))

    def test_localized_value_falls_back(self):
        location = TestDataFactory.create_location(name='Душанбе', name_en='Dushanbe')
        self.assertEqual(localized_value(location, 'name', 'en'), 'Dushanbe')
        self.assertEqual(localized_value(location, 'name', 'ru'), 'Душанбе')
        self.assertEqual(localized_value(location, 'name', 'tj'), 'Душанбе')


class EnsureAdminCommandTests(TestCase):
    """Test the ensure_admin management command"""

    def test_creates_and_updates_admin(self):
        call_command('ensure_admin', username='boss', password='first-pass', stdout=io.StringIO())
        user = User.objects.get(username='boss')
        self.assertTrue(user.is_staff)
        self.assertTrue(user.check_password('first-pass'))

        call_command('ensure_admin', username='boss', password='second-pass', stdout=io.StringIO())
        user.refresh_from_db()
        self.assertTrue(user.check_password('second-pass'))
        self.assertEqual(User.objects.filter(username='boss').count(), 1)

    def test_reads_environment(self):
        with mock.patch.dict(os.environ, {'ADMIN_USERNAME': 'envadmin', 'ADMIN_PASSWORD': 'env-pass'}):
            call_command('ensure_admin', stdout=io.StringIO())
        self.assertTrue(User.objects.get(username='envadmin').is_staff)

    def test_missing_credentials(self):
        with mock.patch.dict(os.environ, {'ADMIN_USERNAME': '', 'ADMIN_PASSWORD': ''}):
            with self.assertRaises(CommandError):
                call_command('ensure_admin', stdout=io.StringIO())
