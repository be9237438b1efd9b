"""
Test suite for the locations module
Tests: location/type/media models, CRUD endpoints, gallery ordering, caching, localization and seeding
"""
import io

from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase
from rest_framework import status

from tajmap.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from tajmap.locations.models import Location, LocationType, LocationMedia


class LocationMediaModelTests(TestCase):
    """Test the single-primary rule of a gallery"""

    def setUp(self):
        self.location = TestDataFactory.create_location()

    def test_first_item_becomes_primary(self):
        media = TestDataFactory.create_media(self.location)
        self.assertTrue(media.is_primary)
        self.assertTrue(LocationMedia.objects.get(pk=media.pk).is_primary)

    def test_new_primary_item_is_stored_as_primary(self):
        media = TestDataFactory.create_media(self.location, is_primary=True)
        self.assertTrue(LocationMedia.objects.get(pk=media.pk).is_primary)

    def test_saving_primary_again_keeps_flag(self):
        media = TestDataFactory.create_media(self.location)
        media.caption = 'Main gate'
        media.save()
        self.assertTrue(LocationMedia.objects.get(pk=media.pk).is_primary)

    def test_marking_primary_clears_siblings(self):
        first = TestDataFactory.create_media(self.location, sort_order=0)
        second = TestDataFactory.create_media(self.location, sort_order=1, is_primary=True)
        first.refresh_from_db()
        self.assertFalse(first.is_primary)
        self.assertTrue(second.is_primary)
        self.assertTrue(LocationMedia.objects.get(pk=second.pk).is_primary)
        self.assertEqual(self.location.media.filter(is_primary=True).count(), 1)

    def test_cannot_unset_only_primary(self):
        media = TestDataFactory.create_media(self.location)
        media.is_primary = False
        media.save()
        media.refresh_from_db()
        self.assertTrue(media.is_primary)

    def test_deleting_primary_promotes_next(self):
        first = TestDataFactory.create_media(self.location, sort_order=0)
        TestDataFactory.create_media(self.location, sort_order=5)
        third = TestDataFactory.create_media(self.location, sort_order=2)
        first.delete()
        third.refresh_from_db()
        self.assertTrue(third.is_primary)
        self.assertEqual(self.location.media.filter(is_primary=True).count(), 1)

    def test_primary_is_per_location(self):
        other = TestDataFactory.create_location()
        TestDataFactory.create_media(self.location)
        other_media = TestDataFactory.create_media(other)
        self.assertTrue(other_media.is_primary)

    def test_gallery_order(self):
        late = TestDataFactory.create_media(self.location, sort_order=3)
        early = TestDataFactory.create_media(self.location, sort_order=1)
        self.assertEqual(list(self.location.media.all()), [early, late])

    def test_str(self):
        location = TestDataFactory.create_location(name='Hulbuk')
        self.assertEqual(str(location), 'Hulbuk')
        location_type = TestDataFactory.create_location_type(slug='fortress', name='Қалъа')
        self.assertEqual(str(location_type), 'Қалъа (fortress)')


class LocationAPITests(TestCase):
    """Test location endpoints"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        self.reserve = TestDataFactory.create_location_type(slug='reserve', name='Мамнунгоҳ')

    def test_create_location(self):
        self.client.authenticate_user(self.admin)
        data = {
            'name': 'Тигровая балка',
            'name_en': 'Tigrovaya Balka',
            'lat': 37.27,
            'lng': 68.55,
            'location_type': 'reserve',
            'founded_year': 1938,
            'worker_count': 25,
            'area': '49 786 ha',
        }
        response = self.client.post('/api/v1/locations/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['location_type'], 'reserve')
        self.assertEqual(response.data['area'], '49 786 ha')
        self.assertEqual(Location.objects.count(), 1)

    def test_blank_translation_stored_as_null(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/locations/', {'name': 'Ромит', 'name_ru': '  ', 'lat': 38.8, 'lng': 69.3}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(Location.objects.get().name_ru)

    def test_create_validation(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/locations/', {'name': 'Nowhere', 'lat': 95, 'lng': 10}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['field'], 'lat')

        response = self.client.post('/api/v1/locations/', {'lat': 38, 'lng': 68}, format='json')
        self.assertEqual(response.data['field'], 'name')

    def test_unknown_location_type_rejected(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/locations/', {'name': 'X', 'lat': 38, 'lng': 68, 'location_type': 'nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['field'], 'location_type')

    def test_founded_year_range(self):
        self.client.authenticate_user(self.admin)
        for year in (999, 3000):
            response = self.client.post('/api/v1/locations/', {'name': 'X', 'lat': 38, 'lng': 68, 'founded_year': year}, format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertEqual(response.data['field'], 'founded_year')

    def test_put_changes_only_supplied_fields(self):
        location = TestDataFactory.create_location(name='Old', lat=39.0, lng=70.0, area='5 ha')
        self.client.authenticate_user(self.admin)
        response = self.client.put(f'/api/v1/locations/{location.id}/', {'name': 'New'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        location.refresh_from_db()
        self.assertEqual(location.name, 'New')
        self.assertEqual(location.lat, 39.0)
        self.assertEqual(location.area, '5 ha')

    def test_delete_removes_media(self):
        location = TestDataFactory.create_location()
        TestDataFactory.create_media(location)
        TestDataFactory.create_media(location, sort_order=1)
        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/v1/locations/{location.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Location.objects.filter(pk=location.id).exists())
        self.assertEqual(LocationMedia.objects.count(), 0)

    def test_not_found(self):
        response = self.client.get('/api/v1/locations/424242/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Location not found')

        self.client.authenticate_user(self.admin)
        response = self.client.delete('/api/v1/locations/424242/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_filter_by_type_and_search(self):
        TestDataFactory.create_location(name='Зоркӯл', name_en='Zorkul Reserve', location_type=self.reserve)
        TestDataFactory.create_location(name='Офис', description='Main office in Dushanbe')

        response = self.client.get('/api/v1/locations/', {'type': 'reserve'})
        self.assertEqual([item['name'] for item in response.data], ['Зоркӯл'])

        response = self.client.get('/api/v1/locations/', {'search': 'office'})
        self.assertEqual([item['name'] for item in response.data], ['Офис'])

    def test_filter_by_bbox(self):
        TestDataFactory.create_location(name='Dushanbe', lat=38.56, lng=68.78)
        TestDataFactory.create_location(name='Khorog', lat=37.49, lng=71.55)

        response = self.client.get('/api/v1/locations/', {'bbox': '68,38,69,39'})
        self.assertEqual([item['name'] for item in response.data], ['Dushanbe'])

        response = self.client.get('/api/v1/locations/', {'bbox': '68,38,69'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['field'], 'bbox')

    def test_bbox_across_antimeridian(self):
        TestDataFactory.create_location(name='Fiji', lat=-17.7, lng=178.0)
        TestDataFactory.create_location(name='Dushanbe', lat=38.56, lng=68.78)
        response = self.client.get('/api/v1/locations/', {'bbox': '170,-30,-170,0'})
        self.assertEqual([item['name'] for item in response.data], ['Fiji'])

    def test_list_cache_invalidated_on_change(self):
        TestDataFactory.create_location(name='First')
        response = self.client.get('/api/v1/locations/')
        self.assertEqual(len(response.data), 1)

        TestDataFactory.create_location(name='Second')
        response = self.client.get('/api/v1/locations/')
        self.assertEqual(len(response.data), 2)

    def test_display_uses_requested_language(self):
        location = TestDataFactory.create_location(name='Душанбе', name_en='Dushanbe', description='Пойтахт')
        response = self.client.get(f'/api/v1/locations/{location.id}/', {'lang': 'en'})
        self.assertEqual(response.data['display']['name'], 'Dushanbe')
        self.assertEqual(response.data['display']['description'], 'Пойтахт')

        response = self.client.get('/api/v1/locations/', HTTP_ACCEPT_LANGUAGE='ru')
        self.assertEqual(response.data[0]['display']['name'], 'Душанбе')

    def test_cached_list_is_per_language(self):
        TestDataFactory.create_location(name='Душанбе', name_en='Dushanbe')
        response = self.client.get('/api/v1/locations/', {'lang': 'tj'})
        self.assertEqual(response.data[0]['display']['name'], 'Душанбе')
        response = self.client.get('/api/v1/locations/', {'lang': 'en'})
        self.assertEqual(response.data[0]['display']['name'], 'Dushanbe')


class LocationTypeAPITests(TestCase):
    """Test location type endpoints"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()

    def test_list_ordering_and_counts(self):
        glacier = TestDataFactory.create_location_type(slug='glacier', sort_order=2)
        TestDataFactory.create_location_type(slug='kmz', sort_order=0)
        TestDataFactory.create_location(location_type=glacier)
        TestDataFactory.create_location(location_type=glacier)

        response = self.client.get('/api/v1/location-types/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item['slug'] for item in response.data], ['kmz', 'glacier'])
        self.assertEqual(response.data[0]['location_count'], 0)
        self.assertEqual(response.data[1]['location_count'], 2)

    def test_counts_refresh_after_location_change(self):
        branch = TestDataFactory.create_location_type(slug='branch')
        self.client.get('/api/v1/location-types/')
        TestDataFactory.create_location(location_type=branch)
        response = self.client.get('/api/v1/location-types/')
        self.assertEqual(response.data[0]['location_count'], 1)

    def test_create_defaults(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/location-types/', {'slug': 'school', 'name': 'Мактаб'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['color'], '#10b981')
        self.assertEqual(response.data['marker_animation'], 'pulse')
        self.assertEqual(response.data['location_count'], 0)

    def test_create_validation(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/location-types/', {'slug': 'Bad Slug', 'name': 'X'}, format='json')
        self.assertEqual(response.data['field'], 'slug')

        response = self.client.post('/api/v1/location-types/', {'slug': 'ok', 'name': 'X', 'color': 'green'}, format='json')
        self.assertEqual(response.data['field'], 'color')

        response = self.client.post('/api/v1/location-types/', {'slug': 'ok', 'name': 'X', 'marker_animation': 'spin'}, format='json')
        self.assertEqual(response.data['field'], 'marker_animation')

        TestDataFactory.create_location_type(slug='taken')
        response = self.client.post('/api/v1/location-types/', {'slug': 'taken', 'name': 'X'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['field'], 'slug')

    def test_slug_rename_repoints_locations(self):
        location_type = TestDataFactory.create_location_type(slug='old_slug')
        location = TestDataFactory.create_location(location_type=location_type)
        self.client.get('/api/v1/locations/')

        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/v1/location-types/{location_type.id}/', {'slug': 'new_slug'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        location.refresh_from_db()
        self.assertEqual(location.location_type, 'new_slug')

        response = self.client.get('/api/v1/locations/')
        self.assertEqual(response.data[0]['location_type'], 'new_slug')

    def test_delete_keeps_locations(self):
        location_type = TestDataFactory.create_location_type(slug='branch')
        location = TestDataFactory.create_location(location_type=location_type)
        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/v1/location-types/{location_type.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        location.refresh_from_db()
        self.assertEqual(location.location_type, 'branch')
        self.assertFalse(LocationType.objects.exists())

    def test_get_by_id_and_slug(self):
        location_type = TestDataFactory.create_location_type(slug='reserve', name='Мамнунгоҳ', name_ru='Заповедник')
        response = self.client.get(f'/api/v1/location-types/{location_type.id}/')
        self.assertEqual(response.data['slug'], 'reserve')

        response = self.client.get('/api/v1/location-types/slug/reserve/', {'lang': 'ru'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['display']['name'], 'Заповедник')

        response = self.client.get('/api/v1/location-types/slug/missing/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Location type not found')

    def test_writes_require_admin(self):
        location_type = TestDataFactory.create_location_type()
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.delete(f'/api/v1/location-types/{location_type.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class LocationMediaAPITests(TestCase):
    """Test gallery endpoints"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        self.location = TestDataFactory.create_location()

    def test_add_media_appends(self):
        self.client.authenticate_user(self.admin)
        url = f'/api/v1/locations/{self.location.id}/media/'
        first = self.client.post(url, {'url': '/media/uploads/a.jpg'}, format='json')
        second = self.client.post(url, {'url': '/media/uploads/b.mp4', 'media_type': 'video', 'caption': 'Flyover'}, format='json')
        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertTrue(first.data['is_primary'])
        self.assertEqual(first.data['location_id'], self.location.id)
        self.assertEqual(second.data['sort_order'], 1)
        self.assertFalse(second.data['is_primary'])
        self.assertTrue(LocationMedia.objects.get(pk=first.data['id']).is_primary)
        self.assertFalse(LocationMedia.objects.get(pk=second.data['id']).is_primary)

    def test_add_primary_media_moves_flag(self):
        first = TestDataFactory.create_media(self.location)
        self.client.authenticate_user(self.admin)
        response = self.client.post(f'/api/v1/locations/{self.location.id}/media/',
                                    {'url': '/media/uploads/cover.jpg', 'is_primary': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(LocationMedia.objects.get(pk=response.data['id']).is_primary)
        self.assertFalse(LocationMedia.objects.get(pk=first.id).is_primary)
        self.assertEqual(self.location.media.filter(is_primary=True).count(), 1)

    def test_add_media_validation(self):
        self.client.authenticate_user(self.admin)
        url = f'/api/v1/locations/{self.location.id}/media/'
        response = self.client.post(url, {'url': '   '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['field'], 'url')

        response = self.client.post(url, {'url': '/x.gif', 'media_type': 'audio'}, format='json')
        self.assertEqual(response.data['field'], 'media_type')

        response = self.client.post('/api/v1/locations/99999/media/', {'url': '/x.jpg'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_list_in_gallery_order(self):
        late = TestDataFactory.create_media(self.location, sort_order=2)
        early = TestDataFactory.create_media(self.location, sort_order=0)
        response = self.client.get(f'/api/v1/locations/{self.location.id}/media/')
        self.assertEqual([item['id'] for item in response.data], [early.id, late.id])

    def test_reorder(self):
        first = TestDataFactory.create_media(self.location, sort_order=0)
        second = TestDataFactory.create_media(self.location, sort_order=1)
        third = TestDataFactory.create_media(self.location, sort_order=2)
        url = f'/api/v1/locations/{self.location.id}/media/'
        self.client.get(url)

        self.client.authenticate_user(self.admin)
        response = self.client.post(f'{url}reorder/', {'ids': [third.id, first.id, second.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item['id'] for item in response.data], [third.id, first.id, second.id])

        response = self.client.get(url)
        self.assertEqual([item['sort_order'] for item in response.data], [0, 1, 2])
        self.assertEqual(response.data[0]['id'], third.id)

    def test_reorder_requires_exact_ids(self):
        first = TestDataFactory.create_media(self.location)
        other_media = TestDataFactory.create_media(TestDataFactory.create_location())
        self.client.authenticate_user(self.admin)
        url = f'/api/v1/locations/{self.location.id}/media/reorder/'

        response = self.client.post(url, {'ids': [first.id, other_media.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['field'], 'ids')

        response = self.client.post(url, {'ids': [first.id, first.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_reorder_requires_admin(self):
        media = TestDataFactory.create_media(self.location)
        response = self.client.post(f'/api/v1/locations/{self.location.id}/media/reorder/', {'ids': [media.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_update_media_makes_primary(self):
        first = TestDataFactory.create_media(self.location, sort_order=0)
        second = TestDataFactory.create_media(self.location, sort_order=1)
        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/v1/media/{second.id}/', {'is_primary': True, 'caption': 'Cover'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['caption'], 'Cover')
        first.refresh_from_db()
        self.assertFalse(first.is_primary)

    def test_delete_media_promotes_next(self):
        first = TestDataFactory.create_media(self.location, sort_order=0)
        second = TestDataFactory.create_media(self.location, sort_order=1)
        self.assertTrue(LocationMedia.objects.get(pk=first.id).is_primary)
        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/v1/media/{first.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        second.refresh_from_db()
        self.assertTrue(second.is_primary)

        response = self.client.get(f'/api/v1/locations/{self.location.id}/media/')
        self.assertEqual([item['id'] for item in response.data], [second.id])

    def test_media_not_found(self):
        response = self.client.get('/api/v1/media/99999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Media not found')


class SeedMapCommandTests(TestCase):
    """Test the seed_map management command"""

    def test_seeds_types_and_locations_once(self):
        call_command('seed_map', stdout=io.StringIO())
        self.assertEqual(
            sorted(LocationType.objects.values_list('slug', flat=True)),
            ['branch', 'glacier', 'kmz', 'reserve'],
        )
        self.assertEqual(Location.objects.count(), 3)

        call_command('seed_map', stdout=io.StringIO())
        self.assertEqual(LocationType.objects.count(), 4)
        self.assertEqual(Location.objects.count(), 3)

    def test_sample_locations_skipped_when_map_has_data(self):
        TestDataFactory.create_location(name='Existing')
        call_command('seed_map', stdout=io.StringIO())
        self.assertEqual(Location.objects.count(), 1)
        self.assertEqual(LocationType.objects.count(), 4)

    def test_types_only(self):
        call_command('seed_map', types_only=True, stdout=io.StringIO())
        self.assertEqual(LocationType.objects.count(), 4)
        self.assertFalse(Location.objects.exists())

    def test_seeded_type_translations(self):
        call_command('seed_map', stdout=io.StringIO())
        kmz = LocationType.objects.get(slug='kmz')
        self.assertEqual(kmz.name_en, 'CEP (Headquarters)')
        self.assertEqual(kmz.sort_order, 0)
