"""
Test suite for the library module
Tests: book CRUD, filters, pagination, categories, caching and localization
"""
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status

from tajmap.core.models import AuditLog
from tajmap.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from tajmap.library.models import Book


class BookModelTests(TestCase):

    def test_defaults_and_ordering(self):
        second = TestDataFactory.create_book(title='B', sort_order=2)
        first = TestDataFactory.create_book(title='A', sort_order=1)
        self.assertEqual(list(Book.objects.all()), [first, second])
        self.assertEqual(first.category, 'general')
        self.assertEqual(str(first), 'A')


class BookAPITests(TestCase):
    """Test book endpoints"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()

    def test_create_book(self):
        self.client.authenticate_user(self.admin)
        data = {
            'title': 'Китоби сурх',
            'title_en': 'Red Book of Tajikistan',
            'author': 'Academy of Sciences',
            'category': 'nature',
            'year': 2017,
            'document_url': '/media/uploads/2024/05/red-book.pdf',
        }
        response = self.client.post('/api/v1/books/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['category'], 'nature')
        self.assertTrue(AuditLog.objects.filter(model_name='Book', action='create').exists())

    def test_create_validation(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/books/', {'title': '   '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['field'], 'title')

        response = self.client.post('/api/v1/books/', {'title': 'Future', 'year': 3000}, format='json')
        self.assertEqual(response.data['field'], 'year')

    def test_blank_category_falls_back_to_general(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/books/', {'title': 'Untitled', 'category': ' '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['category'], 'general')

    def test_create_requires_admin(self):
        response = self.client.post('/api/v1/books/', {'title': 'X'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.post('/api/v1/books/', {'title': 'X'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_update_and_delete(self):
        book = TestDataFactory.create_book(title='Draft', author='Someone')
        self.client.authenticate_user(self.admin)

        response = self.client.put(f'/api/v1/books/{book.id}/', {'title': 'Final'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        book.refresh_from_db()
        self.assertEqual(book.title, 'Final')
        self.assertEqual(book.author, 'Someone')

        response = self.client.delete(f'/api/v1/books/{book.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Book.objects.exists())

    def test_not_found(self):
        response = self.client.get('/api/v1/books/12345/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Book not found')

    def test_list_filters(self):
        TestDataFactory.create_book(title='Glaciers', category='nature', year=2020)
        TestDataFactory.create_book(title='Annual report', category='reports', year=2023, author='Committee')
        TestDataFactory.create_book(title='Birds', category='nature', year=2023)

        response = self.client.get('/api/v1/books/', {'category': 'nature'})
        self.assertEqual([item['title'] for item in response.data], ['Glaciers', 'Birds'])

        response = self.client.get('/api/v1/books/', {'year': 2023})
        self.assertEqual(len(response.data), 2)

        response = self.client.get('/api/v1/books/', {'search': 'committee'})
        self.assertEqual([item['title'] for item in response.data], ['Annual report'])

    def test_invalid_year_filter(self):
        response = self.client.get('/api/v1/books/', {'year': 'soon'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('message', response.data)
        self.assertEqual(response.data['field'], 'year')

    def test_limit_without_page_returns_first_page(self):
        for index in range(3):
            TestDataFactory.create_book(title=f'Book {index}', sort_order=index)

        response = self.client.get('/api/v1/books/', {'limit': 2})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['page'], 1)
        self.assertEqual(response.data['count'], 3)
        self.assertEqual([item['title'] for item in response.data['results']], ['Book 0', 'Book 1'])

        response = self.client.get('/api/v1/books/')
        self.assertEqual(len(response.data), 3)

    def test_pagination(self):
        for index in range(5):
            TestDataFactory.create_book(title=f'Book {index}', sort_order=index)

        response = self.client.get('/api/v1/books/', {'page': 2, 'limit': 2})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 5)
        self.assertEqual(response.data['page'], 2)
        self.assertEqual(response.data['page_size'], 2)
        self.assertEqual(response.data['total_pages'], 3)
        self.assertEqual(response.data['next'], 3)
        self.assertEqual(response.data['previous'], 1)
        self.assertEqual([item['title'] for item in response.data['results']], ['Book 2', 'Book 3'])

    def test_list_cache_invalidated_on_change(self):
        TestDataFactory.create_book(title='One')
        response = self.client.get('/api/v1/books/')
        self.assertEqual(len(response.data), 1)

        TestDataFactory.create_book(title='Two', sort_order=1)
        response = self.client.get('/api/v1/books/')
        self.assertEqual([item['title'] for item in response.data], ['One', 'Two'])

    def test_display_title(self):
        book = TestDataFactory.create_book(title='Пиряххо', title_ru='Ледники')
        response = self.client.get(f'/api/v1/books/{book.id}/', {'lang': 'ru'})
        self.assertEqual(response.data['display']['title'], 'Ледники')
        response = self.client.get(f'/api/v1/books/{book.id}/', {'lang': 'en'})
        self.assertEqual(response.data['display']['title'], 'Пиряххо')

    def test_categories(self):
        TestDataFactory.create_book(category='nature')
        TestDataFactory.create_book(category='nature')
        TestDataFactory.create_book(category='history')

        response = self.client.get('/api/v1/books/categories/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, [
            {'category': 'history', 'count': 1},
            {'category': 'nature', 'count': 2},
        ])
