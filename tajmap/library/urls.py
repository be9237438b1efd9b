from django.urls import path
from .views import book_list_create, book_detail, book_categories

urlpatterns = [
    path('books/', book_list_create, name='book-list-create'),
    path('books/categories/', book_categories, name='book-categories'),
    path('books/<int:pk>/', book_detail, name='book-detail'),
]
