"""
Management command to create or update the admin panel user
"""
import os

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

User = get_user_model()


class Command(BaseCommand):
    help = "Creates or updates the staff user named by ADMIN_USERNAME/ADMIN_PASSWORD"

    def add_arguments(self, parser):
        parser.add_argument('--username', help='Admin username (defaults to $ADMIN_USERNAME)')
        parser.add_argument('--password', help='Admin password (defaults to $ADMIN_PASSWORD)')
        parser.add_argument('--email', default='', help='Admin email address')

    def handle(self, *args, **options):
        username = (options['username'] or os.getenv('ADMIN_USERNAME', '')).strip()
        password = (options['password'] or os.getenv('ADMIN_PASSWORD', '')).strip()

        if not username or not password:
            raise CommandError("Admin username and password are required (--username/--password or ADMIN_USERNAME/ADMIN_PASSWORD)")

        user, created = User.objects.get_or_create(username=username, defaults={'email': options['email']})
        user.is_staff = True
        user.is_superuser = True
        user.is_active = True
        if options['email']:
            user.email = options['email']
        user.set_password(password)
        user.save()

        if created:
            self.stdout.write(self.style.SUCCESS(f"Created admin user '{username}'"))
        else:
            self.stdout.write(self.style.SUCCESS(f"Updated admin user '{username}'"))
