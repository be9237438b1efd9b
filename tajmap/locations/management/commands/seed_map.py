"""
Management command to seed the default location types and sample locations
"""
from django.core.management.base import BaseCommand
from django.db import transaction

from tajmap.core.cache_signals import suspend_cache_signals
from tajmap.locations.models import Location, LocationType


DEFAULT_LOCATION_TYPES = [
    {
        'slug': 'kmz',
        'name': 'КМЗ (Идоракунии асосӣ)',
        'name_ru': 'КМЗ (Головное управление)',
        'name_en': 'CEP (Headquarters)',
        'color': '#16a34a',
        'bg_color': '#dcfce7',
        'border_color': '#22c55e',
        'marker_animation': 'pulse',
        'sort_order': 0,
    },
    {
        'slug': 'branch',
        'name': 'Шуъбаҳо',
        'name_ru': 'Шуъбахо (Филиалы)',
        'name_en': 'Branch offices',
        'color': '#2563eb',
        'bg_color': '#dbeafe',
        'border_color': '#3b82f6',
        'marker_animation': 'none',
        'sort_order': 1,
    },
    {
        'slug': 'reserve',
        'name': 'Мамнунгоҳ',
        'name_ru': 'Мамнунгох (Заповедники)',
        'name_en': 'Nature reserves',
        'color': '#059669',
        'bg_color': '#d1fae5',
        'border_color': '#10b981',
        'marker_animation': 'glow',
        'sort_order': 2,
    },
    {
        'slug': 'glacier',
        'name': 'Пиряххо',
        'name_ru': 'Пиряххо (Ледники)',
        'name_en': 'Glaciers',
        'color': '#06b6d4',
        'bg_color': '#cffafe',
        'border_color': '#22d3ee',
        'marker_animation': 'none',
        'sort_order': 3,
    },
]

SAMPLE_LOCATIONS = [
    {
        'name': 'Dushanbe Flagpole',
        'description': 'One of the tallest flagpoles in the world, located in the capital city of Dushanbe.',
        'lat': 38.5737,
        'lng': 68.7864,
        'image_url': 'https://upload.wikimedia.org/wikipedia/commons/thumb/c/c5/Dushanbe_flagpole.jpg/1200px-Dushanbe_flagpole.jpg',
    },
    {
        'name': 'Pamir Highway',
        'description': 'A scenic high-altitude road traversing the Pamir Mountains.',
        'lat': 38.4127,
        'lng': 73.9930,
        'image_url': 'https://upload.wikimedia.org/wikipedia/commons/thumb/1/1e/Pamir_Highway_M41.jpg/1200px-Pamir_Highway_M41.jpg',
    },
    {
        'name': 'Iskanderkul Lake',
        'description': 'A stunning mountain lake named after Alexander the Great.',
        'lat': 39.0769,
        'lng': 68.3697,
        'image_url': 'https://upload.wikimedia.org/wikipedia/commons/thumb/8/8f/Iskanderkul.jpg/1200px-Iskanderkul.jpg',
        'location_type': 'reserve',
    },
]


class Command(BaseCommand):
    help = "Creates the default location types and, on an empty map, three sample locations"

    def add_arguments(self, parser):
        parser.add_argument(
            '--types-only',
            action='store_true',
            help='Only create the default location types',
        )

    def handle(self, *args, **options):
        types_created = 0
        locations_created = 0

        with suspend_cache_signals(), transaction.atomic():
            for type_data in DEFAULT_LOCATION_TYPES:
                defaults = {key: value for key, value in type_data.items() if key != 'slug'}
                _, created = LocationType.objects.get_or_create(slug=type_data['slug'], defaults=defaults)
                if created:
                    types_created += 1
                    self.stdout.write(f"  Created location type: {type_data['slug']}")

            if not options['types_only']:
                if Location.objects.exists():
                    self.stdout.write(self.style.WARNING("Locations already present, sample locations skipped"))
                else:
                    for location_data in SAMPLE_LOCATIONS:
                        Location.objects.create(**location_data)
                        locations_created += 1
                        self.stdout.write(f"  Created location: {location_data['name']}")

        self.stdout.write(self.style.SUCCESS(
            f"Seeding done: {types_created} location types, {locations_created} locations created"
        ))
