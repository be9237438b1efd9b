# Generated manually

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


HEX_COLOR_VALIDATOR = django.core.validators.RegexValidator(
    message='Enter a hex colour such as #10b981',
    regex='^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$',
)


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='LocationType',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('slug', models.CharField(max_length=50, unique=True, validators=[django.core.validators.RegexValidator(message='Slug may contain only lowercase latin letters, digits and underscores', regex='^[a-z0-9_]+$')])),
                ('name', models.CharField(max_length=200)),
                ('name_ru', models.CharField(blank=True, max_length=200, null=True)),
                ('name_en', models.CharField(blank=True, max_length=200, null=True)),
                ('icon_url', models.TextField(blank=True, null=True)),
                ('color', models.CharField(default='#10b981', max_length=20, validators=[HEX_COLOR_VALIDATOR])),
                ('bg_color', models.CharField(default='#ecfdf5', max_length=20, validators=[HEX_COLOR_VALIDATOR])),
                ('border_color', models.CharField(default='#10b981', max_length=20, validators=[HEX_COLOR_VALIDATOR])),
                ('marker_animation', models.CharField(choices=[('none', 'No animation'), ('pulse', 'Pulse'), ('bounce', 'Bounce'), ('glow', 'Glow')], default='pulse', max_length=20)),
                ('sort_order', models.IntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'location_types',
                'ordering': ['sort_order', 'id'],
            },
        ),
        migrations.CreateModel(
            name='Location',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(db_index=True, max_length=255)),
                ('name_ru', models.CharField(blank=True, max_length=255, null=True)),
                ('name_en', models.CharField(blank=True, max_length=255, null=True)),
                ('description', models.TextField(blank=True, null=True)),
                ('description_ru', models.TextField(blank=True, null=True)),
                ('description_en', models.TextField(blank=True, null=True)),
                ('lat', models.FloatField(validators=[django.core.validators.MinValueValidator(-90), django.core.validators.MaxValueValidator(90)])),
                ('lng', models.FloatField(validators=[django.core.validators.MinValueValidator(-180), django.core.validators.MaxValueValidator(180)])),
                ('image_url', models.TextField(blank=True, null=True)),
                ('video_url', models.TextField(blank=True, null=True)),
                ('location_type', models.CharField(blank=True, db_index=True, max_length=50, null=True)),
                ('founded_year', models.PositiveIntegerField(blank=True, null=True)),
                ('worker_count', models.PositiveIntegerField(blank=True, null=True)),
                ('area', models.CharField(blank=True, max_length=100, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'locations',
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='LocationMedia',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('media_type', models.CharField(choices=[('photo', 'Photo'), ('video', 'Video')], default='photo', max_length=10)),
                ('url', models.TextField()),
                ('caption', models.TextField(blank=True, null=True)),
                ('sort_order', models.IntegerField(default=0)),
                ('is_primary', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('location', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='media', to='locations.location')),
            ],
            options={
                'db_table': 'location_media',
                'ordering': ['sort_order', 'id'],
                'verbose_name_plural': 'location media',
                'indexes': [models.Index(fields=['location', 'sort_order'], name='location_media_order_idx')],
            },
        ),
    ]
