import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Driver',
            fields=[
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, primary_key=True, related_name='driver_profile', serialize=False, to=settings.AUTH_USER_MODEL, verbose_name='User')),
                ('vehicle_type', models.CharField(db_index=True, help_text='e.g. bike, motorbike, car, van', max_length=30, verbose_name='Vehicle type')),
                ('license_number', models.CharField(blank=True, max_length=50, verbose_name='License number')),
                ('status', models.CharField(choices=[('active', 'Active'), ('inactive', 'Inactive'), ('busy', 'Busy'), ('offline', 'Offline')], default='active', max_length=20, verbose_name='Status')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Driver',
                'verbose_name_plural': 'Drivers',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['status', 'vehicle_type'], name='fleet_drive_status_5c1d0e_idx')],
            },
        ),
    ]
