import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
        ('fleet', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('pickup_address', models.CharField(max_length=255, verbose_name='Pickup address')),
                ('delivery_address', models.CharField(max_length=255, verbose_name='Delivery address')),
                ('package_description', models.TextField(blank=True, verbose_name='Package description')),
                ('delivery_instructions', models.TextField(blank=True, verbose_name='Delivery instructions')),
                ('priority', models.CharField(choices=[('low', 'Low'), ('normal', 'Normal'), ('high', 'High'), ('urgent', 'Urgent')], default='normal', max_length=10, verbose_name='Priority')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('assigned', 'Driver assigned'), ('picked_up', 'Picked up'), ('in_transit', 'In transit'), ('delivered', 'Delivered'), ('cancelled', 'Cancelled')], default='pending', max_length=20, verbose_name='Status')),
                ('notes', models.TextField(blank=True, verbose_name='Notes')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('assigned_at', models.DateTimeField(blank=True, null=True)),
                ('picked_up_at', models.DateTimeField(blank=True, null=True)),
                ('in_transit_at', models.DateTimeField(blank=True, null=True)),
                ('delivered_at', models.DateTimeField(blank=True, null=True)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('customer', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='orders', to='core.customer', verbose_name='Customer')),
                ('driver', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='orders', to='fleet.driver', verbose_name='Driver')),
            ],
            options={
                'verbose_name': 'Order',
                'verbose_name_plural': 'Orders',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status', 'created_at'], name='logistics_o_status_3f2a61_idx'),
                    models.Index(fields=['driver', 'status'], name='logistics_o_driver__8e4b27_idx'),
                    models.Index(fields=['customer', 'created_at'], name='logistics_o_custome_a91c05_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('status__in', ['pending', 'assigned', 'picked_up', 'in_transit', 'delivered', 'cancelled'])), name='order_status_valid'),
                    models.CheckConstraint(condition=models.Q(('priority__in', ['low', 'normal', 'high', 'urgent'])), name='order_priority_valid'),
                    models.CheckConstraint(condition=models.Q(models.Q(('driver__isnull', True), ('status', 'pending')), models.Q(('driver__isnull', False), ('status__in', ['assigned', 'picked_up', 'in_transit', 'delivered'])), ('status', 'cancelled'), _connector='OR'), name='order_driver_matches_status'),
                ],
            },
        ),
        migrations.CreateModel(
            name='TrackingPing',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('latitude', models.FloatField(verbose_name='Latitude')),
                ('longitude', models.FloatField(verbose_name='Longitude')),
                ('timestamp', models.DateTimeField(default=django.utils.timezone.now, verbose_name='Reported at')),
                ('recorded_at', models.DateTimeField(auto_now_add=True, verbose_name='Recorded at')),
                ('driver', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='tracking_pings', to='fleet.driver', verbose_name='Driver')),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='tracking_pings', to='logistics.order', verbose_name='Order')),
            ],
            options={
                'verbose_name': 'Tracking ping',
                'verbose_name_plural': 'Tracking pings',
                'ordering': ['-timestamp', '-id'],
                'indexes': [models.Index(fields=['order', '-timestamp'], name='logistics_t_order_i_5d7e90_idx')],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('latitude__gte', -90), ('latitude__lte', 90)), name='tracking_latitude_range'),
                    models.CheckConstraint(condition=models.Q(('longitude__gte', -180), ('longitude__lte', 180)), name='tracking_longitude_range'),
                ],
            },
        ),
    ]
