import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('bookings', '0001_initial'),
        ('children', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='ActiveRide',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField()),
                ('status', models.CharField(choices=[('in_progress', 'In Progress'), ('completed', 'Completed')], default='in_progress', max_length=20)),
                ('completed_early', models.BooleanField(default=False)),
                ('total_children', models.PositiveIntegerField(default=0)),
                ('picked_up_count', models.PositiveIntegerField(default=0)),
                ('absent_count', models.PositiveIntegerField(default=0)),
                ('dropped_off_count', models.PositiveIntegerField(default=0)),
                ('started_at', models.DateTimeField(auto_now_add=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('driver', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='active_rides', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'active_rides',
                'ordering': ['-date'],
            },
        ),
        migrations.AddConstraint(
            model_name='activeride',
            constraint=models.UniqueConstraint(fields=('driver', 'date'), name='unique_driver_ride_per_day'),
        ),
        migrations.CreateModel(
            name='RideChild',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('order', models.PositiveIntegerField(default=0)),
                ('full_name', models.CharField(max_length=150)),
                ('pickup_latitude', models.DecimalField(decimal_places=6, max_digits=10)),
                ('pickup_longitude', models.DecimalField(decimal_places=6, max_digits=10)),
                ('pickup_address', models.TextField(blank=True)),
                ('dropoff_latitude', models.DecimalField(decimal_places=6, max_digits=10)),
                ('dropoff_longitude', models.DecimalField(decimal_places=6, max_digits=10)),
                ('dropoff_address', models.TextField(blank=True)),
                ('scheduled_pickup_time', models.CharField(blank=True, max_length=20)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('picked_up', 'Picked Up'), ('absent', 'Absent'), ('dropped_off', 'Dropped Off')], default='pending', max_length=20)),
                ('picked_up_at', models.DateTimeField(blank=True, null=True)),
                ('dropped_off_at', models.DateTimeField(blank=True, null=True)),
                ('notes', models.TextField(blank=True)),
                ('booking', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='ride_records', to='bookings.booking')),
                ('child', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='ride_records', to='children.child')),
                ('ride', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='children', to='rides.activeride')),
            ],
            options={
                'db_table': 'ride_children',
                'ordering': ['order'],
            },
        ),
        migrations.CreateModel(
            name='EmergencyAlert',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('latitude', models.DecimalField(blank=True, decimal_places=6, max_digits=10, null=True)),
                ('longitude', models.DecimalField(blank=True, decimal_places=6, max_digits=10, null=True)),
                ('address', models.TextField(blank=True)),
                ('message', models.TextField()),
                ('parent_ids', models.JSONField(blank=True, default=list)),
                ('nearby_services', models.JSONField(blank=True, default=list)),
                ('status', models.CharField(choices=[('active', 'Active'), ('resolved', 'Resolved')], default='active', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('resolved_at', models.DateTimeField(blank=True, null=True)),
                ('driver', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='emergency_alerts', to=settings.AUTH_USER_MODEL)),
                ('ride', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='emergency_alerts', to='rides.activeride')),
            ],
            options={
                'db_table': 'emergency_alerts',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='TrackingSession',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('is_active', models.BooleanField(default=True)),
                ('last_latitude', models.DecimalField(blank=True, decimal_places=6, max_digits=10, null=True)),
                ('last_longitude', models.DecimalField(blank=True, decimal_places=6, max_digits=10, null=True)),
                ('total_distance_km', models.FloatField(default=0)),
                ('started_at', models.DateTimeField(auto_now_add=True)),
                ('last_update_at', models.DateTimeField(blank=True, null=True)),
                ('stopped_at', models.DateTimeField(blank=True, null=True)),
                ('driver', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='tracking_sessions', to=settings.AUTH_USER_MODEL)),
                ('ride', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='tracking_sessions', to='rides.activeride')),
            ],
            options={
                'db_table': 'tracking_sessions',
                'ordering': ['-started_at'],
            },
        ),
    ]
