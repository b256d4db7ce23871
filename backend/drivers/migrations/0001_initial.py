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
            name='DriverProfile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('gender', models.CharField(blank=True, choices=[('male', 'Male'), ('female', 'Female'), ('other', 'Other')], max_length=10)),
                ('vehicle_type', models.CharField(blank=True, choices=[('van', 'Van'), ('mini van', 'Mini Van'), ('school bus', 'School Bus')], max_length=20)),
                ('vehicle_number', models.CharField(blank=True, max_length=20)),
                ('vehicle_model', models.CharField(blank=True, max_length=100)),
                ('vehicle_capacity', models.PositiveIntegerField(blank=True, null=True)),
                ('route_start_latitude', models.DecimalField(blank=True, decimal_places=6, max_digits=10, null=True)),
                ('route_start_longitude', models.DecimalField(blank=True, decimal_places=6, max_digits=10, null=True)),
                ('route_start_address', models.TextField(blank=True)),
                ('route_end_latitude', models.DecimalField(blank=True, decimal_places=6, max_digits=10, null=True)),
                ('route_end_longitude', models.DecimalField(blank=True, decimal_places=6, max_digits=10, null=True)),
                ('route_end_address', models.TextField(blank=True)),
                ('status', models.CharField(choices=[('pending', 'Pending Approval'), ('approved', 'Approved'), ('rejected', 'Rejected')], default='pending', max_length=20)),
                ('booking_open', models.BooleanField(default=True)),
                ('current_latitude', models.DecimalField(blank=True, decimal_places=6, max_digits=10, null=True)),
                ('current_longitude', models.DecimalField(blank=True, decimal_places=6, max_digits=10, null=True)),
                ('last_location_update', models.DateTimeField(blank=True, null=True)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='driver_profile', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'driver_profiles',
            },
        ),
    ]
