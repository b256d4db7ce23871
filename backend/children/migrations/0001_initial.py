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
            name='Child',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('full_name', models.CharField(max_length=150)),
                ('date_of_birth', models.DateField()),
                ('gender', models.CharField(choices=[('male', 'Male'), ('female', 'Female'), ('other', 'Other')], max_length=10)),
                ('student_id', models.CharField(blank=True, max_length=50)),
                ('avatar', models.ImageField(blank=True, null=True, upload_to='child_avatars/')),
                ('school_name', models.CharField(max_length=200)),
                ('school_latitude', models.DecimalField(decimal_places=6, max_digits=10)),
                ('school_longitude', models.DecimalField(decimal_places=6, max_digits=10)),
                ('school_address', models.TextField(blank=True)),
                ('pickup_latitude', models.DecimalField(decimal_places=6, max_digits=10)),
                ('pickup_longitude', models.DecimalField(decimal_places=6, max_digits=10)),
                ('pickup_address', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('parent', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='children', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'children',
                'ordering': ['full_name'],
            },
        ),
    ]
