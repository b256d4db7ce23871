import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('bookings', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='PaymentTransaction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('total_amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('upfront_amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('balance_amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('balance_due_date', models.DateField()),
                ('upfront_paid', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('balance_paid', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('payhere_fee', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('system_commission', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('driver_earning', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('partial', 'Partially Paid'), ('completed', 'Completed'), ('suspended', 'Suspended'), ('failed', 'Failed')], default='pending', max_length=20)),
                ('upfront_paid_at', models.DateTimeField(blank=True, null=True)),
                ('balance_paid_at', models.DateTimeField(blank=True, null=True)),
                ('reminder_three_days_sent', models.BooleanField(default=False)),
                ('reminder_one_day_sent', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('booking', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='payment', to='bookings.booking')),
                ('driver', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='earning_transactions', to=settings.AUTH_USER_MODEL)),
                ('parent', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='payment_transactions', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'payment_transactions',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='PaymentCharge',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('payment_type', models.CharField(choices=[('upfront', 'Upfront'), ('balance', 'Balance')], max_length=10)),
                ('status', models.CharField(choices=[('completed', 'Completed'), ('failed', 'Failed')], max_length=10)),
                ('gateway_transaction_id', models.CharField(blank=True, max_length=100)),
                ('message', models.TextField(blank=True)),
                ('payhere_fee', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('system_commission', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('driver_earning', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('transaction', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='charges', to='payments.paymenttransaction')),
            ],
            options={
                'db_table': 'payment_charges',
                'ordering': ['created_at'],
            },
        ),
        migrations.CreateModel(
            name='DriverWallet',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('total_earnings', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('pending_amount', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('paid_amount', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('driver', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='wallet', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'driver_wallets',
            },
        ),
    ]
