from decimal import Decimal

from django.db import models
from django.conf import settings


class PaymentTransaction(models.Model):
    """Two-installment (upfront / balance) payment plan for one booking"""

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('partial', 'Partially Paid'),
        ('completed', 'Completed'),
        ('suspended', 'Suspended'),
        ('failed', 'Failed'),
    ]

    booking = models.OneToOneField(
        'bookings.Booking',
        on_delete=models.CASCADE,
        related_name='payment'
    )
    parent = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='payment_transactions'
    )
    driver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='earning_transactions'
    )

    # Plan
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    upfront_amount = models.DecimalField(max_digits=12, decimal_places=2)
    balance_amount = models.DecimalField(max_digits=12, decimal_places=2)
    balance_due_date = models.DateField()

    # Paid so far
    upfront_paid = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    balance_paid = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    # Accumulated split of everything paid
    payhere_fee = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    system_commission = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    driver_earning = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')

    upfront_paid_at = models.DateTimeField(null=True, blank=True)
    balance_paid_at = models.DateTimeField(null=True, blank=True)
    reminder_three_days_sent = models.BooleanField(default=False)
    reminder_one_day_sent = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'payment_transactions'
        ordering = ['-created_at']

    @property
    def total_paid(self) -> Decimal:
        return self.upfront_paid + self.balance_paid

    @property
    def remaining_amount(self) -> Decimal:
        return max(Decimal('0'), self.total_amount - self.total_paid)

    def __str__(self):
        return f"Payment #{self.id} - Booking {self.booking_id} - {self.status}"


class PaymentCharge(models.Model):
    """A single gateway charge against a payment transaction"""

    TYPE_CHOICES = [
        ('upfront', 'Upfront'),
        ('balance', 'Balance'),
    ]

    STATUS_CHOICES = [
        ('completed', 'Completed'),
        ('failed', 'Failed'),
    ]

    transaction = models.ForeignKey(
        PaymentTransaction,
        on_delete=models.CASCADE,
        related_name='charges'
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    payment_type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES)
    gateway_transaction_id = models.CharField(max_length=100, blank=True)
    message = models.TextField(blank=True)

    payhere_fee = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    system_commission = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    driver_earning = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'payment_charges'
        ordering = ['created_at']

    def __str__(self):
        return f"Charge #{self.id} - {self.payment_type} {self.amount} ({self.status})"


class DriverWallet(models.Model):
    """Running earnings balance for a driver"""

    driver = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='wallet'
    )
    total_earnings = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    pending_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    paid_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    last_payout_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'driver_wallets'

    def __str__(self):
        return f"Wallet - {self.driver} - {self.total_earnings}"


class DriverPayout(models.Model):
    """A transfer of a driver's pending wallet balance, one per driver per payout batch"""

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('completed', 'Completed'),
        ('failed', 'Failed'),
    ]

    driver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='payouts'
    )
    batch_id = models.CharField(max_length=50, db_index=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='pending')
    payment_method = models.CharField(max_length=30, default='bank_transfer')
    failure_reason = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    processed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'driver_payouts'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['driver', 'batch_id'], name='unique_driver_payout_per_batch'),
        ]

    def __str__(self):
        return f"Payout #{self.id} - {self.driver} - {self.amount} ({self.status})"
