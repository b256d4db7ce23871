from django.contrib import admin

from .models import DriverPayout, DriverWallet, PaymentCharge, PaymentTransaction


class PaymentChargeInline(admin.TabularInline):
    model = PaymentCharge
    extra = 0
    readonly_fields = ("amount", "payment_type", "status", "gateway_transaction_id",
                       "payhere_fee", "system_commission", "driver_earning", "created_at")


@admin.register(PaymentTransaction)
class PaymentTransactionAdmin(admin.ModelAdmin):
    list_display = ("id", "booking", "parent", "driver", "total_amount", "upfront_paid", "balance_paid",
                    "balance_due_date", "status")
    list_filter = ("status",)
    search_fields = ("parent__username", "driver__username")
    inlines = [PaymentChargeInline]


@admin.register(DriverWallet)
class DriverWalletAdmin(admin.ModelAdmin):
    list_display = ("driver", "total_earnings", "pending_amount", "paid_amount", "last_payout_at", "updated_at")
    search_fields = ("driver__username",)


@admin.register(DriverPayout)
class DriverPayoutAdmin(admin.ModelAdmin):
    list_display = ("id", "driver", "batch_id", "amount", "status", "created_at", "processed_at")
    list_filter = ("status",)
    search_fields = ("driver__username", "batch_id")
