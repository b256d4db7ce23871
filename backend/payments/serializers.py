from rest_framework import serializers

from .models import DriverPayout, DriverWallet, PaymentCharge, PaymentTransaction


class PaymentChargeSerializer(serializers.ModelSerializer):
    class Meta:
        model = PaymentCharge
        fields = ['id', 'amount', 'payment_type', 'status', 'gateway_transaction_id', 'message',
                  'payhere_fee', 'system_commission', 'driver_earning', 'created_at']
        read_only_fields = fields


class PaymentTransactionSerializer(serializers.ModelSerializer):
    total_paid = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    remaining_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    charges = PaymentChargeSerializer(many=True, read_only=True)

    class Meta:
        model = PaymentTransaction
        fields = ['id', 'booking', 'parent', 'driver', 'status',
                  'total_amount', 'upfront_amount', 'balance_amount', 'balance_due_date',
                  'upfront_paid', 'balance_paid', 'total_paid', 'remaining_amount',
                  'payhere_fee', 'system_commission', 'driver_earning',
                  'upfront_paid_at', 'balance_paid_at', 'charges', 'created_at']
        read_only_fields = fields


class DriverWalletSerializer(serializers.ModelSerializer):
    class Meta:
        model = DriverWallet
        fields = ['total_earnings', 'pending_amount', 'paid_amount', 'last_payout_at', 'updated_at']
        read_only_fields = fields


class PaymentRequestSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    payment_type = serializers.ChoiceField(choices=['upfront', 'balance'])


class DriverPayoutSerializer(serializers.ModelSerializer):
    class Meta:
        model = DriverPayout
        fields = ['id', 'driver', 'batch_id', 'amount', 'status', 'payment_method', 'failure_reason',
                  'created_at', 'processed_at']
        read_only_fields = fields


class ManualPayoutSerializer(serializers.Serializer):
    driver_id = serializers.IntegerField(required=False)


class PayoutSettlementSerializer(serializers.Serializer):
    succeeded = serializers.BooleanField()
    reason = serializers.CharField(required=False, allow_blank=True, default="")
