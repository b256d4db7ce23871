import logging

from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response

from accounts.permissions import IsDriver, IsParent, IsPlatformAdmin
from services.payments import (
    PaymentGatewayError,
    PaymentValidationError,
    PayoutError,
    get_driver_payout_history,
    get_payment_dashboard,
    get_payout_statistics,
    process_payment,
    settle_payout,
    trigger_manual_payout,
)
from .models import DriverWallet, PaymentTransaction
from .serializers import (
    DriverPayoutSerializer,
    DriverWalletSerializer,
    ManualPayoutSerializer,
    PaymentRequestSerializer,
    PaymentTransactionSerializer,
    PayoutSettlementSerializer,
)

logger = logging.getLogger(__name__)


def _get_parent_payment(request, booking_id):
    return PaymentTransaction.objects.filter(booking_id=booking_id, parent=request.user).first()


class BookingPaymentView(APIView):
    """GET the plan for a booking; POST to pay an installment."""
    permission_classes = [IsParent]

    def get(self, request, booking_id: int):
        payment = _get_parent_payment(request, booking_id)
        if payment is None:
            return Response({"error": "Payment not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response(PaymentTransactionSerializer(payment).data)

    def post(self, request, booking_id: int):
        payment = _get_parent_payment(request, booking_id)
        if payment is None:
            return Response({"error": "Payment not found"}, status=status.HTTP_404_NOT_FOUND)

        serializer = PaymentRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        customer = {
            "first_name": request.user.first_name,
            "last_name": request.user.last_name,
            "email": request.user.email,
            "phone": request.user.phone_number,
        }

        try:
            result = process_payment(
                payment,
                serializer.validated_data["amount"],
                serializer.validated_data["payment_type"],
                customer=customer,
            )
        except PaymentValidationError as e:
            return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except PaymentGatewayError as e:
            return Response({"error": str(e)}, status=status.HTTP_502_BAD_GATEWAY)

        return Response({
            "message": result.message or "Payment processed successfully",
            "transaction_id": result.charge.gateway_transaction_id,
            "payment": PaymentTransactionSerializer(result.transaction).data,
        })


class ParentPaymentListView(APIView):
    permission_classes = [IsParent]

    def get(self, request):
        payments = PaymentTransaction.objects.filter(parent=request.user).prefetch_related('charges')
        serializer = PaymentTransactionSerializer(payments, many=True)
        return Response({"count": len(serializer.data), "payments": serializer.data})


class DriverWalletView(APIView):
    permission_classes = [IsDriver]

    def get(self, request):
        wallet, _ = DriverWallet.objects.get_or_create(driver=request.user)
        recent = PaymentTransaction.objects.filter(driver=request.user).prefetch_related('charges')[:20]
        return Response({
            "wallet": DriverWalletSerializer(wallet).data,
            "recent_payments": PaymentTransactionSerializer(recent, many=True).data,
        })


class AdminPaymentDashboardView(APIView):
    permission_classes = [IsPlatformAdmin]

    def get(self, request):
        return Response(get_payment_dashboard())


class DriverPayoutListView(APIView):
    permission_classes = [IsDriver]

    def get(self, request):
        payouts = get_driver_payout_history(request.user.id, limit=20)
        serializer = DriverPayoutSerializer(payouts, many=True)
        return Response({"count": len(serializer.data), "payouts": serializer.data})


class AdminPayoutView(APIView):
    """GET payout statistics; POST to pay out now (one driver or everyone)."""
    permission_classes = [IsPlatformAdmin]

    def get(self, request):
        return Response(get_payout_statistics())

    def post(self, request):
        serializer = ManualPayoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        summary = trigger_manual_payout(serializer.validated_data.get("driver_id"))
        logger.info("Admin %s triggered payout batch %s", request.user.id, summary["batch_id"])
        return Response(summary, status=status.HTTP_201_CREATED)


class AdminPayoutSettleView(APIView):
    permission_classes = [IsPlatformAdmin]

    def post(self, request, payout_id: int):
        serializer = PayoutSettlementSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            payout = settle_payout(
                payout_id,
                serializer.validated_data["succeeded"],
                serializer.validated_data["reason"],
            )
        except PayoutError as e:
            return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(DriverPayoutSerializer(payout).data)
