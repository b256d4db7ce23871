from django.urls import path

from . import views

urlpatterns = [
    path("", views.ParentPaymentListView.as_view(), name="payments"),
    path("booking/<int:booking_id>/", views.BookingPaymentView.as_view(), name="booking-payment"),
    path("wallet/", views.DriverWalletView.as_view(), name="driver-wallet"),
    path("payouts/", views.DriverPayoutListView.as_view(), name="driver-payouts"),
    path("admin/dashboard/", views.AdminPaymentDashboardView.as_view(), name="payment-dashboard"),
    path("admin/payouts/", views.AdminPayoutView.as_view(), name="admin-payouts"),
    path("admin/payouts/<int:payout_id>/settle/", views.AdminPayoutSettleView.as_view(), name="admin-payout-settle"),
]
