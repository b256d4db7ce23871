from django.urls import path
from .views import (
    RegisterView,
    LoginView,
    RefreshTokenView,
    MeView,
    AdminUserListView,
    AdminDriverApprovalView,
    AdminUserActivationView,
)

urlpatterns = [
    path("register/", RegisterView.as_view(), name="register"),
    path("login/", LoginView.as_view(), name="login"),
    path("refresh/", RefreshTokenView.as_view(), name="token-refresh"),
    path("me/", MeView.as_view(), name="me"),

    # Admin user management
    path("admin/users/", AdminUserListView.as_view(), name="admin-users"),
    path("admin/drivers/<int:user_id>/approval/", AdminDriverApprovalView.as_view(), name="admin-driver-approval"),
    path("admin/users/<int:user_id>/activation/", AdminUserActivationView.as_view(), name="admin-user-activation"),
]
