from rest_framework.permissions import BasePermission


class IsParent(BasePermission):
    message = "Only parents allowed"

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.role == "parent")


class IsDriver(BasePermission):
    message = "Only drivers allowed"

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.role == "driver")


class IsPlatformAdmin(BasePermission):
    message = "Only admins allowed"

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.is_platform_admin)
