import logging

from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from drivers.models import DriverProfile
from notifications.services import send_approval_notification
from .models import User
from .permissions import IsPlatformAdmin
from .serializers import (
    RegisterSerializer,
    LoginSerializer,
    UserSerializer,
    AdminUserSerializer,
    DriverApprovalSerializer,
    UserActivationSerializer,
)

logger = logging.getLogger(__name__)


def _tokens_for(user):
    refresh = RefreshToken.for_user(user)
    return {
        'refresh': str(refresh),
        'access': str(refresh.access_token),
    }


class RegisterView(APIView):
    """
    Register a new user (parent or driver)
    
    POST Body:
    {
        "username": "amara",
        "email": "amara@example.com",
        "password": "password123",
        "role": "parent",  // or "driver"
        "phone_number": "+94771234567"
    }
    """
    permission_classes = (AllowAny,)
    authentication_classes = []
    
    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        if serializer.is_valid():
            user = serializer.save()
            logger.info("Registered %s user %s", user.role, user.id)

            return Response({
                'message': 'User registered successfully',
                'user': UserSerializer(user, context={'request': request}).data,
                'tokens': _tokens_for(user),
            }, status=status.HTTP_201_CREATED)
        
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


class LoginView(APIView):
    """
    Login with username and password to get JWT tokens
    
    POST Body:
    {
        "username": "amara",
        "password": "password123"
    }
    """
    permission_classes = (AllowAny,)
    authentication_classes = []
    
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = serializer.validated_data
        
        return Response({
            "message": "Login successful",
            "user": UserSerializer(user, context={'request': request}).data,
            "tokens": _tokens_for(user),
        }, status=status.HTTP_200_OK)


class RefreshTokenView(APIView):
    """
    Refresh JWT access token
    
    POST Body:
    {
        "refresh": "your_refresh_token"
    }
    """
    permission_classes = (AllowAny,)
    authentication_classes = []
    
    def post(self, request):
        refresh_token = request.data.get('refresh')
        
        if not refresh_token:
            return Response(
                {'error': 'Refresh token is required'},
                status=status.HTTP_400_BAD_REQUEST
            )
        
        try:
            refresh = RefreshToken(refresh_token)
        except TokenError:
            return Response(
                {'error': 'Invalid refresh token'},
                status=status.HTTP_401_UNAUTHORIZED
            )
        return Response({'access': str(refresh.access_token)})


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(UserSerializer(request.user, context={'request': request}).data)

    def patch(self, request):
        serializer = UserSerializer(request.user, data=request.data, partial=True, context={'request': request})
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)


# ==================== Admin User Management ====================

class AdminUserListView(APIView):
    """GET ?role=parent|driver|admin"""
    permission_classes = [IsPlatformAdmin]

    def get(self, request):
        users = User.objects.all().order_by('-date_joined')
        role = request.query_params.get('role')
        if role:
            users = users.filter(role=role)

        serializer = AdminUserSerializer(users, many=True, context={'request': request})
        return Response({"count": len(serializer.data), "users": serializer.data})


class AdminDriverApprovalView(APIView):
    """POST {"approved": true|false}"""
    permission_classes = [IsPlatformAdmin]

    def post(self, request, user_id: int):
        serializer = DriverApprovalSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        approved = serializer.validated_data["approved"]

        profile = DriverProfile.objects.filter(user_id=user_id).first()
        if profile is None:
            return Response({"error": "Driver profile not found"}, status=status.HTTP_404_NOT_FOUND)

        profile.status = 'approved' if approved else 'rejected'
        profile.save(update_fields=['status'])
        send_approval_notification(user_id, approved, admin_id=request.user.id)

        logger.info("Admin %s set driver %s to %s", request.user.id, user_id, profile.status)
        return Response({"message": f"Driver {profile.status}", "user_id": user_id, "status": profile.status})


class AdminUserActivationView(APIView):
    """POST {"is_active": true|false}"""
    permission_classes = [IsPlatformAdmin]

    def post(self, request, user_id: int):
        serializer = UserActivationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = User.objects.filter(id=user_id).first()
        if user is None:
            return Response({"error": "User not found"}, status=status.HTTP_404_NOT_FOUND)
        if user.id == request.user.id:
            return Response({"error": "You cannot deactivate yourself"}, status=status.HTTP_400_BAD_REQUEST)

        user.is_active = serializer.validated_data["is_active"]
        user.save(update_fields=['is_active'])
        return Response(AdminUserSerializer(user, context={'request': request}).data)
