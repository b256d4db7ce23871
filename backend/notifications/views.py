from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from .models import Notification
from .serializers import NotificationSerializer


class NotificationListView(APIView):
    """GET: current user's notifications, newest first."""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        notifications = Notification.objects.filter(recipient=request.user)
        if request.query_params.get("unread") in ("1", "true"):
            notifications = notifications.filter(read=False)

        serializer = NotificationSerializer(notifications, many=True)
        return Response({
            "count": len(serializer.data),
            "unread": Notification.objects.filter(recipient=request.user, read=False).count(),
            "notifications": serializer.data,
        })


class NotificationMarkReadView(APIView):
    """POST: mark one notification as read."""
    permission_classes = [IsAuthenticated]

    def post(self, request, notification_id: int):
        updated = Notification.objects.filter(id=notification_id, recipient=request.user).update(read=True)
        if not updated:
            return Response({"error": "Notification not found"}, status=404)
        return Response({"message": "Marked as read", "id": notification_id})


class NotificationMarkAllReadView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        updated = Notification.objects.filter(recipient=request.user, read=False).update(read=True)
        return Response({"message": "All notifications marked as read", "updated": updated})
