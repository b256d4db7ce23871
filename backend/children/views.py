from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response

from accounts.permissions import IsParent
from .models import Child
from .serializers import ChildSerializer
from .services import delete_child


class ChildListCreateView(APIView):
    permission_classes = [IsParent]

    def get(self, request):
        children = Child.objects.filter(parent=request.user)
        serializer = ChildSerializer(children, many=True, context={"request": request})
        return Response({"count": len(serializer.data), "children": serializer.data})

    def post(self, request):
        serializer = ChildSerializer(data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        child = serializer.save(parent=request.user)
        return Response(ChildSerializer(child, context={"request": request}).data, status=status.HTTP_201_CREATED)


class ChildDetailView(APIView):
    permission_classes = [IsParent]

    def _get_child(self, request, child_id):
        return Child.objects.filter(id=child_id, parent=request.user).first()

    def get(self, request, child_id: int):
        child = self._get_child(request, child_id)
        if child is None:
            return Response({"error": "Child not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response(ChildSerializer(child, context={"request": request}).data)

    def patch(self, request, child_id: int):
        child = self._get_child(request, child_id)
        if child is None:
            return Response({"error": "Child not found"}, status=status.HTTP_404_NOT_FOUND)

        serializer = ChildSerializer(child, data=request.data, partial=True, context={"request": request})
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)

    def delete(self, request, child_id: int):
        child = self._get_child(request, child_id)
        if child is None:
            return Response({"error": "Child not found"}, status=status.HTTP_404_NOT_FOUND)

        result = delete_child(child)
        return Response({"message": "Child deleted", **result})
