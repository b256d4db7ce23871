from django.urls import path

from .views import ChildListCreateView, ChildDetailView

urlpatterns = [
    path("", ChildListCreateView.as_view(), name="children"),
    path("<int:child_id>/", ChildDetailView.as_view(), name="child-detail"),
]
