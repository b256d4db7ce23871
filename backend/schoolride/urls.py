from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static

from drivers.views import AvailableDriversView, DriverRatingsView, TrustedDriverListView, TrustedDriverView
from .views import health_check

urlpatterns = [
    path('admin/', admin.site.urls),
    path("health/", health_check), # Health check endpoint

    # Authentication + admin user management (at /api/auth/)
    path('api/auth/', include('accounts.urls')),

    # Driver self-service (profile, vehicle, route, location)
    path('api/driver/', include('drivers.urls')),

    # Parent-facing driver search, ratings and trusted drivers
    path('api/drivers/available/', AvailableDriversView.as_view(), name='available-drivers'),
    path('api/drivers/trusted/', TrustedDriverListView.as_view(), name='trusted-drivers'),
    path('api/drivers/trusted/<int:driver_id>/', TrustedDriverView.as_view(), name='trusted-driver'),
    path('api/drivers/<int:driver_id>/ratings/', DriverRatingsView.as_view(), name='driver-ratings'),

    path('api/children/', include('children.urls')),
    path('api/bookings/', include('bookings.urls')),
    path('api/payments/', include('payments.urls')),

    # Daily rides, attendance, tracking, emergencies (at /api/rides/)
    path('api/rides/', include('rides.urls')),

    path('api/notifications/', include('notifications.urls')),
]

# Serve media files in development
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
