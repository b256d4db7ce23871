from django.urls import path
from . import views

app_name = 'rides'

urlpatterns = [
    # Driver ride actions
    path('start/', views.start_ride, name='start-ride'),
    path('current/', views.current_ride, name='current-ride'),
    path('history/', views.ride_history, name='ride-history'),
    path('<int:ride_id>/children/<int:ride_child_id>/status/', views.update_child_status, name='child-status'),
    path('<int:ride_id>/complete/', views.complete_ride, name='complete-ride'),

    # Live tracking
    path('<int:ride_id>/tracking/start/', views.start_tracking, name='start-tracking'),
    path('<int:ride_id>/tracking/stop/', views.stop_tracking, name='stop-tracking'),

    # Emergency
    path('<int:ride_id>/emergency/', views.emergency_alert, name='emergency-alert'),
    path('emergency/<int:alert_id>/resolve/', views.resolve_emergency, name='resolve-emergency'),

    # Parent / shared
    path('parent/active/', views.parent_active_rides, name='parent-active-rides'),
    path('<int:ride_id>/', views.ride_detail, name='ride-detail'),
]
