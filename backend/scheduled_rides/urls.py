from django.urls import path
from . import views

app_name = 'scheduled_rides'

urlpatterns = [
    path('', views.ScheduledRideListCreateView.as_view(), name='scheduled-rides'),
    path('sync/', views.ScheduledRideSyncView.as_view(), name='sync-scheduled-rides'),
    path('<str:ride_id>/', views.ScheduledRideDetailView.as_view(), name='scheduled-ride-detail'),
    path('<str:ride_id>/cancel/', views.ScheduledRideCancelView.as_view(), name='cancel-scheduled-ride'),
]
