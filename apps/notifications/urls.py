# apps/notifications/urls.py

from django.urls import path
from . import views

app_name = 'notifications'

urlpatterns = [
    path('home/notifications', views.list_notifications, name='list'),
    path('notifications/<int:notification_id>/read', views.mark_notification_read, name='mark_read'),
    path('notifications/<int:notification_id>', views.delete_notification, name='delete'),
]
