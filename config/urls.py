# config/urls.py

from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    # Admin
    path('admin/', admin.site.urls),

    # API
    path('api/home/', include('apps.board.urls')),
    path('api/', include('apps.notifications.urls')),
]

# Customizar títulos do admin
admin.site.site_header = 'Task Board Admin'
admin.site.site_title = 'Task Board'
admin.site.index_title = 'Administração do Sistema'
