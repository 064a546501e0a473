"""
URL configuration for the repairdesk project.

Every app mounts its endpoints under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "RepairDesk Admin Panel"
admin.site.site_title = "RepairDesk Admin Portal"
admin.site.index_title = "Welcome to RepairDesk Admin"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('repairdesk.core.urls')),
    path('api/v1/', include('repairdesk.locations.urls')),
    path('api/v1/', include('repairdesk.parties.urls')),
    path('api/v1/', include('repairdesk.jobsheets.urls')),
]
