"""
URL mappings for the stillbirth backend API.

Trailing slashes are omitted to match the paths used by the mobile and web
clients.
"""
from django.urls import path, include

from .auth_views import login_view, jwt_refresh_view, jwt_logout_view, me_view
from .views import health
from .views.cases import babies, baby_detail, mothers, mother_detail
from .views.locations import locations, location_detail, accessible_locations, parent_users
from .views.notifications import notifications, notification_detail, inbox, inbox_mark_read
from .views.reports import stillbirth_records, stillbirth_summary, stillbirth_preview, stillbirth_export
from .views.roles import roles, role_detail, permissions, permission_detail
from .views.staff import users, user_detail

urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz),
    # Authentication
    path('api/auth/login', login_view),
    path('api/auth/refresh', jwt_refresh_view),
    path('api/auth/logout', jwt_logout_view),
    path('api/auth/me', me_view),
    # Locations
    path('api/locations', locations),
    path('api/locations/<int:location_id>', location_detail),
    path('api/locations/<int:location_id>/accessible', accessible_locations),
    path('api/locations/<int:location_id>/parent-users', parent_users),
    # Staff, roles, permissions
    path('api/users', users),
    path('api/users/<int:user_id>', user_detail),
    path('api/roles', roles),
    path('api/roles/<int:role_id>', role_detail),
    path('api/permissions', permissions),
    path('api/permissions/<int:permission_id>', permission_detail),
    # Notifications
    path('api/notifications', notifications),
    path('api/notifications/inbox', inbox),
    path('api/notifications/inbox/<int:inbox_id>/read', inbox_mark_read),
    path('api/notifications/<int:notification_id>', notification_detail),
    path('api/babies', babies),
    path('api/babies/<int:baby_id>', baby_detail),
    path('api/mothers', mothers),
    path('api/mothers/<int:mother_id>', mother_detail),
    # Stillbirth reports
    path('api/notifications/stillbirths/records/<int:location_id>', stillbirth_records),
    path('api/notifications/stillbirths/<int:location_id>', stillbirth_summary),
    path('api/reports/stillbirths/<int:location_id>/preview', stillbirth_preview),
    path('api/reports/stillbirths/<int:location_id>/export', stillbirth_export),
]
