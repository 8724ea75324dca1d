"""Registry application for the stillbirth notification backend.

This package contains the models, services, serializers, views and route
registrations for notifications, the location hierarchy and reporting.
"""
