"""
WSGI config for the stillbirth backend.

Exposes the WSGI callable as a module-level variable named ``application``
for servers that do not need the WebSocket routes.
"""
import os

from django.core.wsgi import get_wsgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'stillbirth.settings')

application = get_wsgi_application()
