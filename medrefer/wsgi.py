"""
WSGI config for the MedRefer backend.

It exposes the WSGI callable as a module-level variable named ``application``.
Use ``medrefer.asgi`` instead when realtime notifications are required.
"""
import os

from django.core.wsgi import get_wsgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'medrefer.settings')

application = get_wsgi_application()
