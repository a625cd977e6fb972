"""
WSGI config for the ward supply project.

It exposes the WSGI callable as a module-level variable named ``application``.
WebSocket traffic needs the ASGI entrypoint in ``wardsupply.asgi``.
"""
import os

from django.core.wsgi import get_wsgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'wardsupply.settings')

application = get_wsgi_application()
