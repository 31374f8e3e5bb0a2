# config/asgi.py
"""ASGI entrypoint: Socket.IO at /socket.io/, everything else goes to Django."""
import os

import django
import socketio
from django.core.asgi import get_asgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')
django.setup()

from apps.messaging.socket import sio  # noqa: E402

application = socketio.ASGIApp(
    sio,
    other_asgi_app=get_asgi_application(),
    socketio_path='socket.io',
)
