# apps/messaging/socket.py
"""
Socket.IO endpoint for live delivery.

The socket is push-only: clients authenticate with their access token, join
their personal room ``user_<id>`` and receive ``new_message`` and
``messages_read`` events. Sending goes through the REST API so that every
message is persisted before anyone hears about it. A user may be connected
from several devices at once; each connection simply joins the same room.
"""
import logging

import socketio
from django.conf import settings
from django.contrib.auth import get_user_model
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings as jwt_settings
from rest_framework_simplejwt.tokens import AccessToken
from channels.db import database_sync_to_async

logger = logging.getLogger(__name__)
User = get_user_model()


def user_room(user_id):
    return f'user_{user_id}'


def _client_manager():
    redis_url = settings.MESSAGING['LIVE_REDIS_URL']
    if redis_url:
        return socketio.AsyncRedisManager(redis_url)
    return None


sio = socketio.AsyncServer(
    async_mode='asgi',
    cors_allowed_origins=settings.MESSAGING['SOCKET_CORS_ORIGINS'],
    client_manager=_client_manager(),
)


# --- Database helpers ---
@database_sync_to_async
def get_active_user(user_id):
    return User.objects.get(id=user_id, is_active=True)


def _extract_token(auth):
    token = (auth or {}).get('token') if isinstance(auth, dict) else None
    if not token:
        return None
    return token.replace('Bearer ', '').strip()


# --- Socket.IO events ---
@sio.event
async def connect(sid, environ, auth):
    raw_token = _extract_token(auth)
    if not raw_token:
        logger.info('Socket %s rejected: no token', sid)
        return False

    try:
        payload = AccessToken(raw_token)
        user = await get_active_user(payload[jwt_settings.USER_ID_CLAIM])
    except (TokenError, KeyError, User.DoesNotExist) as exc:
        logger.info('Socket %s rejected: %s', sid, exc)
        return False

    await sio.save_session(sid, {'user_id': user.id})
    await sio.enter_room(sid, user_room(user.id))

    logger.info('Socket connected: user %s (sid %s)', user.id, sid)
    return True


@sio.event
async def disconnect(sid, *args):
    session = await sio.get_session(sid)
    logger.info('Socket disconnected: user %s (sid %s)', session.get('user_id'), sid)
