# apps/messaging/delivery.py
"""
Publishing of live events to connected participants.

Events are fire-and-forget: the message store is the system of record and a
client that missed an event reconciles by re-fetching. Publishing is always
scheduled with ``transaction.on_commit`` so nobody is told about a message
that was rolled back.
"""
import logging
from functools import lru_cache

import socketio
from asgiref.sync import async_to_sync
from django.conf import settings

from .socket import sio, user_room

logger = logging.getLogger(__name__)

NEW_MESSAGE = 'new_message'
MESSAGES_READ = 'messages_read'


class SocketPublisher:
    """Emits through the Socket.IO server living in this process."""

    def emit(self, event, payload, room):
        async_to_sync(sio.emit)(event, payload, room=room)


class RedisPublisher:
    """Emits through Redis so that every server process sees the event."""

    def __init__(self, url):
        self.manager = socketio.RedisManager(url, write_only=True)

    def emit(self, event, payload, room):
        self.manager.emit(event, payload, room=room)


@lru_cache(maxsize=1)
def get_publisher():
    redis_url = settings.MESSAGING['LIVE_REDIS_URL']
    if redis_url:
        return RedisPublisher(redis_url)
    return SocketPublisher()


def _emit(event, payload, user_ids):
    publisher = get_publisher()
    for user_id in user_ids:
        try:
            publisher.emit(event, payload, room=user_room(user_id))
        except Exception:
            # Best effort; clients reconcile from the store.
            logger.warning('Live %s to user %s failed', event, user_id, exc_info=True)


def message_event(message):
    return {
        'type': NEW_MESSAGE,
        'conversationId': message.conversation_id,
        'message': {
            'id': message.id,
            'senderId': message.sender_id,
            'receiverId': message.receiver_id,
            'messageType': message.message_type,
            'text': message.text,
            'fileUrl': message.file_url or None,
            'fileName': message.file_name or None,
            'createdAt': message.created_at.isoformat(),
        },
    }


def read_event(conversation_id, reader_id, read_at):
    return {
        'type': MESSAGES_READ,
        'conversationId': conversation_id,
        'readerId': reader_id,
        'readAt': read_at.isoformat(),
    }


def publish_new_message(message):
    _emit(NEW_MESSAGE, message_event(message), [message.receiver_id, message.sender_id])


def publish_messages_read(conversation, reader_id, read_at):
    _emit(MESSAGES_READ, read_event(conversation.id, reader_id, read_at), [conversation.other_participant_id(reader_id)])
