# chat_client/session.py
"""
Per-user chat session: the surface the app talks to.

A session owns its REST client, live channel, draft cache and local
conversation cache. Create one at sign-in and close it at sign-out; nothing
here is shared between users.
"""
import asyncio
import inspect
import logging
import uuid

from .api import ChatAPI
from .cache import (
    CONVERSATION_READ,
    CONVERSATION_UPDATED,
    CONVERSATIONS_LOADED,
    MESSAGE_ADDED,
    MESSAGE_REMOVED,
    MESSAGES_LOADED,
    ConversationCache,
)
from .drafts import DraftCache
from .exceptions import AuthorizationError, ChatError
from .live import LiveChannel
from .models import TextContent

logger = logging.getLogger(__name__)


class ChatSession:

    def __init__(self, user_id, api, live=None, drafts=None, cache=None):
        self.user_id = user_id
        self.api = api
        self.live = live
        self.drafts = drafts if drafts is not None else DraftCache()
        self.cache = cache if cache is not None else ConversationCache(user_id)
        self.open_conversation_id = None
        self._message_handlers = []

        if live is not None:
            live.on_message(self._on_live_message)
            live.on_read(self._on_live_read)
            live.on_reconnect(self.reconcile)

    @classmethod
    def create(cls, user_id, token, base_url, socket_url, draft_path=None, timeout=10.0, max_retries=2):
        return cls(
            user_id,
            ChatAPI(base_url, token, timeout=timeout, max_retries=max_retries),
            LiveChannel(socket_url, token),
            DraftCache(draft_path),
        )

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    # ========================================
    # LIFECYCLE
    # ========================================
    async def connect(self):
        if self.live is not None:
            await self.live.connect(self.user_id)

    async def disconnect(self):
        if self.live is not None:
            await self.live.disconnect()

    async def close(self):
        try:
            await self.disconnect()
        finally:
            await self.api.aclose()
        self.open_conversation_id = None

    def on_message(self, handler):
        self._message_handlers.append(handler)
        return handler

    async def reconcile(self):
        """Re-fetch what a dropped connection may have missed."""
        try:
            await self.list_conversations()
            if self.open_conversation_id is not None:
                page = await self.api.get_messages(self.open_conversation_id)
                self.cache.dispatch(
                    MESSAGES_LOADED,
                    conversation_id=self.open_conversation_id,
                    messages=page.messages,
                    has_more=page.has_more,
                    next_before=page.next_before,
                )
        except ChatError as exc:
            # next reconnect tries again
            logger.warning('Reconcile failed for user %s: %s', self.user_id, exc.message)

    # ========================================
    # CONVERSATIONS
    # ========================================
    async def list_conversations(self, status='active', page=1):
        conversations, pagination = await self.api.list_conversations(status=status, page=page)
        self.cache.dispatch(CONVERSATIONS_LOADED, conversations=conversations)
        return conversations, pagination

    async def get_or_create_conversation(self, job_id, client_id, worker_id):
        conversation, _ = await self.api.get_or_create_conversation(job_id, client_id, worker_id)
        self.cache.dispatch(CONVERSATION_UPDATED, conversation=conversation)
        return conversation

    async def _update_status(self, call, conversation_id):
        conversation = await call(conversation_id)
        self.cache.dispatch(CONVERSATION_UPDATED, conversation=conversation)
        return conversation

    async def archive_conversation(self, conversation_id):
        return await self._update_status(self.api.archive, conversation_id)

    async def unarchive_conversation(self, conversation_id):
        return await self._update_status(self.api.unarchive, conversation_id)

    async def block_user(self, conversation_id):
        return await self._update_status(self.api.block, conversation_id)

    async def unblock_user(self, conversation_id):
        return await self._update_status(self.api.unblock, conversation_id)

    # ========================================
    # MESSAGES
    # ========================================
    async def open(self, conversation_id):
        """Load the newest page and mark the conversation read, concurrently."""
        page, read = await asyncio.gather(
            self.api.get_messages(conversation_id),
            self.api.mark_read(conversation_id),
            return_exceptions=True,
        )
        if isinstance(page, BaseException):
            raise page
        if isinstance(read, ChatError):
            logger.warning('Mark read failed for conversation %s: %s', conversation_id, read.message)
        elif isinstance(read, BaseException):
            raise read
        else:
            self.cache.dispatch(CONVERSATION_READ, conversation_id=conversation_id)

        self.cache.dispatch(
            MESSAGES_LOADED,
            conversation_id=conversation_id,
            messages=page.messages,
            has_more=page.has_more,
            next_before=page.next_before,
        )
        self.open_conversation_id = conversation_id
        return self.cache.get_messages(conversation_id)

    async def load_older(self, conversation_id):
        if self.cache.has_more.get(conversation_id) is False:
            return []
        before = self.cache.next_before.get(conversation_id) or self.cache.oldest_message_id(conversation_id)
        page = await self.api.get_messages(conversation_id, before=before)
        self.cache.dispatch(
            MESSAGES_LOADED,
            conversation_id=conversation_id,
            messages=page.messages,
            has_more=page.has_more,
            next_before=page.next_before,
            older=True,
        )
        return page.messages

    async def send_message(self, conversation_id, content, client_token=None):
        """
        Send and wait for the stored message.

        Plain strings are sent as text. Pass the same ``client_token`` when
        retrying a send that failed with a network error to avoid a duplicate.
        """
        if isinstance(content, str):
            content = TextContent(content)
        client_token = client_token or uuid.uuid4()
        try:
            if self.cache.is_blocked(conversation_id):
                raise AuthorizationError('This conversation is blocked', code='FORBIDDEN')
            message = await self.api.send_message(conversation_id, content, client_token=client_token)
        except ChatError:
            if isinstance(content, TextContent):
                self.drafts.save(conversation_id, content.body)
            raise

        self.drafts.clear(conversation_id)
        self.cache.dispatch(MESSAGE_ADDED, message=message)
        return message

    async def mark_read(self, conversation_id):
        updated = await self.api.mark_read(conversation_id)
        self.cache.dispatch(CONVERSATION_READ, conversation_id=conversation_id)
        return updated

    async def delete_message(self, message_id):
        await self.api.delete_message(message_id)
        for conversation_id, messages in list(self.cache.messages.items()):
            if any(message.id == message_id for message in messages):
                self.cache.dispatch(MESSAGE_REMOVED, conversation_id=conversation_id, message_id=message_id)
                break

    async def report_message(self, message_id, reason, description=''):
        return await self.api.report_message(message_id, reason, description)

    async def upload_attachment(self, filename, data, content_type='application/octet-stream'):
        return await self.api.upload_attachment(filename, data, content_type)

    async def get_unread_count(self):
        return await self.api.get_unread_count()

    # ========================================
    # DRAFTS
    # ========================================
    def save_draft(self, conversation_id, text):
        return self.drafts.save(conversation_id, text)

    def get_draft(self, conversation_id):
        return self.drafts.get(conversation_id)

    def clear_draft(self, conversation_id):
        self.drafts.clear(conversation_id)

    # ========================================
    # LIVE EVENTS
    # ========================================
    async def _on_live_message(self, message):
        self.cache.dispatch(MESSAGE_ADDED, message=message)
        for handler in list(self._message_handlers):
            result = handler(message)
            if inspect.isawaitable(result):
                await result

    def _on_live_read(self, receipt):
        self.cache.dispatch(CONVERSATION_READ, conversation_id=receipt.conversation_id, reader_id=receipt.reader_id)
