# chat_client/cache.py
"""
Local conversation and message state for one session.

All changes go through ``dispatch(action, **payload)``; each action has a
reducer below. Readers get copies, never the internal lists.
"""
import logging
from dataclasses import replace

logger = logging.getLogger(__name__)

CONVERSATIONS_LOADED = 'conversations_loaded'
CONVERSATION_UPDATED = 'conversation_updated'
MESSAGES_LOADED = 'messages_loaded'
MESSAGE_ADDED = 'message_added'
MESSAGE_REMOVED = 'message_removed'
CONVERSATION_READ = 'conversation_read'


def _merge_messages(existing, incoming):
    by_id = {message.id: message for message in existing}
    for message in incoming:
        by_id[message.id] = message
    return sorted(by_id.values(), key=lambda message: message.sort_key)


class ConversationCache:

    def __init__(self, user_id=None):
        self.user_id = user_id
        self.conversations = {}
        self.messages = {}
        self.has_more = {}
        self.next_before = {}

        self._reducers = {
            CONVERSATIONS_LOADED: self._conversations_loaded,
            CONVERSATION_UPDATED: self._conversation_updated,
            MESSAGES_LOADED: self._messages_loaded,
            MESSAGE_ADDED: self._message_added,
            MESSAGE_REMOVED: self._message_removed,
            CONVERSATION_READ: self._conversation_read,
        }

    def dispatch(self, action, **payload):
        try:
            reducer = self._reducers[action]
        except KeyError:
            raise ValueError(f'Unknown cache action: {action}')
        reducer(**payload)

    # ========================================
    # QUERIES
    # ========================================
    def get_conversation(self, conversation_id):
        return self.conversations.get(conversation_id)

    def get_messages(self, conversation_id):
        return list(self.messages.get(conversation_id, []))

    def oldest_message_id(self, conversation_id):
        messages = self.messages.get(conversation_id)
        return messages[0].id if messages else None

    def is_blocked(self, conversation_id):
        conversation = self.conversations.get(conversation_id)
        return bool(conversation and conversation.is_blocked)

    def conversation_list(self, status=None):
        items = [c for c in self.conversations.values() if status is None or c.status == status]
        return sorted(items, key=lambda c: (c.activity_at is not None, c.activity_at, c.id), reverse=True)

    # ========================================
    # REDUCERS
    # ========================================
    def _conversations_loaded(self, conversations):
        for conversation in conversations:
            self.conversations[conversation.id] = conversation

    def _conversation_updated(self, conversation):
        self.conversations[conversation.id] = conversation

    def _messages_loaded(self, conversation_id, messages, has_more=False, next_before=None, older=False):
        self.messages[conversation_id] = _merge_messages(self.messages.get(conversation_id, []), messages)
        # has_more only describes the tail when paging backwards
        if older or conversation_id not in self.has_more:
            self.has_more[conversation_id] = has_more
            self.next_before[conversation_id] = next_before

    def _message_added(self, message):
        conversation_id = message.conversation_id
        known = self.messages.get(conversation_id, [])
        if any(existing.id == message.id for existing in known):
            return
        self.messages[conversation_id] = _merge_messages(known, [message])

        conversation = self.conversations.get(conversation_id)
        if conversation is None:
            return

        newest = self.messages[conversation_id][-1]
        changes = {}
        if newest.id == message.id:
            changes.update(
                last_message_text=message.preview,
                last_message_time=message.created_at,
                last_message_sender_id=message.sender_id,
            )
            if conversation.status != 'blocked':
                changes['status'] = 'active'
        if self.user_id is not None and message.receiver_id == self.user_id:
            changes['unread_count'] = conversation.unread_count + 1
        if changes:
            self.conversations[conversation_id] = replace(conversation, **changes)

    def _message_removed(self, conversation_id, message_id):
        known = self.messages.get(conversation_id, [])
        remaining = [message for message in known if message.id != message_id]
        self.messages[conversation_id] = remaining

        conversation = self.conversations.get(conversation_id)
        if conversation is None or len(remaining) == len(known):
            return
        if remaining:
            newest = remaining[-1]
            self.conversations[conversation_id] = replace(
                conversation,
                last_message_text=newest.preview,
                last_message_time=newest.created_at,
                last_message_sender_id=newest.sender_id,
            )
        else:
            self.conversations[conversation_id] = replace(
                conversation,
                last_message_text='',
                last_message_time=None,
                last_message_sender_id=None,
            )

    def _conversation_read(self, conversation_id, reader_id=None):
        """Either we read it (counter to zero) or the other side did (our messages become read)."""
        if reader_id is None or reader_id == self.user_id:
            conversation = self.conversations.get(conversation_id)
            if conversation is not None:
                self.conversations[conversation_id] = replace(conversation, unread_count=0)
            return

        self.messages[conversation_id] = [
            replace(message, status='read') if message.sender_id != reader_id else message
            for message in self.messages.get(conversation_id, [])
        ]
