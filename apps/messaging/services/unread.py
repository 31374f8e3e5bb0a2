# apps/messaging/services/unread.py
"""
Unread counts.

The counters stored on a conversation are a cache of message read state and
are only written next to the change that moves them. Global counts are always
computed from the messages themselves.
"""
from django.db.models import Count, Q

from ..models import Conversation, Message


def _unread_messages():
    return Message.objects.filter(is_deleted=False).exclude(status=Message.READ)


def unread_counts(user):
    """
    Unread totals over the user's active conversations.

    ``conversations`` is the number of conversations with at least one
    unread message (list badges), ``messages`` the total (banner badge).
    """
    totals = _unread_messages().filter(
        receiver=user,
        conversation__status=Conversation.ACTIVE,
    ).aggregate(
        conversations=Count('conversation', distinct=True),
        messages=Count('id'),
    )
    return {
        'conversations': totals['conversations'] or 0,
        'messages': totals['messages'] or 0,
    }


def conversation_unread_count(conversation, user):
    return conversation.unread_count_for(user)


def count_unread(conversation, user_id):
    return _unread_messages().filter(conversation=conversation, receiver_id=user_id).count()


def recount_unread(conversation, save=True):
    """Recompute both counters of ``conversation`` from its messages. Returns True if they changed."""
    counts = _unread_messages().filter(conversation=conversation).aggregate(
        client=Count('id', filter=Q(receiver_id=conversation.client_id)),
        worker=Count('id', filter=Q(receiver_id=conversation.worker_id)),
    )
    changed = (
        conversation.client_unread_count != counts['client']
        or conversation.worker_unread_count != counts['worker']
    )
    conversation.client_unread_count = counts['client']
    conversation.worker_unread_count = counts['worker']
    if changed and save:
        conversation.save(update_fields=['client_unread_count', 'worker_unread_count'])
    return changed
