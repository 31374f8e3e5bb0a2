# apps/messaging/services/messages.py
"""
Message store.

Writes that touch a conversation's counters or its denormalized last-message
fields lock the conversation row first, so within one conversation appends,
reads and deletes apply one at a time and nobody can observe a message
without its counter update or the reverse.
"""
import logging

from django.conf import settings
from django.db import transaction
from django.db.models import F, Q
from django.utils import timezone

from .. import delivery
from ..exceptions import AuthorizationError, NotFoundError, ValidationError
from ..models import Conversation, Message, MessageReport
from .conversations import get_conversation
from .unread import recount_unread

logger = logging.getLogger(__name__)


def _locked_conversation(conversation_id, user):
    return get_conversation(conversation_id, user, Conversation.objects.select_for_update())


def send_message(conversation_id, sender, content, client_token=None):
    """
    Append ``content`` to the conversation and return the stored message.

    Retrying with the same ``client_token`` returns the message stored by the
    first attempt instead of creating a second one. If that message has since
    been deleted the retry fails with NotFoundError. Sending into an archived
    conversation brings it back to active; sending into a blocked one fails.
    """
    with transaction.atomic():
        conversation = _locked_conversation(conversation_id, sender)

        if conversation.is_blocked:
            if conversation.blocked_by_id == sender.pk:
                raise AuthorizationError('Unblock this conversation before sending messages')
            raise AuthorizationError('You cannot send messages in this conversation')

        if client_token is not None:
            existing = conversation.messages.filter(sender=sender, client_token=client_token).first()
            if existing is not None:
                if existing.is_deleted:
                    raise NotFoundError('This message was deleted')
                logger.info('Duplicate send %s in conversation %s ignored', client_token, conversation.id)
                return existing

        created_at = timezone.now()
        if conversation.last_message_time and created_at < conversation.last_message_time:
            created_at = conversation.last_message_time

        receiver_id = conversation.other_participant_id(sender.pk)
        message = Message.objects.create(
            conversation=conversation,
            sender=sender,
            receiver_id=receiver_id,
            client_token=client_token,
            created_at=created_at,
            **content.as_fields(),
        )

        unread_field = conversation.unread_field_for(receiver_id)
        Conversation.objects.filter(pk=conversation.pk).update(
            status=Conversation.ACTIVE,
            last_message_text=content.preview,
            last_message_time=created_at,
            last_message_sender=sender,
            updated_at=created_at,
            **{unread_field: F(unread_field) + 1},
        )

        transaction.on_commit(lambda: delivery.publish_new_message(message))

    logger.info('Message %s sent in conversation %s by user %s', message.id, conversation.id, sender.pk)
    return message


def page_messages(conversation_id, user, page=1, limit=None, before=None):
    """
    One page of visible messages, oldest first within the page.

    Pages walk backwards from the newest message. With ``before`` (a message
    id) the page holds the ``limit`` messages strictly older than it; this is
    what infinite scroll should use, since new or deleted messages cannot
    shift it. Without ``before``, ``page`` is an offset from the newest.
    Messages fetched by their receiver move from sent to delivered.
    """
    if limit is None:
        limit = settings.MESSAGING['MESSAGE_PAGE_SIZE']
    if page < 1 or limit < 1:
        raise ValidationError('Page and limit must be positive')

    conversation = get_conversation(conversation_id, user)
    visible = conversation.messages.filter(is_deleted=False)

    offset = (page - 1) * limit
    if before is not None:
        anchor = conversation.messages.filter(pk=before).first()
        if anchor is None:
            raise NotFoundError('Message not found')
        visible = visible.filter(
            Q(created_at__lt=anchor.created_at) | Q(created_at=anchor.created_at, id__lt=anchor.id)
        )
        offset = 0

    window = list(visible.select_related('sender').order_by('-created_at', '-id')[offset:offset + limit + 1])
    has_more = len(window) > limit
    messages = window[:limit]
    messages.reverse()

    _mark_delivered(messages, user)

    return messages, {
        'page': page,
        'limit': limit,
        'has_more': has_more,
        'next_before': messages[0].id if has_more and messages else None,
    }


def _mark_delivered(messages, user):
    pending = [m for m in messages if m.receiver_id == user.pk and m.status == Message.SENT]
    if not pending:
        return

    now = timezone.now()
    Message.objects.filter(pk__in=[m.pk for m in pending], status=Message.SENT).update(
        status=Message.DELIVERED,
        delivered_at=now,
    )
    for message in pending:
        message.status = Message.DELIVERED
        message.delivered_at = now


def mark_read(conversation_id, reader):
    """Mark everything addressed to ``reader`` as read. Returns how many messages changed."""
    with transaction.atomic():
        conversation = _locked_conversation(conversation_id, reader)
        read_at = timezone.now()

        updated = (
            Message.objects
            .filter(conversation=conversation, receiver=reader)
            .exclude(status=Message.READ)
            .update(status=Message.READ, read_at=read_at)
        )

        unread_field = conversation.unread_field_for(reader.pk)
        if getattr(conversation, unread_field):
            setattr(conversation, unread_field, 0)
            conversation.save(update_fields=[unread_field])

        if updated:
            transaction.on_commit(lambda: delivery.publish_messages_read(conversation, reader.pk, read_at))

    if updated:
        logger.info('User %s read %s messages in conversation %s', reader.pk, updated, conversation.id)
    return updated


def _visible_message(message_id, user):
    message = Message.objects.select_related('conversation').filter(pk=message_id, is_deleted=False).first()
    if message is None:
        raise NotFoundError('Message not found')
    if not message.conversation.is_participant(user):
        raise AuthorizationError('You do not have access to this message')
    return message


def soft_delete_message(message_id, user):
    """
    Hide a message from every future page. Only its sender may do this.

    An unread message stops counting towards its receiver's unread total, and
    the conversation preview falls back to the newest message still visible.
    """
    message = _visible_message(message_id, user)

    with transaction.atomic():
        conversation = _locked_conversation(message.conversation_id, user)
        message = Message.objects.filter(pk=message_id, is_deleted=False).first()
        if message is None:
            raise NotFoundError('Message not found')
        if message.sender_id != user.pk:
            raise AuthorizationError('Only the sender can delete a message')

        message.is_deleted = True
        message.deleted_at = timezone.now()
        message.save(update_fields=['is_deleted', 'deleted_at'])

        recount_unread(conversation, save=False)

        newest = conversation.messages.filter(is_deleted=False).order_by('-created_at', '-id').first()
        conversation.last_message_text = newest.preview if newest else ''
        conversation.last_message_time = newest.created_at if newest else None
        conversation.last_message_sender_id = newest.sender_id if newest else None
        conversation.save(update_fields=[
            'client_unread_count',
            'worker_unread_count',
            'last_message_text',
            'last_message_time',
            'last_message_sender',
        ])

    logger.info('Message %s deleted by user %s', message.id, user.pk)
    return message


def report_message(message_id, user, reason, description=''):
    message = _visible_message(message_id, user)
    if message.sender_id == user.pk:
        raise ValidationError('You cannot report your own message')

    report, created = MessageReport.objects.update_or_create(
        message=message,
        reported_by=user,
        defaults={'reason': reason, 'description': description or ''},
    )
    logger.info('Message %s reported by user %s (%s)', message.id, user.pk, reason)
    return report, created
