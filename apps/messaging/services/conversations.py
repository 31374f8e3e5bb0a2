# apps/messaging/services/conversations.py
"""
Conversation store: creation, lookup, listing and status changes.

One conversation exists per (job, client, worker). The database enforces it
with partial unique constraints; creation relies on them rather than on a
check-then-insert, so two participants opening the same job at the same time
end up in the same row.
"""
import logging
import math

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.db.models.functions import Coalesce

from ..exceptions import AuthorizationError, NotFoundError, ValidationError
from ..models import Conversation

logger = logging.getLogger(__name__)
User = get_user_model()

STATUS_FILTERS = {
    'active': (Conversation.ACTIVE,),
    'archived': Conversation.ARCHIVED_STATUSES,
    'blocked': (Conversation.BLOCKED,),
}


def _find(job_id, client_id, worker_id):
    return Conversation.objects.filter(job_id=job_id, client_id=client_id, worker_id=worker_id).first()


def get_or_create_conversation(job_id, client_id, worker_id, requested_by):
    """
    Return ``(conversation, created)`` for the triple.

    The requester must be one of the two participants. A concurrent creator
    that loses the race on the unique constraint gets the winner's row.
    """
    if client_id == worker_id:
        raise ValidationError('Client and worker must be different users')
    if requested_by.pk not in (client_id, worker_id):
        raise AuthorizationError('You can only open conversations you take part in')

    conversation = _find(job_id, client_id, worker_id)
    if conversation is not None:
        return conversation, False

    found = set(User.objects.filter(pk__in=[client_id, worker_id]).values_list('pk', flat=True))
    if len(found) != 2:
        raise NotFoundError('User not found')

    try:
        with transaction.atomic():
            conversation = Conversation.objects.create(job_id=job_id, client_id=client_id, worker_id=worker_id)
    except IntegrityError:
        conversation = _find(job_id, client_id, worker_id)
        if conversation is None:
            raise
        return conversation, False

    logger.info('Conversation %s created (job %s, client %s, worker %s)', conversation.id, job_id, client_id, worker_id)
    return conversation, True


def get_conversation(conversation_id, user, queryset=None):
    queryset = queryset if queryset is not None else Conversation.objects.all()
    try:
        conversation = queryset.get(pk=conversation_id)
    except Conversation.DoesNotExist:
        raise NotFoundError('Conversation not found')

    if not conversation.is_participant(user):
        raise AuthorizationError('You do not have access to this conversation')
    return conversation


def list_conversations(user, status='active', page=1, limit=None):
    """
    Conversations the user takes part in, most recent activity first.

    Returns ``(conversations, pagination)``. Conversations without messages
    sort by their creation time.
    """
    if status not in STATUS_FILTERS:
        raise ValidationError(f'Unknown conversation filter: {status}')
    if limit is None:
        limit = settings.MESSAGING['CONVERSATION_PAGE_SIZE']
    if page < 1 or limit < 1:
        raise ValidationError('Page and limit must be positive')

    queryset = (
        Conversation.objects
        .filter(Q(client=user) | Q(worker=user), status__in=STATUS_FILTERS[status])
        .select_related('client', 'worker', 'last_message_sender')
        .annotate(activity_at=Coalesce('last_message_time', 'created_at'))
        .order_by('-activity_at', '-id')
    )

    total = queryset.count()
    offset = (page - 1) * limit
    conversations = list(queryset[offset:offset + limit])

    return conversations, {
        'page': page,
        'limit': limit,
        'total': total,
        'pages': math.ceil(total / limit) if total else 0,
    }


def set_conversation_status(conversation_id, user, new_status):
    """
    Move a conversation to ``active``, ``archived`` or ``blocked`` on behalf of a participant.

    Archiving records which side archived it. Only the participant who
    blocked a conversation can unblock it. Repeating a change is a no-op.
    """
    if new_status not in STATUS_FILTERS:
        raise ValidationError(f'Unknown conversation status: {new_status}')

    with transaction.atomic():
        conversation = get_conversation(conversation_id, user, Conversation.objects.select_for_update())
        previous = conversation.status

        if new_status == 'archived':
            if conversation.is_blocked:
                raise ValidationError('Blocked conversations cannot be archived')
            if not conversation.is_archived:
                conversation.status = (
                    Conversation.ARCHIVED_BY_CLIENT
                    if conversation.role_of(user) == 'client'
                    else Conversation.ARCHIVED_BY_WORKER
                )

        elif new_status == 'blocked':
            if not conversation.is_blocked:
                conversation.status = Conversation.BLOCKED
                conversation.blocked_by = user

        else:
            if conversation.is_blocked:
                if conversation.blocked_by_id != user.pk:
                    raise AuthorizationError('Only the user who blocked this conversation can unblock it')
                conversation.blocked_by = None
            conversation.status = Conversation.ACTIVE

        if conversation.status != previous:
            conversation.save(update_fields=['status', 'blocked_by', 'updated_at'])
            logger.info('Conversation %s: %s -> %s by user %s', conversation.id, previous, conversation.status, user.pk)

    return conversation


def archive(conversation_id, user):
    return set_conversation_status(conversation_id, user, 'archived')


def unarchive(conversation_id, user):
    conversation = get_conversation(conversation_id, user)
    if conversation.is_blocked:
        raise ValidationError('Conversation is blocked, not archived')
    return set_conversation_status(conversation_id, user, 'active')


def block(conversation_id, user):
    return set_conversation_status(conversation_id, user, 'blocked')


def unblock(conversation_id, user):
    conversation = get_conversation(conversation_id, user)
    if not conversation.is_blocked:
        return conversation
    return set_conversation_status(conversation_id, user, 'active')
