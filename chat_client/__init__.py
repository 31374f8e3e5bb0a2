from .api import ChatAPI
from .backoff import ExponentialBackoff
from .cache import ConversationCache
from .drafts import DraftCache
from .exceptions import (
    AuthorizationError,
    ChatError,
    NotFoundError,
    TransientNetworkError,
    ValidationError,
)
from .live import LiveChannel
from .models import (
    Conversation,
    Draft,
    FileContent,
    ImageContent,
    Message,
    MessagePage,
    ReadReceipt,
    TextContent,
    UnreadCount,
)
from .session import ChatSession

__all__ = [
    'AuthorizationError',
    'ChatAPI',
    'ChatError',
    'ChatSession',
    'Conversation',
    'ConversationCache',
    'Draft',
    'DraftCache',
    'ExponentialBackoff',
    'FileContent',
    'ImageContent',
    'LiveChannel',
    'Message',
    'MessagePage',
    'NotFoundError',
    'ReadReceipt',
    'TextContent',
    'TransientNetworkError',
    'UnreadCount',
    'ValidationError',
]
