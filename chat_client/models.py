# chat_client/models.py
"""Client-side views of conversations and messages as the API returns them."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union
from urllib.parse import urlparse

from .exceptions import ValidationError

MAX_TEXT_LENGTH = 5000
MAX_FILE_SIZE = 10 * 1024 * 1024


def parse_datetime(value):
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def _check_url(url):
    parsed = urlparse(url or '')
    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        raise ValidationError('A valid http(s) file URL is required')


def _check_size(size):
    if size is not None and not 0 <= size <= MAX_FILE_SIZE:
        raise ValidationError(f'File size must be between 0 and {MAX_FILE_SIZE} bytes')


# --- Message content: exactly one of these per message ---

@dataclass(frozen=True)
class TextContent:
    body: str

    def __post_init__(self):
        body = (self.body or '').strip()
        if not body:
            raise ValidationError('Message cannot be empty')
        if len(body) > MAX_TEXT_LENGTH:
            raise ValidationError(f'Message cannot exceed {MAX_TEXT_LENGTH} characters')
        object.__setattr__(self, 'body', body)

    def to_payload(self):
        return {'message_type': 'text', 'text': self.body}


@dataclass(frozen=True)
class ImageContent:
    url: str
    file_type: str = ''
    size: Optional[int] = None

    def __post_init__(self):
        _check_url(self.url)
        _check_size(self.size)

    def to_payload(self):
        return {'message_type': 'image', 'file_url': self.url, 'file_type': self.file_type, 'file_size': self.size}


@dataclass(frozen=True)
class FileContent:
    url: str
    name: str
    size: Optional[int] = None
    file_type: str = ''

    def __post_init__(self):
        _check_url(self.url)
        if not (self.name or '').strip():
            raise ValidationError('File name is required')
        _check_size(self.size)

    def to_payload(self):
        return {
            'message_type': 'file',
            'file_url': self.url,
            'file_name': self.name,
            'file_type': self.file_type,
            'file_size': self.size,
        }


Content = Union[TextContent, ImageContent, FileContent]


def content_from_fields(message_type, text=None, file_url=None, file_type=None, file_name=None, file_size=None):
    if message_type == 'image':
        return ImageContent(file_url, file_type or '', file_size)
    if message_type == 'file':
        return FileContent(file_url, file_name, file_size, file_type or '')
    return TextContent(text)


# --- Records ---

@dataclass
class Conversation:
    id: int
    client_id: int
    worker_id: int
    status: str
    job_id: Optional[int] = None
    unread_count: int = 0
    last_message_text: str = ''
    last_message_time: Optional[datetime] = None
    last_message_sender_id: Optional[int] = None
    other_user_id: Optional[int] = None
    other_user_name: str = ''
    blocked_by_me: bool = False
    created_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data['id'],
            client_id=data['client_id'],
            worker_id=data['worker_id'],
            status=data['status'],
            job_id=data.get('job_id'),
            unread_count=data.get('unread_count') or 0,
            last_message_text=data.get('last_message_text') or '',
            last_message_time=parse_datetime(data.get('last_message_time')),
            last_message_sender_id=data.get('last_message_sender_id'),
            other_user_id=data.get('other_user_id'),
            other_user_name=data.get('other_user_name') or '',
            blocked_by_me=bool(data.get('blocked_by_me')),
            created_at=parse_datetime(data.get('created_at')),
        )

    @property
    def is_blocked(self):
        return self.status == 'blocked'

    @property
    def activity_at(self):
        return self.last_message_time or self.created_at


@dataclass
class Message:
    id: int
    conversation_id: int
    sender_id: int
    content: Content
    created_at: datetime
    receiver_id: Optional[int] = None
    status: str = 'sent'
    client_token: Optional[str] = None

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data['id'],
            conversation_id=data['conversation_id'],
            sender_id=data['sender_id'],
            receiver_id=data.get('receiver_id'),
            content=content_from_fields(
                data.get('message_type', 'text'),
                text=data.get('text'),
                file_url=data.get('file_url'),
                file_type=data.get('file_type'),
                file_name=data.get('file_name'),
                file_size=data.get('file_size'),
            ),
            status=data.get('status', 'sent'),
            created_at=parse_datetime(data['created_at']),
            client_token=data.get('client_token'),
        )

    @classmethod
    def from_event(cls, conversation_id, data):
        """Build from the ``message`` part of a live ``new_message`` event."""
        return cls(
            id=data['id'],
            conversation_id=conversation_id,
            sender_id=data['senderId'],
            receiver_id=data.get('receiverId'),
            content=content_from_fields(
                data.get('messageType', 'text'),
                text=data.get('text'),
                file_url=data.get('fileUrl'),
                file_name=data.get('fileName'),
            ),
            created_at=parse_datetime(data['createdAt']),
        )

    @property
    def sort_key(self):
        return (self.created_at, self.id)

    @property
    def preview(self):
        if isinstance(self.content, TextContent):
            return self.content.body
        if isinstance(self.content, ImageContent):
            return 'Image'
        return f'File: {self.content.name}'


@dataclass(frozen=True)
class UnreadCount:
    conversations: int = 0
    messages: int = 0


@dataclass
class MessagePage:
    messages: list = field(default_factory=list)
    has_more: bool = False
    next_before: Optional[int] = None


@dataclass(frozen=True)
class Draft:
    text: str
    saved_at: datetime


@dataclass(frozen=True)
class ReadReceipt:
    conversation_id: int
    reader_id: int
    read_at: datetime

    @classmethod
    def from_event(cls, data):
        return cls(
            conversation_id=data['conversationId'],
            reader_id=data['readerId'],
            read_at=parse_datetime(data['readAt']),
        )
