# apps/messaging/content.py
"""
Message payloads as a closed set of types.

A message carries exactly one of TextContent, ImageContent or FileContent.
Each validates itself on construction, so a text message with a file URL or
an image without one cannot be built.
"""
from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import urlparse

from django.conf import settings

from .exceptions import ValidationError

TEXT = 'text'
IMAGE = 'image'
FILE = 'file'


def _limits():
    return settings.MESSAGING['MAX_TEXT_LENGTH'], settings.MESSAGING['MAX_FILE_SIZE']


def _check_url(url):
    parsed = urlparse(url or '')
    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        raise ValidationError('A valid http(s) file URL is required')


def _check_size(size):
    if size is None:
        return
    _, max_size = _limits()
    if size < 0 or size > max_size:
        raise ValidationError(f'File size must be between 0 and {max_size} bytes')


@dataclass(frozen=True)
class TextContent:
    body: str

    message_type = TEXT

    def __post_init__(self):
        body = (self.body or '').strip()
        if not body:
            raise ValidationError('Message cannot be empty')
        max_length, _ = _limits()
        if len(body) > max_length:
            raise ValidationError(f'Message cannot exceed {max_length} characters')
        object.__setattr__(self, 'body', body)

    @property
    def preview(self):
        return self.body

    def as_fields(self):
        return {'message_type': TEXT, 'text': self.body}


@dataclass(frozen=True)
class ImageContent:
    url: str
    file_type: str = ''
    size: Optional[int] = None

    message_type = IMAGE

    def __post_init__(self):
        _check_url(self.url)
        _check_size(self.size)

    @property
    def preview(self):
        return 'Image'

    def as_fields(self):
        return {
            'message_type': IMAGE,
            'file_url': self.url,
            'file_type': self.file_type or '',
            'file_size': self.size,
        }


@dataclass(frozen=True)
class FileContent:
    url: str
    name: str
    size: Optional[int] = None
    file_type: str = ''

    message_type = FILE

    def __post_init__(self):
        _check_url(self.url)
        name = (self.name or '').strip()
        if not name:
            raise ValidationError('File name is required')
        if len(name) > 255:
            raise ValidationError('File name is too long')
        object.__setattr__(self, 'name', name)
        _check_size(self.size)

    @property
    def preview(self):
        return f'File: {self.name}'

    def as_fields(self):
        return {
            'message_type': FILE,
            'file_url': self.url,
            'file_name': self.name,
            'file_type': self.file_type or '',
            'file_size': self.size,
        }


Content = Union[TextContent, ImageContent, FileContent]


def build_content(message_type, text=None, file_url=None, file_type=None, file_name=None, file_size=None):
    """Build the payload for a send request, rejecting fields that don't belong to its type."""
    message_type = message_type or TEXT

    if message_type == TEXT:
        if file_url or file_name:
            raise ValidationError('Text messages cannot carry a file')
        return TextContent(text)

    if message_type not in (IMAGE, FILE):
        raise ValidationError(f'Unsupported message type: {message_type}')

    if text:
        raise ValidationError(f'{message_type.capitalize()} messages cannot carry text')

    if message_type == IMAGE:
        return ImageContent(file_url, file_type or '', file_size)
    return FileContent(file_url, file_name, file_size, file_type or '')
