"""Message payload types and the send-request builder."""
import pytest
from django.test import override_settings
from django.conf import settings

from apps.messaging.content import (
    FILE,
    IMAGE,
    TEXT,
    FileContent,
    ImageContent,
    TextContent,
    build_content,
)
from apps.messaging.exceptions import ValidationError


class TestTextContent:

    def test_strips_surrounding_whitespace(self):
        assert TextContent('  hi there \n').body == 'hi there'

    @pytest.mark.parametrize('body', ['', '   ', '\n\t', None])
    def test_rejects_empty_text(self, body):
        with pytest.raises(ValidationError):
            TextContent(body)

    def test_rejects_text_over_limit(self):
        limit = settings.MESSAGING['MAX_TEXT_LENGTH']
        TextContent('a' * limit)
        with pytest.raises(ValidationError):
            TextContent('a' * (limit + 1))

    def test_limit_follows_settings(self):
        with override_settings(MESSAGING={**settings.MESSAGING, 'MAX_TEXT_LENGTH': 5}):
            with pytest.raises(ValidationError):
                TextContent('123456')

    def test_fields_and_preview(self):
        content = TextContent('hello')
        assert content.as_fields() == {'message_type': TEXT, 'text': 'hello'}
        assert content.preview == 'hello'


class TestFileContents:

    @pytest.mark.parametrize('url', ['', 'not a url', 'ftp://host/file', 'https://'])
    def test_rejects_bad_urls(self, url):
        with pytest.raises(ValidationError):
            ImageContent(url)

    def test_rejects_oversize_file(self):
        too_big = settings.MESSAGING['MAX_FILE_SIZE'] + 1
        with pytest.raises(ValidationError):
            FileContent('https://cdn.example.com/a.pdf', 'a.pdf', size=too_big)

    def test_file_requires_name(self):
        with pytest.raises(ValidationError):
            FileContent('https://cdn.example.com/a.pdf', '  ')

    def test_previews(self):
        assert ImageContent('https://cdn.example.com/p.png').preview == 'Image'
        assert FileContent('https://cdn.example.com/a.pdf', 'a.pdf').preview == 'File: a.pdf'

    def test_image_fields(self):
        fields = ImageContent('https://cdn.example.com/p.png', 'image/png', 12).as_fields()
        assert fields == {
            'message_type': IMAGE,
            'file_url': 'https://cdn.example.com/p.png',
            'file_type': 'image/png',
            'file_size': 12,
        }


class TestBuildContent:

    def test_defaults_to_text(self):
        assert build_content(None, text='hi') == TextContent('hi')

    def test_text_with_file_is_rejected(self):
        with pytest.raises(ValidationError):
            build_content(TEXT, text='hi', file_url='https://cdn.example.com/a.png')

    def test_image_with_text_is_rejected(self):
        with pytest.raises(ValidationError):
            build_content(IMAGE, text='caption', file_url='https://cdn.example.com/a.png')

    def test_unknown_type_is_rejected(self):
        with pytest.raises(ValidationError):
            build_content('video', file_url='https://cdn.example.com/a.mp4')

    def test_builds_file(self):
        content = build_content(FILE, file_url='https://cdn.example.com/a.pdf', file_name='a.pdf', file_size=3)
        assert isinstance(content, FileContent)
        assert content.name == 'a.pdf'
        assert content.size == 3
