import itertools

import pytest
from rest_framework.test import APIClient

from apps.messaging import delivery
from apps.messaging.content import TextContent
from apps.messaging.services import conversations, messages

_seq = itertools.count(1)


class RecordingPublisher:
    """Stands in for the Socket.IO publisher and keeps every emitted event."""

    def __init__(self):
        self.events = []

    def emit(self, event, payload, room):
        self.events.append((event, payload, room))


@pytest.fixture(autouse=True)
def live_events(monkeypatch):
    publisher = RecordingPublisher()
    monkeypatch.setattr(delivery, 'get_publisher', lambda: publisher)
    return publisher.events


@pytest.fixture
def make_user(db, django_user_model):
    def _make(user_type='client', **kwargs):
        n = next(_seq)
        kwargs.setdefault('username', f'{user_type}{n}')
        kwargs.setdefault('email', f'{user_type}{n}@example.com')
        kwargs.setdefault('full_name', f'{user_type.title()} {n}')
        return django_user_model.objects.create_user(password='pass12345', user_type=user_type, **kwargs)
    return _make


@pytest.fixture
def client_user(make_user):
    return make_user('client')


@pytest.fixture
def worker_user(make_user):
    return make_user('worker')


@pytest.fixture
def outsider(make_user):
    return make_user('client')


@pytest.fixture
def new_job_id():
    return lambda: next(_seq)


@pytest.fixture
def conversation(client_user, worker_user, new_job_id):
    conv, _ = conversations.get_or_create_conversation(new_job_id(), client_user.pk, worker_user.pk, client_user)
    return conv


@pytest.fixture
def send():
    def _send(conversation, sender, text='hello', **kwargs):
        return messages.send_message(conversation.pk, sender, TextContent(text), **kwargs)
    return _send


@pytest.fixture
def api_client():
    def _client(user=None):
        client = APIClient()
        if user is not None:
            client.force_authenticate(user=user)
        return client
    return _client
