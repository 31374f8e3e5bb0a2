"""REST surface under /api/chat/ and the login endpoint."""
import uuid
from unittest import mock

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse

from apps.messaging.models import Conversation, Message, MessageReport

pytestmark = pytest.mark.django_db


def _error_code(response):
    assert response.data['success'] is False
    return response.data['error']['code']


class TestConversationEndpoints:

    def test_create_then_reuse(self, api_client, client_user, worker_user):
        client = api_client(client_user)
        url = reverse('chat-conversations')
        body = {'job_id': 11, 'client_id': client_user.pk, 'worker_id': worker_user.pk}

        created = client.post(url, body, format='json')
        again = api_client(worker_user).post(url, body, format='json')

        assert created.status_code == 201
        assert created.data['created'] is True
        assert again.status_code == 200
        assert again.data['data']['id'] == created.data['data']['id']
        assert created.data['data']['my_role'] == 'client'
        assert again.data['data']['my_role'] == 'worker'
        assert again.data['data']['other_user_id'] == client_user.pk

    def test_create_rejects_same_participants(self, api_client, client_user):
        response = api_client(client_user).post(
            reverse('chat-conversations'),
            {'client_id': client_user.pk, 'worker_id': client_user.pk},
            format='json',
        )
        assert response.status_code == 400
        assert _error_code(response) == 'VALIDATION_ERROR'

    def test_list_with_pagination(self, api_client, client_user, conversation):
        response = api_client(client_user).get(reverse('chat-conversations'), {'status': 'active', 'limit': 5})

        assert response.status_code == 200
        assert [c['id'] for c in response.data['data']] == [conversation.pk]
        assert response.data['pagination'] == {'page': 1, 'limit': 5, 'total': 1, 'pages': 1}

    def test_list_default_limit_comes_from_settings(self, api_client, client_user, conversation, settings):
        settings.MESSAGING = {**settings.MESSAGING, 'CONVERSATION_PAGE_SIZE': 7}

        response = api_client(client_user).get(reverse('chat-conversations'))

        assert response.data['pagination']['limit'] == 7

    def test_list_rejects_bad_filter(self, api_client, client_user):
        response = api_client(client_user).get(reverse('chat-conversations'), {'status': 'gone'})
        assert response.status_code == 400
        assert _error_code(response) == 'VALIDATION_ERROR'

    def test_list_rejects_oversized_limit(self, api_client, client_user):
        response = api_client(client_user).get(reverse('chat-conversations'), {'limit': 1000})
        assert response.status_code == 400

    def test_detail_for_outsider_is_forbidden(self, api_client, outsider, conversation):
        response = api_client(outsider).get(reverse('chat-detail', args=[conversation.pk]))
        assert response.status_code == 403
        assert _error_code(response) == 'FORBIDDEN'
        assert response.data['error']['retryable'] is False

    def test_detail_missing(self, api_client, client_user):
        response = api_client(client_user).get(reverse('chat-detail', args=[99999]))
        assert response.status_code == 404
        assert _error_code(response) == 'NOT_FOUND'

    def test_status_actions(self, api_client, client_user, worker_user, conversation):
        client = api_client(client_user)

        archived = client.patch(reverse('chat-archive', args=[conversation.pk]))
        assert archived.data['data']['status'] == Conversation.ARCHIVED_BY_CLIENT

        restored = client.patch(reverse('chat-unarchive', args=[conversation.pk]))
        assert restored.data['data']['status'] == Conversation.ACTIVE

        blocked = client.patch(reverse('chat-block', args=[conversation.pk]))
        assert blocked.data['data']['status'] == Conversation.BLOCKED
        assert blocked.data['data']['blocked_by_me'] is True

        refused = api_client(worker_user).patch(reverse('chat-unblock', args=[conversation.pk]))
        assert refused.status_code == 403

        unblocked = client.patch(reverse('chat-unblock', args=[conversation.pk]))
        assert unblocked.data['data']['status'] == Conversation.ACTIVE

    def test_requires_authentication(self, api_client):
        response = api_client().get(reverse('chat-conversations'))
        assert response.status_code == 401
        assert _error_code(response) == 'UNAUTHORIZED'


class TestMessageEndpoints:

    def test_send_and_fetch(self, api_client, client_user, worker_user, conversation):
        token = str(uuid.uuid4())
        sent = api_client(client_user).post(
            reverse('chat-messages', args=[conversation.pk]),
            {'text': 'When can you come by?', 'client_token': token},
            format='json',
        )
        assert sent.status_code == 201
        assert sent.data['data']['text'] == 'When can you come by?'
        assert sent.data['data']['client_token'] == token
        assert sent.data['data']['is_send_by_me'] is True

        fetched = api_client(worker_user).get(reverse('chat-messages', args=[conversation.pk]))
        assert fetched.status_code == 200
        assert fetched.data['conversation_id'] == conversation.pk
        assert [m['id'] for m in fetched.data['data']] == [sent.data['data']['id']]
        assert fetched.data['data'][0]['status'] == Message.DELIVERED
        assert fetched.data['pagination']['has_more'] is False

    def test_message_page_size_comes_from_settings(self, api_client, client_user, conversation, send, settings):
        settings.MESSAGING = {**settings.MESSAGING, 'MESSAGE_PAGE_SIZE': 2}
        sent = [send(conversation, client_user, f'note {i}') for i in range(3)]

        response = api_client(client_user).get(reverse('chat-messages', args=[conversation.pk]))

        assert [m['id'] for m in response.data['data']] == [sent[1].pk, sent[2].pk]
        assert response.data['pagination']['limit'] == 2
        assert response.data['pagination']['has_more'] is True

    def test_retry_with_same_token_does_not_duplicate(self, api_client, client_user, conversation):
        client = api_client(client_user)
        url = reverse('chat-messages', args=[conversation.pk])
        body = {'text': 'once', 'client_token': str(uuid.uuid4())}

        first = client.post(url, body, format='json')
        second = client.post(url, body, format='json')

        assert first.data['data']['id'] == second.data['data']['id']
        assert Message.objects.filter(conversation=conversation).count() == 1

    @pytest.mark.parametrize('body', [
        {'text': '   '},
        {'message_type': 'image', 'text': 'caption', 'file_url': 'https://cdn.example.com/a.png'},
        {'message_type': 'file', 'file_url': 'https://cdn.example.com/a.pdf'},
        {'message_type': 'image', 'file_url': 'javascript:alert(1)'},
    ])
    def test_send_rejects_invalid_payloads(self, api_client, client_user, conversation, body):
        response = api_client(client_user).post(reverse('chat-messages', args=[conversation.pk]), body, format='json')
        assert response.status_code == 400
        assert _error_code(response) == 'VALIDATION_ERROR'
        assert not Message.objects.exists()

    def test_send_into_blocked_conversation(self, api_client, client_user, worker_user, conversation):
        api_client(worker_user).patch(reverse('chat-block', args=[conversation.pk]))
        response = api_client(client_user).post(
            reverse('chat-messages', args=[conversation.pk]), {'text': 'hello?'}, format='json',
        )
        assert response.status_code == 403
        assert _error_code(response) == 'FORBIDDEN'

    def test_mark_read_and_unread_count(self, api_client, client_user, worker_user, conversation, send):
        send(conversation, client_user, 'one')
        send(conversation, client_user, 'two')
        worker = api_client(worker_user)

        before = worker.get(reverse('chat-unread-count'))
        assert before.data['data'] == {'conversations': 1, 'messages': 2}

        read = worker.patch(reverse('chat-mark-read', args=[conversation.pk]))
        assert read.data == {'success': True, 'updated': 2}

        after = worker.get(reverse('chat-unread-count'))
        assert after.data['data'] == {'conversations': 0, 'messages': 0}

    def test_delete_message(self, api_client, client_user, worker_user, conversation, send):
        sent = send(conversation, client_user)

        forbidden = api_client(worker_user).delete(reverse('chat-message-detail', args=[sent.pk]))
        assert forbidden.status_code == 403

        deleted = api_client(client_user).delete(reverse('chat-message-detail', args=[sent.pk]))
        assert deleted.status_code == 200

        gone = api_client(client_user).delete(reverse('chat-message-detail', args=[sent.pk]))
        assert gone.status_code == 404

    def test_report_message(self, api_client, client_user, worker_user, conversation, send):
        sent = send(conversation, client_user)
        url = reverse('chat-message-report', args=[sent.pk])

        first = api_client(worker_user).post(url, {'reason': 'spam'}, format='json')
        second = api_client(worker_user).post(url, {'reason': 'other', 'description': 'odd link'}, format='json')

        assert first.status_code == 201
        assert second.status_code == 200
        assert MessageReport.objects.get(message=sent).reason == 'other'

    def test_report_rejects_unknown_reason(self, api_client, client_user, worker_user, conversation, send):
        sent = send(conversation, client_user)
        response = api_client(worker_user).post(
            reverse('chat-message-report', args=[sent.pk]), {'reason': 'boring'}, format='json',
        )
        assert response.status_code == 400


class TestAttachments:

    def test_image_upload(self, api_client, client_user):
        upload = SimpleUploadedFile('photo.png', b'\x89PNG fake', content_type='image/png')
        result = {'secure_url': 'https://res.cloudinary.com/demo/photo.png', 'bytes': 9, 'public_id': 'chat/1/photo'}

        with mock.patch('apps.messaging.attachments.cloudinary.uploader.upload', return_value=result) as upload_call:
            response = api_client(client_user).post(reverse('chat-attachments'), {'file': upload}, format='multipart')

        assert response.status_code == 201
        assert response.data['data'] == {
            'message_type': 'image',
            'file_url': 'https://res.cloudinary.com/demo/photo.png',
            'file_type': 'image/png',
            'file_name': 'photo.png',
            'file_size': 9,
        }
        assert upload_call.call_args.kwargs['folder'] == f'chat/{client_user.pk}'

    def test_upload_failure_is_retryable(self, api_client, client_user):
        from cloudinary.exceptions import Error as CloudinaryError

        upload = SimpleUploadedFile('notes.pdf', b'%PDF', content_type='application/pdf')
        with mock.patch('apps.messaging.attachments.cloudinary.uploader.upload', side_effect=CloudinaryError('down')):
            response = api_client(client_user).post(reverse('chat-attachments'), {'file': upload}, format='multipart')

        assert response.status_code == 503
        assert _error_code(response) == 'TRANSIENT_ERROR'
        assert response.data['error']['retryable'] is True


class TestLogin:

    def test_login_returns_tokens(self, api_client, make_user):
        user = make_user('worker', email='pat@example.com')
        response = api_client().post(
            reverse('login'), {'email': 'pat@example.com', 'password': 'pass12345'}, format='json',
        )
        assert response.status_code == 200
        assert response.data['tokens']['access']
        assert response.data['user']['id'] == user.pk

    def test_login_rejects_bad_password(self, api_client, make_user):
        make_user('worker', email='pat@example.com')
        response = api_client().post(
            reverse('login'), {'email': 'pat@example.com', 'password': 'wrong'}, format='json',
        )
        assert response.status_code == 400
        assert _error_code(response) == 'VALIDATION_ERROR'
