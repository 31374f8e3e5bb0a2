# chat_client/api.py
"""
Async REST client for the ``/api/chat/`` endpoints.

One instance per signed-in user. Every call has a timeout; idempotent calls
are retried on ``TransientNetworkError``, sends and deletes never are.
"""
import asyncio
import logging

import httpx

from .backoff import ExponentialBackoff
from .exceptions import TransientNetworkError, error_from_response
from .models import Conversation, FileContent, ImageContent, Message, MessagePage, UnreadCount

logger = logging.getLogger(__name__)


class ChatAPI:

    def __init__(self, base_url, token, timeout=10.0, max_retries=2, backoff=None, transport=None, sleep=asyncio.sleep):
        self.max_retries = max_retries
        self.backoff = backoff or ExponentialBackoff(base=0.25, cap=4.0)
        self._sleep = sleep
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip('/') + '/',
            headers={'Authorization': f'Bearer {token}', 'Accept': 'application/json'},
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def aclose(self):
        await self._client.aclose()

    # ========================================
    # TRANSPORT
    # ========================================
    async def _send_once(self, method, path, **kwargs):
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise TransientNetworkError('Request timed out') from exc
        except httpx.TransportError as exc:
            raise TransientNetworkError(f'Network error: {exc}') from exc

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error:
            raise error_from_response(response.status_code, body)
        return body or {}

    async def _request(self, method, path, idempotent=False, **kwargs):
        attempt = 0
        while True:
            try:
                return await self._send_once(method, path, **kwargs)
            except TransientNetworkError as exc:
                if not idempotent or attempt >= self.max_retries:
                    raise
                delay = self.backoff.delay(attempt)
                attempt += 1
                logger.warning('%s %s failed (%s), retry %s in %.2fs', method, path, exc.message, attempt, delay)
                await self._sleep(delay)

    # ========================================
    # CONVERSATIONS
    # ========================================
    async def get_or_create_conversation(self, job_id, client_id, worker_id):
        body = await self._request(
            'POST', 'conversations/', idempotent=True,
            json={'job_id': job_id, 'client_id': client_id, 'worker_id': worker_id},
        )
        return Conversation.from_dict(body['data']), bool(body.get('created'))

    async def list_conversations(self, status='active', page=1, limit=20):
        body = await self._request(
            'GET', 'conversations/', idempotent=True,
            params={'status': status, 'page': page, 'limit': limit},
        )
        return [Conversation.from_dict(item) for item in body['data']], body.get('pagination', {})

    async def get_conversation(self, conversation_id):
        body = await self._request('GET', f'conversations/{conversation_id}/', idempotent=True)
        return Conversation.from_dict(body['data'])

    async def _set_status(self, conversation_id, action):
        body = await self._request('PATCH', f'conversations/{conversation_id}/{action}/', idempotent=True)
        return Conversation.from_dict(body['data'])

    async def archive(self, conversation_id):
        return await self._set_status(conversation_id, 'archive')

    async def unarchive(self, conversation_id):
        return await self._set_status(conversation_id, 'unarchive')

    async def block(self, conversation_id):
        return await self._set_status(conversation_id, 'block')

    async def unblock(self, conversation_id):
        return await self._set_status(conversation_id, 'unblock')

    # ========================================
    # MESSAGES
    # ========================================
    async def get_messages(self, conversation_id, page=1, limit=50, before=None):
        params = {'limit': limit}
        if before is not None:
            params['before'] = before
        else:
            params['page'] = page

        body = await self._request('GET', f'conversations/{conversation_id}/messages/', idempotent=True, params=params)
        pagination = body.get('pagination', {})
        return MessagePage(
            messages=[Message.from_dict(item) for item in body['data']],
            has_more=bool(pagination.get('has_more')),
            next_before=pagination.get('next_before'),
        )

    async def send_message(self, conversation_id, content, client_token=None):
        payload = {key: value for key, value in content.to_payload().items() if value is not None}
        if client_token is not None:
            payload['client_token'] = str(client_token)

        body = await self._request('POST', f'conversations/{conversation_id}/messages/', json=payload)
        return Message.from_dict(body['data'])

    async def mark_read(self, conversation_id):
        body = await self._request('PATCH', f'conversations/{conversation_id}/messages/read/', idempotent=True)
        return body.get('updated', 0)

    async def delete_message(self, message_id):
        await self._request('DELETE', f'messages/{message_id}/')

    async def report_message(self, message_id, reason, description=''):
        body = await self._request(
            'POST', f'messages/{message_id}/report/', idempotent=True,
            json={'reason': reason, 'description': description},
        )
        return body['data']

    async def get_unread_count(self):
        body = await self._request('GET', 'unread-count/', idempotent=True)
        data = body.get('data', {})
        return UnreadCount(conversations=data.get('conversations', 0), messages=data.get('messages', 0))

    async def upload_attachment(self, filename, data, content_type='application/octet-stream'):
        """Upload a file and return the content to send for it."""
        body = await self._request('POST', 'attachments/', files={'file': (filename, data, content_type)})
        info = body['data']
        if info['message_type'] == 'image':
            return ImageContent(info['file_url'], info.get('file_type') or '', info.get('file_size'))
        return FileContent(info['file_url'], info['file_name'], info.get('file_size'), info.get('file_type') or '')
