# chat_client/live.py
"""
Live delivery channel: one Socket.IO connection per signed-in user.

Reconnection is driven by a supervisor task rather than python-socketio's
built-in loop. ``disconnect()`` cancels it along with any pending retry sleep,
and every connect after the first is reported through ``on_reconnect``.
"""
import asyncio
import inspect
import logging

import socketio

from .backoff import ExponentialBackoff
from .models import Message, ReadReceipt

logger = logging.getLogger(__name__)

DISCONNECTED = 'disconnected'
CONNECTING = 'connecting'
CONNECTED = 'connected'


def _default_client():
    return socketio.AsyncClient(reconnection=False)


class LiveChannel:

    def __init__(self, url, token, backoff=None, client_factory=_default_client,
                 socketio_path='socket.io', sleep=asyncio.sleep):
        self.url = url
        self.token = token
        self.socketio_path = socketio_path
        self.backoff = backoff or ExponentialBackoff(base=1.0, cap=30.0)
        self.state = DISCONNECTED
        self.user_id = None
        self.failures = 0

        self._client_factory = client_factory
        self._sleep = sleep
        self._client = None
        self._task = None
        self._connected_once = False
        self._message_handlers = []
        self._read_handlers = []
        self._reconnect_handlers = []

    # ========================================
    # HANDLERS
    # ========================================
    def on_message(self, handler):
        self._message_handlers.append(handler)
        return handler

    def on_read(self, handler):
        self._read_handlers.append(handler)
        return handler

    def on_reconnect(self, handler):
        self._reconnect_handlers.append(handler)
        return handler

    async def _fire(self, handlers, *args):
        for handler in list(handlers):
            try:
                result = handler(*args)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception('Live event handler %r failed', handler)

    async def _handle_new_message(self, data):
        try:
            message = Message.from_event(data['conversationId'], data['message'])
        except (KeyError, TypeError, ValueError):
            logger.warning('Dropping malformed new_message event')
            return
        await self._fire(self._message_handlers, message)

    async def _handle_messages_read(self, data):
        try:
            receipt = ReadReceipt.from_event(data)
        except (KeyError, TypeError, ValueError):
            logger.warning('Dropping malformed messages_read event')
            return
        await self._fire(self._read_handlers, receipt)

    # ========================================
    # LIFECYCLE
    # ========================================
    @property
    def running(self):
        return self._task is not None and not self._task.done()

    async def connect(self, user_id):
        """Start the supervisor; returns immediately, the socket comes up in the background."""
        if self.running:
            return
        self.user_id = user_id
        self._connected_once = False
        self.failures = 0
        self._task = asyncio.create_task(self._run(), name=f'live-channel-{user_id}')

    async def disconnect(self):
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        client, self._client = self._client, None
        if client is not None and client.connected:
            await client.disconnect()

        self.state = DISCONNECTED
        logger.info('Live channel closed for user %s', self.user_id)

    async def _run(self):
        while True:
            self.state = CONNECTING
            client = self._client_factory()
            client.on('new_message', self._handle_new_message)
            client.on('messages_read', self._handle_messages_read)
            self._client = client

            try:
                await client.connect(
                    self.url,
                    auth={'token': self.token},
                    socketio_path=self.socketio_path,
                    transports=['websocket'],
                )
            except socketio.exceptions.ConnectionError as exc:
                self.state = DISCONNECTED
                await self._back_off(f'connect failed: {exc}')
                continue
            except Exception:
                logger.exception('Unexpected error connecting live channel for user %s', self.user_id)
                self.state = DISCONNECTED
                await self._back_off('connect crashed')
                continue

            self.state = CONNECTED
            self.failures = 0
            if self._connected_once:
                logger.info('Live channel reconnected for user %s', self.user_id)
                await self._fire(self._reconnect_handlers)
            else:
                logger.info('Live channel connected for user %s', self.user_id)
            self._connected_once = True

            await client.wait()

            self.state = DISCONNECTED
            await self._back_off('connection lost')

    async def _back_off(self, reason):
        delay = self.backoff.delay(self.failures)
        self.failures += 1
        logger.warning('Live channel for user %s %s; retry %s in %.1fs', self.user_id, reason, self.failures, delay)
        await self._sleep(delay)
