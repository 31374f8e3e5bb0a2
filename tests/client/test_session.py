"""ChatSession wiring with a fake API and live channel."""
import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from chat_client import (
    AuthorizationError,
    ChatSession,
    Conversation,
    DraftCache,
    Message,
    MessagePage,
    ReadReceipt,
    TextContent,
    TransientNetworkError,
    UnreadCount,
    ValidationError,
)

ME, THEM = 1, 2
T0 = datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)


def msg(id, sender=THEM, text='hi', conversation_id=3):
    return Message(
        id=id,
        conversation_id=conversation_id,
        sender_id=sender,
        receiver_id=ME if sender == THEM else THEM,
        content=TextContent(text),
        created_at=T0 + timedelta(seconds=id),
    )


def conv(id=3, **kwargs):
    kwargs.setdefault('status', 'active')
    return Conversation(id=id, client_id=ME, worker_id=THEM, created_at=T0, **kwargs)


class FakeAPI:

    def __init__(self):
        self.calls = []
        self.conversations = [conv(unread_count=2)]
        self.pages = {3: MessagePage(messages=[msg(1), msg(2)], has_more=True, next_before=1)}
        self.send_error = None
        self.mark_read_error = None
        self.closed = False
        self._next_id = 100

    async def list_conversations(self, status='active', page=1, limit=20):
        self.calls.append(('list', status, page))
        return list(self.conversations), {'page': page, 'limit': limit, 'total': len(self.conversations), 'pages': 1}

    async def get_or_create_conversation(self, job_id, client_id, worker_id):
        self.calls.append(('get_or_create', job_id))
        return conv(job_id=job_id), True

    async def get_messages(self, conversation_id, page=1, limit=50, before=None):
        self.calls.append(('messages', conversation_id, before))
        await asyncio.sleep(0)
        if before is not None:
            return MessagePage(messages=[msg(0)], has_more=False)
        return self.pages[conversation_id]

    async def mark_read(self, conversation_id):
        self.calls.append(('read', conversation_id))
        await asyncio.sleep(0)
        if self.mark_read_error:
            raise self.mark_read_error
        return 2

    async def send_message(self, conversation_id, content, client_token=None):
        self.calls.append(('send', conversation_id, content, client_token))
        if self.send_error:
            raise self.send_error
        self._next_id += 1
        return Message(
            id=self._next_id,
            conversation_id=conversation_id,
            sender_id=ME,
            receiver_id=THEM,
            content=content,
            created_at=T0 + timedelta(minutes=5),
            client_token=str(client_token),
        )

    async def block(self, conversation_id):
        self.calls.append(('block', conversation_id))
        return conv(conversation_id, status='blocked', blocked_by_me=True)

    async def unblock(self, conversation_id):
        return conv(conversation_id)

    async def archive(self, conversation_id):
        return conv(conversation_id, status='archived_by_client')

    async def unarchive(self, conversation_id):
        return conv(conversation_id)

    async def delete_message(self, message_id):
        self.calls.append(('delete', message_id))

    async def report_message(self, message_id, reason, description=''):
        return {'id': 1, 'message_id': message_id, 'reason': reason}

    async def get_unread_count(self):
        return UnreadCount(conversations=1, messages=2)

    async def aclose(self):
        self.closed = True


class FakeLive:

    def __init__(self):
        self.message_handlers = []
        self.read_handlers = []
        self.reconnect_handlers = []
        self.connected_as = None
        self.disconnected = False

    def on_message(self, handler):
        self.message_handlers.append(handler)

    def on_read(self, handler):
        self.read_handlers.append(handler)

    def on_reconnect(self, handler):
        self.reconnect_handlers.append(handler)

    async def connect(self, user_id):
        self.connected_as = user_id

    async def disconnect(self):
        self.disconnected = True


@pytest.fixture
def api():
    return FakeAPI()


@pytest.fixture
def live():
    return FakeLive()


@pytest.fixture
def session(api, live):
    return ChatSession(ME, api, live, DraftCache())


class TestOpen:

    async def test_open_loads_page_and_marks_read(self, session, api):
        await session.list_conversations()

        shown = await session.open(3)

        assert [m.id for m in shown] == [1, 2]
        assert ('read', 3) in api.calls
        assert session.cache.get_conversation(3).unread_count == 0
        assert session.open_conversation_id == 3

    async def test_mark_read_failure_still_shows_messages(self, session, api):
        await session.list_conversations()
        api.mark_read_error = TransientNetworkError('offline')

        shown = await session.open(3)

        assert len(shown) == 2
        assert session.cache.get_conversation(3).unread_count == 2

    async def test_load_older_uses_cursor(self, session, api):
        await session.open(3)

        older = await session.load_older(3)

        assert [m.id for m in older] == [0]
        assert ('messages', 3, 1) in api.calls
        assert [m.id for m in session.cache.get_messages(3)] == [0, 1, 2]
        assert await session.load_older(3) == []


class TestSend:

    async def test_success_clears_draft_and_caches_message(self, session, api):
        session.save_draft(3, 'see you at 5')

        message = await session.send_message(3, 'see you at 5')

        assert session.get_draft(3) is None
        assert message in session.cache.get_messages(3)
        _, _, content, token = api.calls[-1]
        assert content == TextContent('see you at 5')
        assert token is not None

    async def test_failure_restores_draft_and_reraises(self, session, api):
        api.send_error = TransientNetworkError('timeout')

        with pytest.raises(TransientNetworkError):
            await session.send_message(3, 'are you coming?')

        assert session.get_draft(3).text == 'are you coming?'
        assert session.cache.get_messages(3) == []

    async def test_retry_can_reuse_token(self, session, api):
        await session.send_message(3, 'once', client_token='fixed-token')
        assert api.calls[-1][3] == 'fixed-token'

    async def test_empty_text_never_reaches_the_server(self, session, api):
        with pytest.raises(ValidationError):
            await session.send_message(3, '   ')
        assert not any(call[0] == 'send' for call in api.calls)

    async def test_blocked_conversation_rejected_locally(self, session, api):
        await session.block_user(3)

        with pytest.raises(AuthorizationError):
            await session.send_message(3, 'hello?')

        assert not any(call[0] == 'send' for call in api.calls)
        assert session.get_draft(3).text == 'hello?'
        unblocked = await session.unblock_user(3)
        assert unblocked.status == 'active'
        await session.send_message(3, 'hello again')


class TestLiveWiring:

    async def test_connect_registers_handlers(self, session, live):
        await session.connect()
        assert live.connected_as == ME
        assert len(live.message_handlers) == 1
        assert len(live.reconnect_handlers) == 1

    async def test_incoming_message_reaches_cache_and_listeners(self, session, live):
        await session.list_conversations()
        seen = []
        session.on_message(seen.append)

        await live.message_handlers[0](msg(9, text='new quote'))

        assert [m.id for m in seen] == [9]
        assert session.cache.get_conversation(3).last_message_text == 'new quote'
        assert session.cache.get_conversation(3).unread_count == 3

    async def test_read_receipt_marks_own_messages(self, session, live):
        await session.send_message(3, 'mine')
        live.read_handlers[0](ReadReceipt(3, THEM, T0))
        assert session.cache.get_messages(3)[0].status == 'read'

    async def test_reconnect_reconciles_list_and_open_conversation(self, session, api, live):
        await session.open(3)
        api.calls.clear()

        await live.reconnect_handlers[0]()

        assert ('list', 'active', 1) in api.calls
        assert ('messages', 3, None) in api.calls

    async def test_reconcile_failure_is_contained(self, session, api):
        async def offline(**kwargs):
            raise TransientNetworkError('offline')

        api.list_conversations = offline
        await session.reconcile()


class TestTeardown:

    async def test_async_context_manager(self, api, live):
        async with ChatSession(ME, api, live) as session:
            assert live.connected_as == ME
            await session.get_unread_count()

        assert live.disconnected is True
        assert api.closed is True

    async def test_sessions_do_not_share_state(self, api, live):
        first = ChatSession(ME, api, live)
        second = ChatSession(THEM, FakeAPI(), FakeLive())
        first.save_draft(3, 'private')

        assert second.get_draft(3) is None
        assert first.cache is not second.cache

    async def test_delete_and_report(self, session, api):
        await session.open(3)

        await session.delete_message(2)
        report = await session.report_message(1, 'spam')

        assert [m.id for m in session.cache.get_messages(3)] == [1]
        assert report['reason'] == 'spam'
