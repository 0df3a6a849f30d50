import pytest
from asgiref.sync import async_to_sync, sync_to_async
from channels.testing import WebsocketCommunicator
from django.contrib.auth.models import AnonymousUser

from core.realtime.consumers import NotificationsConsumer
from core.services.notifications import get_manager

# Channels consumers close stale DB connections on dispatch; allow DB access.
pytestmark = pytest.mark.django_db


class StubUser:
    id = 42
    is_authenticated = True


def _communicator(user):
    communicator = WebsocketCommunicator(NotificationsConsumer.as_asgi(), '/ws/notifications/')
    communicator.scope['user'] = user
    return communicator


def test_anonymous_connection_is_refused():
    async def run():
        communicator = _communicator(AnonymousUser())
        connected, code = await communicator.connect()
        assert connected is False
        assert code == 4003

    async_to_sync(run)()


def test_snapshot_then_live_events():
    get_manager(42).add_notification('Existing', 'msg')

    async def run():
        communicator = _communicator(StubUser())
        connected, _ = await communicator.connect()
        assert connected

        snapshot = await communicator.receive_json_from()
        assert snapshot['type'] == 'snapshot'
        assert snapshot['unreadCount'] == 1
        assert [n['title'] for n in snapshot['data']] == ['Existing']

        await sync_to_async(get_manager(42).add_notification)('Referral accepted', 'Dr. Heart', type='referral')
        event = await communicator.receive_json_from()
        assert event['event'] == 'added'
        assert event['unreadCount'] == 2
        assert event['notification']['type'] == 'referral'

        await communicator.send_json_to({'type': 'read_all'})
        event = await communicator.receive_json_from()
        assert event['event'] == 'read_all'
        assert event['unreadCount'] == 0

        await communicator.send_json_to({'type': 'bogus'})
        error = await communicator.receive_json_from()
        assert error == {'type': 'error', 'code': 4002, 'message': 'unsupported_type'}

        await communicator.disconnect()

    async_to_sync(run)()
