from datetime import timedelta

import pytest
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.utils import timezone

from core.services.notifications import (
    NotificationManager,
    NotificationRegistry,
    NotificationType,
    get_manager,
    group_name,
    registry,
)


@pytest.fixture
def manager():
    return NotificationManager(owner_id=1, publish=False)


def test_add_inserts_newest_first(manager):
    first = manager.add_notification('First', 'one')
    second = manager.add_notification('Second', 'two', type=NotificationType.SUCCESS)
    assert [n.id for n in manager.notifications] == [second.id, first.id]
    assert manager.unread_count == 2
    assert second.type is NotificationType.SUCCESS
    assert first.id != second.id


def test_mark_as_read_is_idempotent(manager):
    n = manager.add_notification('Title', 'msg')
    assert manager.mark_as_read(n.id) is True
    assert manager.mark_as_read(n.id) is False
    assert manager.mark_as_read('missing') is False
    assert manager.unread_count == 0
    assert manager.get(n.id).is_read is True


def test_mark_all_and_clear(manager):
    for i in range(3):
        manager.add_notification(f'T{i}', 'msg')
    manager.mark_all_as_read()
    assert manager.unread_count == 0
    assert all(n.is_read for n in manager.notifications)
    manager.clear_all()
    assert manager.notifications == []
    assert manager.unread_count == 0


def test_remove_adjusts_unread_only_for_unread(manager):
    read = manager.add_notification('Read', 'msg')
    unread = manager.add_notification('Unread', 'msg')
    manager.mark_as_read(read.id)
    assert manager.unread_count == 1

    assert manager.remove_notification(read.id) is True
    assert manager.unread_count == 1
    assert manager.remove_notification(unread.id) is True
    assert manager.unread_count == 0
    assert manager.remove_notification(unread.id) is False


def test_filter_by_type(manager):
    manager.add_notification('Info', 'msg')
    urgent = manager.add_notification('Urgent', 'msg', type='urgent')
    assert manager.get_urgent_notifications() == [urgent]
    assert len(manager.get_notifications_by_type(NotificationType.INFO)) == 1


def test_critical_alert_adds_alert_and_system_notification(manager):
    alert = manager.send_critical_alert('Critical', 'BP spike', patient_id='p-1', risk_level=0.92)
    assert alert.type is NotificationType.URGENT
    assert alert.data == {'patientId': 'p-1', 'riskLevel': 0.92, 'alertType': 'critical'}
    assert len(manager.notifications) == 2
    assert manager.unread_count == 2


@pytest.mark.parametrize('priority,expected', [('high', NotificationType.URGENT), ('low', NotificationType.WARNING),
                                               (None, NotificationType.WARNING)])
def test_send_alert_priority(manager, priority, expected):
    n = manager.send_alert('Alert', 'msg', patient_id=7, priority=priority, metadata={'ward': 'B'})
    assert n.type is expected
    assert n.data == {'patientId': 7, 'alertType': 'regular', 'priority': priority, 'ward': 'B'}


def test_sweep_removes_old_entries(manager):
    now = timezone.now()
    manager.add_notification('Old', 'msg', timestamp=now - timedelta(days=31))
    old_read = manager.add_notification('Old read', 'msg', timestamp=now - timedelta(days=40))
    manager.mark_as_read(old_read.id)
    fresh = manager.add_notification('Fresh', 'msg', timestamp=now - timedelta(days=29))

    assert manager.sweep(now) == 2
    assert manager.notifications == [fresh]
    assert manager.unread_count == 1
    assert manager.sweep(now) == 0


def test_auto_remove_after_delay(manager):
    n = manager.add_notification('Temp', 'msg', auto_remove_after=timedelta(seconds=60))
    timer = manager._timers[n.id]
    assert timer.daemon is True
    # removing early cancels the pending timer
    manager.remove_notification(n.id)
    assert n.id not in manager._timers
    assert timer.finished.is_set()


def test_auto_remove_fires_after_delay(manager):
    kept = manager.add_notification('Kept', 'msg')
    n = manager.add_notification('Temp', 'msg', auto_remove_after=timedelta(seconds=0.2))
    timer = manager._timers[n.id]
    timer.join(timeout=2)
    assert not timer.is_alive()
    assert manager.notifications == [kept]
    assert manager.unread_count == 1
    assert n.id not in manager._timers


def test_registry_hands_out_one_manager_per_owner():
    reg = NotificationRegistry()
    assert reg.get(1) is reg.get(1)
    assert reg.get(1) is not reg.get(2)
    reg.get(1).add_notification('Old', 'msg', timestamp=timezone.now() - timedelta(days=60))
    reg.get(2).add_notification('Old', 'msg', timestamp=timezone.now() - timedelta(days=60))
    assert reg.sweep_all() == 2
    reg.reset()


def test_sweeper_start_stop():
    reg = NotificationRegistry()
    sweeper = reg.start_sweeper(interval=3600)
    assert sweeper.running is True
    assert reg.start_sweeper() is sweeper
    reg.stop_sweeper()
    assert sweeper.running is False


def test_sweeper_run_sweeps_and_reschedules():
    reg = NotificationRegistry()
    stale = timezone.now() - timedelta(days=60)
    reg.get(1).add_notification('Old', 'msg', timestamp=stale)
    fresh = reg.get(2).add_notification('Fresh', 'msg')
    reg.get(2).add_notification('Old', 'msg', timestamp=stale)
    sweeper = reg.start_sweeper(interval=3600)
    first_timer = sweeper._timer

    sweeper._run()
    first_timer.cancel()

    assert reg.get(1).notifications == []
    assert reg.get(2).notifications == [fresh]
    assert sweeper.running is True
    assert sweeper._timer is not first_timer
    reg.reset()
    assert sweeper.running is False


def test_get_manager_autostarts_sweeper(settings):
    settings.NOTIFICATION_SWEEP_AUTOSTART = True
    get_manager(5)
    assert registry.sweeper is not None and registry.sweeper.running
    registry.stop_sweeper()


def test_changes_are_published_to_owner_group():
    layer = get_channel_layer()
    async_to_sync(layer.group_add)(group_name(9), 'test-channel')
    manager = NotificationManager(owner_id=9)
    manager.add_notification('Hello', 'world', type='message')

    message = async_to_sync(layer.receive)('test-channel')
    assert message['type'] == 'notification.event'
    assert message['event'] == 'added'
    assert message['unreadCount'] == 1
    assert message['notification']['title'] == 'Hello'
    assert message['notification']['type'] == 'message'


# ---------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------
@pytest.mark.django_db
def test_notification_endpoints_flow(patient, client_for):
    client = client_for(patient)
    r = client.post('/api/notifications/create',
                    {'title': 'Order shipped', 'message': 'On its way', 'type': 'success', 'actionRoute': '/orders'},
                    format='json')
    assert r.status_code == 201
    first_id = r.data['data']['id']
    assert r.data['data']['actionRoute'] == '/orders'
    client.post('/api/notifications/create', {'title': 'Reminder', 'message': 'Take meds'}, format='json')

    r = client.get('/api/notifications')
    assert r.data['unreadCount'] == 2
    assert [n['title'] for n in r.data['data']] == ['Reminder', 'Order shipped']

    r = client.post('/api/notifications/read', {'id': first_id}, format='json')
    assert r.data == {'ok': True, 'changed': True, 'unreadCount': 1}

    r = client.get('/api/notifications', {'unreadOnly': 'true'})
    assert [n['title'] for n in r.data['data']] == ['Reminder']
    r = client.get('/api/notifications', {'type': 'success'})
    assert [n['title'] for n in r.data['data']] == ['Order shipped']

    assert client.post('/api/notifications/read-all', {}, format='json').data['unreadCount'] == 0
    assert client.post('/api/notifications/remove', {'id': first_id}, format='json').status_code == 200
    assert client.post('/api/notifications/remove', {'id': first_id}, format='json').status_code == 404
    assert client.post('/api/notifications/clear', {}, format='json').status_code == 200
    assert client.get('/api/notifications').data['total'] == 0


@pytest.mark.django_db
def test_only_clinical_staff_notify_other_users(patient, physician, client_for):
    body = {'userId': patient.id, 'title': 'Referral update', 'message': 'Accepted', 'type': 'referral_update'}
    r = client_for(physician).post('/api/notifications/create', body, format='json')
    assert r.status_code == 201
    assert get_manager(patient.id).unread_count == 1

    body['userId'] = physician.id
    r = client_for(patient).post('/api/notifications/create', body, format='json')
    assert r.status_code == 403

    body['userId'] = 999999
    r = client_for(physician).post('/api/notifications/create', body, format='json')
    assert r.status_code == 404
