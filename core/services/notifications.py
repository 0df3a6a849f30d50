"""
In-app notification manager.

Each user owns a :class:`NotificationManager` holding a newest-first
list of notifications and an incrementally maintained unread counter.
Managers live in process memory and are handed out by the module level
registry; a single repeating timer sweeps entries older than the
retention window out of every registered manager.  Changes are pushed
to the user's channel group so connected clients can refresh.
"""
from __future__ import annotations

import enum
import logging
import threading
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any, Optional

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.conf import settings
from django.utils import timezone

logger = logging.getLogger(__name__)


class NotificationType(str, enum.Enum):
    INFO = 'info'
    SUCCESS = 'success'
    WARNING = 'warning'
    ERROR = 'error'
    URGENT = 'urgent'
    REFERRAL = 'referral'
    REFERRAL_UPDATE = 'referral_update'
    MESSAGE = 'message'
    APPOINTMENT = 'appointment'
    EMERGENCY = 'emergency'


@dataclass(frozen=True)
class AppNotification:
    id: str
    title: str
    message: str
    type: NotificationType
    timestamp: datetime
    is_read: bool = False
    action_route: Optional[str] = None
    data: Optional[dict[str, Any]] = field(default=None)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'title': self.title,
            'message': self.message,
            'type': self.type.value,
            'timestamp': self.timestamp.isoformat(),
            'read': self.is_read,
            'actionRoute': self.action_route,
            'data': self.data,
        }


def group_name(owner_id) -> str:
    return f"notifications.{owner_id}"


class NotificationManager:
    def __init__(self, owner_id=None, *, retention_days: Optional[int] = None, publish: bool = True):
        self.owner_id = owner_id
        days = settings.NOTIFICATION_RETENTION_DAYS if retention_days is None else retention_days
        self.retention = timedelta(days=days)
        self.publish = publish
        self._notifications: list[AppNotification] = []
        self._unread_count = 0
        self._timers: dict[str, threading.Timer] = {}
        self._lock = threading.RLock()

    @property
    def notifications(self) -> list[AppNotification]:
        with self._lock:
            return list(self._notifications)

    @property
    def unread_count(self) -> int:
        return self._unread_count

    def add_notification(self, title: str, message: str, type: NotificationType = NotificationType.INFO,
                         action_route: Optional[str] = None, data: Optional[dict[str, Any]] = None,
                         auto_remove_after: Optional[timedelta] = None,
                         timestamp: Optional[datetime] = None) -> AppNotification:
        notification = AppNotification(
            id=uuid.uuid4().hex,
            title=title,
            message=message,
            type=NotificationType(type),
            timestamp=timestamp or timezone.now(),
            action_route=action_route,
            data=data,
        )
        with self._lock:
            self._notifications.insert(0, notification)
            self._unread_count += 1
            if auto_remove_after is not None:
                timer = threading.Timer(auto_remove_after.total_seconds(), self.remove_notification, args=(notification.id,))
                timer.daemon = True
                self._timers[notification.id] = timer
                timer.start()
        logger.debug('Added notification %s for %s: %s', notification.id, self.owner_id, title)
        self._publish('added', notification=notification)
        return notification

    def get(self, notification_id: str) -> Optional[AppNotification]:
        with self._lock:
            return next((n for n in self._notifications if n.id == notification_id), None)

    def mark_as_read(self, notification_id: str) -> bool:
        with self._lock:
            index = self._index_of(notification_id)
            if index is None or self._notifications[index].is_read:
                return False
            self._notifications[index] = replace(self._notifications[index], is_read=True)
            self._unread_count = max(0, min(self._unread_count - 1, len(self._notifications)))
        self._publish('read', notification_id=notification_id)
        return True

    def mark_all_as_read(self) -> None:
        with self._lock:
            self._notifications = [n if n.is_read else replace(n, is_read=True) for n in self._notifications]
            self._unread_count = 0
        self._publish('read_all')

    def remove_notification(self, notification_id: str) -> bool:
        with self._lock:
            timer = self._timers.pop(notification_id, None)
            if timer is not None:
                timer.cancel()
            index = self._index_of(notification_id)
            if index is None:
                return False
            removed = self._notifications.pop(index)
            if not removed.is_read:
                self._unread_count = max(0, min(self._unread_count - 1, len(self._notifications)))
        self._publish('removed', notification_id=notification_id)
        return True

    def clear_all(self) -> None:
        with self._lock:
            for timer in self._timers.values():
                timer.cancel()
            self._timers.clear()
            self._notifications.clear()
            self._unread_count = 0
        self._publish('cleared')

    def get_notifications_by_type(self, type: NotificationType) -> list[AppNotification]:
        type = NotificationType(type)
        with self._lock:
            return [n for n in self._notifications if n.type == type]

    def get_urgent_notifications(self) -> list[AppNotification]:
        return self.get_notifications_by_type(NotificationType.URGENT)

    def show_system_notification(self, title: str, message: str,
                                 type: NotificationType = NotificationType.INFO) -> AppNotification:
        notification = self.add_notification(title=title, message=message, type=type)
        logger.info('System notification for %s: %s - %s', self.owner_id, title, message)
        return notification

    def send_critical_alert(self, title: str, message: str, patient_id, risk_level: float) -> AppNotification:
        notification = self.add_notification(
            title=title,
            message=message,
            type=NotificationType.URGENT,
            data={'patientId': patient_id, 'riskLevel': risk_level, 'alertType': 'critical'},
        )
        self.show_system_notification(title=title, message=message, type=NotificationType.URGENT)
        return notification

    def send_alert(self, title: str, message: str, patient_id, priority: Optional[str] = None,
                   metadata: Optional[dict[str, Any]] = None) -> AppNotification:
        type = NotificationType.URGENT if priority == 'high' else NotificationType.WARNING
        return self.add_notification(
            title=title,
            message=message,
            type=type,
            data={'patientId': patient_id, 'alertType': 'regular', 'priority': priority, **(metadata or {})},
        )

    def sweep(self, now: Optional[datetime] = None) -> int:
        """Drop notifications older than the retention window."""
        cutoff = (now or timezone.now()) - self.retention
        with self._lock:
            initial = len(self._notifications)
            self._notifications = [n for n in self._notifications if n.timestamp >= cutoff]
            removed = initial - len(self._notifications)
            if removed:
                self._unread_count = sum(1 for n in self._notifications if not n.is_read)
        if removed:
            logger.info('Cleaned up %d old notifications for %s', removed, self.owner_id)
            self._publish('swept', removed=removed)
        return removed

    def _index_of(self, notification_id: str) -> Optional[int]:
        for i, n in enumerate(self._notifications):
            if n.id == notification_id:
                return i
        return None

    def _publish(self, event: str, *, notification: Optional[AppNotification] = None, **extra) -> None:
        if not self.publish or self.owner_id is None:
            return
        channel_layer = get_channel_layer()
        if channel_layer is None:
            return
        payload = {
            'type': 'notification.event',
            'event': event,
            'unreadCount': self._unread_count,
            **extra,
        }
        if notification is not None:
            payload['notification'] = notification.to_dict()
        try:
            async_to_sync(channel_layer.group_send)(group_name(self.owner_id), payload)
        except Exception as e:
            logger.warning('Failed to publish notification event %s: %s', event, e)


class NotificationSweeper:
    """Repeating timer that sweeps every manager of a registry."""

    def __init__(self, registry: 'NotificationRegistry', interval: float):
        self.registry = registry
        self.interval = interval
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._timer is not None

    def start(self) -> None:
        with self._lock:
            if self._timer is None:
                self._schedule()

    def stop(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _schedule(self) -> None:
        self._timer = threading.Timer(self.interval, self._run)
        self._timer.daemon = True
        self._timer.start()

    def _run(self) -> None:
        try:
            self.registry.sweep_all()
        except Exception:
            logger.exception('Notification sweep failed')
        with self._lock:
            if self._timer is not None:
                self._schedule()


class NotificationRegistry:
    def __init__(self):
        self._managers: dict[Any, NotificationManager] = {}
        self._lock = threading.Lock()
        self.sweeper: Optional[NotificationSweeper] = None

    def get(self, owner_id) -> NotificationManager:
        with self._lock:
            manager = self._managers.get(owner_id)
            if manager is None:
                manager = self._managers[owner_id] = NotificationManager(owner_id)
            return manager

    def managers(self) -> list[NotificationManager]:
        with self._lock:
            return list(self._managers.values())

    def sweep_all(self, now: Optional[datetime] = None) -> int:
        return sum(m.sweep(now) for m in self.managers())

    def start_sweeper(self, interval: Optional[float] = None) -> NotificationSweeper:
        with self._lock:
            if self.sweeper is None:
                self.sweeper = NotificationSweeper(self, interval or settings.NOTIFICATION_SWEEP_INTERVAL)
        self.sweeper.start()
        return self.sweeper

    def stop_sweeper(self) -> None:
        if self.sweeper is not None:
            self.sweeper.stop()

    def reset(self) -> None:
        self.stop_sweeper()
        with self._lock:
            for manager in self._managers.values():
                manager.clear_all()
            self._managers.clear()
            self.sweeper = None


registry = NotificationRegistry()


def get_manager(owner_id) -> NotificationManager:
    manager = registry.get(owner_id)
    if settings.NOTIFICATION_SWEEP_AUTOSTART:
        registry.start_sweeper()
    return manager
