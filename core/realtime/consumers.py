import json

from asgiref.sync import sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from django.contrib.auth.models import AnonymousUser

from core.services.notifications import get_manager, group_name


async def _ws_error(ws, code: int, message: str, *, close: bool = False):
    payload = {"type": "error", "code": code, "message": message}
    try:
        await ws.send(json.dumps(payload))
    finally:
        if close:
            await ws.close(code=code)


class NotificationsConsumer(AsyncWebsocketConsumer):
    """Live notification feed for the connected user.

    On connect the client receives a ``snapshot`` of its list; afterwards
    every change made through the manager arrives as a
    ``notification.event`` message.  Clients may send ``read``,
    ``read_all`` and ``remove`` commands.
    """

    async def connect(self):
        user = self.scope.get("user") or AnonymousUser()
        if not user.is_authenticated:
            await self.close(code=4003)
            return
        self.owner_id = user.id
        self.group_name = group_name(user.id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        await self.send(json.dumps(await sync_to_async(self._snapshot)()))

    async def disconnect(self, close_code):
        if hasattr(self, "group_name"):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def receive(self, text_data=None, bytes_data=None):
        if not text_data:
            return
        try:
            data = json.loads(text_data)
        except ValueError:
            await _ws_error(self, 4000, "invalid_json")
            return
        if not isinstance(data, dict):
            await _ws_error(self, 4001, "invalid_payload")
            return

        kind = data.get("type")
        manager = get_manager(self.owner_id)
        if kind == "read":
            await sync_to_async(manager.mark_as_read)(str(data.get("id", "")))
        elif kind == "read_all":
            await sync_to_async(manager.mark_all_as_read)()
        elif kind == "remove":
            await sync_to_async(manager.remove_notification)(str(data.get("id", "")))
        else:
            await _ws_error(self, 4002, "unsupported_type")

    async def notification_event(self, event):
        # event: {"type": "notification.event", "event": "added", "unreadCount": int, ...}
        await self.send(json.dumps(event))

    def _snapshot(self) -> dict:
        manager = get_manager(self.owner_id)
        return {
            "type": "snapshot",
            "unreadCount": manager.unread_count,
            "data": [n.to_dict() for n in manager.notifications],
        }
