"""
In-app notification endpoints.

Every user reads and manages their own notification list.  Clinical
staff may post a notification on behalf of another user (``userId``),
which is how alerts reach the person responsible for a patient.
"""
from datetime import timedelta

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.models import User
from core.exceptions import NotFoundError
from core.permissions import CLINICAL_ROLES
from core.serializers.notifications import (
    NotificationListQuerySerializer,
    NotificationCreateSerializer,
    NotificationIdSerializer,
)
from core.services.audit import log_action
from core.services.notifications import get_manager


def _list_payload(manager, items=None) -> dict:
    items = manager.notifications if items is None else items
    return {
        'ok': True,
        'unreadCount': manager.unread_count,
        'total': len(items),
        'data': [n.to_dict() for n in items],
    }


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def list_notifications(request):
    q = NotificationListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    manager = get_manager(request.user.id)
    kind = q.validated_data.get('type')
    items = manager.get_notifications_by_type(kind) if kind else manager.notifications
    if q.validated_data.get('unreadOnly'):
        items = [n for n in items if not n.is_read]
    return Response(_list_payload(manager, items))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def create_notification(request):
    s = NotificationCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data

    owner_id = v.get('userId') or request.user.id
    if owner_id != request.user.id:
        if getattr(request.user, 'role', None) not in CLINICAL_ROLES:
            return Response(
                {'ok': False, 'error': {'code': 'forbidden', 'message': 'Cannot notify other users'}},
                status=403,
            )
        if not User.objects.filter(id=owner_id).exists():
            raise NotFoundError(f'User not found: {owner_id}')

    auto_remove = v.get('autoRemoveAfter')
    notification = get_manager(owner_id).add_notification(
        title=v['title'],
        message=v['message'],
        type=v.get('type') or 'info',
        action_route=v.get('actionRoute') or None,
        data=v.get('data'),
        auto_remove_after=timedelta(seconds=auto_remove) if auto_remove else None,
    )
    if owner_id != request.user.id:
        log_action(user=request.user, action='notification_create', object_type='user',
                   object_id=owner_id, detail={'type': notification.type.value})
    return Response({'ok': True, 'data': notification.to_dict()}, status=201)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def mark_notification_read(request):
    s = NotificationIdSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    manager = get_manager(request.user.id)
    changed = manager.mark_as_read(s.validated_data['id'])
    return Response({'ok': True, 'changed': changed, 'unreadCount': manager.unread_count})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def mark_all_notifications_read(request):
    manager = get_manager(request.user.id)
    manager.mark_all_as_read()
    return Response({'ok': True, 'unreadCount': manager.unread_count})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def remove_notification(request):
    s = NotificationIdSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    manager = get_manager(request.user.id)
    if not manager.remove_notification(s.validated_data['id']):
        raise NotFoundError(f"Notification not found: {s.validated_data['id']}")
    return Response({'ok': True, 'unreadCount': manager.unread_count})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def clear_notifications(request):
    manager = get_manager(request.user.id)
    manager.clear_all()
    return Response({'ok': True, 'unreadCount': 0})
