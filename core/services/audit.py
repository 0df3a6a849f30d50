import logging
from typing import Optional, Any, Dict

from django.contrib.auth import get_user_model

from core.models import AuditEvent

User = get_user_model()
logger = logging.getLogger(__name__)


def request_ip(request) -> Optional[str]:
    """Client address, preferring the first hop of X-Forwarded-For."""
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def log_action(*, user: Optional[User], action: str, object_type: Optional[str] = None,
               object_id: Optional[int] = None, detail: Optional[Dict[str, Any]] = None) -> AuditEvent:
    logger.info('audit %s user=%s %s:%s', action, getattr(user, 'id', None), object_type, object_id)
    return AuditEvent.objects.create(
        user=user if isinstance(user, User) else None,
        action=action,
        object_type=object_type,
        object_id=object_id,
        detail=detail or {},
    )
