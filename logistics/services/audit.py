import logging
from typing import Optional, Any, Dict

from logistics.models import AuditEvent

logger = logging.getLogger(__name__)


def log_action(*, user_id: Optional[int], action: str, object_type: Optional[str] = None,
               object_id: Optional[int] = None, detail: Optional[Dict[str, Any]] = None) -> Optional[AuditEvent]:
    """Append an audit row; a failed write is logged and never propagates."""
    try:
        return AuditEvent.objects.create(
            user_id=user_id,
            action=action,
            object_type=object_type, object_id=object_id,
            detail=detail or {},
        )
    except Exception:
        logger.exception('audit write failed for %s %s#%s', action, object_type, object_id)
        return None
