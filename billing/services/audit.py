import logging

from billing.models import AuditLog

logger = logging.getLogger(__name__)


def record_audit(action_type, target_id, actor=None, actor_label="", ip_address=None):
    """Append an audit entry. Runs in the caller's transaction when there is one."""
    entry = AuditLog.objects.create(
        actor=actor,
        actor_label=actor_label or (actor.username if actor else ""),
        action_type=action_type,
        target_id=str(target_id),
        ip_address=ip_address or None,
    )
    logger.info(
        "Audit: action=%s target=%s actor=%s ip=%s",
        action_type,
        target_id,
        entry.actor_label or "-",
        ip_address or "-",
    )
    return entry
