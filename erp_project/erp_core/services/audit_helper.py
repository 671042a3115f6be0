import logging
from typing import Optional
from ..models import AuditLog, Client

logger = logging.getLogger(__name__)


def log_action(
    *,
    action: str,
    instance,
    user=None,
    client: Optional[Client] = None,
    changes: dict | None = None,
) -> AuditLog:
    """
    Append one audit row for `instance`.

    The tenant defaults to `instance.client`; client-less objects such as
    a Client itself are recorded with `client` passed explicitly.
    """
    client = client or getattr(instance, "client", None)

    # AnonymousUser and background jobs are recorded without a user
    if user is not None and not getattr(user, "is_authenticated", False):
        user = None

    entry = AuditLog.objects.create(
        client=client,
        user=user,
        action=action,
        object_type=type(instance).__name__,
        object_id=str(instance.pk),
        changes=changes,
    )
    logger.debug("Audit %s %s#%s by %s", action, entry.object_type,
                 entry.object_id, user or "system")
    return entry
