import functools
import logging

from django.db import OperationalError, transaction

from billing.exceptions import BillingError, ResourceBusy

logger = logging.getLogger(__name__)


def atomic_operation(func):
    """
    Run ``func`` as one all-or-nothing unit of work.

    The wrapped call executes inside ``transaction.atomic()``: it commits when
    ``func`` returns and rolls back when it raises. Nested calls become
    savepoints of the outermost operation, so a failure anywhere undoes the
    whole unit. Lock-wait timeouts and "database is locked" errors reach the
    caller as ResourceBusy.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            with transaction.atomic():
                return func(*args, **kwargs)
        except BillingError as exc:
            logger.warning(
                "Rolled back %s: code=%s reason=%s",
                func.__qualname__,
                exc.code,
                exc.message,
            )
            raise
        except OperationalError as exc:
            logger.warning(
                "Rolled back %s: lock not acquired: %s", func.__qualname__, exc
            )
            raise ResourceBusy() from exc

    return wrapper


def require_transaction():
    """Fail loudly when a lock-holding helper is called outside a transaction."""
    if not transaction.get_connection().in_atomic_block:
        raise RuntimeError(
            "This operation must run inside an open transaction; "
            "wrap the caller with atomic_operation."
        )
