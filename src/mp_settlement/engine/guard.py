"""Non-reentrant guard for state-changing marketplace operations.

A context variable marks the operation currently executing in this task.
Anything invoked from inside it (a custody callback, a payment hook) that
tries to start another guarded operation is rejected before touching state.
Separate requests run in separate tasks with their own context and are not
affected.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

from src.mp_common.errors import ReentrantCallError

logger = logging.getLogger(__name__)

_active_operation: ContextVar[str | None] = ContextVar("mp_active_operation", default=None)


@contextmanager
def non_reentrant(operation: str) -> Iterator[None]:
    active = _active_operation.get()
    if active is not None:
        logger.warning("Reentrant %s attempted during %s", operation, active)
        raise ReentrantCallError(operation)
    token = _active_operation.set(operation)
    try:
        yield
    finally:
        _active_operation.reset(token)
