"""Single-writer-per-key locking and the one-shot conflict retry.

Every command that touches a stock balance is processed while holding the
locks of all the keys it may write (``item:<code>``, ``order:<id>``...), so a
check-then-deduct and its commit happen without interleaving. Locks are taken
in sorted order, which keeps two multi-key commands from deadlocking.
"""

import threading
from collections.abc import Callable, Iterable
from contextlib import ExitStack, contextmanager
from typing import TypeVar

import structlog
from protean.exceptions import ExpectedVersionError
from protean.utils.globals import current_domain

from orderdesk.errors import ConcurrencyConflict

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def item_key(item_code: str) -> str:
    return f"item:{item_code}"


def order_key(order_id: str) -> str:
    return f"order:{order_id}"


def order_number_key(external_order_number: str) -> str:
    return f"order-number:{external_order_number}"


def route_key(product_code: str) -> str:
    return f"route:{product_code}"


class KeyedLocks:
    """A registry of re-entrant locks, one per key.

    A key's lock lives only while some thread holds or waits for it: each
    entry counts its holders and is dropped when the last one leaves.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[str, list] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def _held(self, key: str):
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.RLock(), 0]
            entry[1] += 1

        lock = entry[0]
        try:
            with lock:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    @contextmanager
    def hold(self, keys: Iterable[str]):
        """Hold the locks of all ``keys`` for the duration of the block."""
        with ExitStack() as stack:
            for key in sorted(set(keys)):
                stack.enter_context(self._held(key))
            yield


stock_locks = KeyedLocks()


def run_with_retry(operation: Callable[[], T], **log_context) -> T:
    """Run ``operation``, retrying exactly once on an optimistic version conflict."""
    try:
        return operation()
    except ExpectedVersionError:
        logger.warning("Concurrency conflict, retrying once", **log_context)

    try:
        return operation()
    except ExpectedVersionError as exc:
        logger.error("Concurrency conflict persisted after retry", **log_context)
        raise ConcurrencyConflict(str(exc)) from exc


def process_exclusively(command, keys: Iterable[str]):
    """Process ``command`` synchronously while holding the locks of ``keys``.

    Returns whatever the command handler returns. Domain errors propagate
    unchanged; the handler's Unit of Work has already been rolled back.
    """
    keys = list(keys)

    def _process():
        with stock_locks.hold(keys):
            return current_domain.process(command, asynchronous=False)

    return run_with_retry(_process, command=command.__class__.__name__, keys=keys)
