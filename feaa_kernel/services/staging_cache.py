"""
StagingCache -- unit of work for orders awaiting persistence.

Responsibility:
    Holds newly created orders (``clean``) and orders modified since they
    were staged or loaded (``dirty``) until the session commits them to the
    backing store in one flush.

Architecture position:
    Kernel > Services -- imperative shell.  Calls BackingStore.save_order;
    never opens sessions itself.

Invariants enforced:
    - ``get_temporary`` consults ``dirty`` before ``clean`` (dirty wins).
    - ``register_dirty`` for an id already held clean stages the clean
      reference, not the argument.
    - ``commit`` holds the cache lock for the whole flush and clear, so no
      reader ever sees a half-cleared cache.
    - A failed save never drops an order: it stays staged as dirty.

Failure modes:
    - PartialCommitError when one or more saves raise.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any

from feaa_kernel.domain.order import Order
from feaa_kernel.exceptions import PartialCommitError
from feaa_kernel.logging_config import get_logger
from feaa_kernel.services.backing_store import BackingStore

logger = get_logger("services.staging_cache")


@dataclass(frozen=True)
class CommitResult:
    """Ids persisted by a successful commit, in save order."""

    saved_ids: tuple[int, ...]

    @property
    def count(self) -> int:
        return len(self.saved_ids)


class StagingCache:
    """
    Clean/dirty order staging in front of a BackingStore.

    Contract:
        Stage with ``register_clean`` / ``register_dirty``; read back with
        ``get_temporary``; flush with ``commit``.
    """

    def __init__(self, store: BackingStore):
        self._store = store
        self._clean: dict[int, Order] = {}
        self._dirty: dict[int, Order] = {}
        self._lock = threading.RLock()

    def register_clean(self, order: Order | None) -> None:
        if order is None:
            return
        with self._lock:
            self._clean[order.order_id] = order
        logger.debug("order_staged", extra={"order_id": order.order_id, "state": "clean"})

    def register_dirty(self, order: Order | None) -> None:
        if order is None:
            return
        with self._lock:
            order_id = order.order_id
            # keep the object callers already hold for a freshly created order
            self._dirty[order_id] = self._clean.get(order_id, order)
        logger.debug("order_staged", extra={"order_id": order_id, "state": "dirty"})

    def get_temporary(self, order_id: int) -> Order | None:
        with self._lock:
            order = self._dirty.get(order_id)
            if order is None:
                order = self._clean.get(order_id)
            return order

    def discard(self, order_id: int) -> bool:
        """Drop an id from both maps.  True if it was staged."""
        with self._lock:
            in_clean = self._clean.pop(order_id, None) is not None
            in_dirty = self._dirty.pop(order_id, None) is not None
        return in_clean or in_dirty

    def staged_ids(self) -> set[int]:
        with self._lock:
            return set(self._clean) | set(self._dirty)

    def commit(self, token: Any) -> CommitResult:
        """
        Persist every staged order, clean entries first, then dirty ones.

        Postconditions:
            On success both maps are empty.  On PartialCommitError the saved
            orders are gone from staging and the failed ones are held dirty.
        """
        with self._lock:
            pending: list[Order] = list(self._clean.values())
            pending.extend(self._dirty.values())

            saved: list[int] = []
            failed: dict[int, Order] = {}
            for order in pending:
                try:
                    self._store.save_order(token, order)
                except Exception:
                    logger.error(
                        "order_save_failed",
                        extra={"order_id": order.order_id},
                        exc_info=True,
                    )
                    failed[order.order_id] = order
                else:
                    saved.append(order.order_id)

            self._clean.clear()
            self._dirty.clear()
            self._dirty.update(failed)

        if failed:
            # an id staged both clean and dirty counts as failed if either save did
            saved_ids = [i for i in dict.fromkeys(saved) if i not in failed]
            raise PartialCommitError(failed_ids=sorted(failed), saved_ids=saved_ids)

        result = CommitResult(saved_ids=tuple(dict.fromkeys(saved)))
        logger.info("staging_commit_completed", extra={"saved_count": result.count})
        return result

    def __len__(self) -> int:
        return len(self.staged_ids())

    def __contains__(self, order_id: object) -> bool:
        with self._lock:
            return order_id in self._clean or order_id in self._dirty
