"""
ValueCache -- content-addressed interning of report payload blocks.

Responsibility:
    Report payloads (legal, cash flow, merges, tallying and deductions data)
    are large immutable float sequences, and the same block recurs across
    many reports.  ``ValueCache.intern`` maps each block to one canonical
    shared tuple keyed by the SHA-256 of its content, so structurally
    identical blocks occupy a single allocation.

Architecture position:
    Kernel > Domain -- pure, no I/O.  A cache is constructed explicitly and
    handed to whatever builds Reports; there is no process-wide instance.

Invariants enforced:
    - Equal content => same canonical object (``intern(a) is intern(b)``).
    - ``intern`` is an atomic check-then-insert under the cache lock, so two
      threads can never publish different objects for one content hash.
    - Entries are never evicted for the lifetime of the cache.

Failure modes:
    - TypeError / ValueError if a payload element is not convertible to float.
"""

from __future__ import annotations

import hashlib
import struct
import threading
from collections.abc import Iterable

from feaa_kernel.logging_config import get_logger

logger = get_logger("domain.value_cache")

Payload = tuple[float, ...]


def normalize_payload(values: Iterable[float]) -> Payload:
    """Coerce a payload block into a tuple of floats with -0.0 folded to 0.0."""
    # -0.0 == 0.0, so both must encode (and hash) identically
    return tuple(float(v) + 0.0 for v in values)


def payload_digest(payload: Payload) -> str:
    """SHA-256 hex digest of a normalized payload block.

    Each element is packed as a big-endian IEEE-754 double, prefixed by the
    element count so that blocks of different lengths never share a prefix
    encoding.
    """
    h = hashlib.sha256()
    h.update(struct.pack(">Q", len(payload)))
    for value in payload:
        h.update(struct.pack(">d", value))
    return h.hexdigest()


class ValueCache:
    """
    Flyweight store for immutable numeric payload blocks.

    Contract:
        ``intern(seq)`` returns the canonical tuple for ``seq``'s content.
        The first block seen for a content hash becomes canonical; later
        equal blocks are dropped in its favour.

    Guarantees:
        - Thread-safe.
        - Idempotent: interning the canonical tuple returns itself.

    Non-goals:
        - No eviction, no size bound.
    """

    def __init__(self) -> None:
        self._blocks: dict[str, Payload] = {}
        self._lock = threading.Lock()
        self._hits = 0

    def content_hash(self, values: Iterable[float]) -> str:
        """Content hash a block would be stored under."""
        return payload_digest(normalize_payload(values))

    def intern(self, values: Iterable[float] | None) -> Payload | None:
        """Return the canonical shared tuple for ``values`` (None passes through)."""
        if values is None:
            return None
        payload = normalize_payload(values)
        digest = payload_digest(payload)
        with self._lock:
            canonical = self._blocks.get(digest)
            if canonical is not None:
                self._hits += 1
                return canonical
            self._blocks[digest] = payload

        logger.debug(
            "payload_interned",
            extra={"content_hash": digest[:16], "length": len(payload)},
        )
        return payload

    def get(self, digest: str) -> Payload | None:
        """Look up a canonical block by content hash."""
        with self._lock:
            return self._blocks.get(digest)

    @property
    def hits(self) -> int:
        """Number of intern calls answered by an existing block."""
        return self._hits

    def __contains__(self, digest: object) -> bool:
        with self._lock:
            return digest in self._blocks

    def __len__(self) -> int:
        with self._lock:
            return len(self._blocks)
