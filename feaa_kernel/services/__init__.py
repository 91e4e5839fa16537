"""
Module: feaa_kernel.services
Responsibility:
    Imperative shell of the kernel: the SQL-backed store and the staging
    unit of work in front of it.

Architecture position:
    Kernel > Services.  May import from feaa_kernel.domain and
    feaa_kernel.db.  MUST NOT import from feaa_services or feaa_config.
"""

from feaa_kernel.services.backing_store import BackingStore, SqlBackingStore
from feaa_kernel.services.staging_cache import CommitResult, StagingCache

__all__ = [
    "BackingStore",
    "CommitResult",
    "SqlBackingStore",
    "StagingCache",
]
