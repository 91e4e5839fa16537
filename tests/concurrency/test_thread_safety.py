"""
Thread-safety tests for the shared mutable structures.

Each test lines threads up on a Barrier so the racing calls start together.

- ValueCache: concurrent interning of equal content yields one object
- ClientRecord: concurrent first reads fetch a field exactly once
- StagingCache: readers never see a half-cleared cache during commit
- SqlBackingStore: concurrently allocated order ids are unique
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from threading import Barrier
from unittest.mock import MagicMock

from feaa_kernel.domain.client import ClientField, ClientRecord
from feaa_kernel.domain.order import Order
from feaa_kernel.domain.value_cache import ValueCache
from feaa_kernel.services.staging_cache import StagingCache

THREADS = 16


class TestValueCacheRace:
    def test_concurrent_intern_returns_one_instance(self):
        cache = ValueCache()
        barrier = Barrier(THREADS)

        def _intern(i):
            barrier.wait()
            # fresh list per thread; equal content
            return cache.intern([float(x) for x in range(100)])

        with ThreadPoolExecutor(max_workers=THREADS) as pool:
            results = list(pool.map(_intern, range(THREADS)))

        assert all(r is results[0] for r in results)
        assert len(cache) == 1


class TestClientRecordRace:
    def test_field_fetched_once_under_concurrent_reads(self):
        calls = []
        calls_lock = threading.Lock()

        def _slow_fetch(token, client_id, field_name):
            with calls_lock:
                calls.append(field_name)
            time.sleep(0.05)
            return "brian@example.com"

        source = MagicMock()
        source.get_client_field.side_effect = _slow_fetch
        record = ClientRecord("tok", 1, source)
        barrier = Barrier(THREADS)

        def _read(_):
            barrier.wait()
            return record.email_address

        with ThreadPoolExecutor(max_workers=THREADS) as pool:
            results = list(pool.map(_read, range(THREADS)))

        assert results == ["brian@example.com"] * THREADS
        assert calls == [ClientField.EMAIL_ADDRESS.value]


class TestStagingCommitAtomicity:
    def test_reader_sees_all_or_nothing(self, order_date):
        saving = threading.Event()
        release = threading.Event()

        def _slow_save(token, order):
            saving.set()
            release.wait(timeout=5)

        store = MagicMock()
        store.save_order.side_effect = _slow_save
        staging = StagingCache(store)
        for order_id in range(1, 6):
            staging.register_clean(Order(order_id, 1, order_date))

        commit = threading.Thread(target=staging.commit, args=("tok",))
        commit.start()
        assert saving.wait(timeout=5)

        with ThreadPoolExecutor(max_workers=1) as pool:
            # blocks on the cache lock until the flush finishes
            read = pool.submit(lambda: [staging.get_temporary(i) for i in range(1, 6)])
            time.sleep(0.05)
            assert not read.done()
            release.set()
            commit.join(timeout=5)
            assert read.result(timeout=5) == [None] * 5


class TestSequenceRace:
    def test_order_ids_unique(self, store):
        barrier = Barrier(THREADS)

        def _allocate(_):
            barrier.wait()
            return store.get_next_order_id()

        with ThreadPoolExecutor(max_workers=THREADS) as pool:
            ids = list(pool.map(_allocate, range(THREADS)))

        assert sorted(ids) == list(range(1, THREADS + 1))
