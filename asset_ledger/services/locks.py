"""
Per-asset mutual exclusion.

Mutations on one asset run one at a time inside this process; different
assets never wait on each other. The row lock taken inside the ledger
transaction covers several worker processes on stores that support it.
"""
import threading
from contextlib import contextmanager


class AssetLockRegistry:
    """Lock table keyed by asset id, entries live only while someone holds or waits"""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = {}

    @contextmanager
    def hold(self, asset_id):
        with self._guard:
            entry = self._locks.get(asset_id)
            if entry is None:
                entry = self._locks[asset_id] = [threading.Lock(), 0]
            entry[1] += 1

        entry[0].acquire()
        try:
            yield
        finally:
            entry[0].release()
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[asset_id]

    def active_count(self):
        with self._guard:
            return len(self._locks)


asset_locks = AssetLockRegistry()
