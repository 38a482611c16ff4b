"""
Tests for per-asset mutual exclusion
"""
import threading
import time

from asset_ledger.services.locks import AssetLockRegistry


def test_same_asset_is_serialized():
    registry = AssetLockRegistry()
    inside = []
    overlaps = []

    def worker():
        with registry.hold(1):
            inside.append(1)
            if len(inside) > 1:
                overlaps.append(True)
            time.sleep(0.01)
            inside.pop()

    threads = [threading.Thread(target=worker) for _ in range(5)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert overlaps == []
    assert registry.active_count() == 0


def test_different_assets_do_not_wait():
    registry = AssetLockRegistry()
    other_entered = threading.Event()

    def other():
        with registry.hold(2):
            other_entered.set()

    with registry.hold(1):
        thread = threading.Thread(target=other)
        thread.start()
        assert other_entered.wait(timeout=2)
        thread.join()


def test_lock_released_on_error():
    registry = AssetLockRegistry()

    try:
        with registry.hold(7):
            raise ValueError('boom')
    except ValueError:
        pass

    acquired = threading.Event()

    def again():
        with registry.hold(7):
            acquired.set()

    thread = threading.Thread(target=again)
    thread.start()
    assert acquired.wait(timeout=2)
    thread.join()
    assert registry.active_count() == 0
