import threading

import pytest

from treecopier.permits import PermitPool


def test_permit_pool_tracks_held_and_peak() -> None:
    pool = PermitPool(2)

    pool.acquire()
    pool.acquire()
    assert pool.held == 2
    pool.release()
    pool.acquire()
    pool.release()
    pool.release()

    assert pool.held == 0
    assert pool.peak == 2


def test_permit_pool_blocks_until_a_permit_is_released() -> None:
    pool = PermitPool(1)
    pool.acquire()
    acquired = threading.Event()

    def _waiter() -> None:
        pool.acquire()
        acquired.set()

    thread = threading.Thread(target=_waiter, daemon=True)
    thread.start()

    assert not acquired.wait(0.1)
    pool.release()
    assert acquired.wait(2)
    thread.join(2)
    assert pool.held == 1
    assert pool.peak == 1


def test_permit_pool_rejects_release_without_acquire() -> None:
    pool = PermitPool(3)

    with pytest.raises(ValueError):
        pool.release()


def test_permit_pool_rejects_non_positive_limit() -> None:
    with pytest.raises(ValueError, match="positive integer"):
        PermitPool(0)
