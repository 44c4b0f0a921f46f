import threading
import time

import pytest

from smtx.shared_mutex import SharedMutex, SpinPolicy


def test_new_mutex_is_unlocked():
    mutex = SharedMutex()
    assert mutex.reader_count == 0
    assert mutex.writer_locked is False


def test_default_policy_values():
    policy = SpinPolicy()
    assert policy.max_writer_wait_spins == 1024
    assert policy.max_reader_wait_spins == 1024
    assert policy.yield_threshold == 512


def test_next_spins_doubles():
    assert SpinPolicy().next_spins(1) == 2


def test_invalid_policy_rejected():
    with pytest.raises(ValueError):
        SpinPolicy(max_writer_wait_spins=0)


def test_multiple_readers_share():
    mutex = SharedMutex()
    assert mutex.try_lock_shared() is True
    assert mutex.try_lock_shared() is True
    assert mutex.reader_count == 2
    mutex.unlock_shared()
    mutex.unlock_shared()
    assert mutex.reader_count == 0


def test_exclusive_blocked_by_reader():
    mutex = SharedMutex()
    mutex.lock_shared()
    assert mutex.try_lock_exclusive() is False
    assert mutex.writer_locked is False
    mutex.unlock_shared()
    assert mutex.try_lock_exclusive() is True
    assert mutex.writer_locked is True


def test_shared_blocked_by_writer():
    mutex = SharedMutex()
    mutex.lock_exclusive()
    assert mutex.try_lock_shared() is False
    assert mutex.reader_count == 0
    assert mutex.try_lock_exclusive() is False
    mutex.unlock_exclusive()
    assert mutex.try_lock_shared() is True


def test_unlock_shared_without_lock_raises():
    with pytest.raises(RuntimeError):
        SharedMutex().unlock_shared()


def test_unlock_exclusive_without_lock_raises():
    with pytest.raises(RuntimeError):
        SharedMutex().unlock_exclusive()


def test_timed_shared_with_past_deadline_times_out():
    mutex = SharedMutex()
    assert mutex.timed_lock_shared(time.monotonic() - 1.0) is False
    assert mutex.reader_count == 0


def test_timed_shared_succeeds_when_free():
    mutex = SharedMutex()
    assert mutex.timed_lock_shared(time.monotonic() + 1.0) is True
    assert mutex.reader_count == 1


def test_timed_shared_times_out_under_writer():
    mutex = SharedMutex()
    mutex.lock_exclusive()
    assert mutex.timed_lock_shared(time.monotonic() + 0.05) is False
    assert mutex.reader_count == 0


def test_timed_exclusive_claims_free_lock_even_past_deadline():
    mutex = SharedMutex()
    assert mutex.timed_lock_exclusive(time.monotonic() - 1.0) is True
    assert mutex.writer_locked is True


def test_timed_exclusive_times_out_under_writer():
    mutex = SharedMutex()
    mutex.lock_exclusive()
    assert mutex.timed_lock_exclusive(time.monotonic() + 0.05) is False
    assert mutex.writer_locked is True


def test_timed_exclusive_releases_flag_on_reader_timeout():
    mutex = SharedMutex()
    mutex.lock_shared()
    assert mutex.timed_lock_exclusive(time.monotonic() + 0.05) is False
    assert mutex.writer_locked is False
    assert mutex.reader_count == 1


def test_context_managers_release():
    mutex = SharedMutex()
    with mutex.shared() as held:
        assert held.reader_count == 1
    assert mutex.reader_count == 0
    with mutex.exclusive() as held:
        assert held.writer_locked is True
    assert mutex.writer_locked is False


def test_context_manager_releases_on_error():
    mutex = SharedMutex()
    with pytest.raises(KeyError):
        with mutex.exclusive():
            raise KeyError("boom")
    assert mutex.writer_locked is False


def test_reader_waits_for_writer():
    mutex = SharedMutex()
    mutex.lock_exclusive()
    acquired = threading.Event()
    observed = {}

    def reader():
        with mutex.shared() as held:
            observed["readers"] = held.reader_count
            observed["writer"] = held.writer_locked
            acquired.set()

    thread = threading.Thread(target=reader)
    thread.start()
    assert acquired.wait(0.1) is False
    assert mutex.writer_locked is True
    assert mutex.reader_count == 0
    mutex.unlock_exclusive()
    thread.join(5)
    assert acquired.is_set()
    assert observed == {"readers": 1, "writer": False}
    assert mutex.reader_count == 0


def test_writer_waits_for_reader():
    mutex = SharedMutex()
    mutex.lock_shared()
    acquired = threading.Event()
    observed = {}

    def writer():
        with mutex.exclusive() as held:
            observed["readers"] = held.reader_count
            observed["writer"] = held.writer_locked
            acquired.set()

    thread = threading.Thread(target=writer)
    thread.start()
    assert acquired.wait(0.1) is False
    assert mutex.reader_count == 1
    mutex.unlock_shared()
    thread.join(5)
    assert acquired.is_set()
    assert observed == {"readers": 0, "writer": True}
    assert mutex.writer_locked is False


def test_concurrent_writers_keep_counter_consistent():
    mutex = SharedMutex()
    state = {"value": 0}
    iterations = 200
    workers = 4

    def work():
        for _ in range(iterations):
            with mutex.exclusive():
                current = state["value"]
                time.sleep(0)
                state["value"] = current + 1

    threads = [threading.Thread(target=work) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert state["value"] == iterations * workers
    assert mutex.writer_locked is False
    assert mutex.reader_count == 0