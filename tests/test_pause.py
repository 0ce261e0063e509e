"""Tests for the pause gate."""

import threading
import time

import pytest

from gcs_upload_stream.core.exceptions import UploadAbortedError
from gcs_upload_stream.core.pause import PauseGate


def wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


def test_unpaused_gate_returns_immediately():
    gate = PauseGate()
    gate.check_and_wait()
    assert gate.waiting == 0


def test_unpause_releases_every_waiter():
    gate = PauseGate()
    gate.pause()
    released = []

    def worker(n):
        gate.check_and_wait()
        released.append(n)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(3)]
    for t in threads:
        t.start()

    assert wait_for(lambda: gate.waiting == 3)
    assert released == []

    gate.unpause()
    for t in threads:
        t.join(timeout=2)

    assert sorted(released) == [0, 1, 2]
    assert gate.waiting == 0
    assert not gate.paused


def test_pause_and_unpause_are_idempotent():
    gate = PauseGate()
    gate.pause()
    gate.pause()
    assert gate.paused
    gate.unpause()
    gate.unpause()
    assert not gate.paused


def test_abort_abandons_wait():
    gate = PauseGate()
    gate.pause()
    abort = threading.Event()
    errors = []

    def worker():
        try:
            gate.check_and_wait(abort)
        except UploadAbortedError as e:
            errors.append(e)

    t = threading.Thread(target=worker)
    t.start()
    assert wait_for(lambda: gate.waiting == 1)

    abort.set()
    t.join(timeout=2)

    assert len(errors) == 1
    assert gate.waiting == 0


def test_abort_event_not_needed_when_unpaused():
    abort = threading.Event()
    abort.set()
    PauseGate().check_and_wait(abort)


@pytest.mark.parametrize("waiters", [1, 5])
def test_waiters_released_with_abort_event(waiters):
    gate = PauseGate()
    gate.pause()
    abort = threading.Event()
    threads = [threading.Thread(target=gate.check_and_wait, args=(abort,)) for _ in range(waiters)]
    for t in threads:
        t.start()
    assert wait_for(lambda: gate.waiting == waiters)

    gate.unpause()
    for t in threads:
        t.join(timeout=2)
    assert not any(t.is_alive() for t in threads)
