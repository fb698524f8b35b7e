import threading
import time

import pytest

from evreactor.core.gate import CompletionGate


def test_wait_true_after_n_count_downs():
    gate = CompletionGate(3)
    for _ in range(3):
        gate.count_down()
    assert gate.count == 0
    assert gate.wait(timeout=0) is True
    # late waiters are released too
    assert gate.wait() is True


def test_zero_gate_is_open_from_start():
    assert CompletionGate(0).wait(timeout=0) is True


def test_extra_count_down_floors_at_zero():
    gate = CompletionGate(2)
    for _ in range(5):
        gate.count_down()
    assert gate.count == 0
    assert gate.wait(timeout=0.1) is True


def test_wait_times_out():
    gate = CompletionGate(1)
    t0 = time.perf_counter()
    assert gate.wait(timeout=0.1) is False
    assert time.perf_counter() - t0 >= 0.09
    assert gate.count == 1


def test_negative_expected_rejected():
    with pytest.raises(ValueError):
        CompletionGate(-1)


def test_concurrent_count_down_no_lost_updates():
    n = 200
    gate = CompletionGate(n + 50)
    ths = [threading.Thread(target=gate.count_down) for _ in range(n)]
    for t in ths:
        t.start()
    for t in ths:
        t.join()
    assert gate.count == 50


def test_all_waiters_released():
    gate = CompletionGate(1)
    results = []

    def waiter():
        results.append(gate.wait(timeout=5.0))

    ths = [threading.Thread(target=waiter) for _ in range(4)]
    for t in ths:
        t.start()
    time.sleep(0.05)
    gate.count_down()
    for t in ths:
        t.join(timeout=5.0)
    assert results == [True] * 4


@pytest.mark.asyncio
async def test_wait_async():
    gate = CompletionGate(2)

    def later():
        time.sleep(0.05)
        gate.count_down()
        gate.count_down()

    threading.Thread(target=later).start()
    assert await gate.wait_async(timeout=5.0) is True
    assert await CompletionGate(1).wait_async(timeout=0.05) is False
