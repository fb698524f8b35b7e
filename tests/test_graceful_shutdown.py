import threading
import time

from evreactor.core import log
from evreactor.core.contracts import Event
from evreactor.core.gate import CompletionGate
from evreactor.core.reactor import Environment, Reactor
from evreactor.core.selectors import S


def test_shutdown_after_wait_loses_nothing():
    log.setup("WARNING")
    n = 50
    gate = CompletionGate(n)
    done = []
    lock = threading.Lock()

    def handler(ev):
        time.sleep(0.002)
        with lock:
            done.append(ev.data)
        gate.count_down()

    r = Reactor(Environment(worker_count=3, name="grace"))
    r.on(S("jokes"), handler)
    for i in range(n):
        r.notify("jokes", Event.wrap(i))

    # wait for the gate before releasing the pool
    assert gate.wait(timeout=5.0)
    r.shutdown(wait=True)
    assert sorted(done) == list(range(n))
    assert r.dispatcher.pending == 0


def test_shutdown_wait_drains_queue():
    r = Reactor(Environment(worker_count=1, name="drain"))
    out = []
    r.on(S("jokes"), lambda ev: out.append(ev.data))
    for i in range(20):
        r.notify("jokes", Event.wrap(i))
    r.shutdown(wait=True)
    assert len(out) == 20
