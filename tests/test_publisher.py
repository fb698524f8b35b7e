import threading
import time

from evreactor.core.contracts import Event, Message
from evreactor.core.gate import CompletionGate
from evreactor.core.reactor import Environment, Reactor
from evreactor.core.selectors import S
from evreactor.publisher import DEFAULT_ADDRESS, Publisher
from evreactor.receiver import Receiver


def test_publish_all_is_bounded_by_count(reactor):
    gate = CompletionGate(10)
    recv = Receiver(gate)
    reactor.on(S("jokes"), recv)

    pub = Publisher(reactor, "jokes", 10)
    assert pub.publish_all() == 10
    assert pub.sent == 10
    assert gate.wait(timeout=5.0)
    assert recv.received == 10


def test_default_payload_is_timestamped_message():
    seen = []
    gate = CompletionGate(1)

    def h(ev):
        seen.append(ev)
        gate.count_down()

    with Reactor(Environment(worker_count=1, name="payload")) as r:
        r.on(S("messages"), h)
        Publisher(r, "messages", 1).publish_all()
        assert gate.wait(timeout=5.0)

    ev = seen[0]
    assert isinstance(ev, Event) and isinstance(ev.data, Message)
    millis, address = ev.data.text.split("@ ", 1)
    assert address == DEFAULT_ADDRESS
    assert abs(int(millis) / 1000.0 - ev.ts) < 5.0


def test_custom_factory_and_zero_count(reactor):
    got = []
    reactor.on(S("t"), lambda ev: got.append(ev.data))
    assert Publisher(reactor, "t", 0).publish_all() == 0
    assert Publisher(reactor, "t", 3, factory=lambda i: Event.wrap(i * 10)).publish_all() == 3
    reactor.shutdown(wait=True)
    assert sorted(got) == [0, 10, 20]


def test_stop_ends_background_loop_early():
    release = threading.Event()

    def slow(ev):
        release.wait(5.0)

    # one slot: every notify blocks until the handler finishes, so the loop is slow
    r = Reactor(Environment(worker_count=1, max_pending=1, name="stoppable"))
    r.on(S("jokes"), slow)
    pub = Publisher(r, "jokes", 1_000_000)
    pub.start()
    time.sleep(0.05)
    pub.stop()
    release.set()
    assert pub.join(timeout=5.0)
    r.shutdown(wait=True)

    assert pub.stopped
    assert 0 < pub.sent < 1_000_000


def test_stop_before_start_is_kept(reactor):
    got = []
    reactor.on(S("jokes"), got.append)
    pub = Publisher(reactor, "jokes", 5)
    pub.stop()
    assert pub.start() is False
    assert pub.join(timeout=1.0)
    reactor.shutdown(wait=True)
    assert pub.sent == 0 and got == []


def test_start_runs_only_once(reactor):
    gate = CompletionGate(3)
    recv = Receiver(gate)
    reactor.on(S("jokes"), recv)
    pub = Publisher(reactor, "jokes", 3)
    assert pub.start() is True
    assert pub.join(timeout=5.0)
    # a finished publisher does not send another round
    assert pub.start() is False
    assert gate.wait(timeout=5.0)
    reactor.shutdown(wait=True)
    assert pub.sent == 3 and recv.received == 3
