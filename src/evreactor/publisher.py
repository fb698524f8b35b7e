# src/evreactor/publisher.py
from __future__ import annotations

import threading
from typing import Callable, Optional

from evreactor.core.contracts import Event, Message, Topic
from evreactor.core.log import get as get_logger
from evreactor.core.reactor import Reactor

log = get_logger(__name__)

DEFAULT_ADDRESS = "Ibn Gabirol 66,Tel aviv"

EventFactory = Callable[[int], Event]


def default_factory(i: int) -> Event:
    return Event.wrap(Message.now(DEFAULT_ADDRESS))


class Publisher:
    """
    Sends ``count`` events to one topic as fast as ``notify`` accepts them.

    - publish_all(): run the loop on the calling thread
    - start()/stop()/join(): run it once on a background thread; stop() ends the
      loop before the next send and is final, including when called before start()
    """

    def __init__(self, reactor: Reactor, topic: Topic, count: int,
                 factory: Optional[EventFactory] = None):
        if int(count) < 0:
            raise ValueError("count must be >= 0")
        self.reactor = reactor
        self.topic = topic
        self.count = int(count)
        self.factory = factory or default_factory
        self.sent = 0
        self._stop_evt = threading.Event()
        self._th: Optional[threading.Thread] = None

    @property
    def stopped(self) -> bool:
        return self._stop_evt.is_set()

    def publish_all(self) -> int:
        """Returns the number of events handed to the reactor."""
        n = 0
        while n < self.count and not self._stop_evt.is_set():
            self.reactor.notify(self.topic, self.factory(n))
            n += 1
            self.sent = n
        log.info("published %d/%d events topic=%s", n, self.count, self.topic)
        return n

    def start(self) -> bool:
        """Start the background loop. False if it was already started or stopped."""
        if self._th is not None or self._stop_evt.is_set():
            return False
        self._th = threading.Thread(target=self.publish_all, name="Publisher", daemon=True)
        self._th.start()
        return True

    def stop(self) -> None:
        self._stop_evt.set()

    def join(self, timeout: Optional[float] = None) -> bool:
        """True once the background loop has finished."""
        if self._th is None:
            return True
        self._th.join(timeout=timeout)
        return not self._th.is_alive()
