# src/evreactor/core/reactor.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from evreactor.core import log
from evreactor.core.contracts import Event, Handler, Topic
from evreactor.core.dispatcher import Dispatcher, FailureSink
from evreactor.core.metrics import inc
from evreactor.core.registry import Registration, Registry
from evreactor.core.selectors import Selector


@dataclass(frozen=True)
class Environment:
    """Execution context a Reactor builds its Dispatcher from."""
    worker_count: int = 4
    max_pending: Optional[int] = None
    on_error: Optional[FailureSink] = None
    name: str = "evreactor"

    def make_dispatcher(self) -> Dispatcher:
        return Dispatcher(self.worker_count, max_pending=self.max_pending,
                          on_error=self.on_error, name=f"{self.name}.dispatcher")


class Reactor:
    """Routes ``notify(topic, event)`` to every handler registered with a matching selector.

    Each (handler, event) pair becomes its own task on the dispatcher, so
    ``notify`` returns without waiting for any handler and is unaffected by
    handler failures.
    """

    def __init__(self, env: Optional[Environment] = None, *,
                 registry: Optional[Registry] = None, dispatcher: Optional[Dispatcher] = None):
        self.env = env or Environment()
        self.l = log.get(f"{self.env.name}.reactor")
        self.registry = registry or Registry(name=f"{self.env.name}.registry")
        self.dispatcher = dispatcher or self.env.make_dispatcher()

    def on(self, selector: Union[Selector, Topic], handler: Handler) -> Registration:
        return self.registry.register(selector, handler)

    def notify(self, topic: Topic, event: Event) -> int:
        """Schedule every matching handler; returns how many tasks were submitted."""
        handlers = self.registry.match(topic)
        inc("reactor_notify_total", 1, reactor=self.env.name)
        if not handlers:
            # no subscriber: drop
            inc("reactor_dropped_total", 1, reactor=self.env.name)
            self.l.debug("no handler for topic=%s; dropped", topic)
            return 0
        for h in handlers:
            self.dispatcher.submit(h, event)
        return len(handlers)

    def shutdown(self, wait: bool = True, cancel_pending: bool = False) -> None:
        self.dispatcher.shutdown(wait=wait, cancel_pending=cancel_pending)

    def __enter__(self) -> "Reactor":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown(wait=True)
        return False
