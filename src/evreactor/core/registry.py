# src/evreactor/core/registry.py
from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import List, Tuple, Union

from evreactor.core import log
from evreactor.core.contracts import Handler, Topic, handler_name
from evreactor.core.selectors import Selector, coerce, matches


@dataclass(frozen=True, slots=True)
class Registration:
    selector: Selector
    handler: Handler


class Registry:
    """Append-only (selector, handler) bindings.

    Writes swap in a new tuple under a lock; ``match`` reads whatever tuple
    is current without locking, so lookups never wait on registration.
    """

    def __init__(self, name: str = "evreactor.registry"):
        self.l = log.get(name)
        self._lock = threading.Lock()
        self._regs: Tuple[Registration, ...] = ()

    def register(self, selector: Union[Selector, Topic], handler: Handler) -> Registration:
        reg = Registration(coerce(selector), handler)
        with self._lock:
            self._regs = self._regs + (reg,)
        self.l.info("registered selector=%s fn=%s", reg.selector, handler_name(handler))
        return reg

    def match(self, topic: Topic) -> List[Handler]:
        """Handlers whose selector matches ``topic``, in registration order."""
        return [r.handler for r in self._regs if matches(r.selector, topic)]

    def registrations(self) -> Tuple[Registration, ...]:
        return self._regs

    def __len__(self) -> int:
        return len(self._regs)
