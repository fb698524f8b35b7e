# src/evreactor/receiver.py
from __future__ import annotations

import threading
from typing import Callable, Optional

from evreactor.core.contracts import Event
from evreactor.core.gate import CompletionGate
from evreactor.core.log import get as get_logger

log = get_logger(__name__)


class Receiver:
    """Handler that logs each event and counts it toward a CompletionGate.

    The gate is counted down in ``finally``: an event whose ``process`` hook
    raises still counts as handled, and the error is re-raised for the
    dispatcher's failure sink.
    """

    def __init__(self, gate: CompletionGate, process: Optional[Callable[[Event], None]] = None):
        self.gate = gate
        self.process = process
        self._lock = threading.Lock()
        self.received = 0

    def __call__(self, ev: Event) -> None:
        try:
            if self.process is not None:
                self.process(ev)
            log.info("received %s", ev.payload)
            with self._lock:
                self.received += 1
        finally:
            self.gate.count_down()
