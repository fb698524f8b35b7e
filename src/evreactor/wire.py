# src/evreactor/wire.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from evreactor.config import AppConfig
from evreactor.core.gate import CompletionGate
from evreactor.core.log import get as get_logger
from evreactor.core.reactor import Environment, Reactor
from evreactor.core.selectors import S
from evreactor.publisher import Publisher
from evreactor.receiver import Receiver

log = get_logger(__name__)


@dataclass
class App:
    cfg: AppConfig
    reactor: Reactor
    gate: CompletionGate
    receiver: Receiver
    publisher: Publisher


def build_app(cfg: Optional[AppConfig] = None) -> App:
    """Construct reactor, gate, receiver and publisher, and subscribe the receiver to ``cfg.topic``."""
    cfg = cfg or AppConfig()
    env = Environment(worker_count=cfg.worker_count, max_pending=cfg.max_pending)
    reactor = Reactor(env)
    gate = CompletionGate(cfg.expected_event_count)
    receiver = Receiver(gate)
    reactor.on(S(cfg.topic), receiver)
    publisher = Publisher(reactor, cfg.topic, cfg.expected_event_count)
    return App(cfg=cfg, reactor=reactor, gate=gate, receiver=receiver, publisher=publisher)


def run_app(cfg: Optional[AppConfig] = None) -> bool:
    """Publish every event, wait for the gate, shut down. Returns True if all events were handled in time."""
    app = build_app(cfg)
    try:
        app.publisher.publish_all()
        done = app.gate.wait(timeout=app.cfg.await_timeout)
        if done:
            log.info("all %d events handled", app.cfg.expected_event_count)
        else:
            log.warning("timed out after %ss; %d/%d events still outstanding",
                        app.cfg.await_timeout, app.gate.count, app.cfg.expected_event_count)
        return done
    finally:
        app.reactor.shutdown(wait=True)
