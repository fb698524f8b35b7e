# tests/conftest.py
import os
import logging
import pytest

from evreactor.core import log
from evreactor.core.metrics import start_exporter, stop_exporter
from evreactor.core.reactor import Environment, Reactor

@pytest.fixture(scope="session", autouse=True)
def _bootstrap_logging_and_metrics():
    # reads LOG_LEVEL / LOG_JSON / .env
    log.setup()

    interval = float(os.getenv("METRICS_INTERVAL_TEST", "1.0"))
    json_mode = (os.getenv("LOG_JSON", "0") == "1")
    start_exporter(interval_sec=interval, json_mode=json_mode,
                   logger=logging.getLogger("metrics"))
    yield
    stop_exporter()


@pytest.fixture
def reactor():
    r = Reactor(Environment(worker_count=4, name="test"))
    yield r
    r.shutdown(wait=True)
