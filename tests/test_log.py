import json
import logging

from evreactor.core import log


def test_json_mode_writes_one_object_per_line(capsys):
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    log.setup("INFO", json_mode=True, force=True)
    try:
        log.get("evreactor.test").info("hello %s", "world")
        lines = capsys.readouterr().out.strip().splitlines()
        # the metrics exporter may log from its own thread too
        objs = [json.loads(s) for s in lines if s.startswith("{")]
        obj = next(o for o in objs if o["msg"] == "hello world")
        assert obj["lvl"] == "INFO"
        assert obj["name"] == "evreactor.test"
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


def test_setup_is_idempotent_and_set_level():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        log.setup("INFO", force=True)
        n = len(root.handlers)
        log.setup("DEBUG")
        assert len(root.handlers) == n
        assert root.level == logging.INFO
        log.set_level("warning")
        assert root.level == logging.WARNING
        log.set_level("nonsense")
        assert root.level == logging.INFO
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
