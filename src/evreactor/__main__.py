from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace

from evreactor import config
from evreactor.core import log
from evreactor.core.contracts import ConfigError
from evreactor.core.metrics import force_emit, start_exporter, stop_exporter
from evreactor.wire import run_app


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(prog="evreactor", description="publish N events and wait until all are handled")
    ap.add_argument("--config", help="YAML config file")
    ap.add_argument("--workers", type=int, help="worker pool size")
    ap.add_argument("--events", type=int, help="number of events to publish and wait for")
    ap.add_argument("--topic", help="topic to publish on")
    ap.add_argument("--timeout", type=float, help="seconds to wait for completion")
    args = ap.parse_args(argv)

    try:
        cfg = config.load(args.config)
        overrides = {
            "worker_count": args.workers,
            "expected_event_count": args.events,
            "topic": args.topic,
            "await_timeout": args.timeout,
        }
        cfg = replace(cfg, **{k: v for k, v in overrides.items() if v is not None})
    except ConfigError as e:
        print(f"config error: {e}", file=sys.stderr)
        return 2

    log.setup(cfg.log_level, cfg.log_json)
    started = start_exporter(interval_sec=cfg.metrics_interval, json_mode=cfg.log_json)
    try:
        ok = run_app(cfg)
    finally:
        if started:
            stop_exporter()
        force_emit(logging.getLogger("metrics"), json_mode=cfg.log_json)
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
