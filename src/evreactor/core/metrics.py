from __future__ import annotations

import logging
import threading
import time
from collections import deque
from statistics import mean
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple

LabelKey = Tuple[Tuple[str, str], ...]


def _labels_key(labels: Dict[str, Any] | None) -> LabelKey:
    if not labels:
        return tuple()
    return tuple(sorted((str(k), str(v)) for k, v in labels.items()))


def _pct(sorted_vals: List[float], q: float) -> float:
    if not sorted_vals:
        return 0.0
    idx = max(0, min(len(sorted_vals) - 1, int(round((len(sorted_vals) - 1) * q))))
    return sorted_vals[idx]


# ---------------- Metric types ----------------

class Counter:
    kind = "counter"

    def __init__(self) -> None:
        self._value = 0.0
        self._lock = threading.Lock()

    def inc(self, n: float = 1.0) -> None:
        with self._lock:
            self._value += n

    def value(self) -> float:
        with self._lock:
            return self._value


class Gauge:
    kind = "gauge"

    def __init__(self) -> None:
        self._value = 0.0
        self._lock = threading.Lock()

    def add(self, d: float) -> None:
        with self._lock:
            self._value += d

    def value(self) -> float:
        with self._lock:
            return self._value


class Histogram:
    kind = "hist"

    def __init__(self, maxlen: int = 2048) -> None:
        self._values: Deque[float] = deque(maxlen=maxlen)
        self._lock = threading.Lock()

    def observe(self, v: float) -> None:
        with self._lock:
            self._values.append(float(v))

    def snapshot(self) -> Dict[str, float]:
        with self._lock:
            vals = sorted(self._values)
        if not vals:
            return {"count": 0.0, "min": 0.0, "max": 0.0, "mean": 0.0, "p50": 0.0, "p90": 0.0, "p99": 0.0}
        return {
            "count": float(len(vals)),
            "min": vals[0],
            "max": vals[-1],
            "mean": mean(vals),
            "p50": _pct(vals, 0.50),
            "p90": _pct(vals, 0.90),
            "p99": _pct(vals, 0.99),
        }


# ---------------- Registry ----------------

class _Registry:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._metrics: Dict[Tuple[str, str, LabelKey], Any] = {}

    def get(self, factory: Callable[[], Any], name: str, labels: Dict[str, Any] | None):
        key = (factory.kind, name, _labels_key(labels))  # type: ignore[attr-defined]
        with self._lock:
            m = self._metrics.get(key)
            if m is None:
                m = factory()
                self._metrics[key] = m
            return m

    def items(self):
        with self._lock:
            return list(self._metrics.items())


_REG = _Registry()


# ---------------- Public API ----------------

def inc(name: str, n: float = 1.0, **labels: Any) -> None:
    _REG.get(Counter, name, labels).inc(n)


def gauge_add(name: str, d: float, **labels: Any) -> None:
    _REG.get(Gauge, name, labels).add(d)


def observe_hist(name: str, v: float, **labels: Any) -> None:
    _REG.get(Histogram, name, labels).observe(v)


def counter_value(name: str, **labels: Any) -> float:
    return _REG.get(Counter, name, labels).value()


def snapshot() -> dict:
    """Current metrics grouped by kind: {"counters": [...], "gauges": [...], "hists": [...]}."""
    out: Dict[str, list] = {"counters": [], "gauges": [], "hists": []}
    for (kind, name, labels), m in _REG.items():
        if kind == "counter":
            out["counters"].append({"name": name, "labels": dict(labels), "value": m.value()})
        elif kind == "gauge":
            out["gauges"].append({"name": name, "labels": dict(labels), "value": m.value()})
        else:
            out["hists"].append({"name": name, "labels": dict(labels), **m.snapshot()})
    return out


# ---------------- Exporter (log every N seconds) ----------------

class _Exporter(threading.Thread):
    def __init__(self, interval_sec: float = 5.0, json_mode: bool = False, logger: Optional[logging.Logger] = None):
        super().__init__(name="metrics-exporter", daemon=True)
        self.interval = float(interval_sec)
        self.json_mode = bool(json_mode)
        self.log = logger or logging.getLogger("metrics")
        self._stop_evt = threading.Event()

    def run(self) -> None:
        while not self._stop_evt.is_set():
            t0 = time.time()
            self.emit()
            self._stop_evt.wait(max(0.5, self.interval - (time.time() - t0)))

    def stop(self, timeout: float = 1.0) -> None:
        self._stop_evt.set()
        self.join(timeout=timeout)

    def emit(self) -> None:
        snap = snapshot()
        if self.json_mode:
            for kind, rows in snap.items():
                for row in rows:
                    self.log.info({"type": kind, **row})
            return
        for row in snap["counters"]:
            self.log.info(f"[ctr] {row['name']} {row['labels']} value={row['value']:.0f}")
        for row in snap["gauges"]:
            self.log.info(f"[gauge] {row['name']} {row['labels']} value={row['value']:.3f}")
        for s in snap["hists"]:
            self.log.info(
                f"[hist] {s['name']} {s['labels']} "
                f"n={int(s['count'])} min={s['min']:.3f} p50={s['p50']:.3f} "
                f"p90={s['p90']:.3f} p99={s['p99']:.3f} max={s['max']:.3f}"
            )


_EXPORTER: Optional[_Exporter] = None


def start_exporter(interval_sec: float = 5.0, json_mode: bool = False, logger: Optional[logging.Logger] = None) -> bool:
    """Start the background exporter; False if one is already running."""
    global _EXPORTER
    if _EXPORTER is not None:
        return False
    _EXPORTER = _Exporter(interval_sec=interval_sec, json_mode=json_mode, logger=logger)
    _EXPORTER.start()
    return True


def stop_exporter(timeout: float = 1.0) -> None:
    global _EXPORTER
    if _EXPORTER is not None:
        _EXPORTER.stop(timeout=timeout)
        _EXPORTER = None


def force_emit(logger: Optional[logging.Logger] = None, json_mode: bool = False) -> None:
    """Emit one snapshot now, without the background thread."""
    _Exporter(interval_sec=0, json_mode=json_mode, logger=logger).emit()


class Timer:
    """Measure a block in milliseconds into a histogram."""
    def __init__(self, hist_name: str, **labels: Any) -> None:
        self.hist_name = hist_name
        self.labels = labels
        self._t0 = 0.0

    def __enter__(self):
        self._t0 = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb):
        observe_hist(self.hist_name, (time.perf_counter() - self._t0) * 1000.0, **self.labels)
        return False
