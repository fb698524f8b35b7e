from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict

__all__ = [
    "Topic",
    "Event",
    "Handler",
    "handler_name",
    "Message",
    "EvReactorError",
    "ConfigError",
    "DispatcherClosed",
]


# --------- Primitive / aliases ---------
Topic = str


# --------- Envelope ---------
@dataclass(frozen=True, slots=True)
class Event:
    """Immutable envelope: payload data plus its creation time (UNIX epoch seconds)."""
    data: Any
    ts: float = field(default_factory=time.time)

    @classmethod
    def wrap(cls, data: Any) -> "Event":
        return cls(data=data)

    # alias used by handlers that expect ``ev.payload``
    @property
    def payload(self) -> Any:
        return self.data


Handler = Callable[[Event], None]


def handler_name(fn) -> str:
    """Function name, or the class name for callable instances."""
    return getattr(fn, "__name__", None) or type(fn).__name__


# --------- Sample payload ---------
@dataclass(frozen=True, slots=True)
class Message:
    """Text payload the demo publisher sends, e.g. ``"1700000000000@ Ibn Gabirol 66,Tel aviv"``."""
    text: str

    @classmethod
    def now(cls, address: str) -> "Message":
        return cls(f"{int(time.time() * 1000)}@ {address}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# --------- Errors ---------
class EvReactorError(Exception):
    """Base class for errors raised by this package."""


class ConfigError(EvReactorError, ValueError):
    pass


class DispatcherClosed(EvReactorError, RuntimeError):
    """submit() after shutdown()."""
