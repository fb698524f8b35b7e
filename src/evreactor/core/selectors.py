# src/evreactor/core/selectors.py
"""Topic selectors.

A selector is one of a closed set of variants:

- ``Exact(topic)`` matches only that exact string.
- ``MatchAny()``   matches every topic, including ones never seen before.

New kinds of matching are added as a new variant here (and a branch in
``matches``), not by subclassing.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from evreactor.core.contracts import Topic


@dataclass(frozen=True, slots=True)
class Exact:
    topic: Topic

    def __str__(self) -> str:
        return self.topic


@dataclass(frozen=True, slots=True)
class MatchAny:
    def __str__(self) -> str:
        return "*"


Selector = Union[Exact, MatchAny]

ANY = MatchAny()


def S(topic: Topic) -> Exact:
    """Shorthand for ``Exact(topic)``."""
    return Exact(topic)


def coerce(sel: Union[Selector, Topic]) -> Selector:
    """Accept a ready selector or a bare topic string (exact match)."""
    if isinstance(sel, (Exact, MatchAny)):
        return sel
    if isinstance(sel, str):
        return Exact(sel)
    raise TypeError(f"not a selector: {sel!r}")


def matches(sel: Selector, topic: Topic) -> bool:
    if isinstance(sel, MatchAny):
        return True
    if isinstance(sel, Exact):
        return sel.topic == topic
    raise TypeError(f"unknown selector variant: {type(sel).__name__}")
