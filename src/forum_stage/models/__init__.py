"""Domain models for the Forum Stage application."""

from .identity import GUEST, Actor, Authenticated, Guest, parse_actor
from .topic import ThreadMeta

__all__ = [
    "Actor", "Authenticated", "Guest", "GUEST", "parse_actor",
    "ThreadMeta",
]
