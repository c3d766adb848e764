"""Identifier generation for messages and handoffs.

Identifiers are random 128-bit UUIDs rendered as text.  Uniqueness is a
precondition of the coordinator; collisions are not detected at runtime.
"""
from __future__ import annotations

from uuid import uuid4


def new_id() -> str:
    """Return a fresh, globally unique identifier string."""
    return str(uuid4())


__all__ = ["new_id"]
