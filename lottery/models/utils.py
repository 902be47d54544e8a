"""Utility helpers for the models package."""

from __future__ import annotations

import uuid as uuid_lib
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_person_uuid() -> str:
    """Return a new stable cross-session identifier for a person."""
    return str(uuid_lib.uuid4())
