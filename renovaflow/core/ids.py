"""Identifier generation for rows the caller did not name."""

from __future__ import annotations

from typing import Callable
from uuid import uuid4

IdFactory = Callable[[], str]


def new_id() -> str:
    return uuid4().hex


__all__ = ["IdFactory", "new_id"]
