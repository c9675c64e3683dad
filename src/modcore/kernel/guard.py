"""Argument validation helpers and unique id generation.

Every helper raises :class:`~modcore.errors.ArgumentError` with the given
message; call sites prefix messages with the operation name, e.g.
``"add_module(): id must be a non empty string"``.
"""

from __future__ import annotations

import itertools
from typing import Any

from modcore.errors import ArgumentError

_uid_counter = itertools.count(1)


def require(condition: bool, message: str) -> None:
    if not condition:
        raise ArgumentError(message)


def require_not(condition: bool, message: str) -> None:
    if condition:
        raise ArgumentError(message)


def require_non_empty_string(value: Any, message: str) -> None:
    if not isinstance(value, str) or not value:
        raise ArgumentError(message)


def require_callable(value: Any, message: str) -> None:
    if not callable(value):
        raise ArgumentError(message)


def next_uid() -> int:
    """Return a process-wide unique, monotonically increasing integer."""
    return next(_uid_counter)
