"""Invariant markers for strictify internals."""

from __future__ import annotations

from typing import NoReturn

from strictify.exceptions import NeverThrown


def never(reason: str = "", **env: object) -> NoReturn:
    """Mark a code path as intentionally unreachable.

    The env payload is attached to the raised exception for diagnosis only.
    """
    details = ", ".join(f"{key}={value!r}" for key, value in sorted(env.items()))
    message = reason or "never() marker reached"
    if details:
        message = f"{message} ({details})"
    raise NeverThrown(message, env=env)
