"""Request-scoped log fields carried through structlog's contextvars."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import structlog


def bind_context(**fields: object) -> None:
    structlog.contextvars.bind_contextvars(**fields)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


@contextmanager
def log_context(**fields: object) -> Iterator[None]:
    """Attach *fields* to every log line emitted inside the block.

    Previously bound values for the same keys are restored on exit.
    """
    with structlog.contextvars.bound_contextvars(**fields):
        yield
