# Backend/rss_digest/core/request_id.py
from __future__ import annotations

import contextvars
import uuid
from contextlib import contextmanager
from typing import Iterator, Optional

_run_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("run_id", default=None)


def get_run_id() -> Optional[str]:
    return _run_id_ctx.get()


@contextmanager
def with_run_id(run_id: Optional[str] = None) -> Iterator[str]:
    """
    Bind a run id for the duration of one digest run:
        with with_run_id():
            ... fetch, translate, write ...
    Tasks spawned inside the block inherit the id through contextvars.
    """
    previous = _run_id_ctx.get()
    rid = run_id or uuid.uuid4().hex
    _run_id_ctx.set(rid)
    try:
        yield rid
    finally:
        _run_id_ctx.set(previous)
