# Overview: Retry policy for store operations; transient failures back off, everything else propagates.

from __future__ import annotations

import time

from flask import current_app, has_app_context
from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    InterfaceError,
    OperationalError,
    TimeoutError as PoolTimeoutError,
)

from ..errors import TransientStoreError
from ..extensions import db


DEFAULT_ATTEMPTS = 3
DEFAULT_BACKOFF_BASE = 0.5


def is_transient(exc: BaseException) -> bool:
    """
    True for failures worth retrying: lost connections, pool exhaustion,
    lock timeouts. Integrity, programming and data errors are permanent.
    """
    if isinstance(exc, (OperationalError, InterfaceError, DisconnectionError, PoolTimeoutError)):
        return True
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    return False


def run_with_retry(func, *, attempts: int | None = None, backoff_base: float | None = None, sleep=time.sleep):
    """
    Execute a store operation, retrying transient failures with exponential backoff.

    Non-transient exceptions propagate on the first failure. When the retry
    budget is spent the last transient error is wrapped in TransientStoreError.
    The session is rolled back before every retry so a half-applied unit of
    work is never committed.
    """
    if attempts is None:
        attempts = _config("GATEWAY_RETRY_ATTEMPTS", DEFAULT_ATTEMPTS)
    if backoff_base is None:
        backoff_base = _config("GATEWAY_RETRY_BACKOFF", DEFAULT_BACKOFF_BASE)
    attempts = max(1, int(attempts))

    for attempt in range(attempts):
        try:
            return func()
        except Exception as exc:
            if not is_transient(exc):
                raise
            db.session.rollback()
            if attempt >= attempts - 1:
                raise TransientStoreError(
                    "The data store is temporarily unreachable. Please retry.",
                    attempts=attempts,
                ) from exc
            delay = backoff_base * (2 ** attempt)
            if has_app_context():
                current_app.logger.warning(
                    "Transient store failure (attempt %d/%d), retrying in %.2fs: %s",
                    attempt + 1, attempts, delay, exc.__class__.__name__,
                )
            sleep(delay)


def _config(key: str, default):
    if has_app_context():
        return current_app.config.get(key, default)
    return default
