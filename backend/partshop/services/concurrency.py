# Overview: Transaction helpers shared by multi-step write services.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import DBAPIError, OperationalError

from ..extensions import db


class DatabaseUnavailableError(Exception):
    """Raised when the database connection dropped twice in a row."""


# Fragments seen in driver messages when a pooled connection was closed under us
_DISCONNECT_MARKERS = (
    "server closed the connection",
    "connection reset",
    "connection refused",
    "terminating connection",
    "could not connect",
    "connection is closed",
    "ssl connection has been closed",
)


def is_disconnect_error(exc: Exception) -> bool:
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    if not isinstance(exc, OperationalError):
        return False
    message = str(exc).lower()
    return any(marker in message for marker in _DISCONNECT_MARKERS)


def run_with_retry(func, *, delay: float | None = None):
    """
    Execute a unit of work; if it fails because the connection was dropped,
    roll back and run it once more. A second disconnect raises
    DatabaseUnavailableError. Any other error is rolled back and re-raised.
    """
    if delay is None:
        delay = float(current_app.config.get("DB_RETRY_DELAY_SECONDS", 0.25))

    try:
        return func()
    except Exception as exc:
        db.session.rollback()
        if not is_disconnect_error(exc):
            raise
        current_app.logger.warning("Database connection dropped; retrying once")

    time.sleep(delay)
    try:
        return func()
    except Exception as exc:
        db.session.rollback()
        if is_disconnect_error(exc):
            raise DatabaseUnavailableError("Database connection was interrupted. Please retry.") from exc
        raise
