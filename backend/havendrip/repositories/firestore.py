# havendrip/repositories/firestore.py
"""
Shared plumbing for the Firestore adapters: prefixed collections, per-call
timeouts, bounded retry on reads, and GoogleAPIError -> Err translation.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, TypeVar

from google.api_core import exceptions as gexc
from google.api_core.retry import Retry, if_transient_error

from havendrip.config import Settings, get_settings
from havendrip.core.results import Err, Ok, RemoteFailure, RemoteResult

logger = logging.getLogger("havendrip.firestore")

T = TypeVar("T")

# Firestore rejects batches above this many writes.
BATCH_LIMIT = 500


class FirestoreAdapter:
    def __init__(self, db, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()

    def _col(self, name: str):
        return self.db.collection(self.settings.collection(name))

    def _read_opts(self) -> Dict[str, Any]:
        """Reads are idempotent: retry transient errors with backoff inside a deadline."""
        return {
            "retry": Retry(
                predicate=if_transient_error,
                initial=0.25,
                maximum=2.0,
                multiplier=2.0,
                timeout=self.settings.read_retry_deadline_seconds,
            ),
            "timeout": self.settings.remote_timeout_seconds,
        }

    def _write_opts(self) -> Dict[str, Any]:
        # No automatic retry: a replayed write could double a quantity.
        return {"retry": None, "timeout": self.settings.remote_timeout_seconds}

    def _guard(self, operation: str, fn: Callable[[], T]) -> RemoteResult[T]:
        try:
            return Ok(fn())
        except gexc.GoogleAPIError as exc:
            logger.warning("Firestore %s failed: %s", operation, exc)
            return Err(RemoteFailure(operation=operation, message=str(exc)))


def snapshot_dict(snap) -> Dict[str, Any]:
    return (snap.to_dict() or {}) if snap is not None and snap.exists else {}
