# Overview: Key-value persistence primitive; durable get/set of JSON documents by key.

from __future__ import annotations

import json
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..models import KeyValueDocument
from .concurrency import run_with_retry
"""
Store contract:

- Values are JSON-serializable documents; get returns a fresh decoded copy.
- set replaces the whole document (no partial patch).
- get on an absent key returns None.
- Any failure to read or write surfaces as PersistenceError.
"""


class PersistenceError(RuntimeError):
    """The underlying key-value store could not read or write a document."""

    def __init__(self, message: str, *, key: str | None = None):
        self.key = key
        super().__init__(message)


class KeyValueStore:
    """Interface for the durable store collaborator."""

    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


def _encode(key: str, value: Any) -> str:
    try:
        return json.dumps(value)
    except (TypeError, ValueError) as exc:
        raise PersistenceError(f"value for {key!r} is not JSON-serializable", key=key) from exc


def _decode(key: str, raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise PersistenceError(f"stored document {key!r} is not valid JSON", key=key) from exc


class MemoryKeyValueStore(KeyValueStore):
    """
    Process-local store. Documents are kept as JSON text so callers never
    share mutable state with the store.
    """

    def __init__(self, initial: Optional[dict] = None):
        self._data: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        if raw is None:
            return None
        return _decode(key, raw)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = _encode(key, value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class SqlKeyValueStore(KeyValueStore):
    """
    Store backed by the kv_documents table through a Flask-SQLAlchemy handle.

    Every set commits immediately; transient lock/version conflicts are
    retried before a PersistenceError is raised. Requires an app context.
    """

    def __init__(self, db, *, attempts: int = 3, backoff_base: float = 0.1):
        self.db = db
        self.attempts = attempts
        self.backoff_base = backoff_base

    @property
    def session(self):
        return self.db.session

    def get(self, key: str) -> Optional[Any]:
        try:
            row = self.session.get(KeyValueDocument, key)
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise PersistenceError(f"failed to read {key!r}", key=key) from exc
        if row is None:
            return None
        return _decode(key, row.value)

    def set(self, key: str, value: Any) -> None:
        raw = _encode(key, value)

        def _op():
            row = self.session.get(KeyValueDocument, key)
            if row is None:
                self.session.add(KeyValueDocument(key=key, value=raw))
            else:
                row.value = raw
            self.session.commit()

        self._write(key, _op)

    def delete(self, key: str) -> None:
        def _op():
            row = self.session.get(KeyValueDocument, key)
            if row is not None:
                self.session.delete(row)
            self.session.commit()

        self._write(key, _op)

    def keys(self) -> list[str]:
        return [k for (k,) in self.session.query(KeyValueDocument.key).order_by(KeyValueDocument.key)]

    def _write(self, key: str, op) -> None:
        try:
            run_with_retry(
                op,
                session=self.session,
                attempts=self.attempts,
                backoff_base=self.backoff_base,
            )
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise PersistenceError(f"failed to write {key!r}", key=key) from exc
