# Overview: Seeded whole-document collections on top of the key-value store.

from __future__ import annotations

import json
import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from .kv_store import KeyValueStore, PersistenceError

logger = logging.getLogger(__name__)


class SeedSource:
    """
    Read-only baseline snapshots, one JSON file per collection.

    load() returns None when the file is absent and raises ValueError when it
    exists but cannot be read as JSON.
    """

    def __init__(self, directory: Optional[str | Path]):
        self.directory = Path(directory) if directory else None

    def path_for(self, name: str) -> Optional[Path]:
        if self.directory is None:
            return None
        return self.directory / f"{name}.json"

    def load(self, name: str) -> Optional[dict]:
        path = self.path_for(name)
        if path is None or not path.exists():
            return None
        try:
            with path.open(encoding="utf-8") as fh:
                return json.load(fh)
        except (OSError, ValueError) as exc:
            raise ValueError(f"seed file {path} is unreadable: {exc}") from exc


class DocumentCollection:
    """
    A list of records persisted under one key as {root: [...]}.

    - Reads load the full document; writes replace it.
    - An absent document is bootstrapped from the seed source and persisted
      before the first read is served.
    - lock() is a per-collection single-writer mutex; callers doing
      read-modify-write hold it across both steps.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str,
        root: str,
        *,
        seed: Optional[SeedSource] = None,
        seed_name: Optional[str] = None,
    ):
        self.store = store
        self.key = key
        self.root = root
        self.seed = seed
        self.seed_name = seed_name
        self._lock = threading.RLock()

    def __repr__(self) -> str:
        return f"<DocumentCollection key={self.key!r} root={self.root!r}>"

    @contextmanager
    def lock(self):
        with self._lock:
            yield self

    def load(self) -> list[dict]:
        doc = self.store.get(self.key)
        if doc is None:
            return self.bootstrap()
        return self._records(doc)

    def save(self, records: list[dict]) -> None:
        self.store.set(self.key, {self.root: list(records)})

    def clear(self) -> None:
        with self._lock:
            self.store.delete(self.key)

    def bootstrap(self) -> list[dict]:
        with self._lock:
            # another writer may have seeded while we waited
            doc = self.store.get(self.key)
            if doc is not None:
                return self._records(doc)

            baseline = {self.root: []}
            if self.seed is not None and self.seed_name:
                try:
                    seeded = self.seed.load(self.seed_name)
                except ValueError:
                    # Serve empty but leave the key absent so a later load retries.
                    logger.exception("Failed to load seed %r for %s", self.seed_name, self.key)
                    return []
                if seeded is not None:
                    baseline = {self.root: self._records(seeded)}

            self.store.set(self.key, baseline)
            logger.info("Bootstrapped %s with %d records", self.key, len(baseline[self.root]))
            return baseline[self.root]

    def _records(self, doc) -> list[dict]:
        if not isinstance(doc, dict):
            raise PersistenceError(f"document {self.key!r} is not an object", key=self.key)
        records = doc.get(self.root) or []
        if not isinstance(records, list):
            raise PersistenceError(f"document {self.key!r} has no {self.root!r} list", key=self.key)
        return records
