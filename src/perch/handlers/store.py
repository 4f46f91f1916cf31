"""On-disk cache of the last reset scan.

The snapshot is a single JSON document, fully rewritten on every save.
In memory it is indexed by handler name so lookups are plain dict
operations.  Reads are forgiving (a missing or corrupt file is an empty
snapshot); writes are not.

Single writer only: two stores pointed at the same file race on save.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import replace
from pathlib import Path
from typing import Any

from perch._internal.merge import deep_merge
from perch.errors import StoreError
from perch.handlers.discovery import repair_active_module
from perch.handlers.types import Handler, Snapshot

logger = logging.getLogger("perch.store")


class ConfigStore:
    """Typed in-memory index over the snapshot file.

    Usage::

        store = ConfigStore("app/db.json")
        store.load()
        handler = store.find("demo_01")
        store.save(Snapshot(base_path=..., data=tuple(handlers)))
    """

    __slots__ = ("_index", "_path", "_snapshot")

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._snapshot = Snapshot()
        self._index: dict[str, Handler] = {}

    @property
    def path(self) -> Path:
        return self._path

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def handlers(self) -> list[Handler]:
        """Cached handlers in discovery order."""
        return list(self._snapshot.data)

    def load(self) -> Snapshot:
        """Read the snapshot file into memory.

        Never raises: an absent, unreadable, or malformed file yields an
        empty snapshot.
        """
        snapshot = Snapshot()
        if self._path.is_file():
            try:
                raw = json.loads(self._path.read_text(encoding="utf-8"))
                if not isinstance(raw, Mapping):
                    msg = f"expected an object, got {type(raw).__name__}"
                    raise ValueError(msg)
                snapshot = Snapshot.from_dict(raw)
            except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
                logger.warning("Ignoring unreadable cache %s: %s", self._path, exc)
                snapshot = Snapshot()
        else:
            logger.debug("No cache at %s, starting empty", self._path)
        self._set(snapshot)
        return snapshot

    def save(self, snapshot: Snapshot) -> None:
        """Replace the snapshot and write it to disk.

        Raises:
            StoreError: If the file can't be written.
        """
        payload = json.dumps(snapshot.to_dict(), indent=2, ensure_ascii=False)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(payload + "\n", encoding="utf-8")
        except OSError as exc:
            msg = f"Could not write cache {self._path}: {exc}"
            raise StoreError(msg) from exc
        self._set(snapshot)
        logger.debug("Saved %d handler(s) to %s", len(snapshot.data), self._path)

    def find(self, name: str) -> Handler | None:
        return self._index.get(name)

    def filter(self, predicate: Callable[[Handler], bool]) -> list[Handler]:
        return [h for h in self._snapshot.data if predicate(h)]

    def update(self, name: str, patch: Mapping[str, Any]) -> Handler | None:
        """Merge *patch* over the cached record for *name* and persist.

        An ``active_module`` that names no module falls back to the first
        one, as on discovery.  Returns the stored record, or ``None`` if
        *name* isn't cached.

        Raises:
            TypeError, ValueError: If *patch* gives a field the wrong shape.
            StoreError: If the file can't be written.
        """
        current = self._index.get(name)
        if current is None:
            return None

        merged = deep_merge(current.to_dict(), patch, {"name": name})
        updated = repair_active_module(Handler.from_dict(merged))
        data = tuple(updated if h.name == name else h for h in self._snapshot.data)
        self.save(replace(self._snapshot, data=data))
        return self._index[name]

    def _set(self, snapshot: Snapshot) -> None:
        self._snapshot = snapshot
        self._index = {h.name: h for h in snapshot.data}
