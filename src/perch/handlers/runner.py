"""Handle module execution.

Loads the target a resolved request points at and produces the response
body:

- ``*.json``: the decoded document
- ``*.py``: ``handle(params, *extra)`` (sync or async), or the module's
  ``data`` attribute when it defines no ``handle``
- a directory: its ``index.py`` or ``index.json``

File reads and imports run in a worker thread via ``anyio.to_thread``.
"""

from __future__ import annotations

import importlib.util
import json
import logging
from pathlib import Path
from types import ModuleType
from typing import Any

import anyio

from perch._internal.invoke import invoke
from perch.errors import ModuleExecutionError

logger = logging.getLogger("perch.runner")

_MISSING = object()


class ModuleRunner:
    """Run handle modules found on disk.

    Usage::

        runner = ModuleRunner()
        body = await runner.run(resolved.full_path, resolved.params)
    """

    __slots__ = ("index_file_names",)

    def __init__(self, index_file_names: tuple[str, ...] = ("index.py", "index.json")) -> None:
        self.index_file_names = index_file_names

    async def run(self, full_path: str | Path, params: dict[str, Any], *extra: Any) -> Any:
        """Load *full_path* and return its response body.

        Raises:
            ModuleExecutionError: If the target is missing, unsupported, or
                fails to load.
        """
        target = await anyio.to_thread.run_sync(self._find_target, Path(full_path))
        logger.debug("Running %s", target)

        if target.suffix == ".json":
            return await anyio.to_thread.run_sync(_read_json, target)
        if target.suffix == ".py":
            module = await anyio.to_thread.run_sync(_import_script, target)
            handle = getattr(module, "handle", None)
            if callable(handle):
                return await invoke(handle, params, *extra)
            data = getattr(module, "data", _MISSING)
            if data is _MISSING:
                msg = f"{target} defines neither handle() nor data"
                raise ModuleExecutionError(msg)
            return data

        msg = f"Unsupported handle module type: {target}"
        raise ModuleExecutionError(msg)

    def _find_target(self, path: Path) -> Path:
        if path.is_file():
            return path
        if path.is_dir():
            for file_name in self.index_file_names:
                candidate = path / file_name
                if candidate.is_file():
                    return candidate
            msg = f"No {' or '.join(self.index_file_names)} in {path}"
            raise ModuleExecutionError(msg)
        msg = f"Handle module not found: {path}"
        raise ModuleExecutionError(msg)


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        msg = f"Cannot read {path}: {exc}"
        raise ModuleExecutionError(msg) from exc


def _import_script(path: Path) -> ModuleType:
    spec = importlib.util.spec_from_file_location(f"_perch_module_{abs(hash(path))}", path)
    if spec is None or spec.loader is None:
        msg = f"Cannot import {path}"
        raise ModuleExecutionError(msg)
    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        msg = f"{path} failed to import: {exc}"
        raise ModuleExecutionError(msg) from exc
    return module
