"""Handler definition loading and runtime mirroring.

Turns handler directories into :class:`HandlerDefinition` records that
the resolver looks up by name.  A handler directory may contain:

- ``config.json``: the handler's declared config
- ``handler.py``: optional script exporting ``config`` (merged over the
  JSON config) and/or a ``match(route, params)`` predicate
- ``handle_modules/<name>/config.json``: per-module config

Also provides the runtime mirror: when the source tree and the runtime
tree differ, each handler is copied across before it is loaded.
"""

from __future__ import annotations

import importlib.util
import json
import logging
import shutil
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any

from perch._internal.merge import deep_merge
from perch.config import ResolverConfig
from perch.errors import InvalidHandlerError
from perch.handlers.types import HandleModuleDefinition, HandlerDefinition

logger = logging.getLogger("perch.discovery")

#: Loads the definition for one handler directory.
DefinitionLoader = Callable[[Path], HandlerDefinition]


def load_definition(handler_dir: str | Path, config: ResolverConfig | None = None) -> HandlerDefinition:
    """Build a definition from a handler directory.

    Raises:
        InvalidHandlerError: If a config file is malformed or the handler
            script fails to import.
    """
    handler_dir = Path(handler_dir)
    name = handler_dir.name
    handler_config_name = config.handler_config_name if config else "config.json"
    module_config_name = config.handle_module_config_name if config else "config.json"
    script_name = config.handler_script_name if config else "handler.py"
    modules_dir_name = config.handle_modules_dir if config else "handle_modules"

    declared = _read_json(name, handler_dir / handler_config_name)

    match = None
    script = handler_dir / script_name
    if script.is_file():
        script_config, match = _load_handler_script(name, script)
        if script_config is not None:
            declared = deep_merge(declared, script_config)

    modules: list[HandleModuleDefinition] = []
    modules_dir = handler_dir / modules_dir_name
    if modules_dir.is_dir():
        for item in sorted(modules_dir.iterdir()):
            if not item.is_dir():
                continue
            if item.name.startswith("_") or item.name.startswith("."):
                continue
            module_config = _read_json(name, item / module_config_name) or {}
            modules.append(HandleModuleDefinition(name=item.name, config=module_config))

    return HandlerDefinition(
        name=name,
        config=declared,
        handle_modules=tuple(modules),
        match=match,
    )


def load_definitions(base_path: str | Path, config: ResolverConfig | None = None) -> list[HandlerDefinition]:
    """Load definitions for every handler directory under *base_path*.

    Directories that fail to load are logged and skipped.
    """
    definitions: list[HandlerDefinition] = []
    for item in sorted(Path(base_path).iterdir()):
        if not item.is_dir() or item.name.startswith("."):
            continue
        try:
            definitions.append(load_definition(item, config))
        except InvalidHandlerError as exc:
            logger.error("Skipping handler definition: %s", exc)
    return definitions


def index_definitions(definitions: Iterable[HandlerDefinition]) -> dict[str, HandlerDefinition]:
    """Index definitions by name.  The first definition for a name wins."""
    registry: dict[str, HandlerDefinition] = {}
    for definition in definitions:
        if definition.name in registry:
            logger.warning("Duplicate handler definition %r ignored", definition.name)
            continue
        registry[definition.name] = definition
    return registry


def mirror_handler(src_handler_path: str | Path, app_handler_path: str | Path, name: str) -> None:
    """Copy one handler from the source tree into the runtime tree.

    A handler missing from the source tree is left as-is in the runtime
    tree.
    """
    src = Path(src_handler_path) / name
    dest = Path(app_handler_path) / name
    if not src.is_dir() or src.resolve() == dest.resolve():
        return
    shutil.copytree(src, dest, dirs_exist_ok=True)
    logger.debug("Mirrored %s -> %s", src, dest)


def runtime_mirror(config: ResolverConfig) -> Callable[[str], None] | None:
    """Return an ``ensure_runtime(name)`` step for *config*, or ``None``.

    ``None`` means the source and runtime trees are the same directory.
    """
    if not config.mirrors_source:
        return None

    def ensure_runtime(name: str) -> None:
        mirror_handler(config.src_handler_path, config.app_handler_path, name)

    return ensure_runtime


def _read_json(name: str, path: Path) -> dict[str, Any] | None:
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise InvalidHandlerError(name, f"cannot read {path}: {exc}") from exc
    if not isinstance(data, Mapping):
        raise InvalidHandlerError(name, f"{path} must contain a JSON object")
    return dict(data)


def _load_handler_script(
    name: str,
    script: Path,
) -> tuple[Mapping[str, Any] | None, Callable[..., bool] | None]:
    """Import a ``handler.py`` and pull out ``config`` and ``match``."""
    spec = importlib.util.spec_from_file_location(f"_perch_handler_{name}", script)
    if spec is None or spec.loader is None:
        raise InvalidHandlerError(name, f"cannot import {script}")

    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        raise InvalidHandlerError(name, f"{script} failed to import: {exc}") from exc

    config = getattr(module, "config", None)
    if config is not None and not isinstance(config, Mapping):
        raise InvalidHandlerError(name, f"{script}: 'config' must be a mapping")

    match = getattr(module, "match", None)
    if match is not None and not callable(match):
        match = None

    return config, match
