"""Handler discovery for the mock handler tree.

Scans a base directory and turns each immediate subdirectory into a
:class:`Handler`:

- the directory name is the handler name
- the definition registry supplies the declared config and submodules
- the previous cache record for the same name supplies defaults
- a handler without submodules answers from its root ``index`` file

One bad handler never aborts the scan.  It is logged and left out of
the result, which keeps directory-listing order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from pathlib import Path
from typing import Any

from perch._internal.merge import deep_merge
from perch.config import ResolverConfig
from perch.errors import (
    ConfigurationError,
    DiscoveryError,
    InvalidHandlerError,
    StructuralError,
    UnresolvableModuleError,
)
from perch.handlers.definitions import DefinitionLoader
from perch.handlers.types import (
    INDEX_MODULE_DESCRIPTION,
    INDEX_MODULE_NAME,
    HandleModule,
    Handler,
    HandlerDefinition,
    ModuleType,
)

logger = logging.getLogger("perch.discovery")

#: Looks up the cached record for a handler name.
CacheLookup = Callable[[str], Handler | None]

#: Pre-discovery step that prepares ``<base>/<name>`` (e.g. mirrors sources).
EnsureRuntime = Callable[[str], None]


def discover_handlers(
    base_path: str | Path,
    registry: Mapping[str, HandlerDefinition],
    *,
    cached: CacheLookup | None = None,
    ensure_runtime: EnsureRuntime | None = None,
    loader: DefinitionLoader | None = None,
    listing_path: str | Path | None = None,
    config: ResolverConfig | None = None,
    names: Iterable[str] | None = None,
) -> list[Handler]:
    """Scan *base_path* and build one handler per valid subdirectory.

    Args:
        base_path: Runtime handler directory.  Module paths resolve here.
        registry: Definitions keyed by handler name.
        cached: Lookup for the previous record of a handler, used as
            defaults under the declared config.
        ensure_runtime: Called with each handler name before its
            definition is looked up.
        loader: Fallback that loads a definition from the handler
            directory when *registry* has none for the name.
        listing_path: Directory whose children name the handlers.
            Defaults to *base_path*; the resolver passes the source tree
            when it mirrors into the runtime tree.
        config: Layout conventions.  Defaults to ``ResolverConfig`` defaults.
        names: Restrict the scan to these handler names.

    Returns:
        Valid handlers in directory-listing order.

    Raises:
        ConfigurationError: If the listing directory does not exist.
    """
    base = Path(base_path)
    listing = Path(listing_path) if listing_path is not None else base
    if not listing.is_dir():
        msg = f"Handler directory not found: {listing}"
        raise ConfigurationError(msg)

    wanted = None if names is None else set(names)
    handler_names = [n for n in _iter_handler_names(listing) if wanted is None or n in wanted]

    def discover_one(name: str) -> Handler | None:
        try:
            if ensure_runtime is not None:
                try:
                    ensure_runtime(name)
                except OSError as exc:
                    raise InvalidHandlerError(name, f"runtime preparation failed: {exc}") from exc

            handler_dir = base / name
            definition = registry.get(name)
            if definition is None and loader is not None and handler_dir.is_dir():
                definition = loader(handler_dir)

            previous = cached(name) if cached is not None else None
            return build_handler(name, definition, handler_dir, previous, config=config)
        except DiscoveryError as exc:
            logger.error("Skipping handler %s", exc)
            return None

    workers = config.discovery_workers if config is not None else 0
    if workers > 1 and len(handler_names) > 1:
        # map() yields in submission order, so listing order survives
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(discover_one, handler_names))
    else:
        results = [discover_one(name) for name in handler_names]

    handlers = [h for h in results if h is not None]
    _warn_duplicate_routes(handlers)
    logger.info("Discovered %d handler(s) in %s", len(handlers), base)
    return handlers


def build_handler(
    name: str,
    definition: HandlerDefinition | None,
    handler_dir: Path,
    previous: Handler | None = None,
    *,
    config: ResolverConfig | None = None,
) -> Handler:
    """Merge a definition with its cached record into a final handler.

    Raises:
        InvalidHandlerError: If there is no definition, it has no config,
            or a declared field has the wrong shape.
        UnresolvableModuleError: If the handler has no submodules and no
            root index file.
    """
    if definition is None:
        raise InvalidHandlerError(name, "no handler definition")
    if definition.config is None:
        raise InvalidHandlerError(name, "definition has no config")

    default_plugin = config.default_plugin if config else "mocker"
    target_field = config.target_field if config else "_m_target"

    defaults: dict[str, Any] = {
        "name": name,
        "description": name,
        "plugin": default_plugin,
        "priority": 0,
        "disable": False,
        "tags": [],
    }
    cached_data = previous.to_dict() if previous is not None else {}
    cached_data.pop("modules", None)

    try:
        merged = deep_merge(defaults, cached_data, definition.config, {"name": name})
        merged.pop("modules", None)
        if definition.handle_modules:
            modules = _declared_modules(name, definition, target_field)
        else:
            modules = (_index_module(name, handler_dir, target_field, config),)
        handler = replace(Handler.from_dict(merged), modules=modules)
    except (ValueError, TypeError) as exc:
        raise InvalidHandlerError(name, f"invalid config: {exc}") from exc

    return repair_active_module(handler)


def repair_active_module(handler: Handler) -> Handler:
    """Point ``active_module`` at the first module if it names none of them."""
    if not handler.modules or handler.active_module in handler.module_names:
        return handler
    fallback = handler.modules[0].name
    if handler.active_module:
        logger.warning(
            "Handler %s: active module %r not found, using %r",
            handler.name,
            handler.active_module,
            fallback,
        )
    return replace(handler, active_module=fallback)


def _iter_handler_names(listing: Path) -> Iterator[str]:
    for item in sorted(listing.iterdir()):
        if item.name.startswith("."):
            continue
        if not item.is_dir():
            logger.error("%s", StructuralError(str(item), "should be a directory"))
            continue
        yield item.name


def _declared_modules(
    name: str,
    definition: HandlerDefinition,
    target_field: str,
) -> tuple[HandleModule, ...]:
    modules: list[HandleModule] = []
    seen: set[str] = set()
    for item in definition.handle_modules:
        if item.name in seen:
            logger.warning("Handler %s: duplicate handle module %r ignored", name, item.name)
            continue
        seen.add(item.name)

        declared = dict(item.config or {})
        data = deep_merge(
            {"name": item.name, "description": item.name, "priority": 0},
            declared,
            {
                "name": item.name,
                "type": ModuleType.HANDLE_MODULE.value,
                "query": deep_merge(declared.get("query"), {target_field: item.name}),
            },
        )
        data.pop("file_name", None)
        modules.append(HandleModule.from_dict(data))
    return tuple(modules)


def _index_module(
    name: str,
    handler_dir: Path,
    target_field: str,
    config: ResolverConfig | None,
) -> HandleModule:
    candidates = config.index_file_names if config else ("index.py", "index.json")
    for file_name in candidates:
        if (handler_dir / file_name).is_file():
            return HandleModule(
                name=INDEX_MODULE_NAME,
                description=INDEX_MODULE_DESCRIPTION,
                priority=0,
                type=ModuleType.NO_MODULE,
                query={target_field: INDEX_MODULE_NAME},
                file_name=file_name,
            )
    raise UnresolvableModuleError(
        name,
        f"no handle modules and none of {', '.join(candidates)} in {handler_dir}",
    )


def _warn_duplicate_routes(handlers: list[Handler]) -> None:
    seen: dict[tuple[str, tuple[tuple[str, str], ...]], str] = {}
    for handler in handlers:
        if not handler.route or handler.disable:
            continue
        extra = tuple(sorted((k, str(v)) for k, v in handler.route_extra.items()))
        key = (handler.route, extra)
        if key in seen:
            logger.warning(
                "Handlers %s and %s declare the same route %r",
                seen[key],
                handler.name,
                handler.route,
            )
        else:
            seen[key] = handler.name
