"""Data models for handler resolution.

Frozen dataclasses for discovered handlers, their handle modules, the
cache snapshot, and the definitions supplied by the loader.  Handler
records round-trip through plain dicts so the snapshot can be stored as
JSON.
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from perch._internal.merge import deep_merge

#: Signature of a definition-supplied matching predicate.
MatchPredicate = Callable[[str, Mapping[str, Any]], bool]

INDEX_MODULE_NAME = "index_module"
INDEX_MODULE_DESCRIPTION = "default module"


class ModuleType(enum.StrEnum):
    """Where a handle module's response comes from."""

    HANDLE_MODULE = "handle_module"
    """A ``handle_modules/<name>/`` directory."""

    NO_MODULE = "no_module"
    """The synthetic entry for a handler's root ``index`` file."""


def _require_mapping(data: object, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        msg = f"{what} must be a mapping, got {type(data).__name__}"
        raise TypeError(msg)
    return data


def _optional_str(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        msg = f"{key!r} must be a string, got {type(value).__name__}"
        raise TypeError(msg)
    return value


def _list(value: object, what: str) -> list[Any] | tuple[Any, ...]:
    if value is None:
        return ()
    if not isinstance(value, list | tuple):
        msg = f"{what!r} must be a list, got {type(value).__name__}"
        raise TypeError(msg)
    return value


def _tags(value: object) -> tuple[str, ...]:
    return tuple(str(tag) for tag in _list(value, "tags"))


_MODULE_FIELDS = frozenset({"name", "description", "priority", "type", "query", "file_name", "config"})


@dataclass(frozen=True, slots=True)
class HandleModule:
    """A single response-producing unit within a handler.

    Attributes:
        name: Unique within its handler.
        description: Human-readable label (defaults to the name).
        priority: Ordering hint for consumers listing modules.
        type: :class:`ModuleType` of the module.
        query: Fixed request parameters identifying this module.  Always
            carries the target field set to the module's own name.
        file_name: Root index file name, only for ``NO_MODULE`` entries.
        config: Declared keys not captured by a typed field.
    """

    name: str
    description: str = ""
    priority: int = 0
    type: ModuleType = ModuleType.HANDLE_MODULE
    query: dict[str, Any] = field(default_factory=dict)
    file_name: str | None = None
    config: dict[str, Any] = field(default_factory=dict)

    @property
    def is_no_module(self) -> bool:
        return self.type is ModuleType.NO_MODULE

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "priority": self.priority,
            "type": self.type.value,
            "query": dict(self.query),
            "file_name": self.file_name,
            "config": dict(self.config),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> HandleModule:
        """Build a module from a stored or merged mapping.

        Raises:
            TypeError, ValueError: If a field has the wrong shape.
        """
        data = _require_mapping(data, "handle module")
        extra = {k: v for k, v in data.items() if k not in _MODULE_FIELDS}
        return cls(
            name=str(data["name"]),
            description=str(data.get("description") or ""),
            priority=int(data.get("priority") or 0),
            type=ModuleType(data.get("type") or ModuleType.HANDLE_MODULE),
            query=dict(_require_mapping(data.get("query") or {}, "query")),
            file_name=_optional_str(data, "file_name"),
            config=deep_merge(data.get("config"), extra),
        )


_HANDLER_FIELDS = frozenset(
    {
        "name",
        "description",
        "plugin",
        "priority",
        "disable",
        "tags",
        "route",
        "route_extra",
        "active_module",
        "config",
        "modules",
    }
)


@dataclass(frozen=True, slots=True)
class Handler:
    """A logical mock/response unit discovered from one directory.

    Attributes:
        name: Directory basename, unique within the base path.
        description: Human-readable label (defaults to the name).
        plugin: Consumer tag used by :meth:`HandlerResolver.get_handler_list`.
        priority: Used by the ``by_priority`` route precedence.
        disable: Disabled handlers never match a route.
        tags: Free-form labels.
        route: Route pattern this handler answers, or ``None``.
        route_extra: Request parameters that must be present with equal values.
        active_module: Module used when a request doesn't name one.
        modules: Ordered handle modules.
        config: Declared keys not captured by a typed field.
    """

    name: str
    description: str = ""
    plugin: str = "mocker"
    priority: int = 0
    disable: bool = False
    tags: tuple[str, ...] = ()
    route: str | None = None
    route_extra: dict[str, Any] = field(default_factory=dict)
    active_module: str | None = None
    modules: tuple[HandleModule, ...] = ()
    config: dict[str, Any] = field(default_factory=dict)

    @property
    def module_names(self) -> tuple[str, ...]:
        return tuple(m.name for m in self.modules)

    def get_module(self, name: str | None) -> HandleModule | None:
        """Find a handle module by exact name."""
        if not name:
            return None
        for module in self.modules:
            if module.name == name:
                return module
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "plugin": self.plugin,
            "priority": self.priority,
            "disable": self.disable,
            "tags": list(self.tags),
            "route": self.route,
            "route_extra": dict(self.route_extra),
            "active_module": self.active_module,
            "config": dict(self.config),
            "modules": [m.to_dict() for m in self.modules],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Handler:
        """Build a record from a stored or merged mapping.

        Keys that aren't typed fields are folded into ``config``.

        Raises:
            TypeError, ValueError: If a field has the wrong shape.
        """
        data = _require_mapping(data, "handler record")
        extra = {k: v for k, v in data.items() if k not in _HANDLER_FIELDS}
        return cls(
            name=str(data["name"]),
            description=str(data.get("description") or ""),
            plugin=str(data.get("plugin") or "mocker"),
            priority=int(data.get("priority") or 0),
            disable=bool(data.get("disable", False)),
            tags=_tags(data.get("tags")),
            route=_optional_str(data, "route"),
            route_extra=dict(_require_mapping(data.get("route_extra") or {}, "route_extra")),
            active_module=_optional_str(data, "active_module"),
            modules=tuple(HandleModule.from_dict(m) for m in _list(data.get("modules"), "modules")),
            config=deep_merge(data.get("config"), extra),
        )


@dataclass(frozen=True, slots=True)
class Snapshot:
    """The persisted result of the last reset scan."""

    base_path: str = ""
    src_handler_path: str = ""
    app_handler_path: str = ""
    data: tuple[Handler, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "base_path": self.base_path,
            "src_handler_path": self.src_handler_path,
            "app_handler_path": self.app_handler_path,
            "data": [h.to_dict() for h in self.data],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Snapshot:
        data = _require_mapping(data, "snapshot")
        return cls(
            base_path=str(data.get("base_path") or ""),
            src_handler_path=str(data.get("src_handler_path") or ""),
            app_handler_path=str(data.get("app_handler_path") or ""),
            data=tuple(Handler.from_dict(h) for h in _list(data.get("data"), "data")),
        )


@dataclass(frozen=True, slots=True)
class HandleModuleDefinition:
    """A declared submodule of a handler definition."""

    name: str
    config: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class HandlerDefinition:
    """What a handler declares about itself, before any merge.

    Supplied by the definition loader (or built in code) and looked up by
    exact ``name`` during discovery.

    Attributes:
        name: Must equal the handler directory name to be found.
        config: Declared handler config.  ``None`` makes the handler invalid.
        handle_modules: Declared submodules in order.  Empty means the
            handler answers from its root index file.
        match: Optional ``(route, params) -> bool`` predicate that replaces
            the ``route`` pattern rule.
    """

    name: str
    config: Mapping[str, Any] | None = None
    handle_modules: tuple[HandleModuleDefinition, ...] = ()
    match: MatchPredicate | None = None


@dataclass(frozen=True, slots=True)
class ResolvedRequest:
    """Result of resolving a request: what to run, and with which params."""

    handler: Handler
    module: HandleModule
    full_path: Path
    params: dict[str, Any]
