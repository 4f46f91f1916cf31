"""HandlerResolver: answers "which file produces the response for this route".

Wires the store, discovery, matcher, selector, and runner together.

Two query modes:

- cached (default): handlers come from the snapshot, no filesystem access
- reset: rediscover from the handler tree, persist, return fresh results

Usage::

    resolver = HandlerResolver(ResolverConfig(root_path="mock_project"))
    resolver.parse_and_save()
    resolved = resolver.resolve_by_route("/cgi-bin/a/b/demo", {"_m_target": "error"})
    body = await resolver.get_module_result("/cgi-bin/a/b/demo")
"""

from __future__ import annotations

import enum
import logging
import re
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from perch.config import ResolverConfig
from perch.errors import ConfigurationError, NoMatchError
from perch.handlers.definitions import (
    DefinitionLoader,
    index_definitions,
    load_definition,
    runtime_mirror,
)
from perch.handlers.discovery import discover_handlers
from perch.handlers.matching import Precedence, RouteMatcher
from perch.handlers.runner import ModuleRunner
from perch.handlers.selector import ModuleSelector
from perch.handlers.store import ConfigStore
from perch.handlers.types import (
    HandleModule,
    Handler,
    HandlerDefinition,
    MatchPredicate,
    ResolvedRequest,
    Snapshot,
)
from perch.markdown import MarkdownRenderer

logger = logging.getLogger("perch.resolver")

_HANDLER_PATH_RE = re.compile(r"__HANDLER_PATH__")


class ResolverState(enum.Enum):
    """Whether cached queries have a snapshot to answer from."""

    UNINITIALIZED = "uninitialized"
    READY = "ready"


class HandlerResolver:
    """Facade over handler discovery, caching, and request resolution.

    Args:
        config: Paths and layout conventions.
        definitions: Handler definitions in registration order.  The first
            definition for a name wins.
        load_from_disk: Load definitions from handler directories that
            have no registered definition.
        precedence: Route precedence key; see :class:`RouteMatcher`.
        strict: Reject ambiguous route matches instead of logging them.
    """

    def __init__(
        self,
        config: ResolverConfig,
        definitions: Iterable[HandlerDefinition] = (),
        *,
        load_from_disk: bool = True,
        precedence: Precedence | None = None,
        strict: bool = False,
        runner: ModuleRunner | None = None,
        markdown: MarkdownRenderer | None = None,
    ) -> None:
        if not config.root_path:
            msg = "ResolverConfig.root_path is required"
            raise ConfigurationError(msg)

        self.config = config
        self.base_path: Path = config.base_path
        self._definitions = index_definitions(definitions)
        self._predicates_from_disk: dict[str, MatchPredicate] = {}
        self._load_from_disk = load_from_disk
        self._precedence = precedence
        self._strict = strict

        self.store = ConfigStore(config.db_path)
        self.selector = ModuleSelector(
            self.base_path,
            handle_modules_dir=config.handle_modules_dir,
            target_field=config.target_field,
        )
        self.runner = runner or ModuleRunner(config.index_file_names)
        self._markdown = markdown or MarkdownRenderer()
        self._matcher = self._build_matcher()

        self.store.load()
        self.state = ResolverState.READY if self.store.snapshot.data else ResolverState.UNINITIALIZED

    # -- Discovery ---------------------------------------------------------

    def parse_and_save(self) -> list[Handler]:
        """Rediscover every handler, persist the snapshot, and return it.

        Raises:
            ConfigurationError: If the handler directory doesn't exist.
            StoreError: If the snapshot can't be written.
        """
        handlers = self._discover()
        self.store.save(
            Snapshot(
                base_path=str(self.base_path),
                src_handler_path=str(self.config.src_handler_path),
                app_handler_path=str(self.config.app_handler_path),
                data=tuple(handlers),
            )
        )
        self.state = ResolverState.READY
        return handlers

    def get_all_handlers(self, reset: bool = False) -> list[Handler]:
        """All handlers: cached by default, freshly discovered with *reset*.

        A reset here doesn't persist; use :meth:`parse_and_save` for that.
        """
        if reset:
            return self._discover()
        self._note_uninitialized()
        return self.store.handlers

    def get_handler(self, name: str, reset: bool = False) -> Handler | None:
        if not reset:
            self._note_uninitialized()
            return self.store.find(name)
        handlers = self._discover(only=name)
        return handlers[0] if handlers else None

    def get_handle_module(
        self,
        handler_name: str,
        module_name: str,
        reset: bool = False,
    ) -> HandleModule | None:
        handler = self.get_handler(handler_name, reset)
        if handler is None:
            return None
        return handler.get_module(module_name)

    def get_handler_list(self, plugin: str | None = None) -> list[Handler]:
        """Cached handlers tagged with *plugin* (default: the configured plugin)."""
        plugin = plugin or self.config.default_plugin
        self._note_uninitialized()
        return self.store.filter(lambda h: h.plugin == plugin)

    def update_handler(self, name: str, patch: Mapping[str, Any]) -> Handler | None:
        """Merge *patch* into the cached record and persist it.

        Returns the record as re-read from the store, or ``None`` if *name*
        isn't cached.
        """
        if self.store.update(name, patch) is None:
            logger.warning("Cannot update unknown handler %r", name)
            return None
        return self.get_handler(name)

    # -- Resolution --------------------------------------------------------

    def get_handler_by_route(
        self,
        route: str,
        params: Mapping[str, Any] | None = None,
    ) -> Handler | None:
        return self._matcher.match(self.get_all_handlers(), route, params or {})

    def resolve_by_route(
        self,
        route: str,
        params: Mapping[str, Any] | None = None,
    ) -> ResolvedRequest | None:
        """Match a handler, then select its module.

        ``None`` means no handler or no module matched.
        """
        params = params or {}
        handler = self.get_handler_by_route(route, params)
        if handler is None:
            return None
        return self.selector.select(handler, params)

    async def get_module_result(self, route: str, params: Mapping[str, Any] | None = None, *extra: Any) -> Any:
        """Resolve *route* and run the selected module.

        The module receives the caller's params only, not the module's
        fixed query.

        Raises:
            NoMatchError: If nothing resolves.
        """
        params = dict(params or {})
        resolved = self._require(route, params)
        return await self.runner.run(resolved.full_path, params, *extra)

    async def get_module_result_for_http(
        self,
        route: str,
        params: Mapping[str, Any] | None = None,
        request: Any = None,
    ) -> dict[str, Any]:
        """Resolve and run for an HTTP mock server.

        Returns ``{"data": body, "extra": resolved}``; the module receives
        the merged params and the request object.

        Raises:
            NoMatchError: If nothing resolves.
        """
        resolved = self._require(route, params or {})
        data = await self.runner.run(resolved.full_path, resolved.params, request)
        return {"data": data, "extra": resolved}

    # -- README ------------------------------------------------------------

    def get_readme(self, name: str) -> str:
        """Render a handler's README to HTML, or ``""`` if it has none.

        ``__HANDLER_PATH__`` in the source is replaced with the handler name.
        """
        handler_dir = self.base_path / name
        for file_name in self.config.readme_file_names:
            readme = handler_dir / file_name
            if readme.is_file():
                source = readme.read_text(encoding="utf-8")
                return self._markdown.render(_HANDLER_PATH_RE.sub(name, source))
        return ""

    # -- Internals ---------------------------------------------------------

    def _require(self, route: str, params: Mapping[str, Any]) -> ResolvedRequest:
        resolved = self.resolve_by_route(route, params)
        if resolved is None:
            msg = f"Could not resolve route={route!r} params={dict(params)!r}"
            raise NoMatchError(msg)
        return resolved

    def _discover(self, only: str | None = None) -> list[Handler]:
        listing_path = self.base_path
        if self.config.mirrors_source and self.config.src_handler_path.is_dir():
            listing_path = self.config.src_handler_path
        handlers = discover_handlers(
            self.base_path,
            self._definitions,
            cached=self.store.find,
            ensure_runtime=runtime_mirror(self.config),
            loader=self._loader() if self._load_from_disk else None,
            listing_path=listing_path,
            config=self.config,
            names=None if only is None else (only,),
        )
        # the loader may have registered new disk predicates
        self._matcher = self._build_matcher()
        return handlers

    def _note_uninitialized(self) -> None:
        if self.state is ResolverState.UNINITIALIZED:
            logger.debug("No snapshot at %s yet; call parse_and_save() to populate it", self.store.path)

    def _loader(self) -> DefinitionLoader:
        def load(handler_dir: Path) -> HandlerDefinition:
            definition = load_definition(handler_dir, self.config)
            if definition.match is not None:
                self._predicates_from_disk[definition.name] = definition.match
            return definition

        return load

    def _build_matcher(self) -> RouteMatcher:
        predicates = dict(self._predicates_from_disk)
        predicates.update({name: d.match for name, d in self._definitions.items() if d.match is not None})
        return RouteMatcher(predicates, precedence=self._precedence, strict=self._strict)
