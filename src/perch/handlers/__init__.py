"""File-system-backed mock handlers.

A handler is a directory under the handler base path.  It answers the
routes its config declares, through one of its handle modules::

    mocker/
      demo_01/
        config.json        # {"route": "/cgi-bin/a/b/demo_01"}
        index.json         # no handle modules: answers from the index file
      demo_02/
        config.json        # {"route": "/cgi-bin/a/b/demo_02", "active_module": "success_1"}
        readme.md
        handle_modules/
          error/
            config.json    # {"query": {"errCode": 100000}}
            index.json
          success_1/
            index.py       # def handle(params): ...

Requests pick a module with the ``_m_target`` parameter, or get the
handler's active module.
"""

from perch.handlers.definitions import load_definition, load_definitions
from perch.handlers.discovery import build_handler, discover_handlers
from perch.handlers.matching import RouteMatcher, by_priority, by_specificity
from perch.handlers.resolver import HandlerResolver, ResolverState
from perch.handlers.runner import ModuleRunner
from perch.handlers.selector import ModuleSelector
from perch.handlers.store import ConfigStore
from perch.handlers.types import (
    HandleModule,
    HandleModuleDefinition,
    Handler,
    HandlerDefinition,
    ModuleType,
    ResolvedRequest,
    Snapshot,
)

__all__ = [
    "ConfigStore",
    "HandleModule",
    "HandleModuleDefinition",
    "Handler",
    "HandlerDefinition",
    "HandlerResolver",
    "ModuleRunner",
    "ModuleSelector",
    "ModuleType",
    "ResolvedRequest",
    "ResolverState",
    "RouteMatcher",
    "Snapshot",
    "build_handler",
    "by_priority",
    "by_specificity",
    "discover_handlers",
    "load_definition",
    "load_definitions",
]
