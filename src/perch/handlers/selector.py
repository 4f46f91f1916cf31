"""Handle module selection for a matched handler."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from perch._internal.merge import deep_merge
from perch.handlers.types import HandleModule, Handler, ResolvedRequest


class ModuleSelector:
    """Pick the handle module a request runs and compute its path.

    The request's target field names a module explicitly; otherwise the
    handler's ``active_module`` is used.  Parameters are the module's
    fixed ``query`` with the caller's values layered on top.
    """

    __slots__ = ("base_path", "handle_modules_dir", "target_field")

    def __init__(
        self,
        base_path: str | Path,
        *,
        handle_modules_dir: str = "handle_modules",
        target_field: str = "_m_target",
    ) -> None:
        self.base_path = Path(base_path)
        self.handle_modules_dir = handle_modules_dir
        self.target_field = target_field

    def select(
        self,
        handler: Handler | None,
        params: Mapping[str, Any] | None = None,
    ) -> ResolvedRequest | None:
        """Resolve *handler* and *params* to a runnable request.

        Returns ``None`` when the effective module name isn't one of the
        handler's modules.
        """
        if handler is None:
            return None
        params = params or {}

        module_name = params.get(self.target_field) or handler.active_module
        module = handler.get_module(module_name)
        if module is None:
            return None

        return ResolvedRequest(
            handler=handler,
            module=module,
            full_path=self.module_path(handler, module),
            params=deep_merge(module.query, params),
        )

    def module_path(self, handler: Handler, module: HandleModule) -> Path:
        if module.is_no_module and module.file_name:
            relative = Path(module.file_name)
        else:
            relative = Path(self.handle_modules_dir) / module.name
        return self.base_path / handler.name / relative
