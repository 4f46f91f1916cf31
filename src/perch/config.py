"""Resolver configuration.

ResolverConfig is a frozen dataclass: immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from perch.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class ResolverConfig:
    """Resolver configuration. Immutable after creation.

    Only ``root_path`` is required. Override what you need::

        config = ResolverConfig(root_path="mock_project", app_path="mock_project/build")
    """

    root_path: str | Path

    # Source tree (as authored) and runtime tree (what gets loaded).
    # Defaults to <root>/src and <root>/app.
    src_path: str | Path | None = None
    app_path: str | Path | None = None
    handler_relative_path: str = "mocker"

    # Cache snapshot, stored under app_path
    db_file_name: str = "db.json"

    # Layout conventions inside each handler directory
    handle_modules_dir: str = "handle_modules"
    handler_config_name: str = "config.json"
    handle_module_config_name: str = "config.json"
    handler_script_name: str = "handler.py"
    index_file_names: tuple[str, ...] = ("index.py", "index.json")
    readme_file_names: tuple[str, ...] = ("readme.md", "readme.MD", "README.md", "README.MD")

    # Request parameter that selects a handle module explicitly
    target_field: str = "_m_target"
    default_plugin: str = "mocker"

    # Discovery
    discovery_workers: int = 0  # 0 = sequential scan

    log_level: str = "info"

    @classmethod
    def from_root(cls, root_path: str | Path, **overrides: object) -> ResolverConfig:
        """Build a config for *root_path*, raising if it does not exist."""
        root = Path(root_path)
        if not root.is_dir():
            msg = f"Root path not found: {root}"
            raise ConfigurationError(msg)
        return cls(root_path=root, **overrides)  # type: ignore[arg-type]

    @property
    def resolved_src_path(self) -> Path:
        if self.src_path is not None:
            return Path(self.src_path)
        return Path(self.root_path) / "src"

    @property
    def resolved_app_path(self) -> Path:
        if self.app_path is not None:
            return Path(self.app_path)
        return Path(self.root_path) / "app"

    @property
    def src_handler_path(self) -> Path:
        return self.resolved_src_path / self.handler_relative_path

    @property
    def app_handler_path(self) -> Path:
        return self.resolved_app_path / self.handler_relative_path

    @property
    def base_path(self) -> Path:
        """Directory that discovery scans and module paths resolve against."""
        return self.app_handler_path

    @property
    def db_path(self) -> Path:
        return self.resolved_app_path / self.db_file_name

    @property
    def mirrors_source(self) -> bool:
        """True when the source tree must be copied into the runtime tree."""
        return self.src_handler_path.resolve() != self.app_handler_path.resolve()
