"""Perch exception hierarchy.

Shared across discovery, the store, the matcher, and the runner so every
module raises and catches the same types.
"""


class PerchError(Exception):
    """Base for all perch-specific errors."""


class ConfigurationError(PerchError):
    """Raised when resolver configuration is invalid.

    Typically a required path is missing or points at the wrong kind of
    filesystem entry.
    """


class DiscoveryError(PerchError):
    """Base for per-handler problems found during a reset scan.

    Discovery catches these, logs them, and omits the offending entry.
    They never escape ``discover_handlers()``.
    """

    def __init__(self, name: str, detail: str = "") -> None:
        self.name = name
        self.detail = detail
        super().__init__(f"{name}: {detail}" if detail else name)


class StructuralError(DiscoveryError):
    """A non-directory entry sits where a handler directory was expected."""


class InvalidHandlerError(DiscoveryError):
    """A handler directory has no matching definition, or no config."""


class UnresolvableModuleError(DiscoveryError):
    """A handler has no submodules and no root index file."""


class StoreError(PerchError):
    """The cache snapshot could not be written.

    Reads never raise; a failed write is fatal for the caller.
    """


class AmbiguousRouteError(PerchError):
    """Several handlers tie for a route under a strict matcher."""

    def __init__(self, route: str, names: tuple[str, ...]) -> None:
        self.route = route
        self.names = names
        super().__init__(f"Route {route!r} is ambiguous between: {', '.join(names)}")


class NoMatchError(PerchError):
    """No handler or no handle module matched a request.

    Resolution itself returns ``None`` for this case; only the execution
    helpers raise it, since they have nothing to run.
    """


class ModuleExecutionError(PerchError):
    """A resolved handle module could not be loaded or run."""


class MarkdownError(PerchError):
    """Base for README rendering errors."""


class MarkdownNotInstalledError(MarkdownError):
    """Raised when patitas is not installed."""
