"""Perch: file-system-backed mock handlers for browser end-to-end tests.

Resolves a mocked request (route plus parameters) to the handler module
that should answer it, and runs that module.

Basic usage::

    from perch import HandlerResolver, ResolverConfig

    resolver = HandlerResolver(ResolverConfig(root_path="mock_project"))
    resolver.parse_and_save()

    resolved = resolver.resolve_by_route("/cgi-bin/a/b/demo", {"_m_target": "error"})
    resolved.full_path   # .../mocker/demo/handle_modules/error
    resolved.params      # module query merged with the request params
"""

__version__ = "0.1.0-dev"
__all__ = [
    "ConfigurationError",
    "Handler",
    "HandleModule",
    "HandlerDefinition",
    "HandlerResolver",
    "NoMatchError",
    "PerchError",
    "ResolvedRequest",
    "ResolverConfig",
    "StoreError",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import perch`` fast while providing a clean top-level API.
    """
    if name == "ResolverConfig":
        from perch.config import ResolverConfig

        return ResolverConfig

    if name == "HandlerResolver":
        from perch.handlers.resolver import HandlerResolver

        return HandlerResolver

    if name in ("Handler", "HandleModule", "HandlerDefinition", "ResolvedRequest"):
        from perch.handlers import types as _types

        return getattr(_types, name)

    if name in ("ConfigurationError", "NoMatchError", "PerchError", "StoreError"):
        from perch import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
