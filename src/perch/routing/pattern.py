"""Compiled route patterns.

A handler declares the route it answers as a pattern string. Patterns
are parsed once into segments and compiled into a single anchored regex::

    "/cgi-bin/a/b/demo_cgi"      static
    "/api/users/{id:int}"         typed parameter
    "/static/{filepath:path}"     catch-all, must be last

Matching ignores a leading/trailing slash and any ``?query`` suffix on
the requested route.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from perch.errors import ConfigurationError

_FLASK_STYLE_RE = re.compile(r"<[^>]+>")

# converter name -> (segment regex, target type)
CONVERTERS: dict[str, tuple[str, type]] = {
    "str": (r"[^/]+", str),
    "int": (r"\d+", int),
    "float": (r"\d+(?:\.\d+)?", float),
    "path": (r".+", str),
}


def convert_param(value: str, param_type: str) -> str | int | float:
    """Convert a captured segment with the named converter."""
    _, target_type = CONVERTERS[param_type]
    return target_type(value)


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route pattern.

    Static:  ``/users``  (is_param=False)
    Param:   ``/{id}``   (is_param=True, param_name="id")
    Typed:   ``/{id:int}`` (is_param=True, param_name="id", param_type="int")
    """

    value: str
    is_param: bool = False
    param_name: str | None = None
    param_type: str = "str"


def parse_path(path: str) -> list[PathSegment]:
    """Parse a route pattern string into segments.

    Examples::

        "/users"          -> [PathSegment("users")]
        "/users/{id}"     -> [PathSegment("users"), PathSegment("{id}", is_param=True, ...)]
        "/users/{id:int}" -> [PathSegment("{id:int}", is_param=True, param_type="int")]

    Raises ``ConfigurationError`` for ``<param>`` syntax, unknown
    converters, or a ``path`` parameter that is not the last segment.
    """
    if _FLASK_STYLE_RE.search(path):
        msg = f"Route pattern {path!r} uses <param> syntax; use {{param}} instead."
        raise ConfigurationError(msg)

    segments: list[PathSegment] = []
    parts = [p for p in path.strip("/").split("/") if p]
    for index, part in enumerate(parts):
        if part.startswith("{") and part.endswith("}"):
            inner = part[1:-1]
            if ":" in inner:
                param_name, param_type = inner.split(":", 1)
            else:
                param_name = inner
                param_type = "str"
            if param_type not in CONVERTERS:
                msg = f"Unknown converter {param_type!r} in route pattern {path!r}"
                raise ConfigurationError(msg)
            if param_type == "path" and index != len(parts) - 1:
                msg = f"Path parameter must be the last segment in {path!r}"
                raise ConfigurationError(msg)
            segments.append(
                PathSegment(
                    value=part,
                    is_param=True,
                    param_name=param_name,
                    param_type=param_type,
                )
            )
        else:
            segments.append(PathSegment(value=part))
    return segments


def normalize_route(route: str) -> str:
    """Strip the query string and surrounding slashes from a requested route."""
    route = route.split("?", 1)[0].split("#", 1)[0]
    return route.strip("/")


@dataclass(frozen=True, slots=True)
class RoutePattern:
    """A route pattern compiled to an anchored regex."""

    pattern: str
    segments: tuple[PathSegment, ...]
    regex: re.Pattern[str] = field(compare=False, repr=False)

    @classmethod
    def compile(cls, pattern: str) -> RoutePattern:
        segments = tuple(parse_path(pattern))
        pieces: list[str] = []
        for seg in segments:
            if seg.is_param:
                regex, _ = CONVERTERS[seg.param_type]
                pieces.append(f"(?P<{seg.param_name}>{regex})")
            else:
                pieces.append(re.escape(seg.value))
        return cls(
            pattern=pattern,
            segments=segments,
            regex=re.compile("^" + "/".join(pieces) + "$"),
        )

    def match(self, route: str) -> dict[str, str | int | float] | None:
        """Return converted path parameters, or ``None`` if *route* doesn't match."""
        m = self.regex.match(normalize_route(route))
        if m is None:
            return None
        params: dict[str, str | int | float] = {}
        for seg in self.segments:
            if seg.is_param and seg.param_name is not None:
                params[seg.param_name] = convert_param(m.group(seg.param_name), seg.param_type)
        return params

    @property
    def specificity(self) -> tuple[int, int, int]:
        """Sort key: more static segments, fewer catch-alls, longer patterns first.

        Larger is more specific.
        """
        static = sum(1 for s in self.segments if not s.is_param)
        catch_all = sum(1 for s in self.segments if s.param_type == "path" and s.is_param)
        return (static, -catch_all, len(self.segments))
