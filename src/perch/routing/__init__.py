"""Route patterns for handler matching."""

from perch.routing.pattern import PathSegment, RoutePattern, parse_path

__all__ = ["PathSegment", "RoutePattern", "parse_path"]
