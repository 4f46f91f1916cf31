"""Route matching across discovered handlers.

Each handler carries its own rule: a predicate from its definition, or
its ``route`` pattern plus ``route_extra`` parameters.  The matcher
collects every handler whose rule accepts the request and picks one.

Selection policy: candidates keep discovery order unless a
``precedence`` key is given, in which case they are stable-sorted by it
(largest key first).  When the winner ties with the runner-up on that
key the match is ambiguous: it is logged, or rejected under ``strict``.
Without a precedence key every multi-candidate match is a tie.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from perch.errors import AmbiguousRouteError, ConfigurationError
from perch.handlers.types import Handler, MatchPredicate
from perch.routing.pattern import RoutePattern

logger = logging.getLogger("perch.matching")

#: Larger keys win.
Precedence = Callable[[Handler], Any]


def by_priority(handler: Handler) -> int:
    """Prefer handlers with a higher declared ``priority``."""
    return handler.priority


def by_specificity(handler: Handler) -> tuple[Any, ...]:
    """Prefer more specific route patterns, then more ``route_extra`` constraints."""
    if not handler.route:
        return ((0, 0, 0), len(handler.route_extra))
    return (RoutePattern.compile(handler.route).specificity, len(handler.route_extra))


class RouteMatcher:
    """Select the handler that answers a route.

    Usage::

        matcher = RouteMatcher(predicates={"legacy": legacy_match})
        handler = matcher.match(handlers, "/cgi-bin/a/b/demo", {"id": "1"})

    Args:
        predicates: Definition-supplied rules keyed by handler name.  They
            replace the ``route`` pattern rule for that handler.
        precedence: Optional key ordering candidates, largest first.
        strict: Raise :class:`AmbiguousRouteError` instead of logging when
            the winning candidate ties with another.
    """

    __slots__ = ("_patterns", "_predicates", "precedence", "strict")

    def __init__(
        self,
        predicates: Mapping[str, MatchPredicate] | None = None,
        *,
        precedence: Precedence | None = None,
        strict: bool = False,
    ) -> None:
        self._predicates = dict(predicates or {})
        self._patterns: dict[str, RoutePattern | None] = {}
        self.precedence = precedence
        self.strict = strict

    def match(
        self,
        handlers: Iterable[Handler | None],
        route: str,
        params: Mapping[str, Any] | None = None,
    ) -> Handler | None:
        """Return the handler for *route*, or ``None`` if nothing matches."""
        params = params or {}
        candidates = [h for h in handlers if h is not None and self.accepts(h, route, params)]
        if not candidates:
            logger.debug("No handler matches %r", route)
            return None
        if len(candidates) == 1:
            return candidates[0]

        if self.precedence is None:
            tied = candidates
        else:
            candidates.sort(key=self.precedence, reverse=True)
            top = self.precedence(candidates[0])
            tied = [h for h in candidates if self.precedence(h) == top]

        if len(tied) > 1:
            names = tuple(h.name for h in tied)
            if self.strict:
                raise AmbiguousRouteError(route, names)
            logger.warning(
                "Route %r matches %s; using %s",
                route,
                ", ".join(names),
                candidates[0].name,
            )
        return candidates[0]

    def accepts(self, handler: Handler, route: str, params: Mapping[str, Any]) -> bool:
        """Apply one handler's rule to a request."""
        if handler.disable:
            return False

        predicate = self._predicates.get(handler.name)
        if predicate is not None:
            return bool(predicate(route, params))

        pattern = self._pattern(handler)
        if pattern is None or pattern.match(route) is None:
            return False

        for key, expected in handler.route_extra.items():
            if key not in params or str(params[key]) != str(expected):
                return False
        return True

    def _pattern(self, handler: Handler) -> RoutePattern | None:
        if not handler.route:
            return None
        if not isinstance(handler.route, str):
            logger.error("Handler %s has a non-string route: %r", handler.name, handler.route)
            return None
        if handler.route in self._patterns:
            return self._patterns[handler.route]
        try:
            pattern: RoutePattern | None = RoutePattern.compile(handler.route)
        except (ConfigurationError, re.error) as exc:
            logger.error("Handler %s has an invalid route: %s", handler.name, exc)
            pattern = None
        self._patterns[handler.route] = pattern
        return pattern
