"""Tests for perch.handlers.matching: route matching and precedence."""

import pytest

from perch.errors import AmbiguousRouteError
from perch.handlers.matching import RouteMatcher, by_priority, by_specificity
from perch.handlers.types import Handler


def _handler(name: str, route: str | None = None, **kwargs: object) -> Handler:
    return Handler(name=name, route=route, **kwargs)  # type: ignore[arg-type]


class TestRouteMatcher:
    def test_single_match(self) -> None:
        handlers = [_handler("a", "/a"), _handler("b", "/b")]
        assert RouteMatcher().match(handlers, "/b").name == "b"

    def test_no_match(self) -> None:
        assert RouteMatcher().match([_handler("a", "/a")], "/zzz") is None

    def test_none_entries_skipped(self) -> None:
        assert RouteMatcher().match([None, _handler("a", "/a")], "/a").name == "a"

    def test_handler_without_route_never_matches(self) -> None:
        assert RouteMatcher().match([_handler("a")], "/a") is None

    def test_disabled_handler_skipped(self) -> None:
        handlers = [_handler("a", "/a", disable=True), _handler("b", "/a")]
        assert RouteMatcher().match(handlers, "/a").name == "b"

    def test_path_params(self) -> None:
        handlers = [_handler("user", "/users/{id:int}")]
        assert RouteMatcher().match(handlers, "/users/7").name == "user"
        assert RouteMatcher().match(handlers, "/users/me") is None

    def test_route_extra_must_match(self) -> None:
        handlers = [
            _handler("v2", "/api", route_extra={"version": 2}),
            _handler("v1", "/api", route_extra={"version": "1"}),
        ]
        matcher = RouteMatcher()
        assert matcher.match(handlers, "/api", {"version": "2"}).name == "v2"
        assert matcher.match(handlers, "/api", {"version": "1"}).name == "v1"
        assert matcher.match(handlers, "/api", {}) is None

    def test_invalid_route_logged_not_raised(self, caplog: pytest.LogCaptureFixture) -> None:
        assert RouteMatcher().match([_handler("bad", "/x/<id>")], "/x/1") is None
        assert "invalid route" in caplog.text

    def test_non_string_route_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        handlers = [_handler("a_num", 123), _handler("a_list", ["/good"]), _handler("good", "/good")]

        assert RouteMatcher().match(handlers, "/good").name == "good"
        assert "non-string route" in caplog.text


class TestPredicates:
    def test_predicate_replaces_pattern(self) -> None:
        handlers = [_handler("legacy", "/never")]
        matcher = RouteMatcher({"legacy": lambda route, params: route.startswith("/old/")})

        assert matcher.match(handlers, "/old/anything").name == "legacy"
        assert matcher.match(handlers, "/never") is None

    def test_predicate_sees_params(self) -> None:
        handlers = [_handler("tenant")]
        matcher = RouteMatcher({"tenant": lambda route, params: params.get("tenant") == "acme"})

        assert matcher.match(handlers, "/x", {"tenant": "acme"}).name == "tenant"
        assert matcher.match(handlers, "/x", {"tenant": "other"}) is None


class TestPrecedence:
    def test_first_match_wins_by_default(self, caplog: pytest.LogCaptureFixture) -> None:
        handlers = [_handler("first", "/a"), _handler("second", "/a")]

        assert RouteMatcher().match(handlers, "/a").name == "first"
        assert "matches first, second" in caplog.text

    def test_strict_rejects_ties(self) -> None:
        handlers = [_handler("first", "/a"), _handler("second", "/a")]

        with pytest.raises(AmbiguousRouteError) as exc_info:
            RouteMatcher(strict=True).match(handlers, "/a")
        assert exc_info.value.names == ("first", "second")

    def test_by_priority(self) -> None:
        handlers = [_handler("low", "/a", priority=1), _handler("high", "/a", priority=9)]
        matcher = RouteMatcher(precedence=by_priority, strict=True)

        assert matcher.match(handlers, "/a").name == "high"

    def test_by_priority_tie_keeps_discovery_order(self, caplog: pytest.LogCaptureFixture) -> None:
        handlers = [
            _handler("low", "/a", priority=1),
            _handler("first", "/a", priority=5),
            _handler("second", "/a", priority=5),
        ]

        assert RouteMatcher(precedence=by_priority).match(handlers, "/a").name == "first"
        assert "matches first, second" in caplog.text

    def test_by_specificity(self) -> None:
        handlers = [_handler("catch_all", "/users/{rest:path}"), _handler("me", "/users/me")]
        matcher = RouteMatcher(precedence=by_specificity, strict=True)

        assert matcher.match(handlers, "/users/me").name == "me"
        assert matcher.match(handlers, "/users/42").name == "catch_all"
