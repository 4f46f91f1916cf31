"""Tests for perch._internal.merge: recursive mapping merge."""

import pytest

from perch._internal.merge import deep_merge


class TestDeepMerge:
    def test_later_layers_win(self) -> None:
        assert deep_merge({"a": 1, "b": 2}, {"b": 3}) == {"a": 1, "b": 3}

    def test_nested_mappings_merge(self) -> None:
        merged = deep_merge({"query": {"a": 1, "b": 1}}, {"query": {"b": 2}})
        assert merged == {"query": {"a": 1, "b": 2}}

    def test_lists_replace(self) -> None:
        assert deep_merge({"tags": ["a", "b"]}, {"tags": ["c"]}) == {"tags": ["c"]}

    def test_none_layers_skipped(self) -> None:
        assert deep_merge(None, {"a": 1}, None) == {"a": 1}

    def test_non_mapping_layer_rejected(self) -> None:
        with pytest.raises(TypeError, match="cannot merge str"):
            deep_merge({"a": 1}, "x")  # type: ignore[arg-type]

    def test_inputs_not_mutated(self) -> None:
        base = {"query": {"a": 1}}
        merged = deep_merge(base, {"query": {"b": 2}})
        merged["query"]["c"] = 3
        assert base == {"query": {"a": 1}}
