"""Recursive mapping merge.

Later mappings win on key collision. Nested mappings are merged rather
than replaced; every other value (lists included) is replaced wholesale.
Inputs are never mutated.
"""

from collections.abc import Mapping
from typing import Any


def deep_merge(*layers: Mapping[str, Any] | None) -> dict[str, Any]:
    """Merge *layers* left to right into a new dict.

    ``None`` layers are skipped, so optional sources can be passed as-is::

        deep_merge(defaults, cached, declared)

    Raises:
        TypeError: If a layer is not a mapping.
    """
    result: dict[str, Any] = {}
    for layer in layers:
        if layer is None:
            continue
        if not isinstance(layer, Mapping):
            msg = f"cannot merge {type(layer).__name__} into a mapping"
            raise TypeError(msg)
        for key, value in layer.items():
            current = result.get(key)
            if isinstance(current, Mapping) and isinstance(value, Mapping):
                result[key] = deep_merge(current, value)
            elif isinstance(value, Mapping):
                result[key] = deep_merge(value)
            elif isinstance(value, list):
                result[key] = list(value)
            else:
                result[key] = value
    return result
