"""
Canonical serialization for deterministic hashing.

One logical value always maps to one byte string: object keys are sorted at
every depth, array order is kept (it is semantic), and whitespace never
varies. Hashes are always computed over ``canonicalize`` output, so the
pretty-printed on-disk form can be reformatted freely without changing any
digest.

Numbers coming from numeric engines may be numpy scalars or arrays; they are
converted to plain Python numbers and lists first. Non-finite numbers (NaN,
Infinity) are rejected rather than coerced.

Functions:
    normalize_value: Convert a value tree into sorted, JSON-native form
    canonicalize: Compact canonical UTF-8 bytes (hash input)
    canonical_text: Same as canonicalize, as a string
    pretty_bytes: Indented canonical UTF-8 bytes (on-disk form)
"""

import json
import math
from typing import Any

import numpy as np


def normalize_value(value: Any, path: str = "$") -> Any:
    """
    Convert a value tree into a JSON-native tree with sorted object keys.

    Objects exposing ``to_dict`` (the archive dataclasses) are expanded,
    tuples become lists, numpy scalars become Python numbers and numpy
    arrays become nested lists.

    Args:
        value: Value to normalize
        path: Location of ``value`` used in error messages

    Returns:
        Normalized value

    Raises:
        ValueError: If a number is NaN or infinite
        TypeError: If a value or object key is not representable in JSON
    """
    if hasattr(value, "to_dict"):
        return normalize_value(value.to_dict(), path)

    if isinstance(value, dict):
        normalized = {}
        for key in sorted(value.keys(), key=_key_text):
            if not isinstance(key, str):
                raise TypeError(f"Object key at {path} must be a string, got {type(key).__name__}")
            normalized[key] = normalize_value(value[key], f"{path}.{key}")
        return normalized

    if isinstance(value, (list, tuple)):
        return [normalize_value(item, f"{path}[{index}]") for index, item in enumerate(value)]

    if isinstance(value, np.ndarray):
        return normalize_value(value.tolist(), path)

    if isinstance(value, np.generic):
        return normalize_value(value.item(), path)

    if value is None or isinstance(value, (str, bool, int)):
        return value

    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"Non-finite number at {path}: {value!r}")
        return value

    raise TypeError(f"Value at {path} is not JSON serializable: {type(value).__name__}")


def _key_text(key: Any) -> str:
    return key if isinstance(key, str) else repr(key)


def canonical_text(value: Any) -> str:
    """Return the compact canonical JSON text of ``value``."""
    return json.dumps(
        normalize_value(value),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def canonicalize(value: Any) -> bytes:
    """
    Return deterministic UTF-8 bytes for ``value``.

    Args:
        value: Any JSON-shaped value, archive dataclass or numpy data

    Returns:
        Compact canonical JSON bytes

    Raises:
        ValueError: If the value contains a non-finite number
        TypeError: If the value is not JSON serializable

    Example:
        >>> canonicalize({"b": 1, "a": [2, 1]})
        b'{"a":[2,1],"b":1}'
    """
    return canonical_text(value).encode("utf-8")


def pretty_bytes(value: Any) -> bytes:
    """Return indented canonical JSON bytes (two spaces, sorted keys, trailing newline)."""
    text = json.dumps(
        normalize_value(value),
        sort_keys=True,
        indent=2,
        ensure_ascii=False,
        allow_nan=False,
    )
    return (text + "\n").encode("utf-8")
