# Copyright (c) 2025 Kenneth Stott
#
# This source code is licensed under the Business Source License 1.1
# found in the LICENSE file in the root directory of this source tree.
#
# NOTICE: Use of this software for training artificial intelligence or
# machine learning models is strictly prohibited without explicit written
# permission from the copyright holder.

"""Fact value algebra.

Every fact value is a ``Value``: a small closed variant over

- none, string, integer (signed 64-bit), double, boolean
- array (ordered list of values)
- map (string keys, insertion order preserved)

Values are immutable. Arrays hold tuples of values and maps hold tuples of
``(key, value)`` pairs, so the cache and its callers share values directly.

Usage:
    v = Value.of({"family": "Debian", "release": {"major": "12"}})
    v["release"]["major"]        # Value.string("12")
    v.to_python()                # plain dicts/lists again
    print(v)                     # deterministic multi-line rendering
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator, Optional, Union

INTEGER_MIN = -(2 ** 63)
INTEGER_MAX = 2 ** 63 - 1


class ValueKind(Enum):
    """The closed set of value kinds."""
    NONE = "none"
    STRING = "string"
    INTEGER = "integer"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    ARRAY = "array"
    MAP = "map"

    @property
    def title(self) -> str:
        """Display name used in diagnostics (e.g. ``String``)."""
        return self.name.title()


SCALAR_KINDS = {
    ValueKind.STRING,
    ValueKind.INTEGER,
    ValueKind.DOUBLE,
    ValueKind.BOOLEAN,
}


@dataclass(frozen=True, eq=False)
class Value:
    """An immutable fact value."""
    kind: ValueKind
    data: Any = None  # Python scalar, tuple[Value, ...] or tuple[tuple[str, Value], ...]

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def none(cls) -> "Value":
        return _NONE

    @classmethod
    def string(cls, text: str) -> "Value":
        if not isinstance(text, str):
            raise TypeError(f"expected a str for a string value, got {type(text).__name__}")
        return cls(ValueKind.STRING, text)

    @classmethod
    def integer(cls, number: int) -> "Value":
        if isinstance(number, bool) or not isinstance(number, int):
            raise TypeError(f"expected an int for an integer value, got {type(number).__name__}")
        if not INTEGER_MIN <= number <= INTEGER_MAX:
            raise ValueError(f"integer {number} is outside the signed 64-bit range")
        return cls(ValueKind.INTEGER, number)

    @classmethod
    def double(cls, number: float) -> "Value":
        if isinstance(number, bool) or not isinstance(number, (int, float)):
            raise TypeError(f"expected a float for a double value, got {type(number).__name__}")
        return cls(ValueKind.DOUBLE, float(number))

    @classmethod
    def boolean(cls, flag: bool) -> "Value":
        if not isinstance(flag, bool):
            raise TypeError(f"expected a bool for a boolean value, got {type(flag).__name__}")
        return _TRUE if flag else _FALSE

    @classmethod
    def array(cls, items: Iterable[Any] = ()) -> "Value":
        return cls(ValueKind.ARRAY, tuple(cls.of(item) for item in items))

    @classmethod
    def map(cls, items: Union[Mapping, Iterable[tuple[Any, Any]]] = ()) -> "Value":
        pairs = items.items() if isinstance(items, Mapping) else items
        entries: dict[str, Value] = {}
        for key, item in pairs:
            entries[str(key)] = cls.of(item)
        return cls(ValueKind.MAP, tuple(entries.items()))

    @classmethod
    def of(cls, obj: Any) -> "Value":
        """Convert plain Python data into a value.

        Non-string map keys are converted to strings. ``bool`` is checked
        before ``int`` so booleans never become integers.

        Raises:
            TypeError: If ``obj`` (or anything nested in it) has no value kind
        """
        if isinstance(obj, Value):
            return obj
        if obj is None:
            return _NONE
        if isinstance(obj, bool):
            return cls.boolean(obj)
        if isinstance(obj, int):
            return cls.integer(obj)
        if isinstance(obj, float):
            return cls.double(obj)
        if isinstance(obj, str):
            return cls.string(obj)
        if isinstance(obj, Mapping):
            return cls.map(obj)
        if isinstance(obj, (list, tuple)):
            return cls.array(obj)
        raise TypeError(f"cannot convert {type(obj).__name__} to a fact value")

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def is_none(self) -> bool:
        return self.kind is ValueKind.NONE

    @property
    def is_scalar(self) -> bool:
        return self.kind in SCALAR_KINDS

    def items(self) -> tuple[tuple[str, "Value"], ...]:
        """Key/value pairs of a map, in insertion order."""
        if self.kind is not ValueKind.MAP:
            raise TypeError(f"{self.kind.title} value has no items")
        return self.data

    def elements(self) -> tuple["Value", ...]:
        """Elements of an array, in order."""
        if self.kind is not ValueKind.ARRAY:
            raise TypeError(f"{self.kind.title} value has no elements")
        return self.data

    def get(self, key: str, default: Optional["Value"] = None) -> Optional["Value"]:
        """Look up a map key."""
        if self.kind is not ValueKind.MAP:
            return default
        for name, item in self.data:
            if name == key:
                return item
        return default

    def __getitem__(self, key: Union[int, str]) -> "Value":
        if self.kind is ValueKind.ARRAY:
            return self.data[key]
        if self.kind is ValueKind.MAP:
            item = self.get(key)
            if item is None:
                raise KeyError(key)
            return item
        raise TypeError(f"{self.kind.title} value is not subscriptable")

    def __iter__(self) -> Iterator[Any]:
        if self.kind is ValueKind.ARRAY:
            return iter(self.data)
        if self.kind is ValueKind.MAP:
            return (name for name, _ in self.data)
        raise TypeError(f"{self.kind.title} value is not iterable")

    def to_python(self) -> Any:
        """Convert back into plain Python data (lists and dicts)."""
        if self.kind is ValueKind.ARRAY:
            return [item.to_python() for item in self.data]
        if self.kind is ValueKind.MAP:
            return {name: item.to_python() for name, item in self.data}
        return self.data

    # ------------------------------------------------------------------
    # Equality and rendering
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        if self.kind is not other.kind:
            return False
        if self.kind is ValueKind.MAP:
            return dict(self.data) == dict(other.data)
        return self.data == other.data

    def __hash__(self) -> int:
        if self.kind is ValueKind.MAP:
            return hash((self.kind, frozenset(self.data)))
        return hash((self.kind, self.data))

    def render(self, indent: int = 0) -> str:
        """Render deterministically (maps in insertion order, arrays in order)."""
        kind = self.kind
        if kind is ValueKind.NONE:
            return "null"
        if kind is ValueKind.STRING:
            escaped = self.data.replace("\\", "\\\\").replace('"', '\\"')
            return f'"{escaped}"'
        if kind is ValueKind.BOOLEAN:
            return "true" if self.data else "false"
        if kind is ValueKind.INTEGER:
            return str(self.data)
        if kind is ValueKind.DOUBLE:
            return repr(self.data)

        pad = "  " * (indent + 1)
        if kind is ValueKind.ARRAY:
            if not self.data:
                return "[]"
            body = ",\n".join(f"{pad}{item.render(indent + 1)}" for item in self.data)
            return f"[\n{body}\n{'  ' * indent}]"

        if not self.data:
            return "{}"
        body = ",\n".join(f"{pad}{name} => {item.render(indent + 1)}" for name, item in self.data)
        return f"{{\n{body}\n{'  ' * indent}}}"

    def __str__(self) -> str:
        return self.render()


_NONE = Value(ValueKind.NONE)
_TRUE = Value(ValueKind.BOOLEAN, True)
_FALSE = Value(ValueKind.BOOLEAN, False)


class ArrayBuilder:
    """Builds an array value one element at a time."""

    def __init__(self):
        self._items: list[Value] = []

    def append(self, item: Any) -> "ArrayBuilder":
        self._items.append(Value.of(item))
        return self

    def extend(self, items: Iterable[Any]) -> "ArrayBuilder":
        for item in items:
            self.append(item)
        return self

    def __len__(self) -> int:
        return len(self._items)

    def build(self) -> Value:
        return Value(ValueKind.ARRAY, tuple(self._items))


class MapBuilder:
    """Builds a map value one key at a time.

    Setting a key that already exists replaces its value but keeps the key's
    original position.
    """

    def __init__(self):
        self._items: dict[str, Value] = {}

    def set(self, key: str, item: Any) -> "MapBuilder":
        self._items[str(key)] = Value.of(item)
        return self

    def __contains__(self, key: str) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)

    def build(self) -> Value:
        return Value(ValueKind.MAP, tuple(self._items.items()))
