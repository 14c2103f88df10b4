# Copyright (c) 2025 Kenneth Stott
#
# This source code is licensed under the Business Source License 1.1
# found in the LICENSE file in the root directory of this source tree.
#
# NOTICE: Use of this software for training artificial intelligence or
# machine learning models is strictly prohibited without explicit written
# permission from the copyright holder.

"""Confines: predicates over other facts that gate a resolution."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .collection import Collection


class Confine:
    """A predicate over another fact's current value.

    The kind of check is chosen from the expected value:
    - callable: called with the fact's plain value, truthy means met
    - compiled regex: searched in the string form of the value
    - range: numeric containment (start <= value < stop)
    - list/tuple/set: any member matches
    - anything else: exact match (strings compare case-insensitively)

    A confine with no fact name takes a zero-argument callable and is met
    when the callable returns a truthy value.

    Usage:
        Confine("kernel", "Linux")
        Confine("osfamily", ["Debian", "RedHat"])
        Confine("hostname", re.compile(r"^web\\d+"))
        Confine("processorcount", range(4, 64))
        Confine("virtual", lambda value: value != "docker")
        Confine(None, lambda: os.path.exists("/etc/debian_version"))
    """

    def __init__(self, fact: Optional[str], expected: Any):
        if fact is None and not callable(expected):
            raise ValueError("a confine without a fact name requires a callable")
        self.fact = fact
        self.expected = expected

    def is_met(self, collection: "Collection") -> bool:
        """Evaluate the confine, resolving the referenced fact if needed.

        An absent fact never meets a confine.
        """
        if self.fact is None:
            return bool(self.expected())
        value = collection.get(self.fact)
        if value is None or value.is_none:
            return False
        return _matches(value.to_python(), self.expected)

    def __repr__(self) -> str:
        return f"Confine({self.fact!r}, {self.expected!r})"


def _text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _matches(actual: Any, expected: Any) -> bool:
    if isinstance(expected, re.Pattern):
        return expected.search(_text(actual)) is not None

    if isinstance(expected, range):
        number = _number(actual)
        return number is not None and expected.start <= number < expected.stop

    if isinstance(expected, (list, tuple, set, frozenset)):
        return any(_matches(actual, item) for item in expected)

    if callable(expected):
        return bool(expected(actual))

    if isinstance(actual, str) or isinstance(expected, str):
        return _text(actual).casefold() == _text(expected).casefold()

    # Keep booleans apart from numbers (True == 1 in Python)
    if isinstance(actual, bool) or isinstance(expected, bool):
        return isinstance(actual, bool) and isinstance(expected, bool) and actual == expected

    return actual == expected
