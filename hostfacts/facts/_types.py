# Copyright (c) 2025 Kenneth Stott
#
# This source code is licensed under the Business Source License 1.1
# found in the LICENSE file in the root directory of this source tree.
#
# NOTICE: Use of this software for training artificial intelligence or
# machine learning models is strictly prohibited without explicit written
# permission from the copyright holder.

"""Enums, dataclasses and exceptions for fact resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional

from hostfacts.core.values import Value


class FactState(Enum):
    """Resolution state of a fact within one run."""
    UNRESOLVED = "unresolved"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    ABSENT = "absent"  # Resolution ran and produced no value (terminal)


class FactSource(Enum):
    """Where a fact's value came from."""
    ENVIRONMENT = "environment"  # FACTER_<name> style override
    EXTERNAL = "external"  # Seeded with Collection.add
    RESOLVER = "resolver"  # Produced by a registered resolver


@dataclass
class Fact:
    """A fact with its resolution state and provenance."""
    name: str
    value: Optional[Value] = None
    state: FactState = FactState.UNRESOLVED
    source: Optional[FactSource] = None

    # Provenance for resolver-produced facts
    resolver: Optional[str] = None  # Name of the resolver that produced the value
    resolution: Optional[str] = None  # Name of the winning resolution, if it has one
    resolved_at: datetime = field(default_factory=datetime.now)

    @property
    def is_resolved(self) -> bool:
        return self.state == FactState.RESOLVED

    @property
    def is_terminal(self) -> bool:
        return self.state in (FactState.RESOLVED, FactState.ABSENT)

    @property
    def resolution_summary(self) -> str:
        """One-line summary of how this fact was resolved."""
        if self.state == FactState.ABSENT:
            return "absent"
        if self.source == FactSource.ENVIRONMENT:
            return "from environment"
        if self.source == FactSource.EXTERNAL:
            return "externally supplied"
        if self.source == FactSource.RESOLVER:
            if self.resolution:
                return f"resolver: {self.resolver} ({self.resolution})"
            return f"resolver: {self.resolver}"
        # noinspection PyTypeChecker
        return self.state.value

    def to_dict(self) -> dict:
        """Serialize for display/output."""
        return {
            "name": self.name,
            "value": self.value.to_python() if self.value is not None else None,
            "value_type": self.value.kind.value if self.value is not None else None,
            "state": self.state.value,
            "source": self.source.value if self.source else None,
            "resolver": self.resolver,
            "resolution": self.resolution,
            "resolved_at": self.resolved_at.isoformat(),
        }


# Event callback: (event_type, data) -> None
EventCallback = Callable[[str, dict[str, Any]], None]


class FactError(Exception):
    """Base class for fact resolution errors."""
    pass


class CircularResolutionError(FactError):
    """Raised when a fact transitively requests itself during resolution.

    Attributes:
        fact: The fact whose resolution was re-entered (the cycle's origin)
        chain: Fact names in request order, ending with the repeated name
    """

    def __init__(self, fact: str, chain: Optional[list[str]] = None):
        self.fact = fact
        self.chain = list(chain) if chain else [fact]
        super().__init__(
            f'cycle detected while requesting value of fact "{fact}": '
            + " -> ".join(self.chain)
        )


class InvalidNamePatternError(FactError):
    """Raised when a resolver is constructed with an invalid fact name pattern."""
    pass


class ResolutionConflictError(FactError):
    """Raised when a simple and an aggregate resolution share a name."""
    pass


class ChunkCycleError(FactError):
    """Raised when an aggregate's chunks depend on each other in a cycle."""
    pass


class InvalidChunkReferenceError(FactError):
    """Raised when a chunk requires a chunk that does not exist."""
    pass


class MergeConflictError(FactError):
    """Raised when chunk outputs of incompatible kinds are merged."""
    pass
