# Copyright (c) 2025 Kenneth Stott
#
# This source code is licensed under the Business Source License 1.1
# found in the LICENSE file in the root directory of this source tree.
#
# NOTICE: Use of this software for training artificial intelligence or
# machine learning models is strictly prohibited without explicit written
# permission from the copyright holder.

"""Resolvers: units that own fact names/patterns and their resolutions."""

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterable, Iterator, Optional, Sequence

from ._aggregate import AggregateResolution, Aggregator, Merger
from ._confine import Confine
from ._resolution import Producer, Resolution, select_resolution
from ._types import (
    CircularResolutionError,
    Fact,
    FactSource,
    FactState,
    InvalidNamePatternError,
    ResolutionConflictError,
)

if TYPE_CHECKING:
    from .collection import Collection

logger = logging.getLogger(__name__)


def _article(kind: str) -> str:
    return "an" if kind[0] in "aeiou" else "a"


class Resolver:
    """Owns one or more fact names (and/or name patterns) and their resolutions.

    Resolvers are registered with a Collection once, before resolution starts.
    Explicit names are matched exactly; patterns are regular expressions that
    must match the whole fact name ("dynamic" facts).

    Usage:
        kernel = Resolver("kernel", names=["kernel", "kernelrelease"])

        @kernel.resolution(fact="kernel")
        def kernel_name(facts, name):
            return platform.system()

        env = Resolver("env", patterns=[r"env_[a-z0-9_]+"])
    """

    def __init__(self, name: str, names: Iterable[str] = (), patterns: Iterable[str] = ()):
        self.name = name
        self._names: list[str] = list(dict.fromkeys(names))
        self._name_set = set(self._names)
        self._regexes: list[re.Pattern] = []
        for pattern in patterns:
            try:
                self._regexes.append(re.compile(pattern))
            except re.error as e:
                raise InvalidNamePatternError(
                    f'invalid fact name pattern "{pattern}" for resolver "{name}": {e}'
                ) from e

        self.resolutions: list[Resolution] = []

        # Name of the fact this resolver is currently resolving (reentrancy guard)
        self._resolving: Optional[str] = None

    @property
    def names(self) -> list[str]:
        """Fact names the resolver is responsible for."""
        return list(self._names)

    @property
    def patterns(self) -> list[str]:
        return [regex.pattern for regex in self._regexes]

    @property
    def has_patterns(self) -> bool:
        return bool(self._regexes)

    @property
    def resolving(self) -> Optional[str]:
        return self._resolving

    def is_match(self, name: str) -> bool:
        """True if ``name`` is an explicit name or fully matches a pattern."""
        if name in self._name_set:
            return True
        return any(regex.fullmatch(name) for regex in self._regexes)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def _find(self, name: Optional[str], fact: Optional[str]) -> Optional[int]:
        if name is None:
            return None
        for index, existing in enumerate(self.resolutions):
            if existing.name == name and existing.fact == fact:
                return index
        return None

    def add_resolution(self, resolution: Resolution) -> Resolution:
        """Add a resolution.

        A resolution with the same name (for the same fact) is replaced in
        place, keeping its registration order.

        Raises:
            ResolutionConflictError: If the same name is already used by a
                resolution of the other kind (simple vs aggregate)
        """
        index = self._find(resolution.name, resolution.fact)
        if index is None:
            self.resolutions.append(resolution)
            return resolution

        existing = self.resolutions[index]
        if existing.kind != resolution.kind:
            raise ResolutionConflictError(
                f"cannot define {_article(resolution.kind)} {resolution.kind} resolution with name "
                f'"{resolution.name}": {_article(existing.kind)} {existing.kind} resolution '
                f"with the same name already exists"
            )
        self.resolutions[index] = resolution
        return resolution

    def resolution(
        self,
        name: Optional[str] = None,
        weight: int = 0,
        confines: Iterable[Confine] = (),
        fact: Optional[str] = None,
    ):
        """Decorator to register a producer as a simple resolution.

        Example:
            @resolver.resolution(fact="hostname", weight=10)
            def from_socket(facts, name):
                return socket.gethostname()
        """
        def decorator(func: Producer) -> Producer:
            self.add_resolution(Resolution(func, name=name, weight=weight, confines=confines, fact=fact))
            return func
        return decorator

    def aggregate(
        self,
        name: Optional[str] = None,
        weight: int = 0,
        confines: Iterable[Confine] = (),
        fact: Optional[str] = None,
        aggregator: Optional[Aggregator] = None,
        merger: Optional[Merger] = None,
    ) -> AggregateResolution:
        """Get or create an aggregate resolution; add chunks to the result.

        Raises:
            ResolutionConflictError: If a simple resolution already uses ``name``
        """
        index = self._find(name, fact)
        if index is not None and isinstance(self.resolutions[index], AggregateResolution):
            return self.resolutions[index]
        return self.add_resolution(AggregateResolution(
            name=name,
            weight=weight,
            confines=confines,
            fact=fact,
            aggregator=aggregator,
            merger=merger,
        ))

    def resolutions_for(self, name: str) -> list[Resolution]:
        """Resolutions that can produce ``name``, in registration order."""
        return [resolution for resolution in self.resolutions if resolution.applies_to(name)]

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    @contextmanager
    def guard(self, collection: "Collection", name: str) -> Iterator["Resolver"]:
        """Mark the resolver as resolving ``name`` for the duration of the block.

        Raises:
            CircularResolutionError: If the resolver is already resolving a fact
        """
        if self._resolving is not None:
            origin = self._resolving
            chain = list(collection.resolving)
            chain = chain[chain.index(origin):] if origin in chain else [origin, name]
            if chain[-1] != name:
                chain.append(name)
            raise CircularResolutionError(origin, chain)

        self._resolving = name
        try:
            yield self
        finally:
            self._resolving = None

    def resolve(self, collection: "Collection", name: str, rivals: Sequence["Resolver"] = ()) -> Fact:
        """Resolve ``name`` with this resolver (and any rival resolvers).

        Rivals are other resolvers matching the same name, in registration
        order after this one; their resolutions compete in the same selection.
        Producer failures are logged and leave the fact absent. Circular
        resolution errors propagate to the collection.

        Returns:
            The resolved (or absent) fact
        """
        try:
            return self.resolve_facts(collection, name, [self, *rivals])
        except CircularResolutionError:
            raise
        except Exception as e:
            logger.error(f'error while resolving fact "{name}" with resolver "{self.name}": {e}')
            logger.debug("resolution failure details", exc_info=True)
            return Fact(name=name, state=FactState.ABSENT, source=FactSource.RESOLVER, resolver=self.name)

    def resolve_facts(self, collection: "Collection", name: str, resolvers: Sequence["Resolver"]) -> Fact:
        """Run weighted selection over every candidate and invoke the winner.

        A resolver's guard is held only while its own candidates' confines
        are evaluated and while its winning candidate produces, so a rival
        may read facts owned by another resolver in the pool.
        """
        owners = {}
        candidates = []
        for resolver in resolvers:
            for resolution in resolver.resolutions_for(name):
                owners[id(resolution)] = resolver
                candidates.append(resolution)

        def suitable(resolution: Resolution) -> bool:
            with owners[id(resolution)].guard(collection, name):
                return resolution.is_suitable(collection)

        winner = select_resolution(collection, name, candidates, suitable=suitable)
        if winner is None:
            return Fact(name=name, state=FactState.ABSENT, source=FactSource.RESOLVER, resolver=self.name)

        owner = owners[id(winner)]
        with owner.guard(collection, name):
            value = winner.resolve(collection, name)
        return Fact(
            name=name,
            value=value,
            state=FactState.RESOLVED if value is not None else FactState.ABSENT,
            source=FactSource.RESOLVER,
            resolver=owner.name,
            resolution=winner.name,
        )

    def __repr__(self) -> str:
        return f"Resolver(name={self.name!r}, names={self._names!r}, patterns={self.patterns!r})"
