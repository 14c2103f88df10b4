# Copyright (c) 2025 Kenneth Stott
#
# This source code is licensed under the Business Source License 1.1
# found in the LICENSE file in the root directory of this source tree.
#
# NOTICE: Use of this software for training artificial intelligence or
# machine learning models is strictly prohibited without explicit written
# permission from the copyright holder.

"""The fact collection: registry, lazy resolution, cycle detection, caching.

Resolution flow for ``get(name)``:
1. Environment override (``<prefix><name>``, case-insensitive) wins outright
2. Cached facts (resolved or absent) are returned as-is
3. A name already being resolved is a cycle: the request fails and the fact
   whose resolution started the cycle ends up absent, with every fact in
   between
4. Resolvers matching the name exactly are used, else pattern resolvers
5. The matching resolvers run weighted selection; the result is cached

Facts are resolved at most once per collection. There is no invalidation.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Iterable, Iterator, Mapping, Optional

from hostfacts.core.values import Value, ValueKind

from ._resolver import Resolver
from ._resolution import to_fact_value
from ._types import (
    CircularResolutionError,
    EventCallback,
    Fact,
    FactSource,
    FactState,
)

logger = logging.getLogger(__name__)

DEFAULT_ENV_PREFIX = "FACTER_"


class Collection:
    """Lazy, cached table of facts.

    Usage:
        facts = Collection()
        facts.add_resolver(kernel_resolver)
        facts.add("role", "webserver")

        facts.get("kernel")          # resolves on first request, then cached
        facts.query("os.release.major")
        for name, value in facts:    # resolved facts only
            ...
    """

    def __init__(
        self,
        env_prefix: str = DEFAULT_ENV_PREFIX,
        environ: Optional[Mapping[str, str]] = None,
        blocked: Iterable[str] = (),
        event_callback: Optional[EventCallback] = None,
    ):
        self.env_prefix = env_prefix
        self._environ = environ  # None = read os.environ at lookup time
        self._blocked = set(blocked)
        self._event_callback = event_callback

        # Cache
        self._facts: dict[str, Fact] = {}

        # Registry
        self._resolvers: list[Resolver] = []
        self._by_name: dict[str, list[Resolver]] = {}
        self._pattern_resolvers: list[Resolver] = []

        # Fact names currently being resolved, outermost first
        self._in_progress: list[str] = []

    def _emit_event(self, event_type: str, data: dict) -> None:
        """Emit a resolution event if callback is registered."""
        if self._event_callback:
            self._event_callback(event_type, data)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def add(self, name: str, value: Any) -> None:
        """Seed a fact directly, bypassing resolvers. Last write wins.

        A value of None records the fact as absent.
        """
        fact_value = to_fact_value(value)
        self._facts[name] = Fact(
            name=name,
            value=fact_value,
            state=FactState.RESOLVED if fact_value is not None else FactState.ABSENT,
            source=FactSource.EXTERNAL,
        )

    def add_resolver(self, resolver: Resolver) -> None:
        """Register a resolver. Registration order breaks weight ties."""
        if resolver in self._resolvers:
            logger.debug(f'resolver "{resolver.name}" is already registered')
            return
        self._resolvers.append(resolver)
        for name in resolver.names:
            self._by_name.setdefault(name, []).append(resolver)
        if resolver.has_patterns:
            self._pattern_resolvers.append(resolver)

    @property
    def resolvers(self) -> list[Resolver]:
        return list(self._resolvers)

    def resolvers_for(self, name: str) -> list[Resolver]:
        """Resolvers for ``name``: exact matches, else pattern matches."""
        exact = self._by_name.get(name)
        if exact:
            return list(exact)
        return [resolver for resolver in self._pattern_resolvers if resolver.is_match(name)]

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    @property
    def resolving(self) -> tuple[str, ...]:
        """Names currently being resolved, outermost first."""
        return tuple(self._in_progress)

    def _environment_override(self, name: str) -> Optional[str]:
        environ = os.environ if self._environ is None else self._environ
        wanted = f"{self.env_prefix}{name}".upper()
        for key, raw in environ.items():
            if key.upper() == wanted:
                return raw
        return None

    def get(self, name: str) -> Optional[Value]:
        """Get a fact's value, resolving it on first request.

        Returns:
            The value, or None if the fact is absent
        """
        return self.fact(name).value

    def __getitem__(self, name: str) -> Optional[Value]:
        return self.get(name)

    def fact(self, name: str) -> Fact:
        """Get a fact record (value, state, provenance), resolving it on first request."""
        raw = self._environment_override(name)
        if raw is not None:
            fact = Fact(name=name, value=Value.string(raw), state=FactState.RESOLVED, source=FactSource.ENVIRONMENT)
            self._facts[name] = fact
            return fact

        cached = self._facts.get(name)
        if cached is not None and cached.is_terminal:
            return cached

        if name in self._in_progress:
            chain = self._in_progress[self._in_progress.index(name):] + [name]
            raise CircularResolutionError(name, chain)

        if name in self._blocked:
            logger.debug(f'fact "{name}" is blocked')
            return self._store(Fact(name=name, state=FactState.ABSENT))

        resolvers = self.resolvers_for(name)
        if not resolvers:
            return self._store(Fact(name=name, state=FactState.ABSENT))

        self._facts[name] = Fact(name=name, state=FactState.RESOLVING)
        self._in_progress.append(name)
        self._emit_event("fact_start", {
            "fact_name": name,
            "resolvers": [resolver.name for resolver in resolvers],
            "status": "resolving",
        })

        try:
            fact = resolvers[0].resolve(self, name, rivals=resolvers[1:])
        except CircularResolutionError as e:
            absent = self._store(Fact(name=name, state=FactState.ABSENT, source=FactSource.RESOLVER))
            self._emit_event("fact_failed", {
                "fact_name": name,
                "reason": "circular_resolution",
                "chain": e.chain,
                "status": "failed",
            })
            # Keep unwinding until the frame that started the cycle
            if e.fact != name and len(self._in_progress) > 1:
                raise
            logger.error(str(e))
            return absent
        finally:
            self._in_progress.pop()

        self._store(fact)
        if fact.is_resolved:
            logger.debug(f'fact "{name}" resolved by "{fact.resolver}"')
            self._emit_event("fact_resolved", {
                "fact_name": name,
                "value": fact.value.to_python(),
                "resolver": fact.resolver,
                "resolution": fact.resolution,
                "status": "resolved",
            })
        else:
            self._emit_event("fact_absent", {"fact_name": name, "status": "absent"})
        return fact

    def _store(self, fact: Fact) -> Fact:
        self._facts[fact.name] = fact
        return fact

    def _is_known(self, name: str) -> bool:
        return (
            name in self._facts
            or bool(self.resolvers_for(name))
            or self._environment_override(name) is not None
        )

    def query(self, expression: str) -> Optional[Value]:
        """Look up a dotted path such as ``os.release.major``.

        A fact whose full name matches the expression wins. Otherwise the
        longest dotted prefix naming a fact is resolved and the remaining
        segments walk map keys (or array indexes for numeric segments).
        Names no resolver owns are skipped without being recorded.
        """
        if self._is_known(expression):
            value = self.get(expression)
            if value is not None:
                return value

        segments = expression.split(".")
        for split in range(len(segments) - 1, 0, -1):
            prefix = ".".join(segments[:split])
            if not self._is_known(prefix):
                continue
            value = self.get(prefix)
            if value is not None:
                return _walk(value, segments[split:])
        return None

    # ------------------------------------------------------------------
    # Bulk access
    # ------------------------------------------------------------------

    def names(self) -> list[str]:
        """Every explicitly known fact name (resolvers, seeded facts, environment)."""
        names = dict.fromkeys(self._by_name)
        names.update(dict.fromkeys(self._facts))
        environ = os.environ if self._environ is None else self._environ
        prefix = self.env_prefix.upper()
        for key in environ:
            if key.upper().startswith(prefix) and len(key) > len(prefix):
                names.setdefault(key[len(prefix):].lower())
        return sorted(names)

    def resolve(self, names: Optional[Iterable[str]] = None) -> dict[str, Value]:
        """Resolve the given names (default: every known name).

        Returns:
            Dict of name -> value for the facts that resolved
        """
        resolved = {}
        for name in (self.names() if names is None else names):
            value = self.get(name)
            if value is not None:
                resolved[name] = value
        return resolved

    def to_dict(self) -> dict[str, Any]:
        """Plain-data snapshot of the resolved facts in the cache."""
        return {name: value.to_python() for name, value in self}

    def __iter__(self) -> Iterator[tuple[str, Value]]:
        for name, fact in list(self._facts.items()):
            if fact.is_resolved:
                yield name, fact.value

    def __len__(self) -> int:
        return sum(1 for fact in self._facts.values() if fact.is_resolved)

    def __contains__(self, name: str) -> bool:
        fact = self._facts.get(name)
        return fact is not None and fact.is_resolved


def _walk(value: Value, segments: list[str]) -> Optional[Value]:
    for segment in segments:
        if value.kind is ValueKind.MAP:
            value = value.get(segment)
        elif value.kind is ValueKind.ARRAY and segment.isdigit() and int(segment) < len(value.elements()):
            value = value[int(segment)]
        else:
            return None
        if value is None:
            return None
    return value
