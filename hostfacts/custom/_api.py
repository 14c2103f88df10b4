# Copyright (c) 2025 Kenneth Stott
#
# This source code is licensed under the Business Source License 1.1
# found in the LICENSE file in the root directory of this source tree.
#
# NOTICE: Use of this software for training artificial intelligence or
# machine learning models is strictly prohibited without explicit written
# permission from the copyright holder.

"""The ``facts`` object custom fact files use to define facts.

A custom fact file is plain Python. Before it runs, the loader gives the
module a ``facts`` attribute (a FactsAPI bound to the collection being
built):

    facts.add("role", value="webserver")

    @facts.add("datacenter", confine={"kernel": "Linux"}, weight=10)
    def datacenter():
        return facts.value("hostname")[:3]

    interfaces = facts.aggregate("interfaces")
    interfaces.chunk("loopback", lambda: ["lo"])
    interfaces.chunk("ethernet", lambda lo: lo + ["eth0"], requires=["loopback"])

Producers take no arguments (chunk producers take the outputs of the chunks
they require) and query other facts through ``facts.value``.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping, Optional, Union

from hostfacts.facts import AggregateResolution, Confine, Fact, Resolution, Resolver

if TYPE_CHECKING:
    from ._loader import CustomFactLoader

logger = logging.getLogger("hostfacts.custom")

ConfineSpec = Union[Mapping[str, Any], Callable[[], Any], None]


class CustomFactResolver(Resolver):
    """Resolver for one custom fact name.

    Every custom fact gets its own resolver so that custom facts may depend on
    each other even when defined in the same file.
    """

    def __init__(self, fact: str, source: Optional[Path] = None):
        super().__init__(f"custom:{fact}", names=[fact])
        self.fact = fact
        self.source = source  # File that first defined the fact


def _confines(spec: ConfineSpec) -> list[Confine]:
    if spec is None:
        return []
    if callable(spec):
        return [Confine(None, spec)]
    return [Confine(fact, expected) for fact, expected in spec.items()]


class _Builder:
    """Settings shared by simple and aggregate resolution builders."""

    def __init__(self, resolution: Resolution):
        self.resolution = resolution

    @property
    def name(self) -> Optional[str]:
        return self.resolution.name

    def confine(self, fact: Union[str, Callable[[], Any], None] = None, expected: Any = None, **confines: Any):
        """Add confines: ``confine("kernel", "Linux")``, ``confine(kernel="Linux")``
        or ``confine(callable)``."""
        if callable(fact):
            self.resolution.confines.append(Confine(None, fact))
        else:
            self.resolution.confine(fact, expected, **confines)
        return self

    def has_weight(self, weight: int):
        self.resolution.weight = weight
        return self

    def timeout(self, seconds: Any):
        logger.warning("timeout option is not supported for custom facts and will be ignored.")
        return self


class ResolutionBuilder(_Builder):
    """Configures one simple resolution of a custom fact.

    Usable as a decorator around the producer:

        @facts.add("foo")
        def foo():
            return "bar"
    """

    def __init__(self, resolution: Resolution, api: "FactsAPI"):
        super().__init__(resolution)
        self._api = api

    def setcode(self, producer: Optional[Callable[[], Any]] = None, *, command: Optional[str] = None):
        """Set the producer, or a shell command whose output is the value."""
        if command is not None:
            self.resolution.producer = lambda collection, name: self._api.execute(command)
        elif producer is not None:
            self.resolution.producer = lambda collection, name: producer()
        else:
            raise ValueError("setcode requires a producer or a command")
        return self

    def setcode_value(self, value: Any):
        self.resolution.producer = lambda collection, name: value
        return self

    def __call__(self, producer: Callable[[], Any]) -> Callable[[], Any]:
        self.setcode(producer)
        return producer


class AggregateBuilder(_Builder):
    """Configures an aggregate resolution of a custom fact."""

    resolution: AggregateResolution

    def chunk(self, name: str, producer: Optional[Callable[..., Any]] = None, *, requires: Union[str, Iterable[str]] = ()):
        """Add a chunk; the producer receives the outputs of required chunks.

        Without a producer this returns a decorator.
        """
        def wrap(func: Callable[..., Any]) -> Callable[..., Any]:
            return lambda collection, *required: func(*required)

        if producer is None:
            def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
                self.resolution.chunk(name, wrap(func), requires=requires)
                return func
            return decorator

        self.resolution.chunk(name, wrap(producer), requires=requires)
        return self

    def aggregate(self, func: Callable[[list[Any]], Any]) -> Callable[[list[Any]], Any]:
        """Replace the default merge with ``func(outputs)`` (decorator)."""
        self.resolution.aggregator = lambda collection, outputs: func(outputs)
        return func

    def merge(self, func: Callable[[Any, Any], Any]) -> Callable[[Any, Any], Any]:
        """Decide same-kind scalar collisions with ``func(earlier, later)`` (decorator)."""
        self.resolution.merger = func
        return func


class CustomFact:
    """Handle returned by ``facts.define_fact``."""

    def __init__(self, api: "FactsAPI", name: str):
        self._api = api
        self.name = name

    def define_resolution(
        self,
        name: Optional[str] = None,
        *,
        weight: Optional[int] = None,
        confine: ConfineSpec = None,
        value: Any = None,
        timeout: Any = None,
    ) -> ResolutionBuilder:
        return self._api.add(self.name, name=name, weight=weight, confine=confine, value=value, timeout=timeout)

    def define_aggregate(
        self,
        name: Optional[str] = None,
        *,
        weight: Optional[int] = None,
        confine: ConfineSpec = None,
        aggregator: Optional[Callable[[list[Any]], Any]] = None,
        merger: Optional[Callable[[Any, Any], Any]] = None,
    ) -> AggregateBuilder:
        return self._api.aggregate(
            self.name, name, weight=weight, confine=confine, aggregator=aggregator, merger=merger,
        )

    def value(self) -> Any:
        return self._api.value(self.name)


class FactsAPI:
    """Fact definition and lookup API handed to custom fact files."""

    def __init__(self, loader: "CustomFactLoader", source: Optional[Path] = None):
        self._loader = loader
        self.source = source
        self.aggregates: list[tuple[CustomFactResolver, AggregateResolution]] = []

    @property
    def version(self) -> str:
        from hostfacts import __version__
        return __version__

    # ------------------------------------------------------------------
    # Definition
    # ------------------------------------------------------------------

    def add(
        self,
        fact: str,
        *,
        name: Optional[str] = None,
        weight: Optional[int] = None,
        confine: ConfineSpec = None,
        value: Any = None,
        timeout: Any = None,
    ) -> ResolutionBuilder:
        """Add a simple resolution to a custom fact.

        Args:
            fact: Fact name
            name: Resolution name (a same-named resolution is replaced)
            weight: Selection weight (default 0)
            confine: Mapping of fact name -> expected value, or a callable
            value: Constant value for the resolution
            timeout: Not supported; logs a warning

        Raises:
            ResolutionConflictError: If ``name`` is used by an aggregate resolution
        """
        if timeout is not None:
            logger.warning("timeout option is not supported for custom facts and will be ignored.")

        resolver = self._loader.resolver_for(fact, self.source)
        resolution = resolver.add_resolution(Resolution(
            name=name,
            weight=weight or 0,
            confines=_confines(confine),
        ))
        builder = ResolutionBuilder(resolution, self)
        if value is not None:
            builder.setcode_value(value)
        return builder

    def define_fact(self, fact: str) -> CustomFact:
        self._loader.resolver_for(fact, self.source)
        return CustomFact(self, fact)

    def aggregate(
        self,
        fact: str,
        name: Optional[str] = None,
        *,
        weight: Optional[int] = None,
        confine: ConfineSpec = None,
        aggregator: Optional[Callable[[list[Any]], Any]] = None,
        merger: Optional[Callable[[Any, Any], Any]] = None,
    ) -> AggregateBuilder:
        """Get or create an aggregate resolution for a custom fact.

        Raises:
            ResolutionConflictError: If ``name`` is used by a simple resolution
        """
        resolver = self._loader.resolver_for(fact, self.source)
        resolution = resolver.aggregate(name=name, weight=weight or 0, confines=_confines(confine))
        if weight is not None:
            resolution.weight = weight
        builder = AggregateBuilder(resolution)
        if aggregator is not None:
            builder.aggregate(aggregator)
        if merger is not None:
            builder.merge(merger)
        if (resolver, resolution) not in self.aggregates:
            self.aggregates.append((resolver, resolution))
        return builder

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def value(self, fact: str) -> Any:
        """Plain value of another fact, or None if it is absent."""
        value = self._loader.collection.get(fact)
        return value.to_python() if value is not None else None

    def fact(self, fact: str) -> Fact:
        return self._loader.collection.fact(fact)

    def __getitem__(self, fact: str) -> Fact:
        return self.fact(fact)

    # ------------------------------------------------------------------
    # Execution helpers
    # ------------------------------------------------------------------

    def execute(self, command: str) -> Optional[str]:
        """Run a shell command and return its stripped output (None on failure).

        Raises:
            ValueError: If the command is empty
        """
        if not isinstance(command, str) or not command.strip():
            raise ValueError("expected a non-empty String for first argument")
        try:
            result = subprocess.run(command, shell=True, capture_output=True, text=True)
        except OSError as e:
            logger.debug(f"command '{command}' could not be started: {e}")
            return None
        if result.returncode != 0:
            logger.debug(f"command '{command}' exited with status {result.returncode}")
            return None
        return result.stdout.strip()

    def which(self, program: str) -> Optional[str]:
        return shutil.which(program)

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    def debug(self, message: str) -> None:
        logger.debug(message)

    def debugonce(self, message: str) -> None:
        if self._loader.first_time("debug", message):
            logger.debug(message)

    def warn(self, message: str) -> None:
        logger.warning(message)

    def warnonce(self, message: str) -> None:
        if self._loader.first_time("warn", message):
            logger.warning(message)

    def log_exception(self, exception: BaseException, message: Optional[str] = None) -> None:
        logger.error(message or str(exception), exc_info=(type(exception), exception, exception.__traceback__))
