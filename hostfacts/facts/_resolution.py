# Copyright (c) 2025 Kenneth Stott
#
# This source code is licensed under the Business Source License 1.1
# found in the LICENSE file in the root directory of this source tree.
#
# NOTICE: Use of this software for training artificial intelligence or
# machine learning models is strictly prohibited without explicit written
# permission from the copyright holder.

"""Resolutions and weighted selection among competing resolutions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional

from hostfacts.core.values import Value

from ._confine import Confine

if TYPE_CHECKING:
    from .collection import Collection

logger = logging.getLogger(__name__)

# Type for producers: (collection, fact_name) -> Value, plain data, or None
Producer = Callable[["Collection", str], Any]


def to_fact_value(result: Any) -> Optional[Value]:
    """Normalize a producer result; ``None`` and a none value mean "no value"."""
    if result is None:
        return None
    value = Value.of(result)
    if value.is_none:
        return None
    return value


class Resolution:
    """One candidate producer for a fact.

    A resolution is eligible when all of its confines are met. Among eligible
    resolutions the highest weight wins; ties go to the one registered first.

    Args:
        producer: Called as ``producer(collection, fact_name)``
        name: Optional name; a resolver replaces a same-named resolution
        weight: Selection weight (higher wins)
        confines: Confines that must all be met
        fact: Fact name this resolution produces; None means any name the
            owning resolver is asked for
    """

    kind = "simple"

    def __init__(
        self,
        producer: Optional[Producer] = None,
        name: Optional[str] = None,
        weight: int = 0,
        confines: Iterable[Confine] = (),
        fact: Optional[str] = None,
    ):
        self.producer = producer
        self.name = name
        self.weight = weight or 0
        self.confines: list[Confine] = list(confines)
        self.fact = fact

    @property
    def label(self) -> str:
        return f'"{self.name}"' if self.name else f"<{self.kind} resolution>"

    def confine(self, fact: Optional[str] = None, expected: Any = None, **confines: Any) -> "Resolution":
        """Add confines; returns self for chaining.

        Example:
            resolution.confine("kernel", "Linux")
            resolution.confine(kernel="Linux", osfamily=["Debian", "RedHat"])
        """
        if fact is not None or expected is not None:
            self.confines.append(Confine(fact, expected))
        for name, value in confines.items():
            self.confines.append(Confine(name, value))
        return self

    def applies_to(self, name: str) -> bool:
        return self.fact is None or self.fact == name

    def is_suitable(self, collection: "Collection") -> bool:
        return all(confine.is_met(collection) for confine in self.confines)

    def resolve(self, collection: "Collection", name: str) -> Optional[Value]:
        """Run the producer for ``name``."""
        if self.producer is None:
            return None
        return to_fact_value(self.producer(collection, name))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, weight={self.weight}, fact={self.fact!r})"


def select_resolution(
    collection: "Collection",
    name: str,
    candidates: Iterable[Resolution],
    suitable: Optional[Callable[[Resolution], bool]] = None,
) -> Optional[Resolution]:
    """Pick the winning resolution for a fact.

    1. Every candidate's confines are evaluated; unmet candidates drop out
    2. The highest weight wins
    3. Ties go to the first candidate (registration order)

    Args:
        suitable: Optional eligibility check used instead of
            ``resolution.is_suitable(collection)``

    Returns:
        The winning resolution, or None if no candidate is eligible
    """
    eligible = [
        resolution for resolution in candidates
        if (suitable(resolution) if suitable is not None else resolution.is_suitable(collection))
    ]
    if not eligible:
        logger.debug(f'no suitable resolution for fact "{name}"')
        return None

    top = max(resolution.weight for resolution in eligible)
    best = [resolution for resolution in eligible if resolution.weight == top]
    if len(best) > 1:
        logger.debug(
            f'{len(best)} resolutions for fact "{name}" tie at weight {top}; '
            f"using {best[0].label} (registered first) over "
            + ", ".join(resolution.label for resolution in best[1:])
        )
    return best[0]
