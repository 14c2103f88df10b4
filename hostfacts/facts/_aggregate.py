# Copyright (c) 2025 Kenneth Stott
#
# This source code is licensed under the Business Source License 1.1
# found in the LICENSE file in the root directory of this source tree.
#
# NOTICE: Use of this software for training artificial intelligence or
# machine learning models is strictly prohibited without explicit written
# permission from the copyright holder.

"""Aggregate resolutions: named, inter-dependent chunks merged into one value.

Chunks form a small dependency graph inside a single resolution:
- Each chunk names the chunks it requires
- Chunks run in dependency order (requirements first, otherwise declaration order)
- A chunk receives the outputs of the chunks it requires
- Outputs are merged in processing order (arrays concatenate, maps deep-merge)

Example:
    agg = AggregateResolution(name="interfaces")
    agg.chunk("names", lambda facts: ["lo", "eth0"])
    agg.chunk("bonded", lambda facts, names: names + ["bond0"], requires=["names"])
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional, Union

from hostfacts.core.values import Value, ValueKind

from ._confine import Confine
from ._resolution import Resolution, to_fact_value
from ._types import ChunkCycleError, InvalidChunkReferenceError, MergeConflictError

if TYPE_CHECKING:
    from .collection import Collection

logger = logging.getLogger(__name__)

# (collection, *required_outputs) -> plain data, Value, or None
ChunkProducer = Callable[..., Any]
# (collection, outputs) -> plain data, Value, or None
Aggregator = Callable[["Collection", list[Any]], Any]
# (earlier, later) -> plain data or Value, for same-kind scalar collisions
Merger = Callable[[Any, Any], Any]


@dataclass
class Chunk:
    """A named sub-producer inside an aggregate resolution."""
    name: str
    producer: ChunkProducer
    requires: list[str] = field(default_factory=list)  # Names of chunks whose output this chunk needs


class AggregateResolution(Resolution):
    """A resolution assembled from dependency-ordered chunks.

    Args:
        name: Optional resolution name
        weight: Selection weight (higher wins)
        confines: Confines that must all be met
        fact: Fact name this resolution produces (None = any)
        aggregator: Replaces the default merge; called with the collection and
            the ordered list of chunk outputs (None for chunks that produced
            nothing)
        merger: Decides same-kind scalar collisions during the default merge;
            called with (earlier, later)
    """

    kind = "aggregate"

    def __init__(
        self,
        name: Optional[str] = None,
        weight: int = 0,
        confines: Iterable[Confine] = (),
        fact: Optional[str] = None,
        aggregator: Optional[Aggregator] = None,
        merger: Optional[Merger] = None,
    ):
        super().__init__(producer=None, name=name, weight=weight, confines=confines, fact=fact)
        self.chunks: dict[str, Chunk] = {}
        self.aggregator = aggregator
        self.merger = merger

    def chunk(
        self,
        name: str,
        producer: Optional[ChunkProducer] = None,
        requires: Union[str, Iterable[str]] = (),
    ):
        """Add a chunk (a same-named chunk is replaced).

        Without a producer this returns a decorator:

            @agg.chunk("totals", requires=["counts"])
            def totals(facts, counts):
                return {"total": sum(counts)}
        """
        if isinstance(requires, str):
            requires = [requires]
        requires = list(requires)

        if producer is None:
            def decorator(func: ChunkProducer) -> ChunkProducer:
                self.chunks[name] = Chunk(name=name, producer=func, requires=requires)
                return func
            return decorator

        self.chunks[name] = Chunk(name=name, producer=producer, requires=requires)
        return self

    def execution_order(self) -> list[str]:
        """Get chunk names in dependency order.

        Depth-first over chunks in declaration order, requirements first, so
        independent chunks keep their declaration order.

        Raises:
            InvalidChunkReferenceError: If a chunk requires an unknown chunk
            ChunkCycleError: If chunk requirements form a cycle
        """
        order: list[str] = []
        done: set[str] = set()
        in_progress: list[str] = []

        def visit(chunk_name: str) -> None:
            if chunk_name in done:
                return
            if chunk_name in in_progress:
                cycle = in_progress[in_progress.index(chunk_name):] + [chunk_name]
                raise ChunkCycleError(
                    f"chunk dependency cycle detected: {' -> '.join(cycle)}"
                )
            in_progress.append(chunk_name)
            for required in self.chunks[chunk_name].requires:
                if required not in self.chunks:
                    raise InvalidChunkReferenceError(
                        f'chunk "{chunk_name}" requires chunk "{required}" which does not exist'
                    )
                visit(required)
            in_progress.pop()
            done.add(chunk_name)
            order.append(chunk_name)

        for chunk_name in self.chunks:
            visit(chunk_name)
        return order

    def validate(self) -> None:
        """Check chunk references and cycles without running any producer."""
        self.execution_order()

    def resolve(self, collection: "Collection", name: str) -> Optional[Value]:
        order = self.execution_order()

        outputs: dict[str, Optional[Value]] = {}
        for chunk_name in order:
            chunk = self.chunks[chunk_name]
            required = [
                outputs[dep].to_python() if outputs[dep] is not None else None
                for dep in chunk.requires
            ]
            outputs[chunk_name] = to_fact_value(chunk.producer(collection, *required))
            logger.debug(f'chunk "{chunk_name}" of fact "{name}" produced {outputs[chunk_name]!r}')

        if self.aggregator is not None:
            return to_fact_value(self.aggregator(collection, [
                outputs[chunk_name].to_python() if outputs[chunk_name] is not None else None
                for chunk_name in order
            ]))

        results = [outputs[chunk_name] for chunk_name in order if outputs[chunk_name] is not None]

        merged: Optional[Value] = None
        for value in results:
            merged = value if merged is None else merge_values(merged, value, self.merger)
        return merged


def merge_values(earlier: Value, later: Value, merger: Optional[Merger] = None) -> Value:
    """Merge two chunk outputs.

    - array + array: concatenation
    - map + map: recursive key-wise merge
    - none + anything: the other side
    - same-kind scalars: the later value, or ``merger(earlier, later)``

    Raises:
        MergeConflictError: For any other combination of kinds
    """
    if earlier.is_none:
        return later
    if later.is_none:
        return earlier

    if earlier.kind is ValueKind.ARRAY and later.kind is ValueKind.ARRAY:
        return Value(ValueKind.ARRAY, earlier.data + later.data)

    if earlier.kind is ValueKind.MAP and later.kind is ValueKind.MAP:
        merged = dict(earlier.data)
        for key, item in later.data:
            merged[key] = merge_values(merged[key], item, merger) if key in merged else item
        return Value(ValueKind.MAP, tuple(merged.items()))

    if earlier.is_scalar and earlier.kind is later.kind:
        if merger is not None:
            return Value.of(merger(earlier.to_python(), later.to_python()))
        return later

    raise MergeConflictError(
        f"cannot merge {earlier.render()}:{earlier.kind.title} and {later.render()}:{later.kind.title}"
    )
