# Copyright (c) 2025 Kenneth Stott
#
# This source code is licensed under the Business Source License 1.1
# found in the LICENSE file in the root directory of this source tree.
#
# NOTICE: Use of this software for training artificial intelligence or
# machine learning models is strictly prohibited without explicit written
# permission from the copyright holder.

"""Lazy fact resolution engine.

Facts are resolved on demand, at most once per collection:

1. A caller asks the Collection for a fact by name
2. Environment overrides and cached values short-circuit resolution
3. Resolvers owning the name (exact names first, then patterns) offer
   candidate resolutions
4. Confines filter the candidates; the highest weight wins, ties go to the
   resolution registered first
5. The winner produces the value (aggregates merge dependency-ordered chunks)

Resolutions may request other facts. A fact that transitively requests
itself is reported as a circular resolution and ends up absent.

Usage:
    facts = Collection()
    hostname = Resolver("hostname", names=["hostname"])

    @hostname.resolution()
    def from_socket(collection, name):
        return socket.gethostname()

    facts.add_resolver(hostname)
    facts.get("hostname")
"""

from ._types import (
    CircularResolutionError,
    ChunkCycleError,
    EventCallback,
    Fact,
    FactError,
    FactSource,
    FactState,
    InvalidChunkReferenceError,
    InvalidNamePatternError,
    MergeConflictError,
    ResolutionConflictError,
)
from ._confine import Confine
from ._resolution import Producer, Resolution, select_resolution, to_fact_value
from ._aggregate import AggregateResolution, Chunk, merge_values
from ._resolver import Resolver
from .collection import DEFAULT_ENV_PREFIX, Collection


__all__ = [
    # Types
    "EventCallback",
    "Fact",
    "FactSource",
    "FactState",
    # Errors
    "FactError",
    "CircularResolutionError",
    "ChunkCycleError",
    "InvalidChunkReferenceError",
    "InvalidNamePatternError",
    "MergeConflictError",
    "ResolutionConflictError",
    # Engine
    "AggregateResolution",
    "Chunk",
    "Collection",
    "Confine",
    "DEFAULT_ENV_PREFIX",
    "Producer",
    "Resolution",
    "Resolver",
    "merge_values",
    "select_resolution",
    "to_fact_value",
]
