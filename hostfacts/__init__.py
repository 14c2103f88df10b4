# Copyright (c) 2025 Kenneth Stott
#
# This source code is licensed under the Business Source License 1.1
# found in the LICENSE file in the root directory of this source tree.
#
# NOTICE: Use of this software for training artificial intelligence or
# machine learning models is strictly prohibited without explicit written
# permission from the copyright holder.

"""Hostfacts - lazy, cached resolution of facts about the host.

A fact is a named, typed value (kernel, os.release.major, processorcount,
...). Facts are produced on demand by resolvers, may depend on other facts,
and are resolved at most once per collection.

Submodules:
- core: Typed values and configuration
- facts: The resolution engine (Collection, Resolver, Resolution, Confine)
- builtin: Platform resolvers shipped with the package
- external: Literal facts read from YAML/JSON/text files
- custom: Python custom fact files
- cli: The ``hostfacts`` command

Main classes:
- Collection: Lazy, cached fact table
- Config: Configuration loading from YAML
- Value: Typed fact value
"""

__version__ = "0.1.0"

from hostfacts.core.config import Config, LoggingConfig
from hostfacts.core.values import Value, ValueKind
from hostfacts.facts import (
    AggregateResolution,
    CircularResolutionError,
    Collection,
    Confine,
    Fact,
    FactError,
    FactState,
    Resolution,
    Resolver,
)

__all__ = [
    "__version__",
    "AggregateResolution",
    "CircularResolutionError",
    "Collection",
    "Config",
    "Confine",
    "Fact",
    "FactError",
    "FactState",
    "LoggingConfig",
    "Resolution",
    "Resolver",
    "Value",
    "ValueKind",
]
