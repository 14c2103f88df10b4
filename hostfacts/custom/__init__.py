# Copyright (c) 2025 Kenneth Stott
#
# This source code is licensed under the Business Source License 1.1
# found in the LICENSE file in the root directory of this source tree.
#
# NOTICE: Use of this software for training artificial intelligence or
# machine learning models is strictly prohibited without explicit written
# permission from the copyright holder.

"""Custom facts: Python files that define facts through a ``facts`` object."""

from ._api import (
    AggregateBuilder,
    CustomFact,
    CustomFactResolver,
    FactsAPI,
    ResolutionBuilder,
)
from ._loader import CustomFactLoader, load_custom_facts

__all__ = [
    "AggregateBuilder",
    "CustomFact",
    "CustomFactLoader",
    "CustomFactResolver",
    "FactsAPI",
    "ResolutionBuilder",
    "load_custom_facts",
]
