# Copyright (c) 2025 Kenneth Stott
#
# This source code is licensed under the Business Source License 1.1
# found in the LICENSE file in the root directory of this source tree.
#
# NOTICE: Use of this software for training artificial intelligence or
# machine learning models is strictly prohibited without explicit written
# permission from the copyright holder.

"""Core value model and configuration."""

from .config import Config, LoggingConfig
from .values import (
    INTEGER_MAX,
    INTEGER_MIN,
    SCALAR_KINDS,
    ArrayBuilder,
    MapBuilder,
    Value,
    ValueKind,
)

__all__ = [
    "Config",
    "LoggingConfig",
    "ArrayBuilder",
    "MapBuilder",
    "Value",
    "ValueKind",
    "SCALAR_KINDS",
    "INTEGER_MIN",
    "INTEGER_MAX",
]
