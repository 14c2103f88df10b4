# Copyright (c) 2025 Kenneth Stott
#
# This source code is licensed under the Business Source License 1.1
# found in the LICENSE file in the root directory of this source tree.
#
# NOTICE: Use of this software for training artificial intelligence or
# machine learning models is strictly prohibited without explicit written
# permission from the copyright holder.

"""Pytest configuration and shared fixtures."""

import logging
import textwrap
from pathlib import Path
from typing import Callable, Generator

import pytest

from hostfacts.facts import Collection, Resolver


@pytest.fixture(autouse=True)
def reset_package_logger() -> Generator[None, None, None]:
    """Undo handler/propagation changes the CLI makes to the package logger.

    caplog captures through the root logger, so ``hostfacts`` must keep
    propagating between tests.
    """
    package_logger = logging.getLogger("hostfacts")
    level = package_logger.level
    yield
    for handler in list(package_logger.handlers):
        if getattr(handler, "_hostfacts_cli", False):
            package_logger.removeHandler(handler)
            handler.close()
    package_logger.propagate = True
    package_logger.setLevel(level)


@pytest.fixture
def collection() -> Collection:
    """A collection isolated from the process environment."""
    return Collection(environ={})


@pytest.fixture
def constant_resolver() -> Callable[..., Resolver]:
    """Factory for a resolver producing fixed values per fact name."""
    def _make(name: str, values: dict, weight: int = 0) -> Resolver:
        resolver = Resolver(name, names=list(values))
        for fact_name, value in values.items():
            resolver.resolution(name=name, weight=weight, fact=fact_name)(
                lambda facts, requested, value=value: value
            )
        return resolver
    return _make


@pytest.fixture
def write_file(tmp_path) -> Callable[[str, str], Path]:
    """Write a dedented text file under tmp_path and return its path."""
    def _write(relative: str, content: str) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content).lstrip(), encoding="utf-8")
        return path
    return _write
