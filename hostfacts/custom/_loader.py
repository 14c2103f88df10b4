# Copyright (c) 2025 Kenneth Stott
#
# This source code is licensed under the Business Source License 1.1
# found in the LICENSE file in the root directory of this source tree.
#
# NOTICE: Use of this software for training artificial intelligence or
# machine learning models is strictly prohibited without explicit written
# permission from the copyright holder.

"""Loading custom fact files into a collection."""

import importlib.util
import logging
import re
from pathlib import Path
from typing import Iterable, Optional

from hostfacts.facts import Collection, FactError

from ._api import CustomFactResolver, FactsAPI

logger = logging.getLogger("hostfacts.custom")


class CustomFactLoader:
    """Runs custom fact files against one collection.

    Resolvers are shared across files: two files adding resolutions to the
    same fact name contribute to the same resolver.
    """

    def __init__(self, collection: Collection):
        self.collection = collection
        self._resolvers: dict[str, CustomFactResolver] = {}
        self._logged_once: set[tuple[str, str]] = set()
        self.loaded_files: list[Path] = []

    @property
    def resolvers(self) -> list[CustomFactResolver]:
        return list(self._resolvers.values())

    def resolver_for(self, fact: str, source: Optional[Path] = None) -> CustomFactResolver:
        """Get or create (and register) the resolver for a custom fact."""
        resolver = self._resolvers.get(fact)
        if resolver is None:
            resolver = CustomFactResolver(fact, source)
            self._resolvers[fact] = resolver
            self.collection.add_resolver(resolver)
        return resolver

    def first_time(self, level: str, message: str) -> bool:
        key = (level, message)
        if key in self._logged_once:
            return False
        self._logged_once.add(key)
        return True

    def load_file(self, path: Path) -> bool:
        """Execute one custom fact file.

        Errors raised by the file are logged and do not stop other files
        from loading. Aggregate resolutions whose chunks reference missing
        chunks or form a cycle are dropped.

        Returns:
            True if the file loaded cleanly
        """
        path = Path(path)
        api = FactsAPI(self, path)
        module_name = "_hostfacts_custom_" + re.sub(r"\W", "_", path.stem)

        try:
            spec = importlib.util.spec_from_file_location(module_name, path)
            if spec is None or spec.loader is None:
                raise ImportError(f"cannot load {path}")
            module = importlib.util.module_from_spec(spec)
            module.facts = api
            spec.loader.exec_module(module)
        except Exception as e:
            logger.error(f"error while resolving custom facts in {path}: {e}")
            logger.debug("custom fact load failure details", exc_info=True)
            return False

        clean = True
        for resolver, aggregate in api.aggregates:
            try:
                aggregate.validate()
            except FactError as e:
                logger.error(f'invalid aggregate resolution for fact "{resolver.fact}" in {path}: {e}')
                if aggregate in resolver.resolutions:
                    resolver.resolutions.remove(aggregate)
                clean = False

        self.loaded_files.append(path)
        logger.debug(f"loaded custom facts from {path}")
        return clean

    def load_directories(self, directories: Iterable[Path]) -> list[CustomFactResolver]:
        """Load every ``*.py`` file in ``directories``, in sorted order per directory."""
        for directory in directories:
            directory = Path(directory)
            if not directory.is_dir():
                logger.warning(f"custom facts directory not found: {directory}")
                continue
            for path in sorted(directory.glob("*.py")):
                if path.is_file():
                    self.load_file(path)
        return self.resolvers


def load_custom_facts(collection: Collection, directories: Iterable[Path]) -> list[CustomFactResolver]:
    """Load custom fact files from ``directories`` into ``collection``.

    Returns:
        The custom fact resolvers that were registered
    """
    return CustomFactLoader(collection).load_directories(directories)
