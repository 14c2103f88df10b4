# Copyright (c) 2025 Kenneth Stott
#
# This source code is licensed under the Business Source License 1.1
# found in the LICENSE file in the root directory of this source tree.
#
# NOTICE: Use of this software for training artificial intelligence or
# machine learning models is strictly prohibited without explicit written
# permission from the copyright holder.

"""External facts: literal fact values read from files.

Supported formats:
- ``.yaml`` / ``.yml``: a mapping of fact name to value
- ``.json``: an object of fact name to value
- ``.txt``: ``name=value`` lines (blank lines and ``#`` comments ignored)

Each file becomes one resolver owning its keys. External facts carry a high
weight so they override built-in facts of the same name.
"""

import datetime as dt
import json
import logging
from pathlib import Path
from typing import Any, Iterable

import yaml

from hostfacts.core.values import Value
from hostfacts.facts import Collection, Resolution, Resolver

logger = logging.getLogger(__name__)

EXTERNAL_FACT_WEIGHT = 10000
SUPPORTED_SUFFIXES = {".yaml", ".yml", ".json", ".txt"}


def yaml_to_plain(obj: Any) -> Any:
    """Convert YAML dates/times into ISO strings, recursively."""
    if isinstance(obj, (dt.date, dt.datetime, dt.time)):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {str(key): yaml_to_plain(item) for key, item in obj.items()}
    if isinstance(obj, list):
        return [yaml_to_plain(item) for item in obj]
    return obj


def _parse_text(content: str, path: Path) -> dict[str, str]:
    data = {}
    for number, line in enumerate(content.splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        name, sep, raw = line.partition("=")
        if not sep or not name.strip():
            raise ValueError(f"{path}:{number}: expected name=value")
        data[name.strip()] = raw.strip()
    return data


def parse_external_file(path: Path) -> dict[str, Any]:
    """Read an external fact file into a dict of name -> plain value.

    Raises:
        ValueError: If the file is malformed or of an unsupported type
        OSError: If the file cannot be read
    """
    path = Path(path)
    suffix = path.suffix.lower()
    content = path.read_text(encoding="utf-8")

    if suffix in (".yaml", ".yml"):
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ValueError(f"invalid YAML: {e}") from e
        data = {} if data is None else data
    elif suffix == ".json":
        data = json.loads(content)
    elif suffix == ".txt":
        data = _parse_text(content, path)
    else:
        raise ValueError(f"unsupported external fact file type: {path.name}")

    if not isinstance(data, dict):
        raise ValueError(f"expected a mapping of fact names to values in {path.name}")
    return yaml_to_plain(data)


def external_resolver(path: Path) -> Resolver:
    """Build a resolver serving the facts of one external file."""
    path = Path(path)
    data = parse_external_file(path)
    resolver = Resolver(f"external:{path.name}", names=list(data))
    for name, raw in data.items():
        value = Value.of(raw)
        resolver.add_resolution(Resolution(
            lambda facts, fact_name, value=value: value,
            name=f"external:{path.name}",
            weight=EXTERNAL_FACT_WEIGHT,
            fact=name,
        ))
    return resolver


def load_external_facts(collection: Collection, directories: Iterable[Path]) -> list[Resolver]:
    """Register a resolver for every external fact file in ``directories``.

    Files that cannot be parsed are logged and skipped.

    Returns:
        The registered resolvers
    """
    loaded = []
    for directory in directories:
        directory = Path(directory)
        if not directory.is_dir():
            logger.warning(f"external facts directory not found: {directory}")
            continue

        for path in sorted(directory.iterdir()):
            if not path.is_file() or path.suffix.lower() not in SUPPORTED_SUFFIXES:
                continue
            try:
                resolver = external_resolver(path)
            except (OSError, ValueError, TypeError) as e:
                logger.error(f"error while processing external facts in {path}: {e}")
                continue
            collection.add_resolver(resolver)
            loaded.append(resolver)
            logger.debug(f"loaded {len(resolver.names)} external facts from {path}")
    return loaded
