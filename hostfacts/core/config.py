"""Configuration loading with Pydantic validation and env var substitution."""

import logging
import os
import re
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field

from hostfacts.facts import DEFAULT_ENV_PREFIX, Collection, EventCallback

logger = logging.getLogger(__name__)


class LoggingConfig(BaseModel):
    """Log level and optional log file for the CLI."""
    level: str = "WARNING"
    file: Optional[str] = None


class Config(BaseModel):
    """Root configuration model."""
    model_config = {"extra": "ignore"}

    # Prefix of environment variables that override facts (FACTER_kernel=...)
    env_prefix: str = DEFAULT_ENV_PREFIX

    # Directories of Python custom fact files
    custom_dirs: list[str] = Field(default_factory=list)

    # Directories of .yaml/.json/.txt external fact files
    external_dirs: list[str] = Field(default_factory=list)

    # Literal facts seeded into the collection
    facts: dict[str, Any] = Field(default_factory=dict)

    # Fact names that are never resolved
    blocked: list[str] = Field(default_factory=list)

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Config":
        """
        Load config from YAML file with env var substitution.

        Args:
            path: Path to the config YAML file

        Returns:
            Validated Config object
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            raw_content = f.read()

        # Substitute environment variables: ${VAR_NAME}
        substituted = _substitute_env_vars(raw_content)

        data = yaml.safe_load(substituted) or {}
        return cls.model_validate(data)

    def build_collection(
        self,
        load_custom: bool = True,
        event_callback: Optional[EventCallback] = None,
    ) -> Collection:
        """
        Create a collection with every configured fact source registered.

        Registration order is built-in resolvers, external facts, then custom
        facts; literal ``facts`` are seeded last.

        Args:
            load_custom: Set False to skip custom fact directories
            event_callback: Optional resolution event callback

        Returns:
            A collection ready for lookups
        """
        from hostfacts.builtin import register_builtin_resolvers
        from hostfacts.custom import load_custom_facts
        from hostfacts.external import load_external_facts, yaml_to_plain

        collection = Collection(
            env_prefix=self.env_prefix,
            blocked=self.blocked,
            event_callback=event_callback,
        )
        register_builtin_resolvers(collection)
        load_external_facts(collection, [Path(d).expanduser() for d in self.external_dirs])
        if load_custom:
            load_custom_facts(collection, [Path(d).expanduser() for d in self.custom_dirs])
        for name, value in self.facts.items():
            try:
                collection.add(name, yaml_to_plain(value))
            except (TypeError, ValueError) as e:
                logger.error(f'invalid value for configured fact "{name}": {e}')
        return collection


def _substitute_env_vars(content: str) -> str:
    """Replace ${VAR_NAME} with environment variable values."""
    pattern = re.compile(r'\$\{([^}]+)\}')

    def replacer(match: re.Match) -> str:
        var_name = match.group(1)
        value = os.environ.get(var_name)
        if value is None:
            raise ValueError(f"Environment variable not set: {var_name}")
        return value

    return pattern.sub(replacer, content)
