# Copyright (c) 2025 Kenneth Stott
#
# This source code is licensed under the Business Source License 1.1
# found in the LICENSE file in the root directory of this source tree.
#
# NOTICE: Use of this software for training artificial intelligence or
# machine learning models is strictly prohibited without explicit written
# permission from the copyright holder.

"""Command-line interface for hostfacts."""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
import yaml
from rich.console import Console

from hostfacts import __version__
from hostfacts.core.config import Config, LoggingConfig
from hostfacts.core.values import Value, ValueKind
from hostfacts.facts import Collection

console = Console()

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(settings: LoggingConfig, debug: bool = False) -> None:
    """Attach stderr (and optional file) handlers to the ``hostfacts`` logger.

    Handlers installed by an earlier call are replaced.
    """
    package_logger = logging.getLogger('hostfacts')
    for handler in list(package_logger.handlers):
        if getattr(handler, '_hostfacts_cli', False):
            package_logger.removeHandler(handler)
            handler.close()

    level = logging.DEBUG if debug else getattr(logging, settings.level.upper(), logging.WARNING)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if settings.file:
        log_file = Path(settings.file).expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, mode='a'))

    for handler in handlers:
        handler._hostfacts_cli = True
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)

    package_logger.setLevel(level)
    # Prevent duplicate messages through the root logger
    package_logger.propagate = False


def _plain(value: Optional[Value]):
    return value.to_python() if value is not None else None


def _display(value: Optional[Value]) -> str:
    """Top-level strings print bare; everything else uses the value rendering."""
    if value is None:
        return ""
    if value.kind is ValueKind.STRING:
        return value.data
    return value.render()


def _lookup(collection: Collection, queries: tuple[str, ...]) -> dict[str, Optional[Value]]:
    if not queries:
        return dict(sorted(collection.resolve().items()))
    return {query: collection.query(query) for query in queries}


@click.command()
@click.version_option(version=__version__, prog_name="hostfacts")
@click.argument("queries", nargs=-1)
@click.option(
    "--config", "-c",
    type=click.Path(exists=True),
    help="Path to config YAML file.",
)
@click.option("--json", "as_json", is_flag=True, help="Output facts as JSON.")
@click.option("--yaml", "as_yaml", is_flag=True, help="Output facts as YAML.")
@click.option(
    "--custom-dir",
    multiple=True,
    type=click.Path(),
    help="Directory of custom fact files (repeatable).",
)
@click.option(
    "--external-dir",
    multiple=True,
    type=click.Path(),
    help="Directory of external fact files (repeatable).",
)
@click.option("--no-custom-facts", is_flag=True, help="Do not load custom facts.")
@click.option("--debug", is_flag=True, help="Enable debug logging.")
def cli(
    queries: tuple[str, ...],
    config: Optional[str],
    as_json: bool,
    as_yaml: bool,
    custom_dir: tuple[str, ...],
    external_dir: tuple[str, ...],
    no_custom_facts: bool,
    debug: bool,
):
    """Hostfacts - collect facts about this host.

    With no QUERY every known fact is printed. A query is a fact name or a
    dotted path into a structured fact.

    \b
    Examples:
        hostfacts
        hostfacts kernel os.release.major
        hostfacts --json -c hostfacts.yaml
        hostfacts --custom-dir ./facts.d role
    """
    if as_json and as_yaml:
        raise click.UsageError("--json and --yaml are mutually exclusive")

    if config:
        try:
            cfg = Config.from_yaml(config)
        except Exception as e:
            console.print(f"[red]Config error:[/red] {e}")
            sys.exit(1)
    else:
        cfg = Config()

    cfg.custom_dirs.extend(custom_dir)
    cfg.external_dirs.extend(external_dir)
    configure_logging(cfg.logging, debug=debug)

    collection = cfg.build_collection(load_custom=not no_custom_facts)
    results = _lookup(collection, queries)

    if as_json:
        click.echo(json.dumps({name: _plain(value) for name, value in results.items()}, indent=2))
    elif as_yaml:
        click.echo(yaml.safe_dump(
            {name: _plain(value) for name, value in results.items()},
            default_flow_style=False,
            sort_keys=False,
        ), nl=False)
    elif len(queries) == 1:
        console.print(_display(results[queries[0]]), markup=False, highlight=False, soft_wrap=True)
    else:
        for name, value in results.items():
            console.print(f"{name} => {_display(value)}", markup=False, highlight=False, soft_wrap=True)


def main():
    cli()


if __name__ == "__main__":
    main()
