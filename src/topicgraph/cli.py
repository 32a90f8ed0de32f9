"""topicgraph CLI - inspect topic graphs stored as YAML or JSON

Commands:
- tree: print the topic hierarchy
- show: map a topic to its view model and print it as JSON
- validate: report topics whose content type isn't registered
"""
import asyncio
import dataclasses
import json
import logging
import sys
from datetime import date, datetime
from enum import Enum
from typing import Any, List, Optional

import click
import yaml

from .config import TopicsConfig, load_config
from .exceptions import InvalidTypeError, TopicGraphError, TopicNotFoundError
from .mapping import AssociationTypes, TopicMappingService
from .querying import find_all
from .repositories.memory import MemoryTopicRepository
from .topic import Topic
from .view_models import TopicViewModel, create_view_model_lookup

__version__ = "0.1.0"

logger = logging.getLogger(__name__)

# Verbosity levels
VERBOSITY_QUIET = 0
VERBOSITY_NORMAL = 1
VERBOSITY_VERBOSE = 2

LOAD_ERRORS = (OSError, ValueError, yaml.YAMLError, TopicGraphError)


def echo_normal(message: str, verbosity: int) -> None:
    """Print a message in normal and verbose modes."""
    if verbosity >= VERBOSITY_NORMAL:
        click.echo(message)


def echo_error(message: str) -> None:
    """Print an error, even in quiet mode."""
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)


def load_repository(path: str) -> MemoryTopicRepository:
    try:
        return MemoryTopicRepository.from_file(path)
    except LOAD_ERRORS as e:
        echo_error(f"Could not load {path}: {e}")
        sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="topicgraph")
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False), default=None,
              help='YAML configuration file')
@click.option('--verbose', '-v', is_flag=True, default=False,
              help='Enable verbose output')
@click.option('--quiet', '-q', is_flag=True, default=False,
              help='Suppress non-essential output')
@click.pass_context
def cli(ctx, config_path, verbose, quiet):
    """topicgraph - inspect and map content topic graphs

    \b
    Examples:
        topicgraph tree topics.yaml
        topicgraph show topics.yaml Root:Web:About
        topicgraph validate topics.yaml
    """
    ctx.ensure_object(dict)

    if verbose and quiet:
        raise click.UsageError("--verbose and --quiet are mutually exclusive")

    try:
        config = load_config(config_path)
    except TopicGraphError as e:
        raise click.BadParameter(str(e), param_hint="--config")

    if quiet:
        ctx.obj['verbosity'] = VERBOSITY_QUIET
        level = logging.ERROR
    elif verbose:
        ctx.obj['verbosity'] = VERBOSITY_VERBOSE
        level = logging.DEBUG
    else:
        ctx.obj['verbosity'] = VERBOSITY_NORMAL
        level = getattr(logging, config.log_level)

    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("topicgraph").setLevel(level)
    ctx.obj['config'] = config


@cli.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--show-ids', is_flag=True, default=False, help='Include topic ids')
@click.pass_context
def tree(ctx, path: str, show_ids: bool) -> None:
    """Print the topic hierarchy in PATH.

    Examples:
        topicgraph tree topics.yaml --show-ids
    """
    repository = load_repository(path)
    for line in format_tree(repository.root, show_ids):
        click.echo(line)


def format_tree(topic: Topic, show_ids: bool = False, depth: int = 0) -> List[str]:
    label = f"{'  ' * depth}{topic.key} [{topic.content_type}]"
    if show_ids and not topic.is_new:
        label += f" #{topic.id}"
    if topic.is_disabled:
        label += " (disabled)"
    lines = [label]
    for child in topic.children:
        lines.extend(format_tree(child, show_ids, depth + 1))
    return lines


@cli.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.argument('unique_key')
@click.option('--associations', '-a', multiple=True,
              type=click.Choice([name.lower() for name in AssociationTypes.__members__ if name != "NONE"],
                                case_sensitive=False),
              help='Associations to map (repeatable; defaults to the configured set)')
@click.pass_context
def show(ctx, path: str, unique_key: str, associations) -> None:
    """Map the topic UNIQUE_KEY to its view model and print it as JSON.

    Topics without a registered view model are shown as TopicViewModel.

    Examples:
        topicgraph show topics.yaml Root:Web:About -a children -a references
    """
    config: TopicsConfig = ctx.obj['config']
    repository = load_repository(path)

    topic = repository.load(unique_key)
    if topic is None:
        echo_error(str(TopicNotFoundError(unique_key)))
        sys.exit(1)

    service = TopicMappingService(repository, create_view_model_lookup(), config)
    requested = AssociationTypes.from_names(associations) if associations else None

    try:
        view_model = asyncio.run(_map(service, topic, requested))
    except TopicGraphError as e:
        echo_error(str(e))
        sys.exit(1)

    click.echo(json.dumps(to_plain(view_model), indent=2))


async def _map(service: TopicMappingService, topic: Topic, associations: Optional[AssociationTypes]) -> Any:
    try:
        return await service.map(topic, associations)
    except InvalidTypeError:
        logger.info(f"No view model for {topic.content_type}; mapping as {TopicViewModel.__name__}")
        return await service.map_as(topic, TopicViewModel, associations)


def to_plain(value: Any, _path: Optional[set] = None) -> Any:
    """Convert a view model graph to JSON-compatible values.

    An object already being converted higher up the graph is written as its key.
    """
    path = _path if _path is not None else set()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        if id(value) in path:
            return {"key": getattr(value, "key", None)}
        path.add(id(value))
        try:
            return {f.name: to_plain(getattr(value, f.name), path) for f in dataclasses.fields(value)}
        finally:
            path.discard(id(value))
    if isinstance(value, Topic):
        return value.get_unique_key()
    if isinstance(value, (list, tuple)):
        return [to_plain(item, path) for item in value]
    if isinstance(value, dict):
        return {str(k): to_plain(v, path) for k, v in value.items()}
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.name
    return value


@cli.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def validate(ctx, path: str) -> None:
    """Report topics in PATH whose content type isn't registered.

    Content types are read from Root:Configuration:ContentTypes. Exits with
    status 1 when any topic is invalid.
    """
    verbosity = ctx.obj['verbosity']
    repository = load_repository(path)
    content_types = repository.get_content_type_descriptors()

    invalid = [topic for topic in find_all(repository.root) if topic.content_type not in content_types]
    for topic in invalid:
        click.echo(click.style(f"✗ {topic.get_unique_key()}: unknown content type '{topic.content_type}'", fg="red"))

    if invalid:
        echo_normal(f"{len(invalid)} invalid topics", verbosity)
        sys.exit(1)

    echo_normal(click.style(
        f"✓ {len(find_all(repository.root))} topics use {len(content_types)} registered content types",
        fg="green",
    ), verbosity)


def main():
    """Entry point for the topicgraph CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
