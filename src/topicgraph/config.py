"""
Configuration for mapping and the CLI.

A config file is YAML, e.g.:

    view_model_suffixes: [TopicViewModel, ViewModel]
    default_associations: [children, relationships, references]
    max_inheritance_hops: 5
    log_level: INFO
"""

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import List, Optional, Union, TYPE_CHECKING

import yaml

from .exceptions import ConfigurationError

if TYPE_CHECKING:
    from .mapping.annotations import AssociationTypes

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class TopicsConfig:
    """
    Settings shared by the mapping services and the CLI.

    Attributes:
        view_model_suffixes: Suffixes appended to a content type name to find
            its view model, in order of preference
        default_associations: Association names mapped when none are given
        max_inheritance_hops: How many base topics mapped attribute lookups follow
        log_level: Root log level used by the CLI
    """
    view_model_suffixes: List[str] = field(default_factory=lambda: ["TopicViewModel", "ViewModel"])
    default_associations: List[str] = field(default_factory=lambda: ["all"])
    max_inheritance_hops: int = 5
    log_level: str = "WARNING"

    @property
    def associations(self) -> "AssociationTypes":
        from .mapping.annotations import AssociationTypes
        return AssociationTypes.from_names(self.default_associations)


def load_config(path: Optional[Union[str, Path]] = None) -> TopicsConfig:
    """
    Load a TopicsConfig from a YAML file.

    Args:
        path: Path to the YAML file; None returns the defaults

    Returns:
        The parsed configuration

    Raises:
        ConfigurationError: If the file can't be parsed, has unknown keys,
            or holds invalid values
    """
    if path is None:
        return TopicsConfig()

    config_path = Path(path)
    try:
        data = yaml.safe_load(config_path.read_text()) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Could not read configuration from {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration in {config_path} must be a mapping")

    known = {f.name for f in fields(TopicsConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(f"Unknown configuration keys in {config_path}: {', '.join(unknown)}")

    config = TopicsConfig(**data)

    if isinstance(config.view_model_suffixes, str):
        config.view_model_suffixes = [config.view_model_suffixes]
    if isinstance(config.default_associations, str):
        config.default_associations = [config.default_associations]
    try:
        config.associations
    except ValueError as e:
        raise ConfigurationError(str(e)) from e
    if not isinstance(config.max_inheritance_hops, int) or config.max_inheritance_hops < 0:
        raise ConfigurationError("max_inheritance_hops must be a non-negative integer")
    config.log_level = str(config.log_level).upper()
    if config.log_level not in LOG_LEVELS:
        raise ConfigurationError(f"log_level must be one of {', '.join(LOG_LEVELS)}")

    logger.debug(f"Loaded configuration from {config_path}")
    return config


__all__ = ["TopicsConfig", "load_config", "LOG_LEVELS"]
