"""
Exception hierarchy for topicgraph.

Errors fall into five groups:
- Key format errors (InvalidKeyError)
- Tree invariant errors (TopicTreeError and subclasses)
- Schema errors (ReferentialIntegrityError, MappingModelValidationError,
  InvalidTypeError, TopicMappingError)
- Resolution errors (TopicNotFoundError)
- Configuration errors (ConfigurationError)

Errors raised by a concrete storage implementation are never wrapped.
"""

from typing import Optional, Union


class TopicGraphError(Exception):
    """Base exception for all topicgraph errors"""
    pass


class InvalidKeyError(TopicGraphError, ValueError):
    """Raised when a key contains characters outside [A-Za-z0-9._-]"""
    pass


class TopicTreeError(TopicGraphError):
    """Base exception for violations of the topic tree invariants"""
    pass


class SelfParentingError(TopicTreeError):
    """Raised when a topic is assigned as its own parent"""
    pass


class CyclicParentingError(TopicTreeError):
    """Raised when a topic would become its own ancestor"""
    pass


class DuplicateKeyError(TopicTreeError, InvalidKeyError):
    """Raised when a parent already contains a child with the same key"""
    pass


class IdentityError(TopicTreeError):
    """Raised when an already assigned topic id is changed"""
    pass


class ReferentialIntegrityError(TopicGraphError):
    """Raised when a save, move or delete would violate the schema or graph integrity"""
    pass


class MappingModelValidationError(TopicGraphError):
    """Raised when a binding model doesn't match the content type it maps to"""
    pass


class InvalidTypeError(TopicGraphError):
    """Raised when no mapping target type can be resolved for a content type"""
    pass


class TopicMappingError(TopicGraphError):
    """Raised when a topic cannot be mapped onto its target model"""
    pass


class ConfigurationError(TopicGraphError):
    """Raised when a configuration file is malformed"""
    pass


class TopicNotFoundError(TopicGraphError, LookupError):
    """Raised when a topic referenced by key or id could not be located"""

    def __init__(self, identifier: Union[str, int, None] = None, message: Optional[str] = None):
        self.identifier = identifier
        if message is None:
            message = f"The topic '{identifier}' could not be located."
        super().__init__(message)


__all__ = [
    "TopicGraphError",
    "InvalidKeyError",
    "TopicTreeError",
    "SelfParentingError",
    "CyclicParentingError",
    "DuplicateKeyError",
    "IdentityError",
    "ReferentialIntegrityError",
    "MappingModelValidationError",
    "InvalidTypeError",
    "TopicMappingError",
    "ConfigurationError",
    "TopicNotFoundError",
]
