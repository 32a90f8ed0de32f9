"""
Topic construction and key validation.

TopicFactory resolves the concrete Topic subclass for a content type through a
TypeLookupService keyed by class name, so a content type named
"ContentTypeDescriptor" produces a ContentTypeDescriptor instance. Unknown
attribute descriptor types fall back to AttributeDescriptor; everything else
falls back to Topic.
"""

import re
import logging
from typing import Optional, Type, TYPE_CHECKING

from .exceptions import InvalidKeyError
from .lookup import TypeLookupService

if TYPE_CHECKING:
    from .topic import Topic

logger = logging.getLogger(__name__)

KEY_PATTERN = re.compile(r"^[a-zA-Z0-9.\-_]+$")


def validate_key(key: Optional[str], is_optional: bool = False) -> None:
    """
    Validate a topic, attribute or association key.

    Args:
        key: The key to validate
        is_optional: Whether an empty or missing key is acceptable

    Raises:
        InvalidKeyError: If the key is missing (and required) or contains
            characters other than letters, numbers, hyphens, periods and
            underscores
    """
    if not key:
        if is_optional:
            return
        raise InvalidKeyError("A key is required.")
    if not isinstance(key, str) or not KEY_PATTERN.match(key):
        raise InvalidKeyError(
            f"The key '{key}' is invalid. Key names should only contain letters, numbers, hyphens, "
            f"periods, and/or underscores."
        )


class TopicFactory:
    """Creates topics, resolving a Topic subclass from the content type."""

    _type_lookup_service: Optional[TypeLookupService] = None

    @classmethod
    def get_type_lookup_service(cls) -> TypeLookupService:
        """Return the lookup service, seeding it with the built-in topic types."""
        if cls._type_lookup_service is None:
            from .metadata import BUILTIN_TOPIC_TYPES
            cls._type_lookup_service = TypeLookupService(BUILTIN_TOPIC_TYPES)
        return cls._type_lookup_service

    @classmethod
    def set_type_lookup_service(cls, service: Optional[TypeLookupService]) -> None:
        """Replace the lookup service (None restores the built-in one)."""
        cls._type_lookup_service = service

    @classmethod
    def register(cls, topic_type: Type["Topic"]) -> None:
        """
        Register a Topic subclass for the content type matching its class name.

        Args:
            topic_type: A subclass of Topic; replaces any existing registration
        """
        cls.get_type_lookup_service().add_or_replace(topic_type)
        logger.debug(f"Registered topic type {topic_type.__name__}")

    @classmethod
    def create(
        cls,
        key: str,
        content_type: str,
        parent: Optional["Topic"] = None,
        id: int = -1,
    ) -> "Topic":
        """
        Create a topic of the type associated with the content type.

        Args:
            key: The topic key
            content_type: The content type name, also used to resolve the class
            parent: Optional parent; the topic is appended to its children
            id: Persisted identifier; topics created with an id are loaded clean

        Returns:
            A Topic (or subclass) instance
        """
        validate_key(key)
        validate_key(content_type)

        from .topic import Topic
        from .metadata import AttributeDescriptor

        target_type = cls.get_type_lookup_service().lookup(content_type)
        if target_type is None and content_type.lower().endswith("attributedescriptor"):
            target_type = AttributeDescriptor
        if target_type is None:
            target_type = Topic

        return target_type(key, content_type, parent, id)


__all__ = ["KEY_PATTERN", "validate_key", "TopicFactory"]
