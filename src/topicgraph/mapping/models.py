"""
Base classes for binding models.

Binding models are the write-side counterpart of view models: plain
dataclasses whose fields are mapped back onto a topic by
ReverseTopicMappingService.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class TopicBindingModel:
    """A binding model for a whole topic, identified by key and content type."""
    key: str = ""
    content_type: str = ""


@dataclass
class AssociatedTopicBindingModel:
    """
    A pointer to an existing topic, used for relationships and references.

    An empty unique_key clears a reference.
    """
    unique_key: Optional[str] = None


__all__ = ["TopicBindingModel", "AssociatedTopicBindingModel"]
