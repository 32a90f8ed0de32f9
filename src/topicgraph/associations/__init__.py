"""Relationships and references between topics."""

from .relationships import TopicRelationshipMultiMap
from .references import TopicReferenceCollection

__all__ = ["TopicRelationshipMultiMap", "TopicReferenceCollection"]
