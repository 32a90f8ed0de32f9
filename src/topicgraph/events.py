"""
Event type definitions for topic lifecycle notifications.

Repositories publish these on their EventBus:
- TopicSavedEvent: After a topic (and, if recursive, its descendants) is saved
- TopicMovedEvent: When a topic is moved to a new parent or position
- TopicRenamedEvent: When a saved topic's key differs from its persisted key
- TopicDeletedEvent: When a topic is deleted

Events carry the affected topic alongside plain identifiers so subscribers
can serialize them with to_dict().
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class TopicSavedEvent:
    """Event emitted when a topic is saved."""
    topic: Any
    is_recursive: bool = False
    was_new: bool = False
    timestamp: datetime = field(default_factory=datetime.now)
    event_type: str = "topic.saved"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "event_type": self.event_type,
            "topic_id": self.topic.id,
            "unique_key": self.topic.get_unique_key(),
            "is_recursive": self.is_recursive,
            "was_new": self.was_new,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


@dataclass
class TopicMovedEvent:
    """Event emitted when a topic is moved."""
    topic: Any
    target: Any
    sibling: Optional[Any] = None
    previous_parent: Optional[Any] = None
    timestamp: datetime = field(default_factory=datetime.now)
    event_type: str = "topic.moved"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "event_type": self.event_type,
            "topic_id": self.topic.id,
            "unique_key": self.topic.get_unique_key(),
            "target": self.target.get_unique_key(),
            "sibling": self.sibling.key if self.sibling is not None else None,
            "previous_parent": self.previous_parent.get_unique_key() if self.previous_parent is not None else None,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


@dataclass
class TopicRenamedEvent:
    """Event emitted when a saved topic has been renamed."""
    topic: Any
    original_key: str
    key: str
    timestamp: datetime = field(default_factory=datetime.now)
    event_type: str = "topic.renamed"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "event_type": self.event_type,
            "topic_id": self.topic.id,
            "original_key": self.original_key,
            "key": self.key,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


@dataclass
class TopicDeletedEvent:
    """Event emitted when a topic is deleted."""
    topic: Any
    unique_key: str
    is_recursive: bool = False
    timestamp: datetime = field(default_factory=datetime.now)
    event_type: str = "topic.deleted"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "event_type": self.event_type,
            "topic_id": self.topic.id,
            "unique_key": self.unique_key,
            "is_recursive": self.is_recursive,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


__all__ = [
    "TopicSavedEvent",
    "TopicMovedEvent",
    "TopicRenamedEvent",
    "TopicDeletedEvent",
]
