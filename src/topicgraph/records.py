"""
Immutable tracked records.

Records are never mutated: collections swap in a new record built with
dataclasses.replace() and decide whether that replacement is dirty.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, TYPE_CHECKING

from .factory import validate_key

if TYPE_CHECKING:
    from .topic import Topic


@dataclass(frozen=True)
class TrackedRecord:
    """A keyed value with dirty state and a last-modified timestamp."""
    key: str
    value: Any = None
    is_dirty: bool = True
    last_modified: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        validate_key(self.key)


@dataclass(frozen=True)
class AttributeRecord(TrackedRecord):
    """
    An attribute value.

    is_extended_attribute records whether storage keeps the value in the
    indexed or the extended store; None means it has not been determined.
    """
    value: Optional[str] = None
    is_extended_attribute: Optional[bool] = None


@dataclass(frozen=True)
class TopicReferenceRecord(TrackedRecord):
    """A single-valued pointer to another topic."""
    value: Optional["Topic"] = None


__all__ = ["TrackedRecord", "AttributeRecord", "TopicReferenceRecord"]
