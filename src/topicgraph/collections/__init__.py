"""Collections backing topic attributes, associations and children."""

from .dirty_keys import DirtyKeyCollection
from .tracked import TrackedRecordCollection
from .keyed import KeyedTopicCollection, ChildTopicCollection
from .multimap import TopicMultiMap

__all__ = [
    "DirtyKeyCollection",
    "TrackedRecordCollection",
    "KeyedTopicCollection",
    "ChildTopicCollection",
    "TopicMultiMap",
]
