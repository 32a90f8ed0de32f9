"""
Tree queries over topics.

All searches are depth-first and pre-order, starting with (and including) the
topic they're given.
"""

import logging
from typing import Callable, Iterable, List, Optional, TYPE_CHECKING

from .factory import validate_key

if TYPE_CHECKING:
    from .topic import Topic

logger = logging.getLogger(__name__)

CONTENT_TYPES_KEY = "Root:Configuration:ContentTypes"


def find_first(topic: "Topic", predicate: Callable[["Topic"], bool]) -> Optional["Topic"]:
    """Return the first topic in the subtree matching the predicate."""
    if predicate(topic):
        return topic
    for child in topic.children:
        result = find_first(child, predicate)
        if result is not None:
            return result
    return None


def find_all(topic: "Topic", predicate: Optional[Callable[["Topic"], bool]] = None) -> List["Topic"]:
    """Return every topic in the subtree matching the predicate (or every topic)."""
    results: List["Topic"] = []
    stack = [topic]
    while stack:
        current = stack.pop()
        if predicate is None or predicate(current):
            results.append(current)
        stack.extend(reversed(list(current.children)))
    return results


def find_all_by_attribute(topic: "Topic", key: str, value: str) -> List["Topic"]:
    """
    Return every topic in the subtree whose attribute contains a value.

    Args:
        topic: The topic to search from
        key: The attribute key
        value: Text to look for, case-insensitively

    Returns:
        Matching topics in depth-first order
    """
    validate_key(key)
    if not value:
        raise ValueError("A value to search for is required.")
    needle = value.lower()
    return find_all(
        topic,
        lambda t: needle in (t.attributes.get_value(key) or "").lower()
    )


def get_root_topic(topic: "Topic") -> "Topic":
    while topic.parent is not None:
        topic = topic.parent
    return topic


def get_by_unique_key(topic: "Topic", unique_key: str) -> Optional["Topic"]:
    """
    Locate a topic in the same tree by its unique key.

    The search starts from the root of topic's tree; the root's own key may be
    omitted from unique_key.
    """
    if not unique_key:
        raise ValueError("A unique key is required.")

    current: Optional["Topic"] = get_root_topic(topic)
    if current.key.lower() == unique_key.lower():
        return current

    prefix = current.key.lower() + ":"
    if unique_key.lower().startswith(prefix):
        unique_key = unique_key[len(prefix):]

    for key in filter(None, unique_key.split(":")):
        current = current.children.get(key)
        if current is None:
            return None
    return current


def any_new(topics: Iterable["Topic"]) -> bool:
    """Whether any of the topics has yet to be saved."""
    return any(topic.is_new for topic in topics)


__all__ = [
    "CONTENT_TYPES_KEY",
    "find_first",
    "find_all",
    "find_all_by_attribute",
    "get_root_topic",
    "get_by_unique_key",
    "any_new",
]
