"""
Topic graphs as plain data, YAML and JSON.

A serialized topic is a nested dict:

    key: Web
    content_type: Page
    id: 2
    attributes: {Title: Web}
    relationships: {Related: ["Root:Web:About"]}
    references: {BaseTopic: "Root:Web:Template"}
    children: [...]

Relationships and references are written as unique keys and resolved after
the whole tree has been built, so they may point anywhere in the file.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from .factory import TopicFactory
from .querying import find_all, get_by_unique_key
from .topic import CORE_ATTRIBUTE_KEYS, Topic

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")
JSON_SUFFIXES = (".json",)


def topic_to_dict(topic: Topic) -> Dict[str, Any]:
    """
    Serialize a topic and its descendants.

    Args:
        topic: The topic to serialize

    Returns:
        A dict of plain values; empty sections are omitted
    """
    data: Dict[str, Any] = {"key": topic.key, "content_type": topic.content_type}
    if not topic.is_new:
        data["id"] = topic.id

    attributes = {
        record.key: record.value
        for record in topic.attributes
        if record.key not in CORE_ATTRIBUTE_KEYS and record.value is not None
    }
    if attributes:
        data["attributes"] = attributes

    relationships = {
        key: [related.get_unique_key() for related in topics]
        for key, topics in topic.relationships.items()
        if topics
    }
    if relationships:
        data["relationships"] = relationships

    references = {
        record.key: record.value.get_unique_key()
        for record in topic.references
        if record.value is not None
    }
    if references:
        data["references"] = references

    children = [topic_to_dict(child) for child in topic.children]
    if children:
        data["children"] = children

    return data


def topic_from_dict(data: Dict[str, Any], parent: Optional[Topic] = None) -> Topic:
    """
    Build a topic graph from its dict form.

    Topics with an id are loaded clean, as if read from storage. Associations
    whose targets aren't in the graph are dropped and the collection is
    flagged as not fully loaded.

    Raises:
        ValueError: If a topic lacks a key or content type
        InvalidKeyError: If a key is malformed
    """
    pending: List[Tuple[Topic, Dict[str, Any]]] = []
    topic = _build_topic(data, parent, pending)

    root = topic if parent is None else parent
    for source, source_data in pending:
        _resolve_associations(source, source_data, root)

    return topic


def _build_topic(data: Dict[str, Any], parent: Optional[Topic], pending: List[Tuple[Topic, Dict[str, Any]]]) -> Topic:
    if not isinstance(data, dict) or not data.get("key") or not data.get("content_type"):
        raise ValueError(f"Every topic requires a key and a content_type; got {data!r}")

    topic = TopicFactory.create(data["key"], data["content_type"], parent, data.get("id", -1))
    mark_dirty = None if topic.is_new else False

    for key, value in (data.get("attributes") or {}).items():
        if key in CORE_ATTRIBUTE_KEYS:
            continue
        topic.attributes.set_value(key, _attribute_value(value), mark_dirty, enforce_business_logic=False)

    if data.get("relationships") or data.get("references"):
        pending.append((topic, data))

    for child_data in data.get("children") or []:
        _build_topic(child_data, topic, pending)

    return topic


def _resolve_associations(topic: Topic, data: Dict[str, Any], root: Topic) -> None:
    mark_dirty = None if topic.is_new else False

    for key, unique_keys in (data.get("relationships") or {}).items():
        for unique_key in unique_keys or []:
            related = get_by_unique_key(root, unique_key)
            if related is None:
                logger.warning(f"Relationship {key} of {topic.get_unique_key()} points to missing topic {unique_key}")
                topic.relationships.is_fully_loaded = False
                continue
            topic.relationships.set_topic(key, related, mark_dirty)

    for key, unique_key in (data.get("references") or {}).items():
        referenced = get_by_unique_key(root, unique_key) if unique_key else None
        if referenced is None:
            logger.warning(f"Reference {key} of {topic.get_unique_key()} points to missing topic {unique_key}")
            topic.references.is_fully_loaded = False
            continue
        topic.references.set_value(key, referenced, mark_dirty, enforce_business_logic=False)


def _attribute_value(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "1" if value else "0"
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def load_topics(path: Union[str, Path]) -> Topic:
    """
    Read a topic graph from a .yaml, .yml or .json file.

    Raises:
        ValueError: If the file type isn't supported or the file is empty
        yaml.YAMLError, json.JSONDecodeError: If the file can't be parsed
    """
    path = Path(path)
    suffix = path.suffix.lower()
    with open(path, "r", encoding="utf-8") as f:
        if suffix in YAML_SUFFIXES:
            data = yaml.safe_load(f)
        elif suffix in JSON_SUFFIXES:
            data = json.load(f)
        else:
            raise ValueError(f"Unsupported topic file type '{suffix}'; use YAML or JSON")

    if not data:
        raise ValueError(f"{path} doesn't contain a topic")

    root = topic_from_dict(data)
    logger.debug(f"Loaded {len(find_all(root))} topics from {path}")
    return root


def dump_topics(topic: Topic, path: Union[str, Path]) -> None:
    """
    Write a topic graph to a .yaml, .yml or .json file.

    Raises:
        ValueError: If the suffix isn't a YAML or JSON one; no file is created
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in YAML_SUFFIXES and suffix not in JSON_SUFFIXES:
        raise ValueError(f"Unsupported topic file type '{suffix}'; use YAML or JSON")
    data = topic_to_dict(topic)
    with open(path, "w", encoding="utf-8") as f:
        if suffix in YAML_SUFFIXES:
            yaml.dump(data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)
        else:
            json.dump(data, f, indent=2, ensure_ascii=False)
    logger.debug(f"Wrote {topic.get_unique_key()} to {path}")


__all__ = ["topic_to_dict", "topic_from_dict", "load_topics", "dump_topics"]
