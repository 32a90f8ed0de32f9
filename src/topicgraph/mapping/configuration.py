"""
Mapping descriptors built once per model type.

get_type_mapping() inspects a model class (a dataclass, or any class with
annotations) and classifies each property into a PropertyKind. The result is
memoised per (type, attribute prefix), so mapping services never introspect
a type twice.
"""

import dataclasses
import inspect
import logging
import re
import typing
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from threading import Lock
from typing import Any, Dict, List, Optional, Tuple

from .annotations import DEFAULT_OPTIONS, MAPPING_OPTIONS, CollectionType, MappingOptions

logger = logging.getLogger(__name__)

SCALAR_TYPES = (str, int, float, bool, datetime, date, Decimal)


class PropertyKind(Enum):
    SCALAR = "scalar"
    LIST = "list"
    PARENT = "parent"
    REFERENCE = "reference"
    MAP_TO_PARENT = "map_to_parent"
    TOPIC = "topic"


def pascal_case(name: str) -> str:
    """meta_title -> MetaTitle"""
    return "".join(part[:1].upper() + part[1:] for part in name.split("_") if part)


def snake_case(name: str) -> str:
    """MetaTitle -> meta_title"""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


@dataclass(frozen=True)
class PropertyConfiguration:
    """How a single model property maps to a topic."""
    name: str
    kind: PropertyKind
    attribute_key: str
    member_name: str
    value_type: Any
    item_type: Any = None
    list_type: Any = None
    collection_key: str = ""
    collection_type: CollectionType = CollectionType.ANY
    attribute_prefix: str = ""
    options: MappingOptions = DEFAULT_OPTIONS

    def satisfies_attribute_filters(self, topic) -> bool:
        return all(
            (topic.attributes.get_value(key, "") or "").lower() == value.lower()
            for key, value in self.options.attribute_filters
        )


@dataclass(frozen=True)
class TypeMapping:
    """Every mapped property of a model type."""
    type: type
    attribute_prefix: str
    properties: Tuple[PropertyConfiguration, ...]


_type_mappings: Dict[Tuple[type, str], TypeMapping] = {}
_type_mappings_lock = Lock()


def get_type_mapping(model_type: type, attribute_prefix: Optional[str] = None) -> TypeMapping:
    """
    Return the memoised TypeMapping for a model type.

    Args:
        model_type: A dataclass or annotated class
        attribute_prefix: Prefix applied to attribute keys (map_to_parent)
    """
    key = (model_type, attribute_prefix or "")
    mapping = _type_mappings.get(key)
    if mapping is None:
        mapping = _build_type_mapping(model_type, attribute_prefix or "")
        with _type_mappings_lock:
            mapping = _type_mappings.setdefault(key, mapping)
    return mapping


def _build_type_mapping(model_type: type, attribute_prefix: str) -> TypeMapping:
    hints = typing.get_type_hints(model_type)

    if dataclasses.is_dataclass(model_type):
        members = [
            (field.name, field.metadata.get(MAPPING_OPTIONS, DEFAULT_OPTIONS))
            for field in dataclasses.fields(model_type)
        ]
    else:
        members = [(name, DEFAULT_OPTIONS) for name in hints]

    properties: List[PropertyConfiguration] = []
    for name, options in members:
        if name.startswith("_") or options.disable:
            continue
        hint = hints.get(name, Any)
        if typing.get_origin(hint) is typing.ClassVar:
            continue
        properties.append(_configure_property(name, hint, options, attribute_prefix))

    logger.debug(f"Built mapping for {model_type.__name__} with {len(properties)} properties")
    return TypeMapping(model_type, attribute_prefix, tuple(properties))


def _configure_property(name: str, hint: Any, options: MappingOptions, attribute_prefix: str) -> PropertyConfiguration:
    from ..topic import Topic

    attribute_key = attribute_prefix + (options.attribute_key or pascal_case(name))
    collection_key = options.collection_key or attribute_key
    collection_type = options.collection_type
    if collection_key.lower() == "children":
        collection_type = CollectionType.CHILDREN

    value_type = unwrap_optional(hint)
    item_type, list_type = get_list_types(value_type)

    if options.map_to_parent:
        kind = PropertyKind.MAP_TO_PARENT
    elif list_type is not None:
        kind = PropertyKind.LIST
    elif value_type is Any or (inspect.isclass(value_type) and issubclass(value_type, SCALAR_TYPES + (Enum,))):
        kind = PropertyKind.SCALAR
    elif attribute_key == "Parent":
        kind = PropertyKind.PARENT
    elif inspect.isclass(value_type) and issubclass(value_type, Topic):
        kind = PropertyKind.TOPIC
    else:
        kind = PropertyKind.REFERENCE

    return PropertyConfiguration(
        name=name,
        kind=kind,
        attribute_key=attribute_key,
        member_name=snake_case(attribute_key),
        value_type=value_type,
        item_type=item_type,
        list_type=list_type,
        collection_key=collection_key,
        collection_type=collection_type,
        attribute_prefix=attribute_prefix + (options.attribute_prefix or pascal_case(name)),
        options=options,
    )


def unwrap_optional(hint: Any) -> Any:
    """Optional[X] -> X"""
    if typing.get_origin(hint) is typing.Union:
        args = [arg for arg in typing.get_args(hint) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return hint


def get_list_types(hint: Any) -> Tuple[Any, Any]:
    """
    Return (item type, list type) for list-like hints, or (None, None).

    List[X] and Sequence[X] produce a plain list; list subclasses are
    instantiated as themselves and may declare their item type as item_type.
    """
    origin = typing.get_origin(hint)
    if origin is not None:
        if inspect.isclass(origin) and issubclass(origin, list):
            args = typing.get_args(hint)
            return (args[0] if args else Any), origin
        if origin in (typing.Sequence, typing.MutableSequence) or getattr(origin, "__name__", "") in (
            "Sequence", "MutableSequence"
        ):
            args = typing.get_args(hint)
            return (args[0] if args else Any), list
        return None, None
    if inspect.isclass(hint) and issubclass(hint, list):
        return getattr(hint, "item_type", Any), hint
    return None, None


__all__ = [
    "SCALAR_TYPES",
    "PropertyKind",
    "PropertyConfiguration",
    "TypeMapping",
    "get_type_mapping",
    "pascal_case",
    "snake_case",
    "unwrap_optional",
    "get_list_types",
]
