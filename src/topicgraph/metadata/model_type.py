"""How an attribute's value is stored on a topic."""

from enum import IntEnum


class ModelType(IntEnum):
    """
    The storage model of an attribute, as declared by its descriptor.

    SCALAR_VALUE attributes live in the attribute collection, RELATIONSHIP in
    the relationships map, REFERENCE in the references collection and
    NESTED_TOPIC as children of a hidden List container named after the key.
    """
    SCALAR_VALUE = 1
    RELATIONSHIP = 2
    REFERENCE = 3
    NESTED_TOPIC = 4


__all__ = ["ModelType"]
