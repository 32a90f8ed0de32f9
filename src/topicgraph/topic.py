"""
The Topic entity.

A topic is a node in an ordered tree. It owns its attributes, outgoing and
incoming relationships, references and version history. Tree mutations go
through set_parent(), which enforces:

- A topic is never its own parent or ancestor
- Keys are unique (case-insensitively) among siblings
- parent.children holds exactly the topics whose parent is that topic
"""

import logging
from datetime import datetime
from typing import List, Optional

from .attributes import AttributeCollection
from .associations.references import TopicReferenceCollection
from .associations.relationships import TopicRelationshipMultiMap
from .collections.keyed import ChildTopicCollection
from .exceptions import (
    CyclicParentingError,
    DuplicateKeyError,
    IdentityError,
    SelfParentingError,
    TopicTreeError,
)
from .factory import validate_key

logger = logging.getLogger(__name__)

CORE_ATTRIBUTE_KEYS = ("Key", "ContentType", "ParentId")


class Topic:
    """
    A node in the topic graph.

    Topics created with an id are treated as loaded from storage: their core
    attributes (Key, ContentType, ParentId) start clean. Topics without an id
    are new and stay dirty until saved.
    """

    def __init__(self, key: str, content_type: str, parent: Optional["Topic"] = None, id: int = -1):
        validate_key(key)
        validate_key(content_type)

        self._id = -1
        self._key = key
        self._content_type = content_type
        self._original_key: Optional[str] = None
        self._parent: Optional[Topic] = None
        self._is_dirty = True

        self.children = ChildTopicCollection(self)
        self.attributes = AttributeCollection(self)
        self.relationships = TopicRelationshipMultiMap(self)
        self.incoming_relationships = TopicRelationshipMultiMap(self, is_incoming=True)
        self.references = TopicReferenceCollection(self)
        self.version_history: List[datetime] = []

        if id >= 0:
            self.id = id

        self.attributes.set_value("Key", key, enforce_business_logic=False)
        self.attributes.set_value("ContentType", content_type, enforce_business_logic=False)

        if parent is not None:
            self.set_parent(parent, parent.children.last())

        if id >= 0:
            for attribute_key in CORE_ATTRIBUTE_KEYS:
                self.attributes.mark_clean_key(attribute_key)
            self._is_dirty = False

    # Identity

    @property
    def id(self) -> int:
        return self._id

    @id.setter
    def id(self, value: int) -> None:
        if value < 0:
            raise ValueError(f"Topic ids must be non-negative; got {value}.")
        if self._id >= 0 and value != self._id:
            raise IdentityError(
                f"The topic '{self.get_unique_key()}' already has the id {self._id}; it cannot be changed to {value}."
            )
        self._id = value

    @property
    def is_new(self) -> bool:
        return self._id < 0

    @property
    def key(self) -> str:
        return self._key

    @key.setter
    def key(self, value: str) -> None:
        validate_key(value)
        if value == self._key:
            return
        if self._parent is not None:
            self._parent.children._change_key(self, value)
        if self._original_key is None and not self.is_new:
            self._original_key = self._key
        self._key = value
        self.attributes.set_value("Key", value, enforce_business_logic=False)
        self._mark_dirty()

    @property
    def original_key(self) -> Optional[str]:
        """The persisted key of a topic renamed since it was last saved."""
        return self._original_key

    @original_key.setter
    def original_key(self, value: Optional[str]) -> None:
        self._original_key = value

    @property
    def content_type(self) -> str:
        return self._content_type

    @content_type.setter
    def content_type(self, value: str) -> None:
        validate_key(value)
        if value == self._content_type:
            return
        self._content_type = value
        self.attributes.set_value("ContentType", value, enforce_business_logic=False)
        self._mark_dirty()

    # Tree

    @property
    def parent(self) -> Optional["Topic"]:
        return self._parent

    @parent.setter
    def parent(self, value: "Topic") -> None:
        if value is None:
            raise ValueError("A parent cannot be removed by assignment; use detach() instead.")
        if value is not self._parent:
            self.set_parent(value, value.children.last())

    def set_parent(self, parent: "Topic", sibling: Optional["Topic"] = None) -> None:
        """
        Move the topic under a parent, immediately after a sibling.

        Args:
            parent: The new parent
            sibling: The child of parent to insert after; None inserts first

        Raises:
            See validate_parent(). Nothing is changed when validation fails.
        """
        self.validate_parent(parent, sibling)

        if self._parent is not None:
            self._parent.children._remove(self)

        position = parent.children.index(sibling) + 1 if sibling is not None else 0
        parent.children._insert(position, self)

        if parent is not self._parent:
            self._parent = parent
            self.attributes.set_value("ParentId", str(parent.id), enforce_business_logic=False)
            self._mark_dirty()

    def validate_parent(self, parent: "Topic", sibling: Optional["Topic"] = None) -> None:
        """
        Check that set_parent(parent, sibling) would succeed.

        Raises:
            SelfParentingError: If parent is this topic
            CyclicParentingError: If parent's unique key starts with this
                topic's unique key
            DuplicateKeyError: If parent already has another child with this key
            ValueError: If parent is None, or sibling is this topic or isn't a
                child of parent
        """
        if parent is None:
            raise ValueError("A parent is required.")
        if parent is self:
            raise SelfParentingError(f"The topic '{self.get_unique_key()}' cannot be its own parent.")
        if parent.get_unique_key().lower().startswith(self.get_unique_key().lower()):
            raise CyclicParentingError(
                f"The topic '{self.get_unique_key()}' cannot be moved under its descendant "
                f"'{parent.get_unique_key()}'."
            )
        if parent is not self._parent and self._key in parent.children:
            raise DuplicateKeyError(
                f"The topic '{parent.get_unique_key()}' already has a child with the key '{self._key}'."
            )
        if sibling is self:
            raise ValueError(f"The topic '{self.get_unique_key()}' cannot be positioned relative to itself.")
        if sibling is not None and sibling not in parent.children:
            raise ValueError(
                f"The sibling '{sibling.get_unique_key()}' is not a child of '{parent.get_unique_key()}'."
            )

    def detach(self) -> None:
        """Remove the topic from its parent's children."""
        if self._parent is None:
            return
        self._parent.children._remove(self)
        self._parent = None

    def get_unique_key(self) -> str:
        """The colon-delimited keys from the root to this topic."""
        keys = []
        topic: Optional[Topic] = self
        while topic is not None:
            keys.append(topic.key)
            topic = topic.parent
        return ":".join(reversed(keys))

    def get_web_path(self) -> str:
        """The unique key as a root-relative path, e.g. Root:Web:About becomes /Web/About/."""
        unique_key = self.get_unique_key()
        if unique_key.startswith("Root:"):
            unique_key = "/" + unique_key[len("Root:"):]
        web_path = unique_key.replace(":", "/") + "/"
        if not web_path.startswith("/"):
            web_path = "/" + web_path
        return web_path

    # Attribute-backed conveniences

    @property
    def title(self) -> str:
        return self.attributes.get_value("Title", self._key)

    @title.setter
    def title(self, value: Optional[str]) -> None:
        self.attributes.set_value("Title", value)

    @property
    def description(self) -> Optional[str]:
        return self.attributes.get_value("Description")

    @description.setter
    def description(self, value: Optional[str]) -> None:
        self.attributes.set_value("Description", value)

    @property
    def view(self) -> Optional[str]:
        return self.attributes.get_value("View")

    @view.setter
    def view(self, value: Optional[str]) -> None:
        validate_key(value, is_optional=True)
        self.attributes.set_value("View", value, enforce_business_logic=False)

    @property
    def is_hidden(self) -> bool:
        return self.attributes.get_boolean("IsHidden")

    @is_hidden.setter
    def is_hidden(self, value: bool) -> None:
        self.attributes.set_boolean("IsHidden", value)

    @property
    def is_disabled(self) -> bool:
        return self.attributes.get_boolean("IsDisabled")

    @is_disabled.setter
    def is_disabled(self, value: bool) -> None:
        self.attributes.set_boolean("IsDisabled", value)

    @property
    def last_modified(self) -> Optional[datetime]:
        default = self.version_history[0] if self.version_history else None
        return self.attributes.get_datetime("LastModified", default)

    def is_visible(self, show_disabled: bool = False) -> bool:
        return not self.is_hidden and (show_disabled or not self.is_disabled)

    @property
    def base_topic(self) -> Optional["Topic"]:
        """The topic this one inherits attribute and reference values from."""
        record = self.references.get("BaseTopic")
        return record.value if record is not None else None

    @base_topic.setter
    def base_topic(self, value: Optional["Topic"]) -> None:
        if value is self:
            raise TopicTreeError(f"The topic '{self.get_unique_key()}' cannot derive from itself.")
        self.references.set_value("BaseTopic", value, enforce_business_logic=False)

    # Dirty tracking

    def is_dirty(self, check_collections: bool = False, exclude_last_modified: bool = False) -> bool:
        """
        Whether the topic has unsaved changes.

        Args:
            check_collections: Also check attributes, relationships and references
            exclude_last_modified: Ignore LastModified* attributes
        """
        if self._is_dirty:
            return True
        if not check_collections:
            return False
        return (
            self.attributes.is_dirty(exclude_last_modified=exclude_last_modified)
            or self.relationships.is_dirty()
            or self.references.is_dirty()
        )

    def mark_clean(self, include_collections: bool = False, version: Optional[datetime] = None) -> None:
        if self.is_new:
            return
        self._is_dirty = False
        if include_collections:
            self.attributes.mark_clean(version)
            self.relationships.mark_clean()
            self.references.mark_clean(version)

    def _mark_dirty(self) -> None:
        if not self.is_new:
            self._is_dirty = True

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.get_unique_key()} id={self._id}>"


__all__ = ["Topic", "CORE_ATTRIBUTE_KEYS"]
