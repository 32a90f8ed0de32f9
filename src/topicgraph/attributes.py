"""
Attribute values for topics.

Attributes are string values stored as AttributeRecords. Typed helpers convert
to and from booleans ("1"/"0"), integers and datetimes (ISO 8601).
"""

import logging
from datetime import datetime
from typing import Any, Optional, TYPE_CHECKING

from .collections.tracked import TrackedRecordCollection
from .records import AttributeRecord

if TYPE_CHECKING:
    from .topic import Topic

logger = logging.getLogger(__name__)

TRUE_VALUES = ("1", "true", "yes")
FALSE_VALUES = ("0", "false", "no")


class AttributeCollection(TrackedRecordCollection):
    """The attribute values of a topic."""

    record_type = AttributeRecord
    business_logic_setters = {
        "key": "key",
        "contenttype": "content_type",
        "view": "view",
    }

    def set_value(
        self,
        key: str,
        value: Any,
        mark_dirty: Optional[bool] = None,
        version: Optional[datetime] = None,
        enforce_business_logic: bool = True,
    ) -> None:
        if value is not None and not isinstance(value, str):
            value = str(value)
        super().set_value(key, value, mark_dirty, version, enforce_business_logic)

    def is_dirty(self, key: Optional[str] = None, exclude_last_modified: bool = False) -> bool:
        """
        Whether a key (or the collection) has unsaved changes.

        Args:
            key: Optional attribute key to check
            exclude_last_modified: Ignore attributes whose key starts with
                "LastModified", which storage updates on every save
        """
        if key is not None or not exclude_last_modified:
            return super().is_dirty(key)
        if self.deleted_items:
            return True
        return any(
            record.is_dirty and not record.key.lower().startswith("lastmodified")
            for record in self
        )

    # Typed accessors

    def get_boolean(
        self,
        key: str,
        default: bool = False,
        inherit_from_parent: bool = False,
        inherit_from_base: bool = True,
    ) -> bool:
        value = self.get_value(key, None, inherit_from_parent, inherit_from_base)
        if value is None:
            return default
        if value.lower() in TRUE_VALUES:
            return True
        if value.lower() in FALSE_VALUES:
            return False
        return default

    def get_integer(
        self,
        key: str,
        default: int = 0,
        inherit_from_parent: bool = False,
        inherit_from_base: bool = True,
    ) -> int:
        value = self.get_value(key, None, inherit_from_parent, inherit_from_base)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            logger.warning(f"Attribute '{key}' value '{value}' is not an integer")
            return default

    def get_datetime(
        self,
        key: str,
        default: Optional[datetime] = None,
        inherit_from_parent: bool = False,
        inherit_from_base: bool = True,
    ) -> Optional[datetime]:
        value = self.get_value(key, None, inherit_from_parent, inherit_from_base)
        if value is None:
            return default
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            logger.warning(f"Attribute '{key}' value '{value}' is not a date")
            return default

    def set_boolean(self, key: str, value: Optional[bool], mark_dirty: Optional[bool] = None) -> None:
        self.set_value(key, None if value is None else ("1" if value else "0"), mark_dirty)

    def set_integer(self, key: str, value: Optional[int], mark_dirty: Optional[bool] = None) -> None:
        self.set_value(key, None if value is None else str(value), mark_dirty)

    def set_datetime(self, key: str, value: Optional[datetime], mark_dirty: Optional[bool] = None) -> None:
        self.set_value(key, None if value is None else value.isoformat(), mark_dirty)

    def _collection_for(self, topic: "Topic") -> "AttributeCollection":
        return topic.attributes


__all__ = ["AttributeCollection", "TRUE_VALUES", "FALSE_VALUES"]
