"""
Base collection for dirty-tracked records.

TrackedRecordCollection stores immutable TrackedRecord values keyed
case-insensitively and enforces the dirty-tracking rules shared by attributes
and references:

- Topics that have never been saved keep every record dirty
- An explicit mark_dirty argument always wins
- Writing an unchanged value never dirties the record
- Setting a missing or empty value removes the record and remembers the key
  in deleted_items so storage can delete it
- Values are inherited through the topic's base topic (bounded by
  max_inheritance_hops) and, optionally, its parent
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, TYPE_CHECKING

from ..factory import validate_key
from ..records import TrackedRecord

if TYPE_CHECKING:
    from ..topic import Topic

logger = logging.getLogger(__name__)


class TrackedRecordCollection:
    """
    Keyed collection of TrackedRecords owned by a topic.

    Subclasses set record_type, implement _collection_for() to locate the
    equivalent collection on another topic (used for inheritance) and may map
    keys to topic properties in business_logic_setters so that writes through
    the collection run the same validation as the property setters.
    """

    record_type = TrackedRecord
    business_logic_setters: Dict[str, str] = {}
    max_inheritance_hops = 5

    def __init__(self, topic: "Topic"):
        self._topic = topic
        self._records: Dict[str, TrackedRecord] = {}
        self.deleted_items: List[str] = []

    @property
    def topic(self) -> "Topic":
        return self._topic

    # Collection protocol

    def __contains__(self, key: str) -> bool:
        return key is not None and key.lower() in self._records

    def __getitem__(self, key: str) -> TrackedRecord:
        return self._records[key.lower()]

    def __iter__(self) -> Iterator[TrackedRecord]:
        return iter(list(self._records.values()))

    def __len__(self) -> int:
        return len(self._records)

    def get(self, key: str) -> Optional[TrackedRecord]:
        return self._records.get(key.lower())

    def keys(self) -> List[str]:
        return [record.key for record in self._records.values()]

    def add(self, record: TrackedRecord) -> None:
        """
        Add a record.

        Raises:
            ValueError: If a record with the same key exists
        """
        if record.key in self:
            raise ValueError(f"The collection already contains a record with the key '{record.key}'.")
        self._insert(record)

    def remove(self, key: str) -> bool:
        """Remove a record, tracking the deletion. Returns False if absent."""
        record = self._records.pop(key.lower(), None)
        if record is None:
            return False
        if not self._topic.is_new:
            self.deleted_items.append(record.key)
        self._on_removed(record)
        return True

    def clear(self) -> None:
        for key in self.keys():
            self.remove(key)

    # Values

    def get_value(
        self,
        key: str,
        default: Any = None,
        inherit_from_parent: bool = False,
        inherit_from_base: bool = True,
        max_hops: Optional[int] = None,
    ) -> Any:
        """
        Get the value for a key, following inheritance.

        Args:
            key: The record key
            default: Returned when no value can be found
            inherit_from_parent: Fall back to the parent topic's collection
            inherit_from_base: Fall back to the base topic's collection
            max_hops: Base topics to follow; defaults to max_inheritance_hops

        Returns:
            The value; empty strings are treated as missing
        """
        validate_key(key)
        limit = self.max_inheritance_hops if max_hops is None else max_hops
        value = self._get_value(key, inherit_from_parent, inherit_from_base, 0, limit)
        return default if self._is_empty(value) else value

    def _get_value(self, key: str, inherit_from_parent: bool, inherit_from_base: bool, hops: int, limit: int) -> Any:
        record = self.get(key)
        value = record.value if record is not None else None

        if self._is_empty(value) and inherit_from_base and hops < limit:
            base_topic = self._topic.base_topic
            if base_topic is not None:
                value = self._collection_for(base_topic)._get_value(key, False, True, hops + 1, limit)
        elif self._is_empty(value) and inherit_from_base and self._topic.base_topic is not None:
            logger.warning(
                f"Stopped resolving '{key}' on '{self._topic.get_unique_key()}' after "
                f"{limit} base topics"
            )

        if self._is_empty(value) and inherit_from_parent and self._topic.parent is not None:
            value = self._collection_for(self._topic.parent)._get_value(key, True, inherit_from_base, 0, limit)

        return value

    def set_value(
        self,
        key: str,
        value: Any,
        mark_dirty: Optional[bool] = None,
        version: Optional[datetime] = None,
        enforce_business_logic: bool = True,
    ) -> None:
        """
        Set a value, replacing (never mutating) any existing record.

        Args:
            key: The record key
            value: The new value; None or "" removes the record
            mark_dirty: Force the dirty state; by default the record is dirty
                only when the value changed
            version: Timestamp to record; defaults to now
            enforce_business_logic: Route keys backed by topic properties
                through the property setter
        """
        validate_key(key)

        if enforce_business_logic and mark_dirty is None and version is None:
            property_name = self.business_logic_setters.get(key.lower())
            if property_name is not None:
                setattr(self._topic, property_name, value)
                return

        if self._is_empty(value):
            value = None

        original = self.get(key)

        if original is not None:
            if self._topic.is_new:
                is_dirty = True
            elif mark_dirty is not None:
                is_dirty = mark_dirty
            elif original.value != value:
                is_dirty = True
            elif version is None:
                return
            else:
                is_dirty = original.is_dirty

            if value is None:
                self.remove(key)
                return

            updated = replace(
                original,
                value=value,
                is_dirty=is_dirty,
                last_modified=version or datetime.now(),
            )
            self._replace(original, updated)
        elif value is None:
            return
        else:
            self._insert(self._create_record(
                key,
                value,
                True if mark_dirty is None else mark_dirty,
                version or datetime.now(),
            ))

    # Dirty tracking

    def is_dirty(self, key: Optional[str] = None) -> bool:
        """Whether a key (or, with no key, the collection) has unsaved changes."""
        if key is not None:
            record = self.get(key)
            return record is not None and record.is_dirty
        return bool(self.deleted_items) or any(record.is_dirty for record in self._records.values())

    def mark_clean(self, version: Optional[datetime] = None) -> None:
        """
        Mark every record clean.

        No-op on unsaved topics; records that must stay dirty (see
        _allow_clean) are left alone.
        """
        if self._topic.is_new:
            return
        for record in self:
            if record.is_dirty:
                self.mark_clean_key(record.key, version)
        self.deleted_items.clear()

    def mark_clean_key(self, key: str, version: Optional[datetime] = None) -> None:
        if self._topic.is_new:
            return
        record = self.get(key)
        if record is None or not record.is_dirty or not self._allow_clean(record):
            return
        self._records[key.lower()] = replace(
            record,
            is_dirty=False,
            last_modified=version or record.last_modified,
        )

    # Hooks

    def _create_record(self, key: str, value: Any, is_dirty: bool, last_modified: datetime) -> TrackedRecord:
        return self.record_type(key=key, value=value, is_dirty=is_dirty, last_modified=last_modified)

    def _collection_for(self, topic: "Topic") -> "TrackedRecordCollection":
        raise NotImplementedError

    def _allow_clean(self, record: TrackedRecord) -> bool:
        return not self._topic.is_new

    def _on_inserted(self, record: TrackedRecord) -> None:
        pass

    def _on_replaced(self, original: TrackedRecord, record: TrackedRecord) -> None:
        pass

    def _on_removed(self, record: TrackedRecord) -> None:
        pass

    def _insert(self, record: TrackedRecord) -> None:
        if not record.is_dirty and not self._allow_clean(record):
            record = replace(record, is_dirty=True)
        self._records[record.key.lower()] = record
        self.deleted_items = [key for key in self.deleted_items if key.lower() != record.key.lower()]
        self._on_inserted(record)

    def _replace(self, original: TrackedRecord, record: TrackedRecord) -> None:
        if not record.is_dirty and not self._allow_clean(record):
            record = replace(record, is_dirty=True)
        self._records[record.key.lower()] = record
        self._on_replaced(original, record)

    @staticmethod
    def _is_empty(value: Any) -> bool:
        return value is None or value == ""


__all__ = ["TrackedRecordCollection"]
