"""
Type lookup by name.

Both the topic factory and the mapping services resolve classes from
content type names. A TypeLookupService is a registry of classes keyed
(case-insensitively) by their __name__.
"""

import logging
from typing import Dict, Iterable, Optional, List

logger = logging.getLogger(__name__)


class TypeLookupService:
    """Registry resolving a type from one of several candidate names."""

    def __init__(self, types: Optional[Iterable[type]] = None):
        self._types: Dict[str, type] = {}
        for type_ in types or []:
            self.add(type_)

    def add(self, type_: type) -> None:
        """
        Register a type under its class name.

        Raises:
            ValueError: If a type with the same name is already registered
        """
        name = type_.__name__.lower()
        if name in self._types:
            raise ValueError(f"A type named '{type_.__name__}' is already registered.")
        self._types[name] = type_

    def try_add(self, type_: type) -> bool:
        """Register a type unless the name is taken. Returns True if added."""
        if type_.__name__.lower() in self._types:
            return False
        self._types[type_.__name__.lower()] = type_
        return True

    def add_or_replace(self, type_: type) -> None:
        self._types[type_.__name__.lower()] = type_

    def remove(self, name: str) -> bool:
        return self._types.pop(name.lower(), None) is not None

    def lookup(self, *type_names: str) -> Optional[type]:
        """
        Resolve the first registered type among the candidate names.

        Args:
            *type_names: Candidate names, in order of preference

        Returns:
            The matching type, or None
        """
        for name in type_names:
            if not name:
                continue
            type_ = self._types.get(name.lower())
            if type_ is not None:
                return type_
        logger.debug(f"No type registered for {', '.join(n for n in type_names if n)}")
        return None

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._types

    def __len__(self) -> int:
        return len(self._types)

    def __iter__(self):
        return iter(self._types.values())


class CompositeTypeLookupService(TypeLookupService):
    """Queries several lookup services in order, returning the first match."""

    def __init__(self, services: Iterable[TypeLookupService]):
        super().__init__()
        self._services: List[TypeLookupService] = list(services)

    def lookup(self, *type_names: str) -> Optional[type]:
        for service in self._services:
            type_ = service.lookup(*type_names)
            if type_ is not None:
                return type_
        return super().lookup(*type_names)

    def __contains__(self, name: str) -> bool:
        return any(name in service for service in self._services) or super().__contains__(name)


__all__ = ["TypeLookupService", "CompositeTypeLookupService"]
