"""
Stock view models.

TopicViewModel carries the core topic properties; content-type specific view
models derive from it and are found by name ("Page" maps to
PageTopicViewModel). create_view_model_lookup() returns a lookup service
holding all of them, optionally layered under application view models,
ready to pass to TopicMappingService.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from .exceptions import DuplicateKeyError
from .lookup import CompositeTypeLookupService, TypeLookupService
from .mapping.annotations import CollectionType, mapped


@dataclass(eq=False)
class TopicViewModel:
    """Core properties shared by every topic."""
    id: int = -1
    key: str = ""
    content_type: str = ""
    unique_key: str = ""
    web_path: str = ""
    title: Optional[str] = None
    view: Optional[str] = None
    is_hidden: bool = False
    last_modified: Optional[datetime] = None
    parent: Optional["TopicViewModel"] = None


class TopicViewModelCollection(list):
    """
    A list of view models with unique keys.

    append() raises DuplicateKeyError for a key that's already present, which
    the mapping service treats as a skipped item.
    """

    item_type = TopicViewModel

    def append(self, item: TopicViewModel) -> None:
        if item.key and self.get(item.key) is not None:
            raise DuplicateKeyError(f"The collection already contains a view model with the key '{item.key}'.")
        super().append(item)

    def get(self, key: str) -> Optional[TopicViewModel]:
        for item in self:
            if item.key.lower() == key.lower():
                return item
        return None

    def get_by_content_type(self, content_type: str) -> List[TopicViewModel]:
        return [item for item in self if item.content_type.lower() == content_type.lower()]


@dataclass(eq=False)
class PageTopicViewModel(TopicViewModel):
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    short_title: Optional[str] = None
    body: Optional[str] = None
    children: TopicViewModelCollection = mapped(default_factory=TopicViewModelCollection)


@dataclass(eq=False)
class ContentItemTopicViewModel(TopicViewModel):
    description: Optional[str] = None
    learn_more_url: Optional[str] = None
    thumbnail_image: Optional[str] = None
    category: Optional[str] = None


@dataclass(eq=False)
class ContentListTopicViewModel(PageTopicViewModel):
    """A page with a nested list of content items."""
    content_items: List[ContentItemTopicViewModel] = mapped(
        default_factory=list,
        collection_type=CollectionType.NESTED_TOPICS,
    )


@dataclass(eq=False)
class NavigationTopicViewModel(TopicViewModel):
    """A node in a navigation tree built by HierarchicalTopicMappingService."""
    short_title: Optional[str] = None
    children: List["NavigationTopicViewModel"] = mapped(default_factory=list)

    def is_selected(self, unique_key: str) -> bool:
        """Whether unique_key is this topic or one of its descendants."""
        return f"{unique_key}:".lower().startswith(f"{self.unique_key}:".lower())


STOCK_VIEW_MODELS = [
    TopicViewModel,
    PageTopicViewModel,
    ContentItemTopicViewModel,
    ContentListTopicViewModel,
]


def create_view_model_lookup(*view_models: type) -> TypeLookupService:
    """
    A lookup service holding the stock view models.

    Args:
        *view_models: Application view models; these win over stock ones for
            the same content type
    """
    stock = TypeLookupService(STOCK_VIEW_MODELS)
    if not view_models:
        return stock
    return CompositeTypeLookupService([TypeLookupService(view_models), stock])


__all__ = [
    "TopicViewModel",
    "TopicViewModelCollection",
    "PageTopicViewModel",
    "ContentItemTopicViewModel",
    "ContentListTopicViewModel",
    "NavigationTopicViewModel",
    "STOCK_VIEW_MODELS",
    "create_view_model_lookup",
]
