"""
Depth-limited mapping of topic trees, e.g. for navigation.

HierarchicalTopicMappingService maps a topic and a bounded number of tiers of
its visible descendants onto a view model type that has a children list.
Associations aren't mapped, so each node is cheap.

Usage:
    hierarchy = HierarchicalTopicMappingService(repository, mapping_service)
    root = hierarchy.get_hierarchical_root(current_topic)
    navigation = await hierarchy.get_view_model(root, tiers=2)
"""

import asyncio
import logging
from typing import Any, Callable, Optional

from ..repositories.base import TopicRepositoryBase
from ..topic import Topic
from .annotations import AssociationTypes
from .service import TopicMappingService

logger = logging.getLogger(__name__)


class HierarchicalTopicMappingService:
    """
    Maps a topic and its descendants, a limited number of tiers deep.

    Args:
        repository: Resolves the default root when there is no current topic
        mapping_service: Maps each topic
        view_model_type: A type with a children list; defaults to
            NavigationTopicViewModel
    """

    def __init__(
        self,
        repository: TopicRepositoryBase,
        mapping_service: TopicMappingService,
        view_model_type: Optional[type] = None,
    ):
        if view_model_type is None:
            from ..view_models import NavigationTopicViewModel
            view_model_type = NavigationTopicViewModel
        self.repository = repository
        self.mapping_service = mapping_service
        self.view_model_type = view_model_type

    def get_hierarchical_root(
        self,
        topic: Optional[Topic] = None,
        from_root: int = 2,
        default_root: str = "Web",
    ) -> Topic:
        """
        Find the ancestor of a topic at a fixed depth.

        Args:
            topic: The current topic; None starts from default_root
            from_root: Depth of the ancestor to return, where the root is 1
            default_root: Unique key loaded when topic is None

        Returns:
            The ancestor from_root tiers down, or the topic itself when it's
            shallower than that

        Raises:
            ValueError: If topic is None and default_root is empty or can't
                be loaded
        """
        if topic is None:
            if not default_root:
                raise ValueError("The current topic is missing and no default root was given.")
            topic = self.repository.load(default_root)
            if topic is None:
                raise ValueError(f"Neither the current topic nor the default root '{default_root}' could be found.")

        while topic.parent is not None and _distance_from_root(topic) > from_root:
            topic = topic.parent
        return topic

    async def get_view_model(
        self,
        topic: Optional[Topic],
        tiers: int = 1,
        validate: Optional[Callable[[Topic], bool]] = None,
    ) -> Any:
        """
        Map a topic and its visible descendants.

        Args:
            topic: The topic to start from
            tiers: How many tiers of descendants to include; 0 maps the topic alone
            validate: Children for which this returns False are left out,
                along with their descendants

        Returns:
            The view model with children populated in source order, or None if
            topic is None
        """
        if topic is None:
            return None

        view_model = await self.mapping_service.map_as(topic, self.view_model_type, AssociationTypes.NONE)
        if tiers <= 0 or view_model.children:
            return view_model

        candidates = [
            child for child in topic.children
            if child.is_visible() and (validate is None or validate(child))
        ]
        children = await asyncio.gather(*(
            self.get_view_model(child, tiers - 1, validate) for child in candidates
        ))
        view_model.children.extend(child for child in children if child is not None)

        logger.debug(f"Mapped {len(children)} children of {topic.get_unique_key()} ({tiers} tiers left)")
        return view_model


def _distance_from_root(topic: Topic) -> int:
    distance = 1
    while topic.parent is not None:
        topic = topic.parent
        distance += 1
    return distance


__all__ = ["HierarchicalTopicMappingService"]
