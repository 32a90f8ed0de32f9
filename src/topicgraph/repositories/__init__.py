"""Topic repositories: orchestration base class and the in-memory implementation."""

from .base import TopicRepositoryBase
from .memory import MemoryTopicRepository

__all__ = ["TopicRepositoryBase", "MemoryTopicRepository"]
