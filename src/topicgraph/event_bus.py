"""
EventBus for in-process pub/sub of topic lifecycle events.

Provides thread-safe event subscription and publishing. Each repository owns
a bus and publishes saved, moved, renamed and deleted events on it; storage
layers and caches subscribe to react to changes in the graph.

Usage:
    bus = EventBus()

    # Subscribe to specific event types
    bus.subscribe('topic.renamed', lambda event: print(f"{event.original_key} -> {event.key}"))

    # Subscribe to all events
    bus.subscribe('*', lambda event: log_event(event))

    # Publish events
    from topicgraph.events import TopicDeletedEvent
    bus.publish(TopicDeletedEvent(topic=topic, unique_key=topic.get_unique_key()))
"""

from typing import Callable, Dict, List, Any, Optional
from threading import Lock
import logging

logger = logging.getLogger(__name__)


class EventBus:
    """
    Thread-safe in-process event bus for pub/sub.

    Supports:
    - subscribe(event_type, callback): Register callbacks for specific event types
    - publish(event): Emit events to all matching subscribers
    - Wildcard subscription: subscribe('*', callback) receives all events
    """

    def __init__(self):
        """Initialize empty event bus with thread safety."""
        self._subscribers: Dict[str, List[Callable[[Any], None]]] = {}
        self._lock = Lock()

    def subscribe(self, event_type: str, callback: Callable[[Any], None]) -> None:
        """
        Subscribe to events of a specific type.

        Args:
            event_type: Event type to listen for (e.g., 'topic.moved')
                       Use '*' to subscribe to all event types
            callback: Function called with event object when event occurs
                     Signature: callback(event) -> None
        """
        with self._lock:
            self._subscribers.setdefault(event_type, []).append(callback)
            logger.debug(f"Subscribed to {event_type}: {getattr(callback, '__name__', 'lambda')}")

    def unsubscribe(self, event_type: str, callback: Callable[[Any], None]) -> bool:
        """
        Unsubscribe a callback from an event type.

        Returns:
            True if callback was found and removed, False otherwise
        """
        with self._lock:
            callbacks = self._subscribers.get(event_type)
            if callbacks and callback in callbacks:
                callbacks.remove(callback)
                if not callbacks:
                    del self._subscribers[event_type]
                logger.debug(f"Unsubscribed from {event_type}")
                return True
        return False

    def publish(self, event: Any) -> None:
        """
        Publish an event to all matching subscribers.

        Notifies subscribers to the specific event type, then wildcard ('*')
        subscribers. Exceptions raised by a subscriber are logged and don't
        reach the publisher or other subscribers.

        Args:
            event: Event object (must have 'event_type' attribute)
        """
        if not hasattr(event, 'event_type'):
            logger.warning(f"Event missing 'event_type' attribute: {type(event).__name__}")
            return

        event_type = event.event_type

        # Copy so callbacks run without holding the lock
        with self._lock:
            specific_subscribers = self._subscribers.get(event_type, []).copy()
            wildcard_subscribers = self._subscribers.get('*', []).copy()

        for callback in specific_subscribers + wildcard_subscribers:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Error in subscriber callback for {event_type}: {e}", exc_info=True)

        logger.debug(f"Published {event_type} to {len(specific_subscribers) + len(wildcard_subscribers)} subscribers")

    def clear(self) -> None:
        """Clear all subscriptions."""
        with self._lock:
            self._subscribers.clear()
            logger.debug("Cleared all subscriptions")

    def subscriber_count(self, event_type: Optional[str] = None) -> int:
        """
        Get count of subscribers.

        Args:
            event_type: Optional event type to count. If None, returns total.
        """
        with self._lock:
            if event_type:
                return len(self._subscribers.get(event_type, []))
            return sum(len(subs) for subs in self._subscribers.values())


__all__ = ['EventBus']
