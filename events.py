"""In-process publish/subscribe bus for change notifications.

Services publish after a mutation commits. Subscribers (CLI watchers, UI
sessions) get every event on the topics they subscribe to and decide for
themselves which categories they care about. Events say "something changed,
re-read it"; they are never the source of truth.
"""

import queue
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from logger import get_logger

logger = get_logger()

EXPENSE_UPDATES_TOPIC = "expense_updates"

EXPENSE_CREATED = "expense_created"
EXPENSE_UPDATED = "expense_updated"
EXPENSE_DELETED = "expense_deleted"
CATEGORY_CREATED = "category_created"
CATEGORY_UPDATED = "category_updated"
CATEGORY_DELETED = "category_deleted"


@dataclass(frozen=True)
class Event:
    """A committed change.

    Attributes:
        name: Event name, e.g. "expense_created".
        payload: The entity as committed (Expense or Category).
        category_id: Category affected, so subscribers can filter.
        previous_category_id: Category the expense moved out of, if it moved.
        occurred_at: When the event was published (UTC).
    """

    name: str
    payload: Any
    category_id: Optional[str] = None
    previous_category_id: Optional[str] = None
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def affects(self, category_id: str) -> bool:
        return category_id in (self.category_id, self.previous_category_id)


class Subscription:
    """Handle returned by EventBus.subscribe.

    Without a handler, events are buffered and read with get() or drain().
    With a handler, it is called in the publishing thread.
    """

    def __init__(self, bus: "EventBus", topic: str, handler: Optional[Callable] = None):
        self.bus = bus
        self.topic = topic
        self.handler = handler
        self.active = True
        self._queue: "queue.Queue[Event]" = queue.Queue()

    def deliver(self, event: Event) -> None:
        if not self.active:
            return
        if self.handler is None:
            self._queue.put(event)
            return
        try:
            self.handler(event)
        except Exception:
            logger.exception(
                f"Subscriber on '{self.topic}' failed handling {event.name}"
            )

    def get(self, timeout: Optional[float] = None) -> Optional[Event]:
        """Wait for the next buffered event. Returns None on timeout."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> List[Event]:
        """Return all buffered events without waiting."""
        events = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                return events

    def cancel(self) -> None:
        """Stop receiving events."""
        self.bus.unsubscribe(self)


class EventBus:
    """Topic-keyed fan-out, best effort and at most once per subscriber."""

    def __init__(self):
        self._subscriptions: Dict[str, List[Subscription]] = {}
        self._lock = threading.Lock()
        self.closed = False

    def subscribe(self, topic: str, handler: Optional[Callable] = None) -> Subscription:
        """Register interest in a topic.

        Args:
            topic: Topic name, usually EXPENSE_UPDATES_TOPIC.
            handler: Optional callable invoked with each Event.

        Returns:
            Subscription handle; call cancel() when the session ends.
        """
        subscription = Subscription(self, topic, handler)
        with self._lock:
            if self.closed:
                raise RuntimeError("Event bus is closed")
            self._subscriptions.setdefault(topic, []).append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            subscription.active = False
            subscribers = self._subscriptions.get(subscription.topic, [])
            if subscription in subscribers:
                subscribers.remove(subscription)

    def publish(self, topic: str, event: Event) -> int:
        """Deliver event to every current subscriber of topic.

        Returns:
            Number of subscribers the event was handed to.
        """
        with self._lock:
            subscribers = list(self._subscriptions.get(topic, []))

        for subscription in subscribers:
            subscription.deliver(event)

        logger.debug(f"Published {event.name} on '{topic}' to {len(subscribers)} subscriber(s)")
        return len(subscribers)

    def subscriber_count(self, topic: str) -> int:
        with self._lock:
            return len(self._subscriptions.get(topic, []))

    def close(self) -> None:
        """Cancel all subscriptions. Publishing afterwards is a no-op."""
        with self._lock:
            self.closed = True
            for subscribers in self._subscriptions.values():
                for subscription in subscribers:
                    subscription.active = False
            self._subscriptions.clear()
