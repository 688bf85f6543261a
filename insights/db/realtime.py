"""Change notifications for store tables."""

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"
ALL_EVENTS = "*"

EVENT_TYPES = (INSERT, UPDATE, DELETE, ALL_EVENTS)


@dataclass(frozen=True)
class ChangeEvent:
    """A committed row change on one table."""
    table: str
    event_type: str
    count: int = 0


class Subscription:
    """Handle returned by ChangeChannel.subscribe()."""

    def __init__(self, channel: "ChangeChannel", table: str, event_type: str,
                 callback: Callable[[ChangeEvent], None]):
        self.channel = channel
        self.table = table
        self.event_type = event_type
        self.callback = callback
        self.active = True

    def matches(self, event: ChangeEvent) -> bool:
        return self.event_type in (ALL_EVENTS, event.event_type)

    def unsubscribe(self):
        """Stop receiving events. Safe to call more than once."""
        if self.active:
            self.channel._remove(self)
            self.active = False

    def __repr__(self):
        return f"<Subscription: {self.table} {self.event_type} (active={self.active})>"


class ChangeChannel:
    """Table-scoped publish/subscribe channel for row changes."""

    def __init__(self):
        self._subscriptions: Dict[str, List[Subscription]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, table: str, callback: Callable[[ChangeEvent], None],
                  event_type: str = ALL_EVENTS) -> Subscription:
        """
        Subscribe to changes on a table.

        Args:
            table: Table name
            callback: Called with the ChangeEvent after each matching change
            event_type: INSERT, UPDATE, DELETE or "*" for all

        Returns:
            Subscription handle
        """
        if event_type not in EVENT_TYPES:
            raise ValueError(f"Unknown event type: {event_type}")

        subscription = Subscription(self, table, event_type, callback)
        with self._lock:
            self._subscriptions[table].append(subscription)
        logger.debug(f"Subscribed to {event_type} on {table}")
        return subscription

    def publish(self, event: ChangeEvent) -> int:
        """
        Deliver an event to every matching subscriber.

        Returns:
            Number of subscribers notified
        """
        with self._lock:
            subscribers = [s for s in self._subscriptions.get(event.table, []) if s.matches(event)]

        for subscription in subscribers:
            try:
                subscription.callback(event)
            except Exception as e:
                logger.error(f"Change handler for {event.table} failed: {e}")

        return len(subscribers)

    def subscriber_count(self, table: str = None) -> int:
        with self._lock:
            if table is not None:
                return len(self._subscriptions.get(table, []))
            return sum(len(subs) for subs in self._subscriptions.values())

    def _remove(self, subscription: Subscription):
        with self._lock:
            subs = self._subscriptions.get(subscription.table, [])
            if subscription in subs:
                subs.remove(subscription)
            if not subs:
                self._subscriptions.pop(subscription.table, None)
