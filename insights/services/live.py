"""Module views that refetch when their tables change."""

import logging
import threading
from typing import Callable, List, Optional, Union

from insights.core import ModuleKey
from insights.db import ChangeChannel, ChangeEvent, Subscription

from .fetcher import DataFetcher, FetchOptions, FetchResult

logger = logging.getLogger(__name__)


class LiveModuleView:
    """
    Keeps the latest FetchResult of one module current.

    Every change notification on a table the module reads triggers a full
    refetch; nothing is diffed. Refreshes are not cancelled, so a slow
    refresh that finishes after a newer one is dropped instead of
    overwriting it.
    """

    def __init__(
        self,
        fetcher: DataFetcher,
        channel: ChangeChannel,
        key: Union[ModuleKey, str],
        options: FetchOptions = None,
        on_update: Callable[[FetchResult], None] = None,
    ):
        self.fetcher = fetcher
        self.channel = channel
        self.descriptor = fetcher.registry.get_descriptor(key)
        self.options = options or FetchOptions()
        self.on_update = on_update
        self.result: Optional[FetchResult] = None
        self.refresh_count = 0
        self._subscriptions: List[Subscription] = []
        self._generation = 0
        self._applied = 0
        self._lock = threading.Lock()

    @property
    def tables(self) -> List[str]:
        if self.descriptor.synthetic:
            registry = self.fetcher.registry
            return [registry.get_descriptor(k).primary_table for k in registry.list_active_module_keys()]
        return self.descriptor.tables()

    @property
    def running(self) -> bool:
        return bool(self._subscriptions)

    def start(self) -> Optional[FetchResult]:
        """Subscribe to the module's tables and load the first result."""
        if self.running:
            return self.result

        for table in dict.fromkeys(self.tables):
            self._subscriptions.append(self.channel.subscribe(table, self._on_change))
        logger.info(f"Watching {len(self._subscriptions)} tables for {self.descriptor.key.value}")
        return self.refresh()

    def stop(self):
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []

    def refresh(self) -> Optional[FetchResult]:
        """Refetch and publish the result unless a newer refresh already landed."""
        with self._lock:
            self._generation += 1
            generation = self._generation

        result = self.fetcher.fetch(self.descriptor.key, self.options)

        with self._lock:
            if generation < self._applied:
                logger.debug(f"Dropping stale result for {self.descriptor.key.value}")
                return self.result
            self._applied = generation
            self.result = result
            self.refresh_count += 1

        if self.on_update is not None:
            self.on_update(result)
        return result

    def _on_change(self, event: ChangeEvent):
        logger.debug(f"{event.event_type} on {event.table}, refreshing {self.descriptor.key.value}")
        self.refresh()

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
