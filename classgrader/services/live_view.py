# /classgrader/services/live_view.py

"""
Live, list-shaped views over store subtrees.

A subscription re-materialises the complete collection on every change that
touches it (no diffing): each child key becomes an `id` field merged with the
child's payload, and activity lists are re-sorted newest first on every
emission. `Subscription.cancel()` is final; once it returns, the callback is
never invoked again.
"""

import asyncio
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

from ..core.clock import parse_iso
from ..core.logging_config import get_logger, log_with_context
from .class_helpers import paths
from .database_service import DatabaseService, ListenerHandle

logger = get_logger("live")

Snapshot = List[Dict[str, Any]]
Ordering = Callable[[Snapshot], Snapshot]


def materialize(data: Any) -> Snapshot:
    """Turns a keyed mapping into a list of `{"id": key, **payload}` dicts."""
    if not isinstance(data, dict):
        return []
    items = []
    for key, value in data.items():
        if isinstance(value, dict):
            items.append({"id": key, **value})
        else:
            items.append({"id": key, "value": value})
    return items


def sort_by_created_desc(items: Snapshot) -> Snapshot:
    return sorted(items, key=lambda item: parse_iso(item.get("createdAt")), reverse=True)


def sort_by_name(items: Snapshot) -> Snapshot:
    return sorted(items, key=lambda item: str(item.get("name", "")).lower())


class Subscription:
    """Handle for one live view; also usable as a context manager."""

    def __init__(self, handle: ListenerHandle):
        self._handle = handle

    @property
    def path(self) -> str:
        return self._handle.path

    @property
    def active(self) -> bool:
        return self._handle.active

    def cancel(self) -> None:
        if self._handle.active:
            self._handle.cancel()
            log_with_context(logger, "DEBUG", "Live view cancelled", context={"path": self.path})

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cancel()


class LiveViewProjector:
    def __init__(self, db: DatabaseService):
        self.db = db

    def subscribe(
        self, path: str, callback: Callable[[Snapshot], None], order: Optional[Ordering] = None
    ) -> Subscription:
        """Delivers the materialised collection at `path` now and after every change."""

        def on_value(data: Any) -> None:
            items = materialize(data)
            callback(order(items) if order else items)

        handle = self.db.listen(path, on_value)
        log_with_context(logger, "DEBUG", "Live view opened", context={"path": handle.path})
        return Subscription(handle)

    def watch_classes(self, professor_id: str, callback: Callable[[Snapshot], None]) -> Subscription:
        return self.subscribe(paths.classes_path(professor_id), callback, order=sort_by_created_desc)

    def watch_students(self, professor_id: str, class_id: str, callback: Callable[[Snapshot], None]) -> Subscription:
        return self.subscribe(paths.students_path(professor_id, class_id), callback, order=sort_by_name)

    def watch_activities(self, professor_id: str, class_id: str, callback: Callable[[Snapshot], None]) -> Subscription:
        return self.subscribe(paths.activities_path(professor_id, class_id), callback, order=sort_by_created_desc)

    async def stream(self, path: str, order: Optional[Ordering] = None) -> AsyncIterator[Snapshot]:
        """
        Exposes a subscription as an async iterator of snapshots. Closing the
        iterator cancels the underlying listener.
        """
        loop = asyncio.get_running_loop()
        queue: "asyncio.Queue[Snapshot]" = asyncio.Queue()

        def on_change(items: Snapshot) -> None:
            loop.call_soon_threadsafe(queue.put_nowait, items)

        subscription = self.subscribe(path, on_change, order=order)
        try:
            while True:
                yield await queue.get()
        finally:
            subscription.cancel()
