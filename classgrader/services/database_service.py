# /classgrader/services/database_service.py

"""
The hierarchical store facade used by every service module.

`DatabaseService` exposes the tree with the familiar realtime-database verbs:
`get`, `set` (replace a subtree), `update` (atomic multi-path write), `remove`,
`push_key` (mint a child key) and `listen` (value listeners). Each write runs
in exactly one database transaction; listeners are notified only after the
commit, with a fresh snapshot of the path they watch, so a subscriber can
never observe half of a multi-path write.
"""

import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.errors import KeyAllocationError, StoreError
from ..core.logging_config import get_logger, log_with_context
from ..db.database import SessionLocal
from .database_helpers.tree_paths import ancestor_paths, inflate, join_path, paths_overlap, split_path
from .database_helpers.tree_repository_sql import TreeRepositorySQL
from .id_allocator import PushIdAllocator

logger = get_logger("store")


class ListenerHandle:
    """Returned by `DatabaseService.listen`; `cancel()` stops all further callbacks."""

    def __init__(self, service: "DatabaseService", path: str, callback: Callable[[Any], None]):
        self.path = path
        self._service = service
        self._callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        self._service._remove_listener(self)

    def _deliver(self, snapshot: Any) -> None:
        if self._active:
            self._callback(snapshot)


class DatabaseService:
    def __init__(self, session_factory: Callable[[], Session] = None, allocator=None):
        self._session_factory = session_factory or SessionLocal
        self.allocator = allocator or PushIdAllocator()
        self._listeners: List[ListenerHandle] = []
        # Guards the listener registry and serialises write + notify.
        self._lock = threading.RLock()

    @contextmanager
    def _transaction(self) -> Iterator[TreeRepositorySQL]:
        session = self._session_factory()
        try:
            yield TreeRepositorySQL(session)
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            log_with_context(logger, "ERROR", f"Store transaction failed: {e}")
            raise StoreError(str(e)) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # --- Reads ---

    def get(self, path: str) -> Any:
        """The value at `path` (a nested dict or a scalar), or None when nothing is stored there."""
        normalized = join_path(path)
        with self._transaction() as repo:
            return inflate(repo.get_leaves(normalized), normalized)

    def exists(self, path: str) -> bool:
        normalized = join_path(path)
        with self._transaction() as repo:
            return repo.has_subtree(normalized)

    # --- Writes ---

    def set(self, path: str, value: Any) -> None:
        """Replaces everything at `path` with `value`."""
        normalized = join_path(path)
        with self._lock:
            with self._transaction() as repo:
                repo.replace_subtree(normalized, value)
            self._notify([normalized])

    def update(self, path: str, changes: Dict[str, Any]) -> None:
        """
        Atomically sets every `relative_path: value` pair under `path`.

        A value of None removes that child. The relative paths may be nested
        ("students/s1/name") but must not overlap one another.
        """
        if not changes:
            return
        base = join_path(path)
        targets = {join_path(base, relative): value for relative, value in changes.items()}
        for target in targets:
            for ancestor in ancestor_paths(target):
                if ancestor in targets:
                    raise ValueError(f"Update paths overlap: '{ancestor}' and '{target}'.")
        with self._lock:
            with self._transaction() as repo:
                for target, value in targets.items():
                    repo.replace_subtree(target, value)
            self._notify(list(targets))

    def remove(self, path: str) -> None:
        self.set(path, None)

    @contextmanager
    def serialized(self) -> Iterator["DatabaseService"]:
        """
        Holds the write lock for a read-then-write sequence. Writes issued
        inside the block (from this thread) proceed; every other writer waits
        until the block exits, so nothing can land between the read and the
        commit built from it.
        """
        with self._lock:
            yield self

    def push_key(self, path: str) -> str:
        """Mints a key for a new child of `path` without writing anything."""
        split_path(path)
        key = self.allocator.allocate(path)
        if not key:
            raise KeyAllocationError(f"Could not generate a key under '{path}'.")
        return key

    # --- Listeners ---

    def listen(self, path: str, callback: Callable[[Any], None]) -> ListenerHandle:
        """
        Registers a value listener. The callback receives the current value
        right away and again after every committed write touching `path`.
        """
        handle = ListenerHandle(self, join_path(path), callback)
        with self._lock:
            self._listeners.append(handle)
            handle._deliver(self.get(handle.path))
        return handle

    def _remove_listener(self, handle: ListenerHandle) -> None:
        with self._lock:
            handle._active = False
            if handle in self._listeners:
                self._listeners.remove(handle)

    def _notify(self, changed_paths: List[str]) -> None:
        affected = [
            handle for handle in list(self._listeners)
            if any(paths_overlap(handle.path, changed) for changed in changed_paths)
        ]
        for handle in affected:
            if not handle.active:
                continue
            snapshot = self.get(handle.path)
            try:
                handle._deliver(snapshot)
            except Exception:
                # The write is already committed; report and move on.
                logger.exception("Listener callback failed for path '%s'", handle.path)


# --- Dependency Provider ---

_db_service: Optional[DatabaseService] = None


def get_db_service() -> DatabaseService:
    """
    FastAPI dependency that provides the process-wide DatabaseService.
    One instance is shared because live listeners outlive single requests.
    """
    global _db_service
    if _db_service is None:
        _db_service = DatabaseService()
    return _db_service
