# /classgrader/services/id_allocator.py

"""
Key minting for new classes, students and activities.

`PushIdAllocator` produces Firebase-style push IDs: 8 characters encoding the
millisecond timestamp followed by 12 random characters, all drawn from a
64-character alphabet whose ASCII order matches its numeric order. Keys are
therefore time-ordered, and two keys minted by one allocator in the same
millisecond differ by an increment of the random tail, so they stay strictly
increasing. Minting reserves nothing in the store.
"""

import secrets
import threading
import time
from typing import Callable, List, Optional

from ..core.errors import KeyAllocationError
from .database_helpers.tree_paths import validate_key

PUSH_CHARS = "-0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ_abcdefghijklmnopqrstuvwxyz"


class PushIdAllocator:
    def __init__(self, clock: Optional[Callable[[], int]] = None):
        self._clock = clock or (lambda: int(time.time() * 1000))
        self._lock = threading.Lock()
        self._last_push_time = 0
        self._last_rand_chars: List[int] = [0] * 12

    def allocate(self, scope_hint: Optional[str] = None) -> str:
        """
        Mints a new key. `scope_hint` names the target collection; push IDs
        are unique across collections, so it is accepted for interface parity
        with allocators that do need it.
        """
        with self._lock:
            now = self._clock()
            duplicate_time = now == self._last_push_time
            self._last_push_time = now

            time_chars = [""] * 8
            for i in range(7, -1, -1):
                time_chars[i] = PUSH_CHARS[now % 64]
                now //= 64
            if now != 0:
                raise KeyAllocationError("Clock value is too large to encode in a push ID.")

            if not duplicate_time:
                self._last_rand_chars = [secrets.randbelow(64) for _ in range(12)]
            else:
                # Same millisecond: increment the random tail by one.
                i = 11
                while i >= 0 and self._last_rand_chars[i] == 63:
                    self._last_rand_chars[i] = 0
                    i -= 1
                if i < 0:
                    raise KeyAllocationError("Push ID namespace exhausted for this millisecond.")
                self._last_rand_chars[i] += 1

            return "".join(time_chars) + "".join(PUSH_CHARS[c] for c in self._last_rand_chars)


def choose_student_key(external_id: Optional[str], allocator) -> str:
    """
    The key-selection rule for student records: the external student ID when
    one is present, otherwise a freshly minted key.
    """
    candidate = (external_id or "").strip()
    if candidate:
        return validate_key(candidate)
    key = allocator.allocate("students")
    if not key:
        raise KeyAllocationError("Could not generate a student ID.")
    return key
