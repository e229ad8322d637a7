# backend/utils/locks.py
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List


# Registry of named locks. Mutations of one item code (or one exchange
# queue entry) run under the lock for that key, so a sufficiency check and
# the deduction that follows cannot interleave with another request.
# Operations that rewrite every row at once (sync, restore) take
# `hold_all`, which waits for all keyed holders and blocks new ones.
class KeyedLock:
    def __init__(self):
        self._guard = threading.Condition()
        # key -> [lock, number of holders and waiters]
        self._locks: Dict[str, List] = {}
        self._holders = 0
        self._exclusive = False
        self._exclusive_waiting = 0

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def _checkout(self, key: str) -> threading.Lock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.Lock(), 0]
            entry[1] += 1
            return entry[0]

    # Entries are dropped once nobody holds or waits for them
    def _checkin(self, key: str) -> None:
        with self._guard:
            entry = self._locks[key]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, *keys: str) -> Iterator[None]:
        # Not reentrant: a holder must not call hold() or hold_all() again
        with self._guard:
            while self._exclusive or self._exclusive_waiting:
                self._guard.wait()
            self._holders += 1

        # Sorted acquisition keeps two multi-key holders from deadlocking
        acquired = []
        try:
            for key in sorted(set(keys)):
                lock = self._checkout(key)
                try:
                    lock.acquire()
                except BaseException:
                    self._checkin(key)
                    raise
                acquired.append((key, lock))
            yield
        finally:
            for key, lock in reversed(acquired):
                lock.release()
                self._checkin(key)
            with self._guard:
                self._holders -= 1
                if self._holders == 0:
                    self._guard.notify_all()

    @contextmanager
    def hold_all(self) -> Iterator[None]:
        with self._guard:
            self._exclusive_waiting += 1
            try:
                while self._exclusive or self._holders:
                    self._guard.wait()
            finally:
                self._exclusive_waiting -= 1
                self._guard.notify_all()
            self._exclusive = True
        try:
            yield
        finally:
            with self._guard:
                self._exclusive = False
                self._guard.notify_all()


def item_key(code: str) -> str:
    return f"item:{code}"


def exchange_key(exchange_id: int) -> str:
    return f"exchange:{exchange_id}"
