# services/game_state/persistent_state.py
"""
Reactive, persistent key/value state.

PersistentState mirrors a fixed set of configured keys into durable storage
and keeps one monotonic `version` counter. Every successful write, local or
observed from another tab, bumps the counter by exactly one and notifies
subscribers. Invalidation is per store, not per key: any change re-runs
every reader.

Object values are handed out as StateDict / StateList wrappers. Writing
through a wrapper at any depth re-serializes and rewrites the whole owning
top-level value.
"""

from __future__ import annotations
from contextvars import ContextVar
from typing import Any, Callable, Dict, Iterator, List, Optional
from collections.abc import MutableMapping, MutableSequence
import asyncio
import copy
import json
import logging

from .browser import StorageEvent, Window
from .storage import BackingKind, DurableKeyStore, StorageConfig

logger = logging.getLogger(__name__)

Subscriber = Callable[[int], None]

# Stores read by the running watcher, with their version at first read
_active_reads: ContextVar[Optional[dict]] = ContextVar("_active_reads", default=None)


def json_key(key: Any) -> str:
    """Object key as JSON text will store it (7 -> "7", True -> "true")."""
    return key if isinstance(key, str) else json.dumps(key)


def to_plain(value: Any) -> Any:
    """Detached deep copy with every wrapper replaced by plain dicts/lists and string keys."""
    if isinstance(value, (StateDict, StateList)):
        return copy.deepcopy(value._target)
    if isinstance(value, dict):
        return {json_key(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    return value


class _Nested:
    __slots__ = ("_state", "_key", "_root", "_target")

    def __init__(self, state: "PersistentState", key: str, root: Any, target: Any):
        self._state = state
        self._key = key
        self._root = root
        self._target = target

    def _wrap(self, value: Any) -> Any:
        return self._state._wrap(self._key, self._root, value)

    def _commit(self) -> None:
        self._state.set(self._key, self._root)

    def to_plain(self) -> Any:
        return copy.deepcopy(self._target)

    def __repr__(self):
        return f"{type(self).__name__}({self._target!r})"


class StateDict(_Nested, MutableMapping):
    """Dict view over a stored object; writes persist the owning key."""

    def __getitem__(self, name):
        self._state._touch()
        return self._wrap(self._target[json_key(name)])

    def __setitem__(self, name, value):
        self._target[json_key(name)] = to_plain(value)
        self._commit()

    def __delitem__(self, name):
        del self._target[json_key(name)]
        self._commit()

    def __iter__(self) -> Iterator:
        self._state._touch()
        return iter(list(self._target))

    def __len__(self) -> int:
        self._state._touch()
        return len(self._target)

    def __contains__(self, name) -> bool:
        self._state._touch()
        return json_key(name) in self._target

    def update(self, *args, **kwargs):
        """Apply every change, then persist once."""
        self._target.update(to_plain(dict(*args, **kwargs)))
        self._commit()


class StateList(_Nested, MutableSequence):
    """List view over a stored array; writes persist the owning key."""

    def __getitem__(self, index):
        self._state._touch()
        return self._wrap(self._target[index])

    def __setitem__(self, index, value):
        self._target[index] = to_plain(value)
        self._commit()

    def __delitem__(self, index):
        del self._target[index]
        self._commit()

    def __len__(self) -> int:
        self._state._touch()
        return len(self._target)

    def insert(self, index, value):
        self._target.insert(index, to_plain(value))
        self._commit()

    def __eq__(self, other):
        if isinstance(other, StateList):
            other = other._target
        return self._target == other


class PersistentState:
    def __init__(self, config: StorageConfig, window: Optional[Window] = None):
        self._store = DurableKeyStore(config, window)
        self._version = 0
        self._listeners = 0
        self._subscribers: Dict[int, Subscriber] = {}
        self._next_token = 0

    # ------------------------------------------------------------------
    # Reads / writes
    # ------------------------------------------------------------------

    @property
    def version(self) -> int:
        return self._touch()

    @property
    def keys(self) -> List[str]:
        return list(self._store.config)

    @property
    def listening(self) -> bool:
        return self._listeners > 0

    def _touch(self) -> int:
        reads = _active_reads.get()
        if reads is not None:
            reads.setdefault(self, self._version)
        return self._version

    def _wrap(self, key: str, root: Any, value: Any) -> Any:
        if isinstance(value, dict):
            return StateDict(self, key, root, value)
        if isinstance(value, list):
            return StateList(self, key, root, value)
        return value

    def get(self, key: str) -> Any:
        """Current value for a configured key (default if nothing stored)."""
        self._touch()
        if key not in self._store.config:
            return None
        value = self._store.read_or_default(key)
        return self._wrap(key, value, value)

    def set(self, key: str, value: Any) -> bool:
        """Replace a key's value wholesale. False if unconfigured or not persisted."""
        if not self._store.write(key, to_plain(value)):
            return False
        self._bump()
        return True

    def __getitem__(self, key: str) -> Any:
        return self.get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __contains__(self, key: str) -> bool:
        return key in self._store.config

    def _bump(self) -> None:
        self._version += 1
        for callback in list(self._subscribers.values()):
            try:
                callback(self._version)
            except Exception:
                logger.exception("State subscriber failed")

    # ------------------------------------------------------------------
    # Cross-tab synchronization
    # ------------------------------------------------------------------

    def _storage_handler(self, event: StorageEvent) -> None:
        window = self._store.window
        if window is None or event.storage_area is not window.local_storage:
            return
        if self._store.kind_of(event.key) is BackingKind.LOCAL_STORAGE:
            self._bump()

    def _acquire(self) -> None:
        window = self._store.window
        if self._listeners == 0 and window is not None:
            window.add_event_listener("storage", self._storage_handler)
        self._listeners += 1

    def _release(self) -> None:
        # Deferred one loop turn so an immediate resubscribe keeps the listener
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._finish_release()
            return
        loop.call_soon(self._finish_release)

    def _finish_release(self) -> None:
        if self._listeners == 0:
            return
        self._listeners -= 1
        window = self._store.window
        if self._listeners == 0 and window is not None:
            window.remove_event_listener("storage", self._storage_handler)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Call `callback(version)` after every change. Returns an unsubscribe
        function; calling it more than once is harmless.

        The storage listener is released one event-loop turn after the last
        unsubscribe. With no running loop there is no next turn, so it is
        released immediately.
        """
        token = self._next_token
        self._next_token += 1
        self._subscribers[token] = callback
        self._acquire()

        def unsubscribe() -> None:
            if self._subscribers.pop(token, None) is not None:
                self._release()

        return unsubscribe


class Watcher:
    """Re-runs a function whenever any state it read changes."""

    # Bound on back-to-back re-runs for a function that keeps changing what it reads
    MAX_RERUNS = 100

    def __init__(self, fn: Callable[[], Any]):
        self._fn = fn
        self._unsubscribers: List[Callable[[], None]] = []
        self._running = False
        self._stopped = False
        self.value = None
        self.runs = 0
        self._run()

    def _run(self, _version: int = 0) -> None:
        if self._stopped or self._running:
            return
        self._running = True
        try:
            for _ in range(self.MAX_RERUNS):
                reads = self._run_once()
                # Done once nothing it read was written during the run
                if not any(store._version != seen for store, seen in reads.items()):
                    break
            else:
                logger.warning("Watcher still changing its own inputs after %d runs", self.MAX_RERUNS)
        finally:
            self._running = False
        if not self._stopped:
            self._resubscribe(reads)

    def _run_once(self) -> dict:
        reads: dict = {}
        token = _active_reads.set(reads)
        try:
            self.value = self._fn()
            self.runs += 1
        finally:
            _active_reads.reset(token)
        return reads

    def _resubscribe(self, stores) -> None:
        old = self._unsubscribers
        # Subscribe before releasing so the storage listener survives the swap
        self._unsubscribers = [store.subscribe(self._run) for store in stores]
        for unsubscribe in old:
            unsubscribe()

    def stop(self) -> None:
        self._stopped = True
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []


def watch(fn: Callable[[], Any]) -> Watcher:
    return Watcher(fn)
