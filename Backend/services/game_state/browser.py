# services/game_state/browser.py
"""
Minimal browsing-context model the game state runs on.

A BrowserContext is one origin: it owns the local-storage area shared by all
of its windows (optionally backed by a JSON file so it survives restarts) and
the cookie jar behind `document.cookie`. Each Window is a tab with its own
`Storage` views and event listeners. Writing through one window's storage
dispatches a `storage` event to every *other* window of the same context,
the way browsers notify sibling tabs.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from http.cookies import CookieError, SimpleCookie
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
import json
import logging
import time

logger = logging.getLogger(__name__)

EventHandler = Callable[[Any], None]


@dataclass
class StorageEvent:
    key: Optional[str]
    old_value: Optional[str]
    new_value: Optional[str]
    storage_area: Optional["Storage"]
    url: str = ""


class StorageArea:
    """Key/value text store shared by every window of a context."""

    def __init__(self, path: Optional[Path] = None):
        self._path = Path(path) if path else None
        self._items: Dict[str, str] = {}
        if self._path and self._path.exists():
            try:
                data = json.loads(self._path.read_text(encoding="utf-8"))
                self._items = {str(k): str(v) for k, v in data.items()}
            except (OSError, ValueError, AttributeError):
                logger.warning("Ignoring unreadable storage file %s", self._path)

    def get(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def put(self, key: str, value: str) -> None:
        self._items[key] = value
        self._flush()

    def delete(self, key: str) -> None:
        self._items.pop(key, None)
        self._flush()

    def clear(self) -> None:
        self._items.clear()
        self._flush()

    def keys(self) -> List[str]:
        return list(self._items)

    def _flush(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(self._items), encoding="utf-8")


class Storage:
    """One window's view of a StorageArea (`window.localStorage`)."""

    def __init__(self, area: StorageArea, window: "Window", broadcast: bool = True):
        self._area = area
        self._window = window
        self._broadcast = broadcast

    @property
    def length(self) -> int:
        return len(self._area.keys())

    def key(self, index: int) -> Optional[str]:
        keys = self._area.keys()
        return keys[index] if 0 <= index < len(keys) else None

    def get_item(self, key: str) -> Optional[str]:
        return self._area.get(key)

    def set_item(self, key: str, value: str) -> None:
        old = self._area.get(key)
        value = str(value)
        self._area.put(key, value)
        if old != value:
            self._notify(key, old, value)

    def remove_item(self, key: str) -> None:
        old = self._area.get(key)
        if old is None:
            return
        self._area.delete(key)
        self._notify(key, old, None)

    def clear(self) -> None:
        if not self._area.keys():
            return
        self._area.clear()
        self._notify(None, None, None)

    def _notify(self, key, old, new) -> None:
        if self._broadcast:
            self._window.context._broadcast_storage(self._window, key, old, new)


class CookieJar:
    """Cookie store for one origin with max-age / expires handling."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._cookies: Dict[str, Dict[str, Any]] = {}

    def header(self) -> str:
        """What `document.cookie` reads: live cookies as `name=value; ...`."""
        now = self._clock()
        live = []
        for name, entry in list(self._cookies.items()):
            expires_at = entry.get("expires_at")
            if expires_at is not None and expires_at <= now:
                del self._cookies[name]
                continue
            live.append(f"{name}={entry['value']}")
        return "; ".join(live)

    def assign(self, cookie_string: str) -> None:
        """What assigning `document.cookie = ...` does: set or expire one cookie."""
        parsed = SimpleCookie()
        try:
            parsed.load(cookie_string)
        except CookieError:
            logger.warning("Rejected malformed cookie assignment")
            return

        for name, morsel in parsed.items():
            expires_at = None
            max_age = morsel["max-age"]
            if max_age != "":
                try:
                    expires_at = self._clock() + int(max_age)
                except ValueError:
                    expires_at = None
            elif morsel["expires"]:
                try:
                    expires_at = parsedate_to_datetime(morsel["expires"]).timestamp()
                except (TypeError, ValueError):
                    expires_at = None

            if expires_at is not None and expires_at <= self._clock():
                self._cookies.pop(name, None)
                continue

            self._cookies[name] = {
                "value": morsel.value,
                "expires_at": expires_at,
                "path": morsel["path"] or "/",
            }


class Document:
    def __init__(self, jar: CookieJar):
        self._jar = jar

    @property
    def cookie(self) -> str:
        return self._jar.header()

    @cookie.setter
    def cookie(self, value: str) -> None:
        self._jar.assign(value)


class Window:
    """A tab: storage views, `document.cookie` and event listeners."""

    def __init__(self, context: "BrowserContext"):
        self.context = context
        self.local_storage = Storage(context.local_area, self)
        # sessionStorage is per tab, so writes never reach sibling windows
        self.session_storage = Storage(StorageArea(), self, broadcast=False)
        self.document = Document(context.cookies)
        self._listeners: Dict[str, List[EventHandler]] = {}

    def add_event_listener(self, event_type: str, handler: EventHandler) -> None:
        handlers = self._listeners.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)

    def remove_event_listener(self, event_type: str, handler: EventHandler) -> None:
        handlers = self._listeners.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def listener_count(self, event_type: str) -> int:
        return len(self._listeners.get(event_type, []))

    def dispatch_event(self, event_type: str, event: Any) -> None:
        for handler in list(self._listeners.get(event_type, [])):
            try:
                handler(event)
            except Exception:
                logger.exception("Unhandled error in %s listener", event_type)

    def close(self) -> None:
        self._listeners.clear()
        self.context._windows.discard(self)


class BrowserContext:
    """One origin: shared local storage, cookies, and the open windows."""

    def __init__(
        self,
        origin: str = "http://localhost",
        storage_path: Optional[Path] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.origin = origin
        self.local_area = StorageArea(storage_path)
        self.cookies = CookieJar(clock)
        self._windows = set()

    def open_window(self) -> Window:
        window = Window(self)
        self._windows.add(window)
        return window

    def _broadcast_storage(self, source: Window, key, old, new) -> None:
        for window in list(self._windows):
            if window is source:
                continue
            event = StorageEvent(
                key=key,
                old_value=old,
                new_value=new,
                storage_area=window.local_storage,
                url=self.origin,
            )
            window.dispatch_event("storage", event)


def http_date(value: datetime) -> str:
    """Format an absolute expiry the way `Date.toUTCString()` does."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%a, %d %b %Y %H:%M:%S GMT")
