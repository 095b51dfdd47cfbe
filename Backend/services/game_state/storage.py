# services/game_state/storage.py
"""
Durable key store: uniform read/write over local storage and cookies.

Every configured key is backed by exactly one store. Values are JSON text;
cookies additionally URL-encode name and value. Without a window (server
rendering, scripts) reads fall back to the configured default and writes
are dropped.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote, unquote
import copy
import json
import logging

from .browser import Window, http_date

logger = logging.getLogger(__name__)


class BackingKind(str, Enum):
    LOCAL_STORAGE = "localStorage"
    COOKIE = "cookie"


class _Absent:
    def __repr__(self):
        return "ABSENT"

    def __bool__(self):
        return False


ABSENT = _Absent()

# Attributes a cookie assignment may carry; anything else is dropped
_COOKIE_ATTRIBUTES = {"max-age", "expires", "path", "domain", "secure", "samesite", "httponly"}


@dataclass(frozen=True)
class KeyConfig:
    kind: BackingKind
    default: Any = None
    options: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def local(cls, default: Any) -> "KeyConfig":
        return cls(BackingKind.LOCAL_STORAGE, default)

    @classmethod
    def cookie(cls, default: Any, **options) -> "KeyConfig":
        return cls(BackingKind.COOKIE, default, options)


StorageConfig = Mapping[str, KeyConfig]


def _attribute_name(option: str) -> str:
    name = option.replace("_", "-").lower()
    return "max-age" if name == "maxage" else name


def build_cookie(name: str, value: Any, options: Optional[Mapping[str, Any]] = None) -> str:
    """Serialize one cookie assignment (`name=value; max-age=...; path=...`)."""
    cookie = f"{quote(name, safe='')}={quote(json.dumps(value), safe='')}"
    for option, val in (options or {}).items():
        attr = _attribute_name(option)
        if attr not in _COOKIE_ATTRIBUTES:
            logger.debug("Ignoring unsupported cookie option %r", option)
            continue
        if attr == "max-age":
            cookie += f"; max-age={int(val)}"
        elif attr == "expires":
            if isinstance(val, datetime):
                val = http_date(val)
            cookie += f"; expires={val}"
        elif val is True:
            cookie += f"; {attr}"
        elif val:
            cookie += f"; {attr}={val}"
    return cookie


class DurableKeyStore:
    def __init__(self, config: StorageConfig, window: Optional[Window] = None):
        self._config = MappingProxyType(dict(config))
        self._window = window
        self._seed()

    @property
    def config(self) -> Mapping[str, KeyConfig]:
        return self._config

    @property
    def window(self) -> Optional[Window]:
        return self._window

    @property
    def is_browser(self) -> bool:
        return self._window is not None

    def kind_of(self, key: str) -> Optional[BackingKind]:
        cfg = self._config.get(key)
        return cfg.kind if cfg else None

    def default(self, key: str) -> Any:
        """A fresh copy of the configured default, so callers can't mutate it."""
        cfg = self._config.get(key)
        return copy.deepcopy(cfg.default) if cfg else None

    def _seed(self) -> None:
        if not self.is_browser:
            return
        for key, cfg in self._config.items():
            if not self._raw(key, cfg):
                self._write_raw(key, cfg, cfg.default)

    def _raw(self, key: str, cfg: KeyConfig) -> Optional[str]:
        try:
            if cfg.kind is BackingKind.LOCAL_STORAGE:
                return self._window.local_storage.get_item(key)
            return self._get_cookie(key)
        except Exception:
            logger.exception("Failed to read %s from %s", key, cfg.kind.value)
            return None

    def _get_cookie(self, name: str) -> Optional[str]:
        prefix = f"{quote(name, safe='')}="
        for row in self._window.document.cookie.split("; "):
            if row.startswith(prefix):
                return unquote(row[len(prefix):])
        return None

    def _write_raw(self, key: str, cfg: KeyConfig, value: Any) -> bool:
        try:
            if cfg.kind is BackingKind.LOCAL_STORAGE:
                self._window.local_storage.set_item(key, json.dumps(value))
            else:
                self._window.document.cookie = build_cookie(key, value, cfg.options)
        except (TypeError, ValueError):
            logger.error("Value for %s is not JSON-serializable", key)
            return False
        except Exception:
            logger.exception("Failed to write %s to %s", key, cfg.kind.value)
            return False
        return True

    def read(self, key: str) -> Any:
        """Stored value for `key`, or ABSENT if never written, expired or unreadable."""
        cfg = self._config.get(key)
        if cfg is None or not self.is_browser:
            return ABSENT
        stored = self._raw(key, cfg)
        if not stored:
            return ABSENT
        try:
            return json.loads(stored)
        except ValueError:
            logger.warning("Discarding malformed JSON stored under %s", key)
            return ABSENT

    def read_or_default(self, key: str) -> Any:
        value = self.read(key)
        return self.default(key) if value is ABSENT else value

    def write(self, key: str, value: Any) -> bool:
        """Persist `value` wholesale. False for unconfigured keys or failed I/O."""
        cfg = self._config.get(key)
        if cfg is None:
            return False
        if not self.is_browser:
            return True
        return self._write_raw(key, cfg, value)
