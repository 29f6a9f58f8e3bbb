"""YAML configuration documents addressed by dotted keys."""
from __future__ import annotations
import copy
import logging
import pathlib
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

import yaml

_log = logging.getLogger(__name__)

T = TypeVar('T')
_MISSING = object()


class ConfigDocument:
    """A nested mapping with dotted-key access (``db.port`` -> ``data['db']['port']``)."""

    def __init__(self, data: Mapping[str, Any] | None = None, *, source: str | None = None):
        self._data: Dict[str, Any] = dict(data or {})
        self.source = source

    def _lookup(self, key: str) -> Any:
        if not key:
            return _MISSING
        current: Any = self._data
        for part in key.split('.'):
            if isinstance(current, Mapping) and part in current:
                current = current[part]
            else:
                return _MISSING
        return current

    def contains(self, key: str) -> bool:
        return self._lookup(key) is not _MISSING

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.contains(key)

    def get(self, key: str, default: Any = None) -> Any:
        value = self._lookup(key)
        return default if value is _MISSING else value

    def get_typed(self, key: str, type_: Type[T], default: Optional[T] = None) -> Optional[T]:
        value = self._lookup(key)
        if value is _MISSING or not isinstance(value, type_):
            return default
        return value

    def section(self, key: str) -> Optional['ConfigDocument']:
        value = self._lookup(key)
        if not isinstance(value, Mapping):
            return None
        src = f"{self.source}#{key}" if self.source else key
        return ConfigDocument(value, source=src)

    def keys(self):
        return self._data.keys()

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)

    def __repr__(self) -> str:
        return f"ConfigDocument(source={self.source!r}, keys={list(self._data)!r})"


class ConfigStore:
    """Loads YAML documents from paths relative to a root folder.

    A missing, unreadable or malformed document is reported as ``None``; the
    binder decides whether that absence matters.
    """

    def __init__(self, root: str | pathlib.Path):
        self.root = pathlib.Path(root)

    def resolve(self, path: str) -> pathlib.Path:
        return self.root / path

    def load(self, path: str | None) -> Optional[ConfigDocument]:
        if not path:
            return None
        file = self.resolve(path)
        if not file.is_file():
            _log.debug("config document not found path=%s", file)
            return None
        try:
            with file.open('r', encoding='utf-8') as fh:
                raw = yaml.safe_load(fh)
        except yaml.YAMLError as e:
            _log.error("config document unreadable path=%s err=%s", file, e)
            return None
        except OSError as e:
            _log.error("config document could not be opened path=%s err=%s", file, e)
            return None
        if raw is None:
            raw = {}
        if not isinstance(raw, Mapping):
            _log.warning("config document is not a mapping path=%s type=%s", file, type(raw).__name__)
            return None
        return ConfigDocument(raw, source=path)
