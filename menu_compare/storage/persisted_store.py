from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Protocol

from .config import DEFAULT_STORAGE_CONFIG, StorageConfig

logger = logging.getLogger(__name__)

_SAFE_NAME = re.compile(r"[^A-Za-z0-9_.-]")


class PersistenceArea(Protocol):
    """Raw text key-value area. Implementations may raise ``OSError``."""

    def read(self, key: str) -> str | None: ...

    def write(self, key: str, text: str) -> None: ...


class MemoryArea:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    def read(self, key: str) -> str | None:
        return self.data.get(key)

    def write(self, key: str, text: str) -> None:
        self.data[key] = text


class JsonFileArea:
    """One ``<key>.json`` file per key inside *directory*.

    Writes land in a temporary file first and are moved into place with
    ``os.replace``, so an interrupted write leaves the old document intact.
    """

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{_SAFE_NAME.sub('_', key)}.json"

    def read(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, text: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=path.stem, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(text)
            os.replace(tmp_name, path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise


class PersistedStore:
    """Best-effort JSON persistence on top of a :class:`PersistenceArea`.

    ``load`` never raises: absent keys and unparseable documents both yield
    the default. ``save`` logs and swallows write failures so the caller's
    in-memory state stays authoritative.
    """

    def __init__(self, area: PersistenceArea | None = None) -> None:
        self.area = area if area is not None else MemoryArea()

    def load(self, key: str, default: Any = None) -> Any:
        if default is None:
            default = []
        try:
            raw = self.area.read(key)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Failed to read %s: %s", key, exc)
            return default
        if raw is None or raw == "":
            return default
        try:
            value = json.loads(raw)
        except ValueError as exc:
            logger.warning("Failed to load %s: %s", key, exc)
            return default
        if value is None:
            return default
        return value

    def save(self, key: str, value: Any) -> bool:
        try:
            text = json.dumps(value, ensure_ascii=False)
            self.area.write(key, text)
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("Failed to save %s: %s", key, exc)
            return False
        return True


def area_for_user(user_id: str, config: StorageConfig = DEFAULT_STORAGE_CONFIG) -> JsonFileArea:
    """Return the file-backed persistence area of a single user."""
    return JsonFileArea(config.root_dir / _SAFE_NAME.sub("_", user_id))
