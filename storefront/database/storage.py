"""Key/value storage backends for the local cart"""

import os
import logging
import tempfile
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class CartStorage:
    """
    Durable string storage keyed by name.

    Mirrors the browser localStorage contract so the cart store can be
    backed by memory, files, or anything else that stores strings.
    """

    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError


class MemoryStorage(CartStorage):
    """In-memory storage"""

    def __init__(self):
        self.data: dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove_item(self, key: str) -> None:
        self.data.pop(key, None)


class FileStorage(CartStorage):
    """One JSON file per key inside a directory"""

    def __init__(self, directory: str):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        # Write then rename so a crash never leaves a half-written record
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_path, self._path(key))
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
        logger.debug(f"Wrote {len(value)} bytes to {self._path(key)}")

    def remove_item(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()
