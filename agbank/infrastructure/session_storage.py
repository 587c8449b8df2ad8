"""
Durable key/value storage for the signed-in identity and bearer token.

Values are strings (the identity is stored serialized), kept in one JSON file
per browser session so a session survives a page reload or an app restart
without ever being visible to another client.
"""

from __future__ import annotations

import json
import re
from pathlib import Path

from agbank.utils.config import session_dir
from agbank.utils.logger import get_logger

logger = get_logger()

USER_KEY = "user"
TOKEN_KEY = "token"

_CLIENT_ID = re.compile(r"[0-9a-f]{32}")


def is_valid_client_id(client_id: str | None) -> bool:
    """Client ids are 32 lowercase hex digits; anything else could escape the session dir."""
    return isinstance(client_id, str) and _CLIENT_ID.fullmatch(client_id) is not None


class FileSessionStorage:
    """String key/value store backed by one JSON file. A corrupt file reads as empty."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @classmethod
    def for_client(cls, client_id: str, directory: Path | None = None) -> "FileSessionStorage":
        """Storage private to one browser session."""
        if not is_valid_client_id(client_id):
            raise ValueError(f"Invalid client id: {client_id!r}")
        base = Path(directory) if directory is not None else session_dir()
        return cls(base / f"{client_id}.json")

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, str]:
        if not self._path.is_file():
            return {}
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Session storage read failed for %s: %s", self._path, e)
            return {}
        if not isinstance(data, dict):
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)

    def get(self, key: str) -> str | None:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

    def clear_session(self) -> None:
        """Drop identity and token together."""
        data = self._read()
        data.pop(USER_KEY, None)
        data.pop(TOKEN_KEY, None)
        self._write(data)
