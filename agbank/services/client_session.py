"""
Everything one browser session owns: storage, API client and both stores.

A Streamlit server process serves many browsers at once. Each browser gets its
own ClientSession, kept in `st.session_state`; nothing holding an identity or a
token lives in process-wide caches.
"""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import Optional

from agbank.infrastructure.api_client import BankApiClient
from agbank.infrastructure.session_storage import FileSessionStorage, is_valid_client_id
from agbank.services.data_store import DataStore
from agbank.services.session_store import SessionStore
from agbank.utils.logger import get_logger

logger = get_logger()


def new_client_id() -> str:
    return uuid.uuid4().hex


def resolve_client_id(candidate: Optional[str]) -> str:
    """Reuse a well-formed id (e.g. from the page URL); otherwise issue a new one."""
    if is_valid_client_id(candidate):
        return candidate
    if candidate:
        logger.warning("Ignoring malformed client id")
    return new_client_id()


class ClientSession:
    """Per-browser wiring of FileSessionStorage, BankApiClient, SessionStore and DataStore."""

    def __init__(
        self,
        client_id: str,
        session_dir: Optional[Path] = None,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
    ) -> None:
        self.client_id = client_id
        self.storage = FileSessionStorage.for_client(client_id, session_dir)
        self.api = BankApiClient(base_url=base_url, storage=self.storage, timeout=timeout)
        self.session = SessionStore(self.api, self.storage)
        self.store = DataStore(self.api)

    @classmethod
    def open(cls, client_id: Optional[str] = None, **kwargs) -> "ClientSession":
        """Build the bundle, restore any saved identity and attach the data store."""
        cs = cls(resolve_client_id(client_id), **kwargs)
        cs.session.init()
        cs.store.init(cs.session)
        logger.info("Opened client session (restored identity: %s)", cs.session.is_authenticated)
        return cs

    def close(self) -> None:
        self.store.dispose()
