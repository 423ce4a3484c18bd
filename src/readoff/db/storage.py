"""Persistence for the challenge document.

Two backends hold the same JSON document: a local file for development and
an Upstash-compatible REST key-value store in production. The backend is
chosen by the presence of KV credentials in the environment.
"""

import json
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator, Optional
from urllib.parse import quote

import requests

from ..config import get_config
from .normalize import create_empty_db, needs_repair, normalize_document
from .schemas import ChallengeDB

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the key-value store cannot be reached."""

    pass


class StorageBackend(ABC):
    """Reads and writes the raw JSON document."""

    name = "backend"

    @abstractmethod
    def read(self) -> Optional[Any]:
        """Return the stored JSON value, or None if nothing usable is stored."""

    @abstractmethod
    def write(self, document: dict) -> None:
        """Replace the stored document."""


class FileBackend(StorageBackend):
    """JSON file on local disk."""

    name = "file"

    def __init__(self, path: Path):
        self.path = Path(path)

    def read(self) -> Optional[Any]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Unreadable data file %s: %s", self.path, e)
            return None

    def write(self, document: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(document, f, indent=2, ensure_ascii=False)


class KVBackend(StorageBackend):
    """Document stored under one key in a REST key-value store.

    Speaks the Upstash Redis REST protocol used by Vercel KV:
    ``GET {url}/get/{key}`` and ``POST {url}/set/{key}`` with a bearer token.
    """

    name = "kv"

    def __init__(self, url: str, token: str, key: str, timeout: int = 10):
        self.url = url.rstrip("/")
        self.key = key
        self.timeout = timeout
        self._session = requests.Session()
        self._session.headers.update({"Authorization": f"Bearer {token}"})

    def _request(self, method: str, command: str, data: Optional[str] = None) -> Any:
        """Run one REST command and return its ``result`` field."""
        url = f"{self.url}/{command}/{quote(self.key, safe='')}"
        try:
            response = self._session.request(method, url, data=data, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.Timeout:
            raise StorageError("KV request timed out")
        except requests.exceptions.HTTPError as e:
            raise StorageError(f"KV HTTP error: {e.response.status_code}")
        except requests.exceptions.RequestException as e:
            raise StorageError(f"KV request failed: {e}")
        except ValueError:
            raise StorageError("KV returned a non-JSON response")

        if isinstance(payload, dict) and payload.get("error"):
            raise StorageError(f"KV error: {payload['error']}")
        return payload.get("result") if isinstance(payload, dict) else None

    def read(self) -> Optional[Any]:
        result = self._request("GET", "get")
        if result is None:
            return None
        if isinstance(result, str):
            try:
                return json.loads(result)
            except json.JSONDecodeError:
                logger.warning("KV key %s holds non-JSON data", self.key)
                return None
        return result

    def write(self, document: dict) -> None:
        self._request("POST", "set", data=json.dumps(document, ensure_ascii=False))


class Storage:
    """Loads, repairs and saves the whole challenge document.

    Every mutation is a read-modify-write of the entire document. There is no
    locking: concurrent writers race and the last write wins.
    """

    def __init__(
        self,
        backend: Optional[StorageBackend] = None,
        player_names: Optional[list[str]] = None,
    ):
        """Initialize storage.

        Args:
            backend: Storage backend. If None, chosen from configuration.
            player_names: Names for the first-run players.
        """
        config = get_config()
        self.backend = backend or backend_from_config()
        self.player_names = player_names or config.default_players

    def load(self) -> ChallengeDB:
        """Load the document, repairing and writing back any drift.

        A missing or unreadable document is treated as a first run: a fresh
        default document is created and written.
        """
        raw = self.backend.read()

        if raw is None:
            db = create_empty_db(self.player_names)
            logger.info("No stored document, creating default (%s)", self.backend.name)
            try:
                self.backend.write(db.to_document())
            except OSError as e:
                logger.warning("Could not write default document: %s", e)
            return db

        db = normalize_document(raw, self.player_names)
        if needs_repair(raw, db):
            logger.info("Repaired stored document (%s)", self.backend.name)
            self.backend.write(db.to_document())
        return db

    def save(self, db: ChallengeDB) -> None:
        """Normalize and write the whole document."""
        normalized = normalize_document(db.to_document(), self.player_names)
        self.backend.write(normalized.to_document())

    @contextmanager
    def session(self) -> Generator[ChallengeDB, None, None]:
        """Load the document and yield it for mutation.

        The document is saved when the block finishes without raising and
        has changed something. A block that raises saves nothing.
        """
        db = self.load()
        before = db.to_document()
        yield db
        if db.to_document() != before:
            self.save(db)


def backend_from_config() -> StorageBackend:
    """Pick the KV backend when credentials are present, else the file."""
    config = get_config()
    if config.has_kv_config():
        return KVBackend(config.kv_url, config.kv_token, config.kv_key)
    return FileBackend(config.data_path)


# Global storage instance
_storage: Optional[Storage] = None


def get_storage() -> Storage:
    """Get or create the global storage instance."""
    global _storage
    if _storage is None:
        _storage = Storage()
    return _storage


def reset_storage() -> None:
    """Reset the global storage instance. Used for testing."""
    global _storage
    _storage = None
