"""Document storage for the reading challenge."""

from .normalize import create_empty_db, create_empty_player, normalize_document
from .schemas import Book, BookUpdate, ChallengeDB, MonthData, PlayerCreate, PlayerData
from .storage import FileBackend, KVBackend, Storage, StorageError, get_storage

__all__ = [
    "Book",
    "BookUpdate",
    "ChallengeDB",
    "MonthData",
    "PlayerCreate",
    "PlayerData",
    "create_empty_db",
    "create_empty_player",
    "normalize_document",
    "FileBackend",
    "KVBackend",
    "Storage",
    "StorageError",
    "get_storage",
]
