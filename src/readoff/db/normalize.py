"""Load-time repair of the persisted challenge document.

Older documents drift in shape: the first revision stored exactly two players
under ``player1`` / ``player2``, books lost fields, and titles were saved as
pure whitespace. Everything is repaired here rather than rejected.
"""

import logging
from typing import Any, Optional

from .schemas import ChallengeDB, PlayerData, make_id

logger = logging.getLogger(__name__)

DEFAULT_PLAYER_NAMES = ["Player 1", "Player 2"]

# Legacy two-player document keys and their fallback names
LEGACY_PLAYER_KEYS = (
    ("player1", "Player 1"),
    ("player2", "Player 2"),
)


def create_empty_player(name: str) -> PlayerData:
    """Create a player with every month scaffolded to its target."""
    return PlayerData(name=name)


def create_empty_db(player_names: Optional[list[str]] = None) -> ChallengeDB:
    """Create a fresh first-run document."""
    names = player_names or DEFAULT_PLAYER_NAMES
    return ChallengeDB(players=[create_empty_player(n) for n in names])


def is_legacy_document(raw: Any) -> bool:
    """Check for the original ``{player1, player2}`` shape."""
    return isinstance(raw, dict) and not isinstance(raw.get("players"), list)


def migrate_legacy(raw: dict, player_names: Optional[list[str]] = None) -> dict:
    """Convert a ``{player1, player2}`` document to ``{players: [...]}``.

    Each legacy player is wrapped in a record with a freshly generated id.
    When neither legacy key holds an object, the default players are used.
    """
    players = []
    for key, fallback_name in LEGACY_PLAYER_KEYS:
        legacy = raw.get(key)
        if not isinstance(legacy, dict):
            continue
        name = legacy.get("name")
        months = legacy.get("months")
        players.append({
            "id": make_id(),
            "name": name if isinstance(name, str) else fallback_name,
            "months": months if isinstance(months, dict) else {},
        })

    if not players:
        names = player_names or DEFAULT_PLAYER_NAMES
        players = [{"id": make_id(), "name": n} for n in names]
    else:
        logger.info("Migrated legacy two-player document (%d players)", len(players))

    migrated = {k: v for k, v in raw.items() if k not in dict(LEGACY_PLAYER_KEYS)}
    migrated["players"] = players
    return migrated


def normalize_document(
    raw: Any,
    player_names: Optional[list[str]] = None,
) -> ChallengeDB:
    """Repair a raw document into a valid ``ChallengeDB``.

    Args:
        raw: Parsed JSON value, or None when nothing is stored yet
        player_names: Names used when a default document must be synthesized

    Returns:
        Normalized document. Applying this to the serialized result of a
        previous call yields an identical document.
    """
    if not isinstance(raw, dict):
        return create_empty_db(player_names)

    if is_legacy_document(raw):
        raw = migrate_legacy(raw, player_names)

    return ChallengeDB.model_validate(raw)


def needs_repair(raw: Any, normalized: ChallengeDB) -> bool:
    """Whether the stored value differs from its normalized form."""
    return raw != normalized.to_document()
