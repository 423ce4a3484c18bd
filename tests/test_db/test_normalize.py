"""Tests for load-time document repair."""

from readoff.db.normalize import (
    DEFAULT_PLAYER_NAMES,
    create_empty_db,
    is_legacy_document,
    migrate_legacy,
    needs_repair,
    normalize_document,
)


class TestCreateEmptyDB:
    """Tests for first-run documents."""

    def test_default_players(self):
        db = create_empty_db()
        assert [p.name for p in db.players] == DEFAULT_PLAYER_NAMES

    def test_custom_players(self):
        db = create_empty_db(["Alice", "Bob", "Carol"])
        assert len(db.players) == 3
        assert len({p.id for p in db.players}) == 3


class TestNormalizeDocument:
    """Tests for normalize_document."""

    def test_non_dict_gives_default(self):
        assert len(normalize_document(None).players) == 2
        assert len(normalize_document([1, 2]).players) == 2

    def test_idempotent(self):
        """Test normalizing an already-normalized document changes nothing."""
        raw = {
            "players": [{
                "id": "p1",
                "name": " Alice ",
                "months": {"3": {"books": [{"title": "  ", "totalPages": 12.4}]}},
                "readingDates": ["2026-01-02", "2026-01-01"],
            }],
        }
        first = normalize_document(raw).to_document()
        second = normalize_document(first).to_document()

        assert first == second

    def test_repairs_missing_fields(self):
        raw = {"players": [{"id": "p1", "months": {"1": {"books": [{}]}}}]}
        db = normalize_document(raw)

        book = db.players[0].month(1).books[0]
        assert book.title == ""
        assert book.current_page == 0
        assert db.players[0].name == "Player"

    def test_empty_players_list_kept(self):
        assert normalize_document({"players": []}).players == []


class TestLegacyMigration:
    """Tests for the two-player document migration."""

    def test_detects_legacy(self):
        assert is_legacy_document({"player1": {}, "player2": {}})
        assert not is_legacy_document({"players": []})

    def test_wraps_legacy_players(self):
        raw = {
            "player1": {"name": "Alice", "months": {"1": {"books": [{"title": "Dune"}]}}},
            "player2": {"months": {}},
        }
        db = normalize_document(raw)

        assert [p.name for p in db.players] == ["Alice", "Player 2"]
        assert db.players[0].month(1).books[0].title == "Dune"
        assert db.players[0].id != db.players[1].id

    def test_legacy_keys_removed(self):
        migrated = migrate_legacy({"player1": {"name": "A"}, "player2": {"name": "B"}})
        assert "player1" not in migrated
        assert "player2" not in migrated
        assert len(migrated["players"]) == 2

    def test_unusable_legacy_uses_defaults(self):
        db = normalize_document({"player1": "junk"}, ["Xena", "Yuri"])
        assert [p.name for p in db.players] == ["Xena", "Yuri"]


class TestNeedsRepair:
    """Tests for write-back detection."""

    def test_clean_document(self):
        db = create_empty_db()
        doc = db.to_document()
        assert not needs_repair(doc, normalize_document(doc))

    def test_drifted_document(self):
        raw = {"players": [{"id": "p1", "name": "A"}]}
        assert needs_repair(raw, normalize_document(raw))
