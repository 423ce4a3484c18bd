"""Flask JSON API for the reading challenge.

Every read renders from the freshly loaded document, and every mutation is
one ChallengeManager action. A mutation that finds no matching player, month
or book answers 404; a malformed body answers 400.
"""

import logging
from typing import Optional

from flask import Flask, jsonify, request
from pydantic import ValidationError

from .actions import ChallengeManager
from .config import get_config
from .db.schemas import Book, BookUpdate, PlayerCreate, PlayerData
from .season import MONTHS, month_label, month_target
from .stats import dashboard_from_config, player_profile

logger = logging.getLogger(__name__)


def book_to_dict(book: Book) -> dict:
    """Serialize a book with its derived progress."""
    data = book.model_dump(mode="json", by_alias=True, exclude_none=True)
    data["progressPercent"] = book.progress_percent
    return data


def player_to_dict(player: PlayerData, month: Optional[int] = None) -> dict:
    """Serialize a player, optionally limited to one month's books."""
    target_year = get_config().target_year
    months = [month] if month is not None else list(MONTHS)
    return {
        "id": player.id,
        "name": player.name,
        "readingDates": player.reading_dates,
        "months": {
            str(m): {
                "label": month_label(m, target_year),
                "target": month_target(m),
                "books": [book_to_dict(b) for b in player.month(m).books],
            }
            for m in months
        },
    }


def not_found(what: str = "Not found"):
    return jsonify({"error": what}), 404


def create_app(manager: Optional[ChallengeManager] = None) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.json.sort_keys = False

    def get_manager() -> ChallengeManager:
        return manager or ChallengeManager()

    def json_body() -> dict:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @app.route('/api/dashboard')
    def dashboard():
        """Overview of every player, plus one month's books."""
        db = get_manager().load()
        summary = dashboard_from_config(db)

        month = request.args.get('month', type=int)
        if month is None or month not in MONTHS:
            month = summary.current_month

        data = summary.to_dict()
        data["activeMonth"] = month
        data["books"] = {
            p.id: [book_to_dict(b) for b in p.month(month).books]
            for p in db.players
        }
        return jsonify(data)

    @app.route('/api/players/<player_id>')
    def get_player(player_id: str):
        """Player profile with lifetime totals."""
        player = get_manager().get_player(player_id)
        if player is None:
            return not_found("Player not found")

        profile = player_profile(player)
        data = player_to_dict(player)
        data["profile"] = {
            "totalBooks": profile.total_books,
            "completedBooks": profile.completed_books,
            "pagesRead": profile.pages_read,
            "readingDays": profile.reading_days,
        }
        return jsonify(data)

    @app.route('/api/players/<player_id>/months/<int:month>/books/<int:index>')
    def get_book(player_id: str, month: int, index: int):
        book = get_manager().get_book(player_id, month, index)
        if book is None:
            return not_found("Book not found")
        return jsonify(book_to_dict(book))

    # ------------------------------------------------------------------
    # Players
    # ------------------------------------------------------------------

    @app.route('/api/players', methods=['POST'])
    def add_player():
        try:
            data = PlayerCreate.model_validate(json_body())
        except ValidationError:
            return jsonify({'error': 'Player name is required'}), 400

        player = get_manager().add_player(data.name)
        if player is None:
            return jsonify({'error': 'Player name is required'}), 400
        return jsonify(player_to_dict(player)), 201

    @app.route('/api/players/<player_id>', methods=['PATCH'])
    def rename_player(player_id: str):
        try:
            data = PlayerCreate.model_validate(json_body())
        except ValidationError:
            return jsonify({'error': 'Player name is required'}), 400

        player = get_manager().rename_player(player_id, data.name)
        if player is None:
            return not_found("Player not found")
        return jsonify({'id': player.id, 'name': player.name})

    @app.route('/api/players/<player_id>', methods=['DELETE'])
    def remove_player(player_id: str):
        if not get_manager().remove_player(player_id):
            return jsonify({'error': 'Player not removed'}), 409
        return jsonify({'removed': player_id})

    @app.route('/api/players/<player_id>/reading-dates', methods=['POST'])
    def toggle_reading_date(player_id: str):
        day = json_body().get('date')
        if not isinstance(day, str):
            return jsonify({'error': 'date is required'}), 400

        logged = get_manager().toggle_reading_date(player_id, day)
        if logged is None:
            return not_found("Player not found or date not allowed")
        return jsonify({'date': day, 'logged': logged})

    # ------------------------------------------------------------------
    # Books
    # ------------------------------------------------------------------

    @app.route('/api/players/<player_id>/months/<int:month>/books', methods=['POST'])
    def add_book(player_id: str, month: int):
        book = get_manager().add_book(player_id, month)
        if book is None:
            return not_found("Player or month not found")
        return jsonify(book_to_dict(book)), 201

    @app.route(
        '/api/players/<player_id>/months/<int:month>/books/<int:index>',
        methods=['DELETE'],
    )
    def remove_book(player_id: str, month: int, index: int):
        if not get_manager().remove_book(player_id, month, index):
            return not_found("Book not found")
        return jsonify({'removed': index})

    @app.route(
        '/api/players/<player_id>/months/<int:month>/books/<int:index>',
        methods=['PATCH'],
    )
    def update_book(player_id: str, month: int, index: int):
        try:
            data = BookUpdate.model_validate(json_body())
        except ValidationError as e:
            details = e.errors(include_url=False, include_context=False)
            return jsonify({'error': 'Invalid book update', 'details': details}), 400

        book = get_manager().update_book(player_id, month, index, data)
        if book is None:
            return not_found("Book not found")
        return jsonify(book_to_dict(book))

    @app.route(
        '/api/players/<player_id>/months/<int:month>/books/<int:index>/toggle',
        methods=['POST'],
    )
    def toggle_book(player_id: str, month: int, index: int):
        book = get_manager().toggle_book_completed(player_id, month, index)
        if book is None:
            return not_found("Book not found")
        return jsonify(book_to_dict(book))

    @app.route(
        '/api/players/<player_id>/months/<int:month>/books/<int:index>/score',
        methods=['POST'],
    )
    def score_book(player_id: str, month: int, index: int):
        force = bool(json_body().get('force', False))
        book = get_manager().request_ai_score(player_id, month, index, force=force)
        if book is None:
            return not_found("Book not found or has no title")
        return jsonify(book_to_dict(book))

    @app.route(
        '/api/players/<player_id>/months/<int:month>/books/<int:index>/continuation'
    )
    def detect_continuation(player_id: str, month: int, index: int):
        match = get_manager().detect_continuation(player_id, month, index)
        if match is None:
            return jsonify({'continuation': None})
        return jsonify({
            'continuation': {
                'month': match.month,
                'index': match.index,
                'book': book_to_dict(match.book),
            }
        })

    @app.route(
        '/api/players/<player_id>/months/<int:month>/books/<int:index>/copy-previous',
        methods=['POST'],
    )
    def copy_previous(player_id: str, month: int, index: int):
        book = get_manager().copy_from_previous(player_id, month, index)
        if book is None:
            return not_found("No earlier book to continue")
        return jsonify(book_to_dict(book))

    return app


def run_server(host: str = '0.0.0.0', port: int = 5000, debug: bool = False):
    """Run the challenge web server."""
    app = create_app()
    logger.info("Read Off running at http://localhost:%d", port)
    app.run(host=host, port=port, debug=debug)


if __name__ == '__main__':
    run_server()
