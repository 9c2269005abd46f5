from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from ..game.errors import InvalidAction, WordChainError
from ..game.service import get_service
from ..utils.ip import get_client_ip

bp = Blueprint("games", __name__)


@bp.errorhandler(WordChainError)
def handle_game_error(exc: WordChainError):
    return jsonify(exc.to_dict()), exc.status


@bp.get("/game/<game_id>")
def get_game(game_id: str):
    return jsonify(get_service().get_state(game_id))


@bp.post("/game/<game_id>")
def post_action(game_id: str):
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise InvalidAction("Invalid request body", code="invalid_payload")
    action = str(data.get("action", "")).strip()
    payload = data.get("payload") or {}

    try:
        result = get_service().handle_action(game_id, action, payload)
    except WordChainError:
        raise
    except Exception:
        current_app.logger.exception("POST /game/%s action=%s failed", game_id, action)
        return jsonify({"error": "internal_error", "message": "Internal Server Error"}), 500

    if action == "join_game":
        current_app.logger.info(
            "join_game room=%s player=%s ip=%s",
            game_id,
            result.get("playerId"),
            get_client_ip(request, current_app.config.get("TRUST_PROXY_HEADERS", False)),
        )
    return jsonify(result)
