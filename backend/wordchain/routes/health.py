from __future__ import annotations

from flask import Blueprint, jsonify

from ..game.service import get_service

bp = Blueprint("health", __name__)


@bp.get("/health")
def health():
    return jsonify({"ok": True, "rooms": get_service().store.count()})
