from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from loguru import logger

from cartridges.schemas import ChatRequest

chat_bp = Blueprint("chat", __name__)


@chat_bp.route("/chat", methods=["POST"])
async def chat():
    """Answer a message and persist the user/assistant pair."""

    payload = ChatRequest.model_validate(request.get_json(silent=True) or {})
    service = current_app.config["CHAT_SERVICE"]

    turn = await service.handle_chat(payload.message, payload.force_cartridge_id)
    logger.debug(
        "Chat turn stored against cartridge {}", turn.selection.selected_cartridge_id
    )
    return jsonify(turn.to_wire())
