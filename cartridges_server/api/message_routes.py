from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

import cartridges

message_bp = Blueprint("messages", __name__)


def _parse_positive_int(
    name: str,
    raw_value: str | None,
    *,
    default: int | None,
) -> tuple[int | None, str | None]:
    """Parse a positive integer query parameter, returning an error message on failure."""

    if raw_value in (None, ""):
        return default, None

    message = f"Parameter '{name}' must be a positive integer"
    try:
        value = int(raw_value)
    except (TypeError, ValueError):
        return None, message
    if value <= 0:
        return None, message
    return value, None


@message_bp.route("/messages", methods=["GET"])
async def list_messages():
    limit, error = _parse_positive_int(
        "limit", request.args.get("limit"), default=None
    )
    if error:
        return jsonify({"status": "error", "message": error}), 400

    messages = await current_app.config["STORE"].list_messages(limit)
    return jsonify([message.to_wire() for message in messages])


@message_bp.route("/health", methods=["GET"])
def health():
    store = current_app.config["STORE"]
    return jsonify(
        {
            "status": "ok",
            "version": cartridges.__version__,
            "store": type(store).__name__,
        }
    )
