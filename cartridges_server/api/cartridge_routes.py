from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from loguru import logger

from cartridges.schemas import CartridgeCreate, CartridgeUpdate
from cartridges.storage import parse_cartridge_document
from cartridges.utils.exceptions import CartridgeNotFoundError, DocumentImportError

cartridge_bp = Blueprint("cartridges", __name__)


def _store():
    return current_app.config["STORE"]


@cartridge_bp.route("/cartridges", methods=["GET"])
async def list_cartridges():
    cartridges = await _store().list_cartridges()
    return jsonify([cartridge.to_wire() for cartridge in cartridges])


@cartridge_bp.route("/cartridges", methods=["POST"])
async def create_cartridge():
    data = CartridgeCreate.model_validate(request.get_json(silent=True) or {})
    cartridge = await _store().create_cartridge(data)
    logger.info("Created cartridge {} ({})", cartridge.id, cartridge.name)
    return jsonify(cartridge.to_wire()), 201


@cartridge_bp.route("/cartridges/import", methods=["POST"])
async def import_cartridge():
    """Create a cartridge from an uploaded .json, .yaml or .txt document."""

    upload = request.files.get("file")
    if upload is None or not upload.filename:
        return jsonify({"status": "error", "message": "No file uploaded"}), 400

    try:
        text = upload.read().decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DocumentImportError(
            f"{upload.filename} is not valid UTF-8",
            context={"filename": upload.filename},
        ) from exc

    data = parse_cartridge_document(
        upload.filename,
        text,
        name=request.form.get("name"),
        description=request.form.get("description"),
    )
    cartridge = await _store().create_cartridge(data)
    logger.info("Imported cartridge {} from {}", cartridge.id, upload.filename)
    return jsonify(cartridge.to_wire()), 201


@cartridge_bp.route("/cartridges/<int:cartridge_id>", methods=["GET"])
async def get_cartridge(cartridge_id: int):
    cartridge = await _store().get_cartridge(cartridge_id)
    if cartridge is None:
        raise CartridgeNotFoundError(cartridge_id)
    return jsonify(cartridge.to_wire())


@cartridge_bp.route("/cartridges/<int:cartridge_id>", methods=["PATCH"])
async def update_cartridge(cartridge_id: int):
    updates = CartridgeUpdate.model_validate(request.get_json(silent=True) or {})
    cartridge = await _store().update_cartridge(cartridge_id, updates)
    if cartridge is None:
        raise CartridgeNotFoundError(cartridge_id)
    return jsonify(cartridge.to_wire())


@cartridge_bp.route("/cartridges/<int:cartridge_id>", methods=["DELETE"])
async def delete_cartridge(cartridge_id: int):
    deleted = await _store().delete_cartridge(cartridge_id)
    if not deleted:
        raise CartridgeNotFoundError(cartridge_id)
    logger.info("Deleted cartridge {}", cartridge_id)
    return jsonify({"status": "success"})


@cartridge_bp.route("/cartridges/<int:cartridge_id>/activate", methods=["POST"])
async def activate_cartridge(cartridge_id: int):
    store = _store()
    if await store.get_cartridge(cartridge_id) is None:
        raise CartridgeNotFoundError(cartridge_id)
    await store.set_active(cartridge_id)
    cartridge = await store.get_cartridge(cartridge_id)
    return jsonify(cartridge.to_wire())


@cartridge_bp.route("/cartridges/<int:cartridge_id>/messages", methods=["GET"])
async def list_cartridge_messages(cartridge_id: int):
    messages = await _store().list_messages_by_cartridge(cartridge_id)
    return jsonify([message.to_wire() for message in messages])
