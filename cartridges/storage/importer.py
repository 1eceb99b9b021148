"""
Build cartridges from uploaded documents.

Supported formats:
- ``.json``: a cartridge-shaped object (``name``, ``description``,
  ``episodicMemory``, ``semanticMemory``, ``proceduralMemory``, ``metadata``)
- ``.yaml`` / ``.yml``: the same structure in YAML
- ``.txt``: free text; the file stem becomes the name and the first 200
  characters the description

Imported cartridges always start inactive.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path, PurePath
from typing import Any

import yaml
from pydantic import ValidationError

from ..schemas import CartridgeCreate
from ..utils.exceptions import DocumentImportError

TEXT_DESCRIPTION_CHARS = 200


def _parse_text(filename: str, text: str) -> dict[str, Any]:
    description = text[:TEXT_DESCRIPTION_CHARS]
    if len(text) > TEXT_DESCRIPTION_CHARS:
        description += "..."
    return {
        "name": PurePath(filename).stem,
        "description": description,
    }


def _load_structured(filename: str, text: str) -> dict[str, Any]:
    suffix = PurePath(filename).suffix.lower()
    try:
        if suffix == ".json":
            parsed = json.loads(text)
        elif suffix in (".yaml", ".yml"):
            parsed = yaml.safe_load(text)
        elif suffix == ".txt":
            return _parse_text(filename, text)
        else:
            raise DocumentImportError(
                f"Unsupported file type: {suffix or '<none>'}",
                context={"filename": filename},
            )
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise DocumentImportError(
            f"Failed to parse {filename}: {exc}", context={"filename": filename}
        ) from exc

    if not isinstance(parsed, Mapping):
        raise DocumentImportError(
            f"{filename} must contain an object at the top level",
            context={"filename": filename},
        )
    return dict(parsed)


def parse_cartridge_document(
    filename: str,
    text: str,
    *,
    name: str | None = None,
    description: str | None = None,
) -> CartridgeCreate:
    """Parse ``text`` (named ``filename``) into a :class:`CartridgeCreate`.

    Explicit ``name``/``description`` arguments take precedence over values
    found in the document.
    """

    document = _load_structured(filename, text)
    raw_metadata = document.get("metadata")
    metadata = raw_metadata if isinstance(raw_metadata, Mapping) else {}

    payload = {
        "name": (name or "").strip() or str(document.get("name") or "").strip(),
        "description": (description or "").strip()
        or str(document.get("description") or "").strip(),
        "episodicMemory": document.get("episodicMemory") or {"conversations": []},
        "semanticMemory": document.get("semanticMemory") or {"concepts": {}},
        "proceduralMemory": document.get("proceduralMemory") or {"workflows": []},
        "metadata": {
            "version": metadata.get("version") or "1.0.0",
            "sizeMb": metadata.get("sizeMb") or 0.1,
            "nodeCount": metadata.get("nodeCount") or 0,
            "tags": metadata.get("tags") or [],
        },
        "isActive": False,
    }

    try:
        return CartridgeCreate.model_validate(payload)
    except ValidationError as exc:
        raise DocumentImportError(
            f"Invalid cartridge document {filename}: {exc.errors()}",
            context={"filename": filename},
        ) from exc


def load_cartridge_file(path: str | Path, **overrides: Any) -> CartridgeCreate:
    """Read ``path`` from disk and parse it with :func:`parse_cartridge_document`."""

    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DocumentImportError(
            f"Could not read {path}: {exc}", context={"filename": str(path)}
        ) from exc
    return parse_cartridge_document(path.name, text, **overrides)
