"""Glossary CRUD and JSON import/export."""

from __future__ import annotations

import copy
import json
import uuid
from dataclasses import replace
from datetime import datetime, timezone

from subweave.error_codes import ErrorCode
from subweave.exceptions import GlossaryFormatError
from subweave.glossary.validator import validate_glossary_item
from subweave.models.glossary import Glossary, GlossaryItem

DEFAULT_GLOSSARY_NAME = "Untitled Glossary"


def now_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_glossary_id() -> str:
    return str(uuid.uuid4())


def create_glossary(name: str, target_language: str | None = None) -> Glossary:
    now = now_iso()
    return Glossary(
        id=new_glossary_id(),
        name=name.strip() or DEFAULT_GLOSSARY_NAME,
        terms=[],
        target_language=target_language or None,
        created_at=now,
        updated_at=now,
    )


def rename_glossary(glossary: Glossary, new_name: str) -> Glossary:
    """Return a renamed copy; blank names keep the old one."""
    return replace(
        glossary,
        name=new_name.strip() or glossary.name,
        terms=list(glossary.terms),
        updated_at=now_iso(),
    )


def duplicate_glossary(glossary: Glossary, suffix_label: str = "Copy") -> Glossary:
    now = now_iso()
    return Glossary(
        id=new_glossary_id(),
        name=f"{glossary.name} ({suffix_label})",
        terms=copy.deepcopy(glossary.terms),
        target_language=glossary.target_language,
        created_at=now,
        updated_at=now,
    )


def export_glossary(glossary: Glossary) -> str:
    return json.dumps(glossary.to_dict(), ensure_ascii=False, indent=2)


def import_glossary(json_content: str) -> Glossary:
    """Import an exported glossary.

    The result always gets a fresh id. Invalid terms are dropped; only a
    document without a name or a term list fails.
    """
    try:
        parsed = json.loads(json_content)
    except (TypeError, ValueError) as exc:
        raise GlossaryFormatError(ErrorCode.INVALID_GLOSSARY_FORMAT, f"Invalid glossary JSON: {exc}") from exc

    if not isinstance(parsed, dict):
        raise GlossaryFormatError(ErrorCode.INVALID_GLOSSARY_FORMAT, "Glossary must be a JSON object")
    name = parsed.get("name")
    terms = parsed.get("terms")
    if not isinstance(name, str) or not name.strip() or not isinstance(terms, list):
        raise GlossaryFormatError(ErrorCode.INVALID_GLOSSARY_FORMAT, "Glossary requires a name and a terms list")

    valid: list[GlossaryItem] = [
        item for item in (validate_glossary_item(raw) for raw in terms) if item is not None
    ]
    target_language = parsed.get("targetLanguage")
    created_at = parsed.get("createdAt")
    return Glossary(
        id=new_glossary_id(),
        name=name.strip(),
        terms=valid,
        target_language=(target_language.strip() or None) if isinstance(target_language, str) else None,
        created_at=str(created_at) if created_at else now_iso(),
        updated_at=now_iso(),
    )
