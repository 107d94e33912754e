"""CSV glossary import.

Columns: term, translation, optional notes. Fields may be quoted; `""` inside
quotes is a literal quote. A first row made of known header labels is skipped.
"""

from __future__ import annotations

import csv
import io
from pathlib import PurePath

from subweave.error_codes import ErrorCode
from subweave.exceptions import GlossaryFormatError
from subweave.glossary.manager import new_glossary_id, now_iso
from subweave.glossary.validator import validate_glossary_item
from subweave.models.glossary import Glossary, GlossaryItem
from subweave.utils.language import LanguageDetector, detect_glossary_language

DEFAULT_CSV_GLOSSARY_NAME = "Imported CSV Glossary"

HEADER_NAMES = frozenset(
    {
        "term",
        "source",
        "original",
        "原文",
        "术语",
        "用語",
        "translation",
        "target",
        "译文",
        "翻译",
        "翻訳",
        "notes",
        "note",
        "comment",
        "备注",
        "メモ",
    }
)


def parse_csv_rows(csv_content: str) -> list[list[str]]:
    """Split CSV text into rows, dropping blank lines."""
    text = csv_content.lstrip("\ufeff")
    try:
        return [row for row in csv.reader(io.StringIO(text)) if any(cell.strip() for cell in row)]
    except csv.Error as exc:
        raise GlossaryFormatError(ErrorCode.INVALID_GLOSSARY_FORMAT, f"unreadable CSV: {exc}") from exc


def is_header_row(fields: list[str]) -> bool:
    return any(f.strip().lower() in HEADER_NAMES for f in fields)


def import_glossary_from_csv(
    csv_content: str,
    filename: str,
    *,
    detector: LanguageDetector | None = None,
) -> Glossary:
    rows = parse_csv_rows(csv_content)
    if rows and is_header_row(rows[0]):
        rows = rows[1:]
    if not rows:
        raise GlossaryFormatError(ErrorCode.CSV_EMPTY, "CSV file contains no data rows")

    items: list[GlossaryItem] = []
    for fields in rows:
        if len(fields) < 2:
            continue
        validated = validate_glossary_item(
            {
                "term": fields[0],
                "translation": fields[1],
                "notes": fields[2] if len(fields) > 2 else None,
            }
        )
        if validated is not None:
            items.append(validated)

    if not items:
        raise GlossaryFormatError(ErrorCode.CSV_NO_VALID_TERMS, "CSV file contains no valid terms")

    path = PurePath(filename)
    name = path.stem if path.suffix.lower() == ".csv" else path.name
    now = now_iso()
    return Glossary(
        id=new_glossary_id(),
        name=name.strip() or DEFAULT_CSV_GLOSSARY_NAME,
        terms=items,
        target_language=detect_glossary_language(items, detector),
        created_at=now,
        updated_at=now,
    )
