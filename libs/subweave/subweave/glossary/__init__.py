"""Glossary management."""

from subweave.glossary.csv_import import import_glossary_from_csv
from subweave.glossary.manager import (
    create_glossary,
    duplicate_glossary,
    export_glossary,
    import_glossary,
    rename_glossary,
)
from subweave.glossary.merger import merge_glossary_results
from subweave.glossary.migrate import (
    migrate_all_glossaries,
    migrate_from_legacy_glossary,
    migrate_glossary_language,
)
from subweave.glossary.selector import get_active_glossary, get_active_glossary_terms
from subweave.glossary.validator import validate_glossary_item

__all__ = [
    "create_glossary",
    "duplicate_glossary",
    "export_glossary",
    "get_active_glossary",
    "get_active_glossary_terms",
    "import_glossary",
    "import_glossary_from_csv",
    "merge_glossary_results",
    "migrate_all_glossaries",
    "migrate_from_legacy_glossary",
    "migrate_glossary_language",
    "rename_glossary",
    "validate_glossary_item",
]
