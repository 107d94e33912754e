"""JSON-file backed settings store.

Loading runs the glossary upgrades (legacy flat term list, missing target
language) and writes the file back only when something changed.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from subweave.glossary.migrate import migrate_all_glossaries, migrate_from_legacy_glossary
from subweave.glossary.validator import validate_glossary_item
from subweave.models.app_settings import AppSettings
from subweave.utils.language import LanguageDetector

logger = logging.getLogger(__name__)

# Pre-multi-glossary settings stored a flat term list under this key.
LEGACY_GLOSSARY_KEY = "glossary"


class SettingsStore:
    def __init__(self, path: str | Path, *, detector: LanguageDetector | None = None) -> None:
        self.path = Path(path)
        self._detector = detector

    def _read_raw(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("settings file unreadable, using defaults (path=%s): %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def load(self) -> AppSettings:
        raw = self._read_raw()
        changed = False

        legacy = raw.pop(LEGACY_GLOSSARY_KEY, None)
        settings = AppSettings.from_dict(raw)

        if isinstance(legacy, list) and legacy and not settings.glossaries:
            items = [i for i in (validate_glossary_item(x) for x in legacy if isinstance(x, dict)) if i]
            migrated = migrate_from_legacy_glossary(items)
            settings.glossaries = [migrated]
            settings.active_glossary_id = migrated.id
            logger.info("migrated legacy glossary (terms=%d)", len(migrated.terms))
            changed = True
        elif legacy is not None:
            changed = True

        glossaries, glossaries_changed = migrate_all_glossaries(
            settings.glossaries,
            settings.target_language,
            detector=self._detector,
        )
        if glossaries_changed:
            settings.glossaries = glossaries
            changed = True

        if changed:
            self.save(settings)
        return settings

    def save(self, settings: AppSettings) -> None:
        """Atomically replace the settings file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(settings.to_dict(), ensure_ascii=False, indent=2)
        fd, tmp = tempfile.mkstemp(prefix=".settings-", suffix=".json", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.debug("settings saved (path=%s)", self.path)
