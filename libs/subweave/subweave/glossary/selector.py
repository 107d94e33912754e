"""Resolve the active glossary from persisted settings."""

from __future__ import annotations

from subweave.models.app_settings import AppSettings
from subweave.models.glossary import Glossary, GlossaryItem


def get_active_glossary(settings: AppSettings) -> Glossary | None:
    if not settings.glossaries or not settings.active_glossary_id:
        return None
    return next((g for g in settings.glossaries if g.id == settings.active_glossary_id), None)


def get_active_glossary_terms(settings: AppSettings) -> list[GlossaryItem]:
    """Runtime override first, then the active glossary's terms."""
    if settings.glossary_override:
        return list(settings.glossary_override)
    active = get_active_glossary(settings)
    return list(active.terms) if active is not None else []
