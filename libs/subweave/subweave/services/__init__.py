"""Service layer (persistence and application-level helpers)."""

from subweave.services.settings_store import SettingsStore

__all__ = ["SettingsStore"]
