"""Bounded snapshot history over the working subtitle set."""

from subweave.snapshots.restore import (
    BACKUP_LABEL,
    RestorePlan,
    RestoreResult,
    Workspace,
    derive_speaker_profiles,
    plan_restore,
    restore_snapshot,
)
from subweave.snapshots.store import DEFAULT_MAX_SNAPSHOTS, SnapshotStore

__all__ = [
    "BACKUP_LABEL",
    "DEFAULT_MAX_SNAPSHOTS",
    "RestorePlan",
    "RestoreResult",
    "SnapshotStore",
    "Workspace",
    "derive_speaker_profiles",
    "plan_restore",
    "restore_snapshot",
]
