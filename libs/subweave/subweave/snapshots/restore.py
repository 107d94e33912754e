"""Restore a snapshot into the working set.

The current state is backed up first (when non-empty), then replaced
wholesale by copies of the snapshot. Restoring a snapshot captured from a
different file is allowed; `plan_restore` flags it so callers can confirm.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from subweave.models.subtitle import SpeakerProfile, SubtitleItem, SubtitleSnapshot
from subweave.snapshots.store import SnapshotStore

logger = logging.getLogger(__name__)

BACKUP_LABEL = "Backup before restore"
UNKNOWN_FILE_ID = "unknown"
UNKNOWN_FILE_NAME = "Unknown file"


@dataclass
class Workspace:
    """The live, single-writer working set."""

    subtitles: list[SubtitleItem] = field(default_factory=list)
    comments: dict[str, str] = field(default_factory=dict)
    speaker_profiles: list[SpeakerProfile] = field(default_factory=list)
    file_id: str = ""
    file_name: str = ""
    subtitle_file_name: str | None = None


@dataclass(frozen=True)
class RestorePlan:
    snapshot: SubtitleSnapshot
    is_cross_file: bool
    needs_backup: bool


@dataclass(frozen=True)
class RestoreResult:
    snapshot: SubtitleSnapshot
    backup: SubtitleSnapshot | None
    is_cross_file: bool


def plan_restore(workspace: Workspace, snapshot: SubtitleSnapshot) -> RestorePlan:
    return RestorePlan(
        snapshot=snapshot,
        is_cross_file=bool(workspace.file_id) and workspace.file_id != snapshot.file_id,
        needs_backup=bool(workspace.subtitles),
    )


def derive_speaker_profiles(subtitles: list[SubtitleItem]) -> list[SpeakerProfile]:
    """Minimal profiles from the distinct non-empty speaker tags, in first-seen order."""
    seen: dict[str, None] = {}
    for sub in subtitles:
        if sub.speaker:
            seen.setdefault(sub.speaker, None)
    return [SpeakerProfile(id=name, name=name) for name in seen]


def restore_snapshot(store: SnapshotStore, workspace: Workspace, snapshot: SubtitleSnapshot) -> RestoreResult:
    plan = plan_restore(workspace, snapshot)

    backup: SubtitleSnapshot | None = None
    if plan.needs_backup:
        backup = store.create_snapshot(
            BACKUP_LABEL,
            workspace.subtitles,
            workspace.comments,
            workspace.file_id or UNKNOWN_FILE_ID,
            workspace.file_name or UNKNOWN_FILE_NAME,
            workspace.speaker_profiles,
        )

    workspace.subtitles = snapshot.copy_subtitles()
    workspace.comments = snapshot.copy_comments()
    if snapshot.speaker_profiles:
        workspace.speaker_profiles = snapshot.copy_speaker_profiles()
    else:
        workspace.speaker_profiles = derive_speaker_profiles(workspace.subtitles)
    workspace.subtitle_file_name = snapshot.file_name or None

    logger.info(
        "snapshot restored (id=%s, items=%d, cross_file=%s, backup=%s)",
        snapshot.id,
        len(workspace.subtitles),
        plan.is_cross_file,
        backup.id if backup else None,
    )
    return RestoreResult(snapshot=snapshot, backup=backup, is_cross_file=plan.is_cross_file)
