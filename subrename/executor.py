# subrename/executor.py
import logging
import os
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .exceptions import RenamerError, PlanError, TargetExistsError, FilesystemError
from .models import RenamePlanEntry, RenameOutcome, RenameRequest, RenameResponse
from .planner import plan as build_plan

log = logging.getLogger(__name__)


def new_batch_id() -> str:
    return f"run-{datetime.now(timezone.utc).strftime('%Y%m%d%H%M%S')}-{uuid.uuid4().hex[:8]}"


def check_targets(plan: Sequence[RenamePlanEntry]) -> List[Tuple[RenamePlanEntry, str]]:
    """Read-only preflight for dry runs: lists entries that would fail or collide."""
    conflicts: List[Tuple[RenamePlanEntry, str]] = []
    seen = set()
    for entry in plan:
        key = str(entry.target_path) if entry.target_path else entry.target_name
        if key in seen:
            conflicts.append((entry, "duplicate target in plan"))
        seen.add(key)
        if entry.target_path is not None and entry.target_path.exists():
            conflicts.append((entry, "target already exists"))
    return conflicts


def _record_undo(undo_manager, batch_id: str, original: Path, target: Path):
    # Best effort: the rename is already on disk.
    try:
        undo_manager.log_action(batch_id, original, target)
    except (RenamerError, sqlite3.Error) as e:
        log.warning(f"Could not record undo entry for '{target.name}': {e}")


def execute(plan: Sequence[RenamePlanEntry], undo_manager=None, batch_id: Optional[str] = None) -> RenameOutcome:
    """
    Applies a plan strictly in order and stops at the first failure.

    Renames already done stay done; the outcome lists them with the failure.
    Preview entries (bare filenames) are reported as renamed without touching disk.
    """
    logging_undo = undo_manager is not None and getattr(undo_manager, 'is_enabled', False)
    if logging_undo and not batch_id:
        batch_id = new_batch_id()

    renamed: List[str] = []
    for entry in plan:
        target_path = entry.target_path
        if target_path is None:
            log.debug(f"Preview rename: '{entry.subtitle.name}' -> '{entry.target_name}'")
            renamed.append(entry.target_name)
            continue

        try:
            if target_path.exists():
                raise TargetExistsError(entry.target_name)
            try:
                os.rename(entry.subtitle.path, target_path)
            except OSError as e:
                raise FilesystemError(entry.subtitle.name, e) from e
        except PlanError as e:
            log.error(f"Rename stopped after {len(renamed)} file(s): {e}")
            return RenameOutcome(applied=False, renamed_names=renamed, failure=e, message=str(e),
                                 batch_id=batch_id if renamed and logging_undo else None)

        log.info(f"Renamed '{entry.subtitle.name}' -> '{entry.target_name}'")
        renamed.append(entry.target_name)
        if logging_undo:
            _record_undo(undo_manager, batch_id, Path(entry.subtitle.path), target_path)

    message = f"Successfully renamed {len(renamed)} file(s)"
    return RenameOutcome(applied=True, renamed_names=renamed, message=message,
                         batch_id=batch_id if logging_undo else None)


def rename_subtitle_files(request: RenameRequest, undo_manager=None) -> RenameResponse:
    """Request boundary: plan then execute, never raising a PlanError."""
    try:
        entries = build_plan(request.video_files, request.subtitle_files, request.suffix)
    except PlanError as e:
        log.warning(f"Rename request rejected: {e}")
        return RenameResponse(success=False, message=str(e), error_kind=e.kind)
    outcome = execute(entries, undo_manager=undo_manager)
    return RenameResponse(success=outcome.applied, message=outcome.message,
                          renamed_files=list(outcome.renamed_names), error_kind=outcome.error_kind)
