# subrename/undo_manager.py
import logging
import os
import sqlite3
from datetime import datetime, timezone, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from platformdirs import user_data_dir

from .exceptions import FileOperationError

log = logging.getLogger(__name__)

APP_NAME = "subrename"
DB_FILENAME = "rename_log.db"
MTIME_TOLERANCE = 1.0


class UndoManager:
    """
    Persistent log of executed subtitle renames, one batch per execution.

    Rename execution never rolls back by itself; a batch recorded here can be
    reverted afterwards with ``undo_batch``.
    """

    def __init__(self, cfg_helper):
        self.cfg = cfg_helper
        self.db_path: Optional[Path] = None
        self.is_enabled: bool = bool(self.cfg('enable_undo', True))
        self.check_integrity: bool = bool(self.cfg('undo_check_integrity', True))
        if not self.is_enabled:
            log.info("Undo feature disabled by configuration.")
            return
        self.db_path = self._resolve_db_path()
        self._init_db()
        log.debug(f"UndoManager initialized (DB: {self.db_path}, Integrity: {self.check_integrity})")

    def _resolve_db_path(self) -> Path:
        db_path_config = self.cfg('undo_db_path', None)
        path = Path(db_path_config) if db_path_config else Path(user_data_dir(APP_NAME, appauthor=False)) / DB_FILENAME
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileOperationError(f"Cannot create undo database directory '{path.parent}': {e}") from e
        return path.resolve()

    def _connect(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(self.db_path, timeout=10.0)
        except sqlite3.Error as e:
            raise FileOperationError(f"Cannot connect to undo database '{self.db_path}': {e}") from e
        conn.row_factory = sqlite3.Row
        try: conn.execute("PRAGMA journal_mode=WAL;")
        except sqlite3.Error as pe: log.warning(f"Could not set PRAGMA journal_mode=WAL for undo DB ({self.db_path}): {pe}")
        return conn

    def _init_db(self):
        conn = self._connect()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS rename_log (
                    id INTEGER PRIMARY KEY AUTOINCREMENT, batch_id TEXT NOT NULL, timestamp TEXT NOT NULL,
                    original_path TEXT NOT NULL, new_path TEXT NOT NULL,
                    status TEXT CHECK(status IN ('renamed', 'reverted')) NOT NULL,
                    original_size INTEGER, original_mtime REAL, UNIQUE(batch_id, original_path)
                )""")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_batch_id ON rename_log(batch_id)")
            conn.commit()
        except sqlite3.Error as e:
            raise FileOperationError(f"Failed to initialize undo database schema: {e}") from e
        finally:
            conn.close()

    def log_action(self, batch_id: str, original_path, new_path) -> bool:
        """Records one completed rename. Size and mtime are read from ``new_path`` (same file)."""
        if not self.is_enabled: return False
        size: Optional[int] = None
        mtime: Optional[float] = None
        try:
            stat_info = Path(new_path).stat()
            size, mtime = stat_info.st_size, stat_info.st_mtime
        except OSError as e:
            log.warning(f"Could not stat renamed file for undo log '{new_path}': {e}")

        conn = self._connect()
        try:
            conn.execute(
                "INSERT INTO rename_log (batch_id, timestamp, original_path, new_path, status, original_size, original_mtime) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (batch_id, datetime.now(timezone.utc).isoformat(), str(original_path), str(new_path), 'renamed', size, mtime)
            )
            conn.commit()
            log.debug(f"Logged rename '{original_path}' -> '{new_path}' (batch '{batch_id}')")
            return True
        except sqlite3.IntegrityError as e:
            log.warning(f"Duplicate entry in rename log for '{original_path}' ('{batch_id}'): {e}.")
            return False
        except sqlite3.Error as e:
            log.error(f"DB error log_action for '{original_path}' ('{batch_id}'): {e}")
            return False
        finally:
            conn.close()

    def prune_old_batches(self) -> int:
        if not self.is_enabled: return 0
        expire_days_cfg = self.cfg('undo_expire_days', 30)
        try:
            expire_days = int(expire_days_cfg if expire_days_cfg is not None else 30)
        except (ValueError, TypeError):
            log.warning(f"Invalid 'undo_expire_days' ('{expire_days_cfg}'). Defaulting to 30.")
            expire_days = 30
        if expire_days < 0:
            log.debug("Undo expiration days set to -1 (forever). Skipping prune.")
            return 0

        cutoff_iso = (datetime.now(timezone.utc) - timedelta(days=expire_days)).isoformat()
        conn = self._connect()
        try:
            cur = conn.execute("DELETE FROM rename_log WHERE timestamp < ?", (cutoff_iso,))
            conn.commit()
            deleted_rows = cur.rowcount or 0
        except sqlite3.Error as e:
            log.error(f"Error during undo log pruning: {e}")
            return 0
        finally:
            conn.close()
        if deleted_rows > 0: log.info(f"Pruned {deleted_rows} old undo log records.")
        return deleted_rows

    def _check_file_integrity(self, current_path: Path, logged_size: Optional[int], logged_mtime: Optional[float]) -> Tuple[bool, str]:
        if not self.check_integrity:
            return True, "Skipped (Check Disabled)"
        if logged_size is None and logged_mtime is None:
            return True, "Skipped (no stats logged)"
        try:
            current_stat = current_path.stat()
        except OSError as e:
            return False, f"FAIL (Cannot stat: {e})"
        reasons: List[str] = []
        if logged_size is not None and current_stat.st_size != logged_size:
            reasons.append(f"Size ({current_stat.st_size} != {logged_size})")
        if logged_mtime is not None and abs(current_stat.st_mtime - logged_mtime) >= MTIME_TOLERANCE:
            reasons.append(f"MTime ({current_stat.st_mtime:.2f} !~= {logged_mtime:.2f})")
        return (True, "OK") if not reasons else (False, f"FAIL ({', '.join(reasons)})")

    def list_batches(self) -> List[Dict[str, Any]]:
        if not self.is_enabled or not self.db_path or not self.db_path.exists():
            log.error("Cannot list batches: Undo disabled or DB not found.")
            return []
        query = """
            SELECT batch_id, MIN(timestamp) as first_timestamp, MAX(timestamp) as last_timestamp, COUNT(*) as action_count,
                   SUM(CASE WHEN status = 'reverted' THEN 1 ELSE 0 END) as reverted_count
            FROM rename_log
            GROUP BY batch_id
            ORDER BY last_timestamp DESC
        """
        conn = self._connect()
        try:
            return [dict(row) for row in conn.execute(query).fetchall()]
        except sqlite3.Error as e:
            log.error(f"Database error listing undo batches: {e}")
            return []
        finally:
            conn.close()

    def undo_batch(self, batch_id: str, dry_run: bool = False) -> Tuple[bool, List[str]]:
        """
        Reverts a batch in reverse order. Entries whose renamed file is gone, whose
        original path is occupied, or which fail the integrity check are skipped.
        Returns (all_reverted, messages).
        """
        if not self.is_enabled:
            return False, ["Undo is disabled by configuration."]
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT * FROM rename_log WHERE batch_id = ? AND status = 'renamed' ORDER BY id DESC", (batch_id,)
            ).fetchall()
            if not rows:
                return False, [f"No revertable actions found for batch '{batch_id}'."]

            messages: List[str] = []
            ok = True
            for row in rows:
                original, current = Path(row['original_path']), Path(row['new_path'])
                if not current.exists():
                    ok = False; messages.append(f"Skipped '{current.name}': file no longer exists"); continue
                if original.exists():
                    ok = False; messages.append(f"Skipped '{current.name}': '{original.name}' already exists"); continue
                passed, reason = self._check_file_integrity(current, row['original_size'], row['original_mtime'])
                if not passed:
                    ok = False; messages.append(f"Skipped '{current.name}': integrity {reason}"); continue
                if dry_run:
                    messages.append(f"Would revert '{current.name}' -> '{original.name}'"); continue
                try:
                    os.rename(current, original)
                except OSError as e:
                    ok = False; messages.append(f"Failed to revert '{current.name}': {e}"); continue
                conn.execute("UPDATE rename_log SET status = 'reverted' WHERE id = ?", (row['id'],))
                conn.commit()
                messages.append(f"Reverted '{current.name}' -> '{original.name}'")
                log.info(f"Reverted '{current}' -> '{original}'")
            return ok, messages
        except sqlite3.Error as e:
            raise FileOperationError(f"Undo database error for batch '{batch_id}': {e}") from e
        finally:
            conn.close()
