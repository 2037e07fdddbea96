# subrename/main_processor.py
import logging
from typing import List, Optional, Tuple

from rich.console import Console

from .classifier import gather_media
from .config_manager import ConfigHelper, validate_episode_regex
from .exceptions import ConfigError, RenamerError
from .executor import check_targets, execute
from .matcher import match_by_episode, match_by_position
from .models import MatchResult, RenameOutcome, RenamePlanEntry
from .planner import plan as build_plan
from .ui_utils import render_outcome, render_plan, render_unmatched
from .undo_manager import UndoManager

log = logging.getLogger(__name__)


class MainProcessor:
    """Drives a `rename` run: gather files, pair them, plan, then preview or execute."""

    def __init__(self, args, cfg_helper: ConfigHelper, undo_manager: Optional[UndoManager], console: Console):
        self.args = args
        self.cfg = cfg_helper
        self.undo_manager = undo_manager
        self.console = console

    def _match(self, videos, subtitles) -> MatchResult:
        mode = self.cfg('match_mode', 'episode')
        if mode == 'position':
            log.debug("Pairing by sorted position.")
            return match_by_position(videos, subtitles)
        regex = self.cfg('episode_regex')
        try:
            validate_episode_regex(regex)
        except ValueError as e:
            raise ConfigError(f"Invalid episode regex '{regex}': {e}") from e
        log.debug(f"Pairing by episode key (regex: {regex}).")
        return match_by_episode(videos, subtitles, regex, strict=getattr(self.args, 'strict', False))

    def build(self) -> Tuple[MatchResult, List[RenamePlanEntry]]:
        videos, subtitles = gather_media(self.args.paths, recursive=bool(self.cfg('recursive', False)))
        log.info(f"Found {len(videos)} video(s) and {len(subtitles)} subtitle(s).")
        if not videos or not subtitles:
            raise RenamerError("Nothing to rename: need at least one video and one subtitle.")
        match = self._match(videos, subtitles)
        if self.cfg('match_mode', 'episode') == 'position':
            # Positional mode hands the untrimmed lists to the planner, which rejects unequal counts.
            entries = build_plan(videos, subtitles, self.cfg('default_suffix', ""))
        else:
            entries = build_plan(match.videos, match.subtitles, self.cfg('default_suffix', ""))
        return match, entries

    def run_processing(self) -> Optional[RenameOutcome]:
        match, entries = self.build()
        render_unmatched(self.console, match)
        if not entries:
            self.console.print("[yellow]No matching video/subtitle pairs found.[/yellow]")
            return None

        conflicts = check_targets(entries)
        render_plan(self.console, entries, conflicts, episodes=match.episodes, live=self.args.live)
        if not self.args.live:
            self.console.print(f"Dry run: {len(entries)} subtitle(s) would be renamed. Use --live to apply.")
            if conflicts:
                log.warning(f"{len(conflicts)} conflict(s) would stop a live run.")
            return None

        undo = self.undo_manager if self.undo_manager is not None and self.undo_manager.is_enabled else None
        outcome = execute(entries, undo_manager=undo)
        render_outcome(self.console, outcome)
        return outcome
