# subrename/ui_utils.py
"""Rich renderings of plans, outcomes and lookup results for the command line."""
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .models import BangumiSubject, BangumiSubjectDetail, MatchResult, RenameOutcome, RenamePlanEntry


def make_console(quiet: bool = False) -> Console:
    return Console(quiet=quiet)

def print_stderr_message(message: Any, style: Optional[str] = "bold red"):
    """Errors always reach stderr, quiet mode or not."""
    Console(file=sys.stderr).print(message, style=style, markup=False)


def _format_timestamp(value: Any) -> str:
    try:
        return datetime.fromisoformat(str(value).replace('Z', '+00:00')).strftime('%Y-%m-%d %H:%M:%S')
    except ValueError:
        return str(value)


def render_plan(console: Console, plan: Sequence[RenamePlanEntry], conflicts: Sequence[Tuple[RenamePlanEntry, str]] = (),
                episodes: Optional[Sequence[Optional[int]]] = None, live: bool = False):
    title = "Rename Plan" if live else "Rename Plan (dry run)"
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Ep", justify="right", style="cyan")
    table.add_column("Video", style="blue")
    table.add_column("Subtitle")
    table.add_column("New Name", style="green")
    table.add_column("Status", style="yellow")

    reasons: Dict[int, List[str]] = {}
    for entry, reason in conflicts:
        reasons.setdefault(id(entry), []).append(reason)

    for i, entry in enumerate(plan, start=1):
        ep = episodes[i - 1] if episodes and i - 1 < len(episodes) else None
        status = ", ".join(reasons.get(id(entry), [])) or ("preview" if entry.is_preview else "ok")
        table.add_row(str(i), f"{ep:02d}" if ep is not None else "-", Text(entry.video.name),
                      Text(entry.subtitle.name), Text(entry.target_name), status)
    console.print(table)


def render_unmatched(console: Console, match: MatchResult):
    for v in match.unmatched_videos:
        console.print(Text(f"Skipped video (no subtitle): {v.name}", style="yellow"))
    for s in match.unmatched_subtitles:
        console.print(Text(f"Skipped subtitle (no video): {s.name}", style="yellow"))


def render_outcome(console: Console, outcome: RenameOutcome):
    if outcome.applied:
        console.print(Text(f"✓ {outcome.message}", style="green"))
    else:
        print_stderr_message(f"✗ {outcome.message}")
        if outcome.renamed_names:
            console.print(f"[yellow]Renamed before the failure ({len(outcome.renamed_names)}):[/yellow]")
            for name in outcome.renamed_names:
                console.print(f"  - {name}", markup=False)
    if outcome.batch_id:
        console.print(f"Undo batch ID: [cyan]{outcome.batch_id}[/cyan]")


def render_metadata(console: Console, data: Dict[str, Any], title: str = "Extracted Metadata"):
    table = Table(title=title, show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for key, value in data.items():
        if isinstance(value, (list, set, tuple)):
            value = ", ".join(sorted(str(v) for v in value)) or "-"
        table.add_row(key, Text("-" if value is None or value == "" else str(value)))
    console.print(table)


def render_batches(console: Console, batches: Sequence[Dict[str, Any]]):
    if not batches:
        console.print("No undo batches found in the log.")
        return
    table = Table(title="Available Undo Batches", show_header=True, header_style="bold magenta")
    table.add_column("Batch ID", style="cyan", min_width=25)
    table.add_column("Actions", style="magenta", justify="right")
    table.add_column("Reverted", justify="right")
    table.add_column("First Action (UTC)", style="green", min_width=20)
    table.add_column("Last Action (UTC)", style="green", min_width=20)
    for batch in batches:
        table.add_row(str(batch['batch_id']), str(batch['action_count']), str(batch.get('reverted_count') or 0),
                      _format_timestamp(batch['first_timestamp']), _format_timestamp(batch['last_timestamp']))
    console.print(table)


def render_subjects(console: Console, subjects: Sequence[BangumiSubject]):
    if not subjects:
        console.print("No Bangumi subjects found.")
        return
    table = Table(title="Bangumi Search", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Name")
    table.add_column("Chinese Name", style="green")
    table.add_column("Date", style="dim")
    for s in subjects:
        table.add_row(str(s.id), Text(s.name), Text(s.name_cn or "-"), s.date or "-")
    console.print(table)


def render_subject_detail(console: Console, detail: BangumiSubjectDetail):
    render_metadata(console, {
        'id': detail.id, 'name': detail.name, 'name_cn': detail.name_cn,
        'episodes': detail.episodes, 'year': detail.year, 'cover_url': detail.cover_url,
    }, title="Bangumi Subject")
