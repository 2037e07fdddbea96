# models.py
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List, Dict, Any, Tuple

from .enums import FileKind, ErrorKind
from .exceptions import PlanError

PATH_SEPARATORS = ('/', '\\')


def is_preview_path(path: str) -> bool:
    """A path without any separator is a bare filename: planning and renaming are simulated."""
    return not any(sep in path for sep in PATH_SEPARATORS)


@dataclass(frozen=True)
class FileRecord:
    """A classified file. Identity is the path; kind never changes after creation."""
    name: str
    path: str
    kind: FileKind

    @property
    def is_video(self) -> bool:
        return self.kind is FileKind.VIDEO

    @property
    def is_subtitle(self) -> bool:
        return self.kind is FileKind.SUBTITLE

    def __eq__(self, other):
        if not isinstance(other, FileRecord): return NotImplemented
        return self.path == other.path

    def __hash__(self):
        return hash(self.path)

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'path': self.path, 'is_video': self.is_video}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileRecord":
        # Deferred import: classifier imports this module.
        from .classifier import classify
        name = data.get('name') or Path(str(data.get('path') or '')).name
        return cls(name=name, path=str(data.get('path') or name), kind=classify(name))


@dataclass
class RenamePlanEntry:
    """One subtitle rename: subtitle takes the video's stem plus optional suffix."""
    video: FileRecord
    subtitle: FileRecord
    target_name: str

    @property
    def is_preview(self) -> bool:
        return is_preview_path(self.subtitle.path)

    @property
    def target_path(self) -> Optional[Path]:
        if self.is_preview: return None
        return Path(self.subtitle.path).parent / self.target_name


@dataclass
class RenameOutcome:
    """Result of executing a plan. renamed_names is partial when failure is set."""
    applied: bool
    renamed_names: List[str] = field(default_factory=list)
    failure: Optional[PlanError] = None
    message: str = ""
    batch_id: Optional[str] = None

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        return self.failure.kind if self.failure is not None else None


@dataclass
class RenameRequest:
    video_files: List[FileRecord]
    subtitle_files: List[FileRecord]
    suffix: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RenameRequest":
        return cls(
            video_files=[FileRecord.from_dict(v) for v in data.get('video_files', [])],
            subtitle_files=[FileRecord.from_dict(s) for s in data.get('subtitle_files', [])],
            suffix=data.get('suffix') or "",
        )


@dataclass
class RenameResponse:
    success: bool
    message: str
    renamed_files: List[str] = field(default_factory=list)
    error_kind: Optional[ErrorKind] = None

    def to_dict(self) -> Dict[str, Any]:
        return {'success': self.success, 'message': self.message, 'renamed_files': list(self.renamed_files)}


@dataclass
class MatchResult:
    """Output of the episode matcher: aligned pairs plus whatever was left over."""
    pairs: List[Tuple[FileRecord, FileRecord]] = field(default_factory=list)
    unmatched_videos: List[FileRecord] = field(default_factory=list)
    unmatched_subtitles: List[FileRecord] = field(default_factory=list)
    episodes: List[Optional[int]] = field(default_factory=list) # key per pair, None for ordinal pairs

    @property
    def videos(self) -> List[FileRecord]:
        return [v for v, _ in self.pairs]

    @property
    def subtitles(self) -> List[FileRecord]:
        return [s for _, s in self.pairs]


@dataclass
class BangumiSubject:
    id: int
    name: str
    name_cn: Optional[str] = None
    subject_type: Optional[int] = None
    date: Optional[str] = None


@dataclass
class BangumiSubjectDetail:
    id: int
    name: str
    name_cn: Optional[str] = None
    cover_url: Optional[str] = None
    episodes: Optional[int] = None
    year: Optional[int] = None


@dataclass
class LLMResponse:
    """Boundary wrapper for extraction requests: data on success, error text otherwise."""
    success: bool
    data: Optional[Any] = None # ExtractedMetadata or BatchMetadataGuess
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    def to_dict(self) -> Dict[str, Any]:
        data = None
        if self.data is not None:
            data = self.data.model_dump(mode='json') if hasattr(self.data, 'model_dump') else self.data
        return {'success': self.success, 'data': data, 'error': self.error}
