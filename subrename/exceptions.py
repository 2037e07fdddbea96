# subrename/exceptions.py
from typing import Optional

from .enums import ErrorKind


class RenamerError(Exception):
    """Base class for application-specific errors."""
    pass

class ConfigError(RenamerError):
    """Errors related to configuration loading or validation."""
    pass

class MetadataError(RenamerError):
    """Errors related to fetching metadata from remote catalogues (Bangumi)."""
    pass

class FileOperationError(RenamerError):
    """Errors during file system operations outside the rename plan (scanning, undo)."""
    pass


# --- Planning / Execution ---

class PlanError(RenamerError):
    """Base class for errors raised while planning or executing a subtitle rename."""
    kind: ErrorKind = ErrorKind.FILESYSTEM_ERROR

class CountMismatchError(PlanError):
    kind = ErrorKind.COUNT_MISMATCH

    def __init__(self, video_count: int, subtitle_count: int):
        self.video_count = video_count
        self.subtitle_count = subtitle_count
        super().__init__(f"Video count ({video_count}) does not match subtitle count ({subtitle_count})")

class SourceMissingError(PlanError):
    kind = ErrorKind.SOURCE_MISSING

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Subtitle file not found: {name}")

class TargetExistsError(PlanError):
    kind = ErrorKind.TARGET_EXISTS

    def __init__(self, target_name: str):
        self.target_name = target_name
        super().__init__(f"Target file {target_name} already exists")

class FilesystemError(PlanError):
    kind = ErrorKind.FILESYSTEM_ERROR

    def __init__(self, name: str, cause: Exception):
        self.name = name
        self.cause = cause
        super().__init__(f"Failed to rename file: {name} - {cause}")

class AmbiguousEpisodeError(PlanError):
    kind = ErrorKind.AMBIGUOUS_EPISODE

    def __init__(self, episode: int, names):
        self.episode = episode
        self.names = list(names)
        super().__init__(f"Episode {episode:02d} matches more than one file: {', '.join(self.names)}")

class UnmatchedFilesError(PlanError):
    kind = ErrorKind.UNMATCHED_FILES

    def __init__(self, unmatched_videos, unmatched_subtitles):
        self.unmatched_videos = list(unmatched_videos)
        self.unmatched_subtitles = list(unmatched_subtitles)
        parts = []
        if self.unmatched_videos: parts.append(f"videos without subtitle: {', '.join(self.unmatched_videos)}")
        if self.unmatched_subtitles: parts.append(f"subtitles without video: {', '.join(self.unmatched_subtitles)}")
        super().__init__("Unmatched files (" + "; ".join(parts) + ")")


# --- Extraction / Backend ---

class ExtractionError(RenamerError):
    """Base class for errors raised while extracting metadata from backend text."""
    kind: ErrorKind = ErrorKind.SCHEMA_MISMATCH

class NetworkError(ExtractionError):
    kind = ErrorKind.NETWORK_ERROR

class BadStatusError(ExtractionError):
    kind = ErrorKind.BAD_STATUS

    def __init__(self, status_code: int, body: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        super().__init__(f"LLM backend returned error status: {status_code}")

class SchemaMismatchError(ExtractionError):
    kind = ErrorKind.SCHEMA_MISMATCH

    def __init__(self, raw_text: str, detail: Optional[str] = None):
        self.raw_text = raw_text
        self.detail = detail
        super().__init__(f"Failed to parse LLM response: {raw_text}")

class EmptyInputError(ExtractionError):
    kind = ErrorKind.EMPTY_INPUT

    def __init__(self, message: str = "File list is empty"):
        super().__init__(message)
