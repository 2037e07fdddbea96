# subrename/enums.py
from enum import Enum, auto

class FileKind(Enum):
    """Kind of a media file, decided only by its extension."""
    VIDEO = auto()
    SUBTITLE = auto()
    OTHER = auto()

    def __str__(self):
        return self.name.title()


class ErrorKind(Enum):
    """
    Represents the reason for a failed request.
    Every PlanError / ExtractionError carries one so callers can branch without isinstance chains.
    """
    # --- Planning / Execution ---
    COUNT_MISMATCH = auto()      # Video and subtitle lists have different lengths
    SOURCE_MISSING = auto()      # Absolute subtitle path does not exist
    TARGET_EXISTS = auto()       # Computed target already exists on disk
    FILESYSTEM_ERROR = auto()    # os.rename failed (permissions, cross-device, ...)

    # --- Matching ---
    AMBIGUOUS_EPISODE = auto()   # Two files of the same list share an episode key
    UNMATCHED_FILES = auto()     # Strict matching left files without a partner

    # --- Extraction / Backend ---
    NETWORK_ERROR = auto()       # Connection failure or timeout talking to the backend
    BAD_STATUS = auto()          # Backend answered with a non-2xx status
    SCHEMA_MISMATCH = auto()     # Response text could not be decoded into the schema
    EMPTY_INPUT = auto()         # Batch extraction called without filenames

    def __str__(self):
        return self.name.replace("_", " ").title()
