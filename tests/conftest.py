# tests/conftest.py
import pytest
from pathlib import Path
from unittest.mock import MagicMock
import sys
import argparse

# Ensure the app package is findable by pytest by adding the project root to the path
project_root = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(project_root))

from subrename.classifier import make_file_record


# --- Mock Config Fixture ---
@pytest.fixture
def mock_cfg_helper():
    mock_args = argparse.Namespace(profile='default')
    mock_config_manager = MagicMock()
    class MockConfigHelper:
        def __init__(self, manager, args): self.manager = manager; self.args = args; self.profile = getattr(args, 'profile', 'default') or 'default'
        def __call__(self, key, default_value=None, arg_value=None):
             if arg_value is not None: return arg_value
             if key in self.manager._mock_values: return self.manager._mock_values[key]
             return default_value
        def get_api_key(self, service_name): return self.manager._mock_apikeys.get(service_name)
    mock_config_manager._mock_values = {}
    mock_config_manager._mock_apikeys = {}
    return MockConfigHelper(mock_config_manager, mock_args)


# --- Guessit Fixture ---
@pytest.fixture
def mock_guessit(mocker):
    """Guessit patched where it is used; returns an empty guess unless a test says otherwise."""
    return mocker.patch('subrename.filename_parser.guessit', return_value={})


# --- Media Tree Fixture ---
@pytest.fixture
def media_dir(tmp_path: Path):
    """A season folder with three episodes, their subtitles, and some noise."""
    season = tmp_path / "season1"
    season.mkdir()
    for ep in (1, 2, 3):
        (season / f"[VCB-Studio] Kono Healer [{ep:02d}][1080p].mkv").write_bytes(b"video")
        (season / f"[Sub] Kono Healer [{ep:02d}][CHS].ass").write_text(f"subtitle {ep}", encoding="utf-8")
    (season / "notes.nfo").touch()
    (season / "extras").mkdir()
    (season / "extras" / "[VCB-Studio] Kono Healer [NCOP].mkv").write_bytes(b"op")
    return season


@pytest.fixture
def make_record():
    """Builds FileRecords from paths (str or Path) without touching disk."""
    def _make(path):
        return make_file_record(path)
    return _make
