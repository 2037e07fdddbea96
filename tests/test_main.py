# tests/test_main.py
import os
import json
import logging
import sqlite3
import pytest
from pathlib import Path

import subrename_main


@pytest.fixture(autouse=True)
def isolated_env(mocker):
    """No stray .env or LLM_* variables, and no handlers left behind on the app logger."""
    mocker.patch('subrename.config_manager.find_dotenv', return_value="")
    mocker.patch.dict(os.environ)
    for var in ("LLM_API_KEY", "LLM_MODEL_URL", "LLM_MODEL_NAME"):
        os.environ.pop(var, None)
    yield
    logger = logging.getLogger("subrename")
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def config_file(tmp_path: Path):
    path = tmp_path / "config.toml"
    db = (tmp_path / "undo.db").as_posix()
    path.write_text(f"[default]\nundo_db_path = '{db}'\ndefault_suffix = 'chs'\nlog_level = 'WARNING'\n", encoding="utf-8")
    return path


def _run(config_file, *argv):
    return subrename_main.main(['--config', str(config_file), *argv])


def _sorted_names(folder: Path):
    return sorted(p.name for p in folder.iterdir() if p.is_file())


# --- Rename ---

def test_rename_dry_run_changes_nothing(config_file, media_dir, capsys):
    before = _sorted_names(media_dir)

    assert _run(config_file, 'rename', str(media_dir)) == 0

    assert _sorted_names(media_dir) == before
    assert "Dry run: 3 subtitle(s) would be renamed" in capsys.readouterr().out


def test_rename_live_then_undo(config_file, media_dir, tmp_path):
    assert _run(config_file, 'rename', str(media_dir), '--live') == 0

    for ep in ("01", "02", "03"):
        assert (media_dir / f"[VCB-Studio] Kono Healer [{ep}][1080p].chs.ass").exists()
        assert not (media_dir / f"[Sub] Kono Healer [{ep}][CHS].ass").exists()
    assert (media_dir / "[VCB-Studio] Kono Healer [02][1080p].chs.ass").read_text(encoding="utf-8") == "subtitle 2"

    with sqlite3.connect(tmp_path / "undo.db") as conn:
        (batch_id,) = conn.execute("SELECT DISTINCT batch_id FROM rename_log").fetchone()

    assert _run(config_file, 'undo', batch_id) == 0
    assert (media_dir / "[Sub] Kono Healer [01][CHS].ass").exists()
    assert not (media_dir / "[VCB-Studio] Kono Healer [01][1080p].chs.ass").exists()


def test_rename_live_suffix_from_command_line(config_file, media_dir):
    assert _run(config_file, 'rename', str(media_dir), '--live', '--suffix', 'tc', '--no-enable-undo') == 0
    assert (media_dir / "[VCB-Studio] Kono Healer [03][1080p].tc.ass").exists()


def test_rename_target_exists_fails(config_file, media_dir, capsys):
    # Explicit files, since a folder scan would pick the blocker up as a fourth subtitle
    files = [str(p) for p in sorted(media_dir.glob("*.mkv")) + sorted(media_dir.glob("*.ass"))]
    (media_dir / "[VCB-Studio] Kono Healer [02][1080p].chs.ass").write_text("keep", encoding="utf-8")

    assert _run(config_file, 'rename', *files, '--live') == 1

    assert (media_dir / "[VCB-Studio] Kono Healer [01][1080p].chs.ass").exists()
    assert (media_dir / "[VCB-Studio] Kono Healer [02][1080p].chs.ass").read_text(encoding="utf-8") == "keep"
    assert "already exists" in capsys.readouterr().err


def test_position_mode_count_mismatch(config_file, media_dir, capsys):
    (media_dir / "[Sub] Kono Healer [04][CHS].ass").touch()
    assert _run(config_file, 'rename', str(media_dir), '--match', 'position', '--live') == 1
    assert "Video count (3) does not match subtitle count (4)" in capsys.readouterr().err


def test_strict_mode_unmatched(config_file, media_dir):
    (media_dir / "[Sub] Kono Healer [07][CHS].ass").touch()
    assert _run(config_file, 'rename', str(media_dir), '--strict') == 1
    assert _run(config_file, 'rename', str(media_dir)) == 0


@pytest.mark.parametrize("regex", ["[", r"\d{2}"])
def test_invalid_cli_episode_regex_is_config_error(config_file, media_dir, regex, capsys):
    before = _sorted_names(media_dir)
    assert _run(config_file, 'rename', str(media_dir), '--episode-regex', regex, '--live') == 2
    assert "episode_regex" in capsys.readouterr().err
    assert _sorted_names(media_dir) == before


def test_rename_nothing_found(config_file, tmp_path):
    empty = tmp_path / "empty"
    empty.mkdir()
    assert _run(config_file, 'rename', str(empty)) == 1


# --- Extract ---

def test_extract_offline_json(config_file, mock_guessit, capsys):
    mock_guessit.return_value = {'title': 'Kono Healer', 'screen_size': '1080p'}

    assert _run(config_file, 'extract', '[Sub] Kono Healer [05][1080p].mkv', '--offline', '--json') == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload['success'] is True
    assert payload['data']['episode'] == 5
    assert payload['data']['title'] == 'Kono Healer'


def test_batch_title_empty_input_reports_error(config_file, capsys):
    assert _run(config_file, 'batch-title') == 1
    assert "ERROR" in capsys.readouterr().err


# --- Undo & Config ---

def test_undo_requires_batch_id(config_file):
    assert _run(config_file, 'undo') == 1


def test_undo_list_empty(config_file, capsys):
    assert _run(config_file, 'undo', '--list') == 0
    assert "No undo batches found" in capsys.readouterr().out


def test_missing_config_file_exit_code(tmp_path):
    assert subrename_main.main(['--config', str(tmp_path / "missing.toml"), 'config', 'path']) == 2


def test_config_show_raw(config_file, capsys):
    assert _run(config_file, 'config', 'show', '--raw') == 0
    assert "default_suffix = 'chs'" in capsys.readouterr().out


def test_config_generate_respects_existing(config_file, capsys):
    assert _run(config_file, 'config', 'generate') == 2
    assert _run(config_file, 'config', 'generate', '--force') == 0
    assert "[default]" in config_file.read_text(encoding="utf-8")
