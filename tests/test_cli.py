import sys
import pytest
from subrename import cli
from pathlib import Path

@pytest.fixture
def reset_argv():
    """Fixture to reset sys.argv after each test."""
    original_argv = sys.argv.copy()
    yield
    sys.argv = original_argv

def test_parse_arguments_minimal(mocker, reset_argv):
    """Basic argument parsing for the rename command."""
    mocker.patch.object(sys, 'argv', ['subrename_main.py', 'rename', 'some/path'])
    args = cli.parse_arguments()
    assert args.command == 'rename'
    assert args.paths == [Path('some/path')]
    assert args.live is False  # Default dry run
    assert args.strict is False
    assert args.match_mode is None
    assert args.recursive is None
    assert args.default_suffix is None

def test_parse_arguments_with_flags():
    args = cli.parse_arguments([
        '--log-level', 'DEBUG', '--profile', 'remote', 'rename', 'videos/', 'subs/ep1.ass',
        '--live', '--recursive', '--suffix', 'chs', '--match', 'position', '--episode-regex', r'EP(\d+)', '--strict',
    ])
    assert args.paths == [Path('videos/'), Path('subs/ep1.ass')]
    assert args.live is True
    assert args.recursive is True
    assert args.log_level == 'DEBUG'
    assert args.profile == 'remote'
    assert args.default_suffix == 'chs'
    assert args.match_mode == 'position'
    assert args.episode_regex == r'EP(\d+)'
    assert args.strict is True

def test_no_recursive_flag():
    args = cli.parse_arguments(['rename', '.', '--no-recursive', '--no-enable-undo'])
    assert args.recursive is False
    assert args.enable_undo is False

def test_parse_extract():
    args = cli.parse_arguments(['extract', '[Sub] Show - 01 [1080p].mkv', '--offline', '--json'])
    assert args.command == 'extract'
    assert args.filename == '[Sub] Show - 01 [1080p].mkv'
    assert args.offline is True
    assert args.as_json is True

def test_parse_batch_title_allows_empty_list():
    args = cli.parse_arguments(['batch-title'])
    assert args.filenames == []

def test_parse_bangumi():
    args = cli.parse_arguments(['bangumi', 'search', 'Frieren', '--limit', '3'])
    assert (args.bangumi_command, args.query, args.limit) == ('search', 'Frieren', 3)
    args = cli.parse_arguments(['bangumi', 'detail', '400602'])
    assert args.subject_id == 400602

def test_parse_arguments_undo_command():
    args = cli.parse_arguments(['undo', 'batch123', '--dry-run'])
    assert args.command == 'undo'
    assert args.batch_id == 'batch123'
    assert args.dry_run is True
    assert cli.parse_arguments(['undo', '--list']).batch_id is None

def test_parse_config_commands():
    assert cli.parse_arguments(['config', 'generate', '-f']).force is True
    assert cli.parse_arguments(['config', 'show', '--raw']).raw is True
    assert cli.parse_arguments(['--config', 'my.toml', 'config', 'path']).config == Path('my.toml')

def test_invalid_match_mode_rejected():
    with pytest.raises(SystemExit):
        cli.parse_arguments(['rename', '.', '--match', 'fuzzy'])

def test_parse_arguments_missing_command(mocker, reset_argv):
    mocker.patch.object(sys, 'argv', ['subrename_main.py'])
    with pytest.raises(SystemExit):
        cli.parse_arguments()

def test_help_message(capsys):
    with pytest.raises(SystemExit):
        cli.parse_arguments(['--help'])
    captured = capsys.readouterr()
    assert 'usage' in captured.out.lower()
    assert 'rename' in captured.out.lower()
    assert 'undo' in captured.out.lower()
    assert 'bangumi' in captured.out.lower()
