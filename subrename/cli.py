import argparse
from pathlib import Path
from . import __version__

def create_parser():
    parser = argparse.ArgumentParser(
        description=f"Subtitle renamer and anime filename analyzer (v{__version__}).",
        formatter_class=argparse.RawTextHelpFormatter
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('--config', type=Path, help='Path to TOML config file (overrides default search).')
    parser.add_argument('--profile', type=str, default='default', help='Configuration profile to use.')
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], default=None, help='Console logging level (overrides config).')
    parser.add_argument('--log-file', type=str, default=None, help='Log file path (overrides config).')
    parser.add_argument('--quiet', '-q', action='store_true', default=False, help='Suppress all non-essential console output. Errors still shown.')

    subparsers = parser.add_subparsers(dest='command', required=True, help='Action to perform')

    # --- Rename Subparser ---
    parser_rename = subparsers.add_parser('rename', help='Rename subtitles after their videos.', formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    parser_rename.add_argument("paths", type=Path, nargs='+', metavar="PATH", help="Directories and/or video and subtitle files.")
    parser_rename.add_argument("--suffix", type=str, default=None, help="Language suffix, e.g. 'chs' gives 'Video.chs.srt' (overrides config).")
    parser_rename.add_argument("--match", dest="match_mode", choices=['episode', 'position'], default=None, help="Pair by episode number or by sorted position (overrides config).")
    parser_rename.add_argument("--episode-regex", type=str, default=None, help="Regex whose first group is the episode number (overrides config).")
    parser_rename.add_argument("--strict", action="store_true", default=False, help="Fail instead of skipping files that have no partner.")
    parser_rename.add_argument("--live", action="store_true", default=False, help="Perform live run (Default: dry run).")
    parser_rename.add_argument("-r", "--recursive", action=argparse.BooleanOptionalAction, default=None, help="Scan directories recursively (overrides config).")
    parser_rename.add_argument("--enable-undo", action=argparse.BooleanOptionalAction, default=None, help="Enable/disable undo logging (overrides config).")

    # --- Extract Subparser ---
    parser_extract = subparsers.add_parser('extract', help='Extract episode metadata from a filename.')
    parser_extract.add_argument("filename", type=str, help="Video filename to analyze.")
    parser_extract.add_argument("--offline", action="store_true", default=False, help="Parse locally with guessit instead of the LLM backend.")
    parser_extract.add_argument("--json", dest="as_json", action="store_true", default=False, help="Print the raw response object as JSON.")

    # --- Batch Title Subparser ---
    parser_batch = subparsers.add_parser('batch-title', help='Infer the common anime title of several filenames.')
    parser_batch.add_argument("filenames", type=str, nargs='*', metavar="FILE", help="Filenames of one series.")
    parser_batch.add_argument("--json", dest="as_json", action="store_true", default=False, help="Print the raw response object as JSON.")

    # --- Bangumi Subparser ---
    parser_bangumi = subparsers.add_parser('bangumi', help='Look up anime on Bangumi (bgm.tv).')
    bangumi_subparsers = parser_bangumi.add_subparsers(dest='bangumi_command', required=True, help='Bangumi action to perform')
    parser_bangumi_search = bangumi_subparsers.add_parser('search', help='Search anime subjects by keyword.')
    parser_bangumi_search.add_argument("query", type=str, help="Search keywords.")
    parser_bangumi_search.add_argument("--limit", type=int, default=10, help="Maximum number of results.")
    parser_bangumi_detail = bangumi_subparsers.add_parser('detail', help='Show details of one subject.')
    parser_bangumi_detail.add_argument("subject_id", type=int, help="Bangumi subject ID.")

    # --- Undo Subparser ---
    parser_undo = subparsers.add_parser('undo', help='Revert rename operations or list batches.')
    parser_undo.add_argument("batch_id", type=str, nargs='?', default=None, help="Batch ID of the run to undo/preview (required unless --list is used).")
    parser_undo.add_argument("--list", action="store_true", help="List available batch IDs and their timestamps from the undo log.")
    parser_undo.add_argument("--dry-run", action="store_true", help="Show which files would be reverted for the given batch ID without taking action.")

    # --- Config Subparser ---
    parser_config = subparsers.add_parser('config', help='Manage application configuration.')
    config_subparsers = parser_config.add_subparsers(dest='config_command', required=True, help='Configuration action to perform')

    parser_config_show = config_subparsers.add_parser('show', help='Show the currently loaded configuration.')
    parser_config_show.add_argument('--raw', action="store_true", help="Show the raw TOML content of the loaded config file without merging or validation.")

    parser_config_generate = config_subparsers.add_parser('generate', help='Generate a default config.toml file.')
    parser_config_generate.add_argument('--force', '-f', action='store_true', help='Overwrite the config file if it already exists at the target location.')

    config_subparsers.add_parser('path', help='Print where the configuration is read from and written to.')

    return parser

def parse_arguments(argv=None):
    parser = create_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, 'profile') or args.profile is None:
        args.profile = 'default'
    # cfg() looks keys up by name on the namespace
    if hasattr(args, 'suffix'):
        args.default_suffix = args.suffix
    return args
