#!/usr/bin/env python3
import sys
import json
import logging
from typing import Any, Dict, Optional

from subrename.bangumi_client import BangumiClient
from subrename.cli import parse_arguments
from subrename.config_manager import ConfigManager, ConfigHelper, BaseProfileSettings, canonical_config_path, legacy_config_path
from subrename.exceptions import RenamerError, ConfigError
from subrename.filename_parser import extract_from_filename
from subrename.log_setup import setup_logging
from subrename.main_processor import MainProcessor
from subrename.metadata_extractor import MetadataExtractor
from subrename.models import LLMResponse
from subrename.ui_utils import (
    make_console, print_stderr_message, render_batches, render_metadata,
    render_subject_detail, render_subjects,
)
from subrename.undo_manager import UndoManager

log = logging.getLogger("subrename")


def _print_llm_response(console, response: LLMResponse, as_json: bool, title: str) -> int:
    if as_json:
        console.print_json(json.dumps(response.to_dict(), ensure_ascii=False, default=str))
    elif response.success:
        render_metadata(console, response.to_dict()['data'], title=title)
    if not response.success:
        print_stderr_message(f"ERROR: {response.error}")
        return 1
    return 0


def _run_config(args, console, manager: ConfigManager, cfg: ConfigHelper) -> int:
    if args.config_command == 'generate':
        target = manager.write_default_config(overwrite=args.force)
        console.print(f"[green]✓ Default configuration file generated successfully at: {target}[/green]")
    elif args.config_command == 'path':
        console.print(f"Loaded from: {manager.config_path}{'' if manager.config_path.is_file() else ' (not present, using defaults)'}")
        console.print(f"Writes go to: {manager.write_path}")
        console.print(f"Canonical: {canonical_config_path()}  Legacy: {legacy_config_path()}")
    elif args.config_command == 'show':
        if args.raw:
            console.print(manager.get_raw_toml_content() or "# No config file loaded or content was empty.", markup=False)
            return 0
        console.print(f"--- Configuration Effective for Profile: '{args.profile}' ---")
        effective_settings: Dict[str, Any] = {key: cfg(key) for key in BaseProfileSettings.model_fields}
        effective_settings["_llm_api_key_loaded_"] = bool(cfg.get_api_key('llm'))
        console.print(json.dumps(effective_settings, indent=2, default=str), markup=False)
    return 0


def _run_undo(args, console, undo_manager: UndoManager) -> int:
    if args.list:
        render_batches(console, undo_manager.list_batches())
        return 0
    if not args.batch_id:
        print_stderr_message("Error: Batch ID is required for undo or dry-run. Use --list to see available batches.")
        return 1
    log.info(f"Performing undo{' (dry run)' if args.dry_run else ''} for batch: {args.batch_id}")
    ok, messages = undo_manager.undo_batch(args.batch_id, dry_run=args.dry_run)
    for message in messages:
        console.print(message, markup=False)
    return 0 if ok else 1


def main(argv=None) -> int:
    args = parse_arguments(argv)
    is_quiet = getattr(args, 'quiet', False)
    console = make_console(quiet=is_quiet)
    undo_manager: Optional[UndoManager] = None

    try:
        config_manager = ConfigManager(config_path_override=getattr(args, 'config', None))
        cfg = ConfigHelper(config_manager, args)

        log_level_str = cfg('log_level', 'INFO')
        setup_logging(log_level_console=getattr(logging, str(log_level_str).upper(), logging.INFO),
                      log_file=cfg('log_file', None), quiet=is_quiet)
        log.debug(f"Full logging configured. Parsed args: {args}")
        log.debug(f"Using profile: {args.profile}")

        if args.command in ['rename', 'undo']:
            undo_manager = UndoManager(cfg)
            undo_manager.prune_old_batches()

        if args.command == 'config':
            return _run_config(args, console, config_manager, cfg)

        if args.command == 'rename':
            outcome = MainProcessor(args, cfg, undo_manager, console).run_processing()
            return 1 if outcome is not None and not outcome.applied else 0

        if args.command == 'extract':
            if args.offline:
                metadata = extract_from_filename(args.filename, cfg('episode_regex'))
                response = LLMResponse(success=True, data=metadata)
            else:
                response = MetadataExtractor.from_config(cfg).analyze_filename(args.filename)
            return _print_llm_response(console, response, args.as_json, "Extracted Metadata")

        if args.command == 'batch-title':
            response = MetadataExtractor.from_config(cfg).batch_analyze_filenames(args.filenames)
            return _print_llm_response(console, response, args.as_json, "Inferred Title")

        if args.command == 'bangumi':
            client = BangumiClient()
            if args.bangumi_command == 'search':
                render_subjects(console, client.search_subjects(args.query, limit=args.limit))
            else:
                render_subject_detail(console, client.get_subject_detail(args.subject_id))
            return 0

        if args.command == 'undo':
            return _run_undo(args, console, undo_manager)

        raise RenamerError(f"Unknown command: {args.command}")

    except ConfigError as e_cfg:
        print_stderr_message(f"FATAL CONFIGURATION ERROR: {e_cfg}")
        if log.handlers: log.critical(f"Config Error: {e_cfg}")
        return 2
    except RenamerError as e_app:
        if log.handlers: log.error(f"Application Error: {e_app}", exc_info=log.isEnabledFor(logging.DEBUG))
        print_stderr_message(f"ERROR: {e_app}")
        return 1
    except KeyboardInterrupt:
        print_stderr_message("Cancelled by user.", style="yellow")
        return 130


if __name__ == "__main__":
    sys.exit(main())
