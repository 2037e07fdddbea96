# subrename/config_manager.py

import os
import re
import pytomlpp
import logging
import argparse
from pathlib import Path
from typing import Optional, List, Dict, Any, Union

import platformdirs
from dotenv import load_dotenv, find_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigError

log = logging.getLogger(__name__)
APP_NAME = "subrename"
DEFAULT_CONFIG_FILENAME = "config.toml"

# Environment variables that override values from the config file.
ENV_OVERRIDES = {'model_url': "LLM_MODEL_URL", 'model_name': "LLM_MODEL_NAME"}


def validate_episode_regex(v: Any) -> str:
    """Raises ValueError unless v compiles and has a group for the episode number."""
    if not isinstance(v, str) or not v:
        raise ValueError("episode_regex must be a non-empty string")
    try:
        compiled = re.compile(v)
    except re.error as e:
        raise ValueError(f"episode_regex is not a valid regular expression: {e}")
    if compiled.groups < 1:
        raise ValueError("episode_regex must contain a capture group for the episode number")
    return v


class BaseProfileSettings(BaseModel):
    # Matching
    episode_regex: Optional[str] = Field(default=r"\[(\d{2})\]", description="Regex whose first capture group is the episode number.")
    match_mode: Optional[str] = Field(default='episode', description="How videos and subtitles are paired: 'episode' or 'position'.")
    default_suffix: Optional[str] = Field(default="", description="Language suffix inserted before the subtitle extension (e.g. 'chs').")
    recursive: Optional[bool] = Field(default=False, description="Scan subdirectories.")

    # LLM Backend
    model_url: Optional[str] = Field(default="http://localhost:11434/v1/chat/completions", description="OpenAI-compatible chat completions endpoint.")
    model_name: Optional[str] = Field(default="qwen/qwen3-vl-8b", description="Model identifier sent with every request.")
    request_timeout: Optional[float] = Field(default=300.0, gt=0.0, description="Seconds to wait for the LLM backend.")

    # Undo Options
    enable_undo: Optional[bool] = Field(default=True, description="Enable undo logging.")
    undo_db_path: Optional[str] = Field(default=None, description="Path to undo database file (default: user data dir).")
    undo_expire_days: Optional[int] = Field(default=30, ge=-1, description="Days to keep undo logs (-1 for forever).")
    undo_check_integrity: Optional[bool] = Field(default=True, description="Verify file size and mtime before undoing.")

    # Logging Options
    log_file: Optional[str] = Field(default=None, description="Path to log file (e.g., subrename.log).")
    log_level: Optional[str] = Field(default='INFO', description="Logging level: DEBUG, INFO, WARNING, ERROR.")

    @field_validator('episode_regex', mode='before')
    @classmethod
    def check_episode_regex(cls, v: Any) -> Optional[str]:
        if v is None: return None
        return validate_episode_regex(v)

    @field_validator('match_mode', mode='before')
    @classmethod
    def check_match_mode(cls, v: Any) -> Optional[str]:
        if v is not None and isinstance(v, str) and v.lower() not in ['episode', 'position']:
            raise ValueError("match_mode must be 'episode' or 'position'")
        return v.lower() if isinstance(v, str) else 'episode'

    @field_validator('log_level', mode='before')
    @classmethod
    def check_log_level(cls, v: Any) -> Optional[str]:
        if v is not None and isinstance(v, str) and v.upper() not in ['DEBUG', 'INFO', 'WARNING', 'ERROR']:
            raise ValueError("log_level must be one of DEBUG, INFO, WARNING, ERROR")
        return v.upper() if isinstance(v, str) else None

    @field_validator('recursive', 'enable_undo', 'undo_check_integrity', mode='before')
    @classmethod
    def check_booleans(cls, v: Any) -> Optional[bool]:
        if v is not None and not isinstance(v, bool): raise ValueError("must be a boolean (true/false)")
        return v


class DefaultSettings(BaseProfileSettings):
    pass

class RootConfigModel(BaseModel):
    default: DefaultSettings = Field(default_factory=DefaultSettings)
    model_config = {'extra': 'allow'}


def _toml_value(value: Any) -> str:
    if isinstance(value, str):
        # TOML literal strings keep regex backslashes readable
        if "'" not in value and "\n" not in value: return f"'{value}'"
        escaped = value.replace('\\', '\\\\').replace('"', '\\"')
        return f'"{escaped}"'
    if isinstance(value, bool): return str(value).lower()
    return str(value)


def generate_default_toml_content() -> str:
    default_settings = DefaultSettings()
    content_lines = ["# subrename Default Configuration File"]
    content_lines.append("# LLM_API_KEY, LLM_MODEL_URL and LLM_MODEL_NAME can also be set in a .env file.\n")

    sections: Dict[str, List[str]] = {
        "Matching": ['episode_regex', 'match_mode', 'default_suffix', 'recursive'],
        "LLM Backend": ['model_url', 'model_name', 'request_timeout'],
        "Undo Options": ['enable_undo', 'undo_db_path', 'undo_expire_days', 'undo_check_integrity'],
        "Logging Options": ['log_file', 'log_level'],
    }

    content_lines.append("[default]")
    for section_name, keys in sections.items():
        content_lines.append(f"\n  # --- {section_name} ---")
        for key in keys:
            field_info = BaseProfileSettings.model_fields[key]
            default_value = getattr(default_settings, key)
            if field_info.description:
                content_lines.append(f"  # {field_info.description}")
            if default_value is None:
                content_lines.append(f"  # {key} = # (not set, uses internal default)")
                continue
            content_lines.append(f"  {key} = {_toml_value(default_value)}")

    content_lines.append("\n# You can create other profiles, e.g.:")
    content_lines.append("# [remote]")
    content_lines.append("# model_url = \"https://api.example.com/v1/chat/completions\"")
    content_lines.append("# match_mode = \"position\"")
    return "\n".join(content_lines) + "\n"


def canonical_config_path() -> Path:
    return Path(platformdirs.user_config_dir(APP_NAME, appauthor=False)) / DEFAULT_CONFIG_FILENAME

def legacy_config_path() -> Path:
    return Path.cwd() / DEFAULT_CONFIG_FILENAME


class ConfigManager:
    """
    Loads ``config.toml``. Reads fall back from the canonical user config dir to
    a legacy ``./config.toml``; writes always go to the canonical location
    (or to the explicit ``--config`` path when one is given).
    """

    def __init__(self, config_path_override: Optional[Path] = None):
        self._override = Path(config_path_override).resolve() if config_path_override else None
        self.config_path = self._resolve_config_path()
        self._raw_toml_content_str: Optional[str] = None
        self._config = self._load_config()
        self._env = self._load_env_keys()
        log.debug(f"Config path used: {self.config_path}")

    @property
    def write_path(self) -> Path:
        return self._override or canonical_config_path()

    def _resolve_config_path(self) -> Path:
        if self._override:
            log.debug(f"Using explicit config path target: {self._override}")
            return self._override

        canonical = canonical_config_path()
        if canonical.is_file():
            log.debug(f"Found config file in user config directory: {canonical}")
            return canonical.resolve()

        legacy = legacy_config_path()
        if legacy.is_file():
            log.info(f"Using legacy config file '{legacy}'. Saving settings will write to '{canonical}'.")
            return legacy.resolve()

        log.debug(f"No config file found. Preferred default creation location: {canonical}")
        return canonical

    def _load_config(self) -> Dict[str, Any]:
        if not self.config_path.is_file():
            if self._override:
                raise ConfigError(f"Config file not found: '{self.config_path}'")
            log.debug("No config file present. Using internal defaults.")
            self._raw_toml_content_str = "# Config file not found.\n"
            return RootConfigModel().model_dump(exclude_unset=False, by_alias=False)

        try:
            self._raw_toml_content_str = self.config_path.read_text(encoding='utf-8')
        except OSError as e_os:
            raise ConfigError(f"Failed to read config file '{self.config_path}': {e_os}") from e_os
        if not self._raw_toml_content_str.strip():
            log.warning(f"Config file '{self.config_path}' is empty. Using internal defaults.")
            return RootConfigModel().model_dump(exclude_unset=False, by_alias=False)

        try:
            cfg_dict = pytomlpp.loads(self._raw_toml_content_str)
        except pytomlpp.DecodeError as e_toml:
            raise ConfigError(f"Failed to parse TOML config '{self.config_path}': {e_toml}") from e_toml
        log.info(f"Loaded configuration from '{self.config_path}'")

        try:
            validated_config = RootConfigModel.model_validate(cfg_dict)
        except ValidationError as e_val:
            error_msgs = [f"  - Field `{' -> '.join(map(str, err['loc']))}`: {err['msg']}" for err in e_val.errors()]
            error_summary = f"Config file '{self.config_path}' validation failed:\n" + "\n".join(error_msgs)
            log.error(error_summary)
            raise ConfigError(error_summary) from e_val

        config = validated_config.model_dump(exclude_unset=False, by_alias=False)
        # Named profiles are validated with the same rules as [default].
        for profile, values in config.items():
            if profile == 'default' or not isinstance(values, dict): continue
            try:
                BaseProfileSettings.model_validate(values)
            except ValidationError as e_val:
                error_msgs = [f"  - Field `{profile} -> {' -> '.join(map(str, err['loc']))}`: {err['msg']}" for err in e_val.errors()]
                raise ConfigError(f"Config file '{self.config_path}' validation failed:\n" + "\n".join(error_msgs)) from e_val
        return config

    def get_raw_toml_content(self) -> Optional[str]:
        return self._raw_toml_content_str

    def _load_env_keys(self) -> Dict[str, Optional[str]]:
        env_path: Union[str, Path, None] = find_dotenv(usecwd=True)
        if env_path:
            log.debug(f"Loading environment variables from: {env_path}")
            load_dotenv(dotenv_path=env_path)

        keys: Dict[str, Optional[str]] = {'llm_api_key': os.getenv("LLM_API_KEY") or None}
        for key, env_name in ENV_OVERRIDES.items():
            keys[key] = os.getenv(env_name) or None
        if keys['llm_api_key']:
            log.debug("Loaded LLM API key from environment.")
        return keys

    def get_value(self, key: str, profile: str = 'default', command_line_value: Any = None, default_value: Any = None) -> Any:
        if command_line_value is not None:
            return command_line_value

        if key in ENV_OVERRIDES and self._env.get(key):
            return self._env[key]

        profile_settings_dict = self._config.get(profile, {})
        if isinstance(profile_settings_dict, dict) and profile_settings_dict.get(key) is not None:
            return profile_settings_dict[key]

        default_settings_dict = self._config.get('default', {})
        if isinstance(default_settings_dict, dict) and default_settings_dict.get(key) is not None:
            return default_settings_dict[key]

        if default_value is None and key in BaseProfileSettings.model_fields:
            return BaseProfileSettings.model_fields[key].default
        return default_value

    def get_api_key(self, service_name: str) -> Optional[str]:
        return self._env.get(f"{service_name.lower()}_api_key")

    def get_profile_settings(self, profile: str = 'default') -> Dict[str, Any]:
        final_settings = DefaultSettings().model_dump(exclude_unset=False, by_alias=False)
        for section in ('default', profile) if profile != 'default' else ('default',):
            section_data = self._config.get(section, {})
            if not isinstance(section_data, dict):
                log.warning(f"Profile '{section}' in config is not a table. Skipping merge for this profile.")
                continue
            for k, v in section_data.items():
                if v is not None: final_settings[k] = v
        for key in ENV_OVERRIDES:
            if self._env.get(key): final_settings[key] = self._env[key]
        return final_settings

    def save_settings(self, settings: Dict[str, Any], profile: str = 'default') -> Path:
        """Validates and writes one profile to the write location, keeping other profiles intact."""
        try:
            validated = BaseProfileSettings.model_validate(settings)
        except ValidationError as e_val:
            raise ConfigError(f"Invalid settings: {e_val}") from e_val

        target = self.write_path
        existing: Dict[str, Any] = {}
        if target.is_file():
            try:
                existing = pytomlpp.loads(target.read_text(encoding='utf-8'))
            except (OSError, pytomlpp.DecodeError) as e:
                raise ConfigError(f"Cannot update existing config '{target}': {e}") from e

        existing[profile] = {k: v for k, v in validated.model_dump().items() if v is not None}
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(pytomlpp.dumps(existing), encoding='utf-8')
        except OSError as e:
            raise ConfigError(f"Failed to write config file '{target}': {e}") from e
        log.info(f"Settings saved to '{target}'")
        self._config[profile] = existing[profile]
        return target

    def write_default_config(self, overwrite: bool = False) -> Path:
        target = self.write_path
        if target.exists() and not overwrite:
            raise ConfigError(f"Config file already exists: '{target}' (use --force to overwrite)")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(generate_default_toml_content(), encoding='utf-8')
        except OSError as e:
            raise ConfigError(f"Failed to write config file '{target}': {e}") from e
        log.info(f"Default configuration file created at {target}")
        return target


class ConfigHelper:
    def __init__(self, config_manager: ConfigManager, args_ns: argparse.Namespace):
        self.manager = config_manager
        self.args = args_ns
        self.profile = getattr(args_ns, 'profile', 'default') or 'default'

    def __call__(self, key: str, default_value: Any = None, arg_value: Any = None) -> Any:
        cmd_line_val = arg_value if arg_value is not None else getattr(self.args, key, None)
        return self.manager.get_value(key, self.profile, cmd_line_val, default_value)

    def get_api_key(self, service_name: str) -> Optional[str]:
        return self.manager.get_api_key(service_name)
