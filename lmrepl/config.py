import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .console import console

# Load environment variables from .env file
load_dotenv()

ENV_PREFIX = "LMREPL_"
LOCAL_CONFIG_NAME = ".lmrepl.json"

# Configuration Defaults
DEFAULT_CONFIG = {
    "command": "repl",
    "provider": "openai",
    "model": "gpt-4o-mini",
    "openai-api-key": "",
    "openai-base-url": "https://api.openai.com/v1",
    "gemini-api-key": "",
    "http-timeout": "30",
    "log-file": "",
    "system-prompt": "You are an AI assistant. Be concise.",
    "grounding": "false",
    "gemini-safety-threshold": "BLOCK_NONE",
}

# File Paths
LMREPL_DIR = Path(os.getenv("LMREPL_DIR", str(Path.home() / ".lmrepl")))
CONFIG_FILE = Path(os.getenv("LMREPL_CONFIG_FILE", str(LMREPL_DIR / "config.json")))
HISTORY_FILE = Path(os.getenv("LMREPL_HISTORY_FILE", str(LMREPL_DIR / "history")))


class ConfigError(Exception):
    """Raised when the configuration cannot be loaded. Always fatal."""


def ensure_lmrepl_dir():
    """Ensure the lmrepl storage directory exists"""
    if not LMREPL_DIR.exists():
        try:
            LMREPL_DIR.mkdir(parents=True, exist_ok=True)
        except Exception as e:
            console.print(f"[yellow]Warning: Could not create directory {LMREPL_DIR}: {e}[/yellow]")


def find_config_file(start: Path | None = None) -> Path | None:
    """Find the nearest .lmrepl.json walking up from `start`, else the user config file."""
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / LOCAL_CONFIG_NAME
        if candidate.is_file():
            return candidate
    if CONFIG_FILE.is_file():
        return CONFIG_FILE
    return None


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load configuration from file"""
    config_path = path if path is not None else find_config_file()
    if config_path is None or not config_path.exists():
        return {}
    try:
        with open(config_path) as f:
            config = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"config file error ({config_path}): {e}") from e
    if not isinstance(config, dict):
        raise ConfigError(f"config file error ({config_path}): expected a JSON object")
    return config


def env_key(key: str) -> str:
    """Map a setting name to its environment variable, e.g. log-file -> LMREPL_LOG_FILE."""
    return ENV_PREFIX + key.upper().replace("-", "_")


def get_setting(
    key: str,
    config: dict[str, Any] | None = None,
    overrides: dict[str, Any] | None = None,
) -> str:
    """Get setting with priority: Command Line > Env Var > Config File > Default"""
    # 1. Command-line flag
    if overrides and overrides.get(key) is not None:
        return str(overrides[key])

    # 2. Environment Variable
    env_val = os.getenv(env_key(key))
    if env_val:
        return env_val

    # 3. Config File
    if config and key in config:
        return str(config[key])

    # 4. Default
    return DEFAULT_CONFIG.get(key, "")


def get_int_setting(key: str, config=None, overrides=None) -> int:
    """Get integer setting, falling back to the default on a bad value"""
    value = get_setting(key, config, overrides)
    default = int(DEFAULT_CONFIG[key])
    try:
        return int(value)
    except ValueError:
        console.print(
            f"[yellow]Warning: Invalid integer value for {key}: {value}, using default {default}[/yellow]"
        )
        return default


def get_bool_setting(key: str, config=None, overrides=None) -> bool:
    """Get boolean setting"""
    value = get_setting(key, config, overrides)
    return value.lower() in ("true", "1", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Resolved configuration, built once at startup and passed explicitly."""

    command: str
    provider: str
    model: str
    openai_api_key: str
    openai_base_url: str
    gemini_api_key: str
    http_timeout: int
    log_file: str
    system_prompt: str
    grounding: bool
    gemini_safety_threshold: str


def build_settings(
    overrides: dict[str, Any] | None = None, config_path: Path | None = None
) -> Settings:
    """Resolve every setting once.

    `overrides` holds command-line values keyed by setting name; None values
    are treated as "not given" so argparse defaults never mask the other
    sources.
    """
    config = load_config(config_path)
    return Settings(
        command=get_setting("command", config, overrides),
        provider=get_setting("provider", config, overrides),
        model=get_setting("model", config, overrides),
        openai_api_key=get_setting("openai-api-key", config, overrides),
        openai_base_url=get_setting("openai-base-url", config, overrides).strip().rstrip("/"),
        gemini_api_key=get_setting("gemini-api-key", config, overrides),
        http_timeout=get_int_setting("http-timeout", config, overrides),
        log_file=get_setting("log-file", config, overrides),
        system_prompt=get_setting("system-prompt", config, overrides),
        grounding=get_bool_setting("grounding", config, overrides),
        gemini_safety_threshold=get_setting("gemini-safety-threshold", config, overrides).upper(),
    )
