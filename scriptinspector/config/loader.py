# scriptinspector/config/loader.py
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError
from loguru import logger

from .schema import AppConfig
from .paths import get_user_config_file

_cached_config: Optional[AppConfig] = None

def _set_aside_corrupt_file(config_path: Path) -> None:
    backup_path = config_path.with_suffix(".json.corrupted")
    try:
        backup_path.unlink(missing_ok=True)
        config_path.rename(backup_path)
        logger.info(f"Moved unreadable config to: {backup_path}")
    except OSError as e:
        logger.error(f"Failed to move unreadable config aside: {e}")

def _read_user_settings(config_path: Path) -> Dict[str, Any]:
    """Raw settings from the user file; empty when the file is missing, unreadable or not an object."""
    if not config_path.exists():
        logger.info("No user config found. Using default settings.")
        return {}
    logger.info(f"Loading user configuration from: {config_path}")
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
        logger.error(f"Failed to read config file {config_path}: {e}")
        _set_aside_corrupt_file(config_path)
        return {}
    if not isinstance(data, dict):
        logger.error(f"Config file {config_path} does not contain a JSON object. Using defaults.")
        return {}
    return data

def _build_config(settings: Dict[str, Any]) -> AppConfig:
    """Validates settings; fields that fail validation are dropped and take their defaults."""
    try:
        return AppConfig(**settings)
    except ValidationError as e:
        bad_fields = {str(err["loc"][0]) for err in e.errors() if err.get("loc")}
        logger.warning(f"Ignoring invalid config fields {sorted(bad_fields)}: {e}")
    remaining = {k: v for k, v in settings.items() if k not in bad_fields}
    try:
        return AppConfig(**remaining)
    except ValidationError as e:
        logger.error(f"Configuration validation failed: {e}. Falling back to defaults.")
        return AppConfig()

def load_config() -> AppConfig:
    """Loads and caches the configuration. Never raises; problems degrade to defaults."""
    global _cached_config
    if _cached_config is not None:
        return _cached_config
    _cached_config = _build_config(_read_user_settings(get_user_config_file()))
    logger.debug("Configuration loaded.")
    return _cached_config

def save_config(config: AppConfig) -> Path:
    """Writes the configuration through a temp file and os.replace. Returns the written path."""
    config_path = get_user_config_file()
    logger.info(f"Saving configuration to: {config_path}")
    temp_file_path: Optional[Path] = None
    try:
        with tempfile.NamedTemporaryFile(mode='w', encoding='utf-8', dir=config_path.parent,
                                         prefix=f".{config_path.name}_tmp", suffix=".json",
                                         delete=False) as temp_f:
            temp_file_path = Path(temp_f.name)
            temp_f.write(config.model_dump_json(indent=4))
            temp_f.flush()
            os.fsync(temp_f.fileno())
        os.replace(temp_file_path, config_path)
        temp_file_path = None
        return config_path
    finally:
        if temp_file_path is not None:
            try: temp_file_path.unlink(missing_ok=True)
            except OSError as unlink_err: logger.error(f"Failed to remove temporary config file {temp_file_path}: {unlink_err}")

def get_config() -> AppConfig:
    return load_config()

def reset_config_cache() -> None:
    global _cached_config
    _cached_config = None
