# scriptinspector/config/paths.py
import os
from pathlib import Path

def _get_app_name() -> str:
    return "ScriptInspector"

def get_user_data_dir() -> Path:
    """
    Get the per-user application data directory.
    $SCRIPTINSPECTOR_HOME wins; otherwise %APPDATA% on Windows, ~/.config elsewhere.
    """
    override = os.environ.get("SCRIPTINSPECTOR_HOME")
    appdata_path = os.environ.get("APPDATA")
    if override:
        path = Path(override)
    elif appdata_path:
        path = Path(appdata_path) / _get_app_name()
    else:
        path = Path.home() / ".config" / _get_app_name().lower()

    path.mkdir(parents=True, exist_ok=True)
    return path

def get_user_config_file() -> Path:
    """Get the path to the user's config.json file."""
    return get_user_data_dir() / "config.json"

def get_user_log_dir() -> Path:
    path = get_user_data_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path
