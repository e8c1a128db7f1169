# scriptinspector/core/fs_scanner.py
import os
from pathlib import Path
from typing import List, Optional, Callable
from loguru import logger

from .models import FileInfo, DirectoryInfo

# Fixed by the host ecosystem's tooling, not configurable
SCRIPT_EXTENSIONS = (".ts", ".tsx")
EXCLUDED_DIR_NAMES = frozenset({".git", "node_modules"})

def is_script_file(path: Path) -> bool:
    return path.name.endswith(SCRIPT_EXTENSIONS)

def get_file_info(file_path: Path) -> Optional[FileInfo]:
    """Stats a single file. Returns None (and logs) if the stat call fails."""
    try:
        file_stat = file_path.stat()
    except OSError as e:
        logger.warning(f"Could not stat file {file_path}: {e}")
        return None
    return FileInfo(path=file_path, name=file_path.name, extension=file_path.suffix,
                    size=file_stat.st_size, mod_time=file_stat.st_mtime)

def get_directory_info(dir_path: Path) -> Optional[DirectoryInfo]:
    """
    Counts the immediate child files of a directory (non-recursive).
    Entries that cannot be stated are skipped. Returns None if the directory itself is unreadable.
    """
    try:
        if not dir_path.is_dir():
            return None
        entries = list(os.scandir(dir_path))
    except OSError as e:
        logger.warning(f"Could not read directory {dir_path}: {e}")
        return None

    info = DirectoryInfo(path=dir_path, name=dir_path.name)
    for entry in entries:
        try:
            if not entry.is_file():
                continue
            size = entry.stat().st_size
        except OSError as e:
            logger.warning(f"Could not stat entry {entry.path}: {e}")
            continue
        info.file_count += 1
        info.total_size += size
        if entry.name.endswith(SCRIPT_EXTENSIONS):
            info.script_file_count += 1
    return info

# --- Core Logic (Pure Python) ---

class _ScriptScannerCore:
    """Recursively collects script files under a root directory."""

    def __init__(self,
                 root_path: Path,
                 progress_callback: Optional[Callable[[str], None]] = None,
                 error_callback: Optional[Callable[[str], None]] = None):
        self.root_path = Path(root_path).resolve()
        self.progress_callback = progress_callback
        self.error_callback = error_callback
        logger.debug(f"Script scanner initialized for {self.root_path}")

    def _emit_progress(self, message: str):
        if self.progress_callback:
            try: self.progress_callback(message)
            except Exception as e: logger.error(f"Error in progress callback: {e}")

    def _emit_error(self, message: str):
        if self.error_callback:
            try: self.error_callback(message)
            except Exception as e: logger.error(f"Error in error callback: {e}")

    def scan_scripts_sync(self) -> List[FileInfo]:
        """
        Scans the root directory synchronously and returns every script file found.
        Raises ValueError if the root is not a directory; anything below the root that
        cannot be read is skipped and reported through the error callback.
        """
        logger.info(f"[Script Scan] Starting for: {self.root_path}")
        if not self.root_path.is_dir(): raise ValueError(f"Provided path is not a valid directory: {self.root_path}")
        results: List[FileInfo] = []
        self._scan_recursive(self.root_path, results)
        logger.info(f"[Script Scan] Finished for: {self.root_path}. Found {len(results)} scripts.")
        return results

    def _scan_recursive(self, dir_path: Path, results: List[FileInfo]) -> None:
        if dir_path != self.root_path: self._emit_progress(f"Scanning: {dir_path.name}")
        try: entries = list(os.scandir(dir_path))
        except OSError as scandir_err:
            logger.warning(f"Could not scan directory contents {dir_path}: {scandir_err}")
            self._emit_error(f"Access Error scanning: {dir_path}")
            return

        for entry in entries:
            # Linked files are indexed; linked directories are never descended into
            try:
                entry_is_dir = entry.is_dir()
                if entry_is_dir and entry.is_symlink():
                    logger.trace(f"Ignoring symlinked directory: {entry.path}")
                    continue
                if not entry_is_dir and not entry.is_file():
                    logger.trace(f"Ignoring non-regular entry: {entry.path}")
                    continue
            except OSError as e:
                logger.warning(f"Could not inspect entry {entry.path}: {e}. Skipping.")
                self._emit_error(f"Access Error inspecting: {entry.path}")
                continue

            entry_path = dir_path / entry.name
            if entry_is_dir:
                if entry.name in EXCLUDED_DIR_NAMES:
                    logger.trace(f"Ignoring excluded directory: {entry_path}")
                    continue
                self._scan_recursive(entry_path, results)
            elif is_script_file(entry_path):
                file_info = get_file_info(entry_path)
                if file_info is None:
                    self._emit_error(f"Access Error stating: {entry_path}")
                    continue
                results.append(file_info)
