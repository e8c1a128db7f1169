# scriptinspector/core/bundle_locator.py
import json
import os
from pathlib import Path
from typing import List, Optional, Callable, Dict, Any, Tuple
from loguru import logger

from .fs_scanner import EXCLUDED_DIR_NAMES, get_directory_info
from .models import BundleRecord

META_SUFFIX = ".meta"

def meta_path_for(dir_path: Path) -> Path:
    """Sidecar metadata lives next to the directory: <dir>.meta"""
    return dir_path.with_name(dir_path.name + META_SUFFIX)

def read_meta(meta_path: Path) -> Optional[Dict[str, Any]]:
    """Loads a metadata file. Returns None if it is missing, unreadable or not a JSON object."""
    try:
        with open(meta_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        return None
    except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
        logger.warning(f"Could not read metadata {meta_path}: {e}")
        return None
    if not isinstance(data, dict):
        logger.warning(f"Metadata {meta_path} is not a JSON object. Ignoring.")
        return None
    return data

def _user_data(meta: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if not meta:
        return {}
    user_data = meta.get("userData")
    return user_data if isinstance(user_data, dict) else {}

def is_bundle_meta(meta: Optional[Dict[str, Any]]) -> bool:
    return _user_data(meta).get("isBundle") is True

def extract_priority(meta: Optional[Dict[str, Any]]) -> int:
    """
    Reads userData.priority. Any absence or conversion problem yields 0;
    this never decides whether the directory is a bundle.
    """
    raw = _user_data(meta).get("priority")
    if raw is None or isinstance(raw, bool):
        return 0
    try:
        return int(raw)
    except (TypeError, ValueError, OverflowError):
        logger.debug(f"Unparsable bundle priority {raw!r}, defaulting to 0")
        return 0

def extract_bundle_name(meta: Optional[Dict[str, Any]], dir_path: Path) -> str:
    name = _user_data(meta).get("bundleName")
    if isinstance(name, str) and name.strip():
        return name.strip()
    return dir_path.name

def group_bundles_by_priority(bundles: List[BundleRecord]) -> List[Tuple[int, List[BundleRecord]]]:
    """Groups bundles by priority, highest first. Order within a group is preserved."""
    groups: Dict[int, List[BundleRecord]] = {}
    for bundle in bundles:
        groups.setdefault(bundle.priority, []).append(bundle)
    return sorted(groups.items(), key=lambda item: item[0], reverse=True)

# --- Core Logic (Pure Python) ---

class _BundleLocatorCore:
    """Finds every directory under an assets root that its metadata marks as a bundle."""

    def __init__(self,
                 assets_root: Path,
                 error_callback: Optional[Callable[[str], None]] = None):
        self.assets_root = Path(assets_root).resolve()
        self.error_callback = error_callback
        logger.debug(f"Bundle locator initialized for {self.assets_root}")

    def _emit_error(self, message: str):
        if self.error_callback:
            try: self.error_callback(message)
            except Exception as e: logger.error(f"Error in error callback: {e}")

    def locate_bundles_sync(self) -> List[BundleRecord]:
        """
        Walks the assets root and returns the bundles found, in traversal order.
        Raises ValueError if the root is not a directory.
        """
        logger.info(f"[Bundle Scan] Starting for: {self.assets_root}")
        if not self.assets_root.is_dir(): raise ValueError(f"Provided path is not a valid directory: {self.assets_root}")
        bundles: List[BundleRecord] = []
        self._locate_recursive(self.assets_root, bundles)
        logger.info(f"[Bundle Scan] Finished for: {self.assets_root}. Found {len(bundles)} bundles.")
        return bundles

    def _make_bundle(self, dir_path: Path, meta: Dict[str, Any]) -> BundleRecord:
        bundle = BundleRecord(name=extract_bundle_name(meta, dir_path), path=dir_path,
                              priority=extract_priority(meta))
        config_id = meta.get("uuid")
        if isinstance(config_id, str):
            bundle.config_id = config_id
        dir_info = get_directory_info(dir_path)
        if dir_info is None:
            self._emit_error(f"Could not compute stats for bundle: {dir_path}")
        else:
            bundle.file_count = dir_info.file_count
            bundle.script_count = dir_info.script_file_count
            bundle.total_size = dir_info.total_size
        return bundle

    def _locate_recursive(self, dir_path: Path, bundles: List[BundleRecord]) -> None:
        try: entries = list(os.scandir(dir_path))
        except OSError as scandir_err:
            logger.warning(f"Could not scan directory contents {dir_path}: {scandir_err}")
            self._emit_error(f"Access Error scanning: {dir_path}")
            return

        for entry in entries:
            try:
                if entry.is_symlink() or not entry.is_dir():
                    continue
            except OSError as e:
                logger.warning(f"Could not inspect entry {entry.path}: {e}. Skipping.")
                continue
            if entry.name in EXCLUDED_DIR_NAMES:
                continue

            sub_dir = dir_path / entry.name
            meta = read_meta(meta_path_for(sub_dir))
            if is_bundle_meta(meta):
                bundle = self._make_bundle(sub_dir, meta)
                logger.debug(f"Found bundle '{bundle.name}' (priority {bundle.priority}) at {sub_dir}")
                bundles.append(bundle)
            # Nested bundles are legal; keep descending either way
            self._locate_recursive(sub_dir, bundles)
