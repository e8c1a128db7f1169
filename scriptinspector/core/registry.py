# scriptinspector/core/registry.py
import os
import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Union

from loguru import logger

from .bundle_locator import _BundleLocatorCore
from .fs_scanner import _ScriptScannerCore
from .models import (AnalyzeStatus, BundleRecord, BundleStatistics, Issue, LoadResult,
                     ScriptRecord, ScriptStatistics, TreeNode)
from .tree_model import build_script_tree

PathLike = Union[str, Path]

def _key(path: PathLike) -> Path:
    return Path(path).resolve()

class ScriptRegistry:
    """
    In-memory index of the scripts and bundles of one project root.

    Scripts keep their insertion order, so the tree built from them is stable across
    rebuilds. All access goes through a re-entrant lock: background tasks may load while
    the caller reads.
    """

    def __init__(self, root_path: Optional[PathLike] = None):
        self._lock = threading.RLock()
        self._scripts: Dict[Path, ScriptRecord] = {}
        self._bundles: Dict[str, BundleRecord] = {}
        self.project_root: Optional[Path] = None
        if root_path is not None:
            self.initialize(root_path)

    def initialize(self, root_path: PathLike) -> None:
        """Clears all scripts and bundles and sets the root used for relative paths."""
        with self._lock:
            self._scripts = {}
            self._bundles = {}
            self.project_root = _key(root_path)
        logger.info(f"Registry initialized for project root: {self.project_root}")

    def _relative_path(self, path: Path) -> str:
        if self.project_root is None:
            return path.as_posix()
        try:
            return path.relative_to(self.project_root).as_posix()
        except ValueError:
            pass
        try:
            return Path(os.path.relpath(path, self.project_root)).as_posix()
        except ValueError: # Different drives on Windows
            return path.as_posix()

    # --- Loading ---

    def load_scripts(self, dir_path: PathLike, clear_existing: bool = False) -> LoadResult:
        """
        Scans `dir_path` and inserts every script as a fresh Pending record, overwriting
        records with the same path. With `clear_existing` the whole script set is replaced;
        that is the only way issues are purged. A failed scan leaves the registry untouched.
        """
        warnings: List[str] = []
        scanner = _ScriptScannerCore(root_path=Path(dir_path), error_callback=warnings.append)
        try:
            found = scanner.scan_scripts_sync()
        except ValueError as e:
            logger.error(f"Script scan failed for {dir_path}: {e}")
            return LoadResult(success=False, error=str(e), warnings=warnings)
        except OSError as e:
            logger.exception(f"Unexpected I/O error during script scan of {dir_path}: {e}")
            return LoadResult(success=False, error=f"Scan Error: {e}", warnings=warnings)

        with self._lock:
            if clear_existing:
                logger.debug(f"Clearing {len(self._scripts)} existing scripts before reload.")
                self._scripts = {}
            for info in found:
                self._scripts[info.path] = ScriptRecord.from_file_info(info, self._relative_path(info.path))
            total = len(self._scripts)
        logger.info(f"Loaded {len(found)} scripts from {dir_path} ({total} total, {len(warnings)} warnings).")
        return LoadResult(success=True, count=len(found), warnings=warnings)

    def load_bundles(self, assets_path: PathLike) -> LoadResult:
        """
        Rediscovers bundles under `assets_path` and swaps in the new set in one step.
        On failure the previous set is kept and the error is returned.
        """
        warnings: List[str] = []
        locator = _BundleLocatorCore(assets_root=Path(assets_path), error_callback=warnings.append)
        try:
            found = locator.locate_bundles_sync()
        except ValueError as e:
            logger.error(f"Bundle discovery failed for {assets_path}: {e}")
            return LoadResult(success=False, error=str(e), warnings=warnings)
        except OSError as e:
            logger.exception(f"Unexpected I/O error during bundle discovery of {assets_path}: {e}")
            return LoadResult(success=False, error=f"Bundle Scan Error: {e}", warnings=warnings)

        new_bundles: Dict[str, BundleRecord] = {}
        for bundle in found:
            if bundle.name in new_bundles:
                logger.warning(f"Duplicate bundle name '{bundle.name}' at {bundle.path}. Overwriting {new_bundles[bundle.name].path}.")
                warnings.append(f"Duplicate bundle name: {bundle.name}")
            new_bundles[bundle.name] = bundle

        with self._lock:
            self._bundles = new_bundles
        logger.info(f"Loaded {len(new_bundles)} bundles from {assets_path}.")
        return LoadResult(success=True, count=len(new_bundles), warnings=warnings)

    def assign_script_bundles(self) -> int:
        """
        Sets each script's bundle_name to its nearest enclosing bundle (None if there is none).
        Returns the number of scripts that belong to a bundle.
        """
        with self._lock:
            # Deepest bundle directory first, so nested bundles win over their ancestors
            bundles = sorted(self._bundles.values(), key=lambda b: len(b.path.parts), reverse=True)
            assigned = 0
            for script in self._scripts.values():
                script.bundle_name = None
                for bundle in bundles:
                    if script.path.is_relative_to(bundle.path):
                        script.bundle_name = bundle.name
                        assigned += 1
                        break
        logger.debug(f"Assigned {assigned} scripts to bundles.")
        return assigned

    # --- Mutation ---

    def update_status(self, path: PathLike, status: AnalyzeStatus) -> None:
        """Sets the status and stamps last_analyzed_time. Unknown paths are ignored."""
        with self._lock:
            script = self._scripts.get(_key(path))
            if script is None:
                logger.trace(f"update_status ignored for unknown path: {path}")
                return
            script.analyze_status = status
            script.last_analyzed_time = datetime.now()

    def add_issue(self, path: PathLike, issue: Issue) -> None:
        """Appends an issue to a known script. Never creates a record for an unknown path."""
        with self._lock:
            script = self._scripts.get(_key(path))
            if script is None:
                logger.trace(f"add_issue ignored for unknown path: {path}")
                return
            script.issues.append(issue)

    # --- Queries ---

    def get_all_scripts(self) -> List[ScriptRecord]:
        with self._lock:
            return list(self._scripts.values())

    def get_script(self, path: PathLike) -> Optional[ScriptRecord]:
        with self._lock:
            return self._scripts.get(_key(path))

    def get_scripts_by_status(self, status: AnalyzeStatus) -> List[ScriptRecord]:
        with self._lock:
            return [s for s in self._scripts.values() if s.analyze_status == status]

    def get_statistics(self) -> ScriptStatistics:
        with self._lock:
            by_status = {status: 0 for status in AnalyzeStatus}
            total_issues = 0
            for script in self._scripts.values():
                by_status[script.analyze_status] += 1
                total_issues += len(script.issues)
            return ScriptStatistics(total_scripts=len(self._scripts), by_status=by_status,
                                    total_issues=total_issues)

    def get_all_bundles(self) -> List[BundleRecord]:
        with self._lock:
            return list(self._bundles.values())

    def get_bundle_by_name(self, name: str) -> Optional[BundleRecord]:
        with self._lock:
            return self._bundles.get(name)

    def get_bundle_statistics(self) -> BundleStatistics:
        with self._lock:
            bundles = list(self._bundles.values())
        return BundleStatistics(bundle_count=len(bundles),
                                total_files=sum(b.file_count for b in bundles),
                                total_size=sum(b.total_size for b in bundles))

    def build_tree(self, assets_root: PathLike) -> TreeNode:
        """Projects the current scripts into a fresh display tree."""
        return build_script_tree(self.get_all_scripts(), _key(assets_root))

# --- Qt Adapter Task ---

from PySide6.QtCore import QObject, QRunnable, Signal, Slot

class RegistryLoadSignals(QObject):
    finished = Signal(object); error = Signal(str); progress = Signal(str)

class RegistryLoadTask(QRunnable):
    """QRunnable adapter that loads scripts and bundles into a registry on a worker thread."""
    def __init__(self, registry: ScriptRegistry, scripts_path: Path, assets_path: Path, clear_existing: bool = True):
        super().__init__(); self.registry = registry; self.scripts_path = scripts_path
        self.assets_path = assets_path; self.clear_existing = clear_existing
        self.signals = RegistryLoadSignals(); self.setAutoDelete(True)
    @Slot()
    def run(self) -> None:
        try:
            self.signals.progress.emit(f"Scanning scripts: {self.scripts_path}")
            scripts_result = self.registry.load_scripts(self.scripts_path, clear_existing=self.clear_existing)
            if not scripts_result.success:
                self.signals.error.emit(scripts_result.error or "Script scan failed"); return
            self.signals.progress.emit(f"Locating bundles: {self.assets_path}")
            bundles_result = self.registry.load_bundles(self.assets_path)
            if not bundles_result.success:
                # Scripts are already loaded; a missing assets dir only leaves the bundle set untouched
                logger.warning(f"Bundle discovery skipped: {bundles_result.error}")
                self.signals.progress.emit(f"Bundle discovery skipped: {bundles_result.error}")
            self.registry.assign_script_bundles()
            self.signals.finished.emit(self.registry.get_statistics())
        except Exception as e: logger.exception(f"Unexpected error during registry load for {self.scripts_path}: {e}"); self.signals.error.emit(f"Unexpected Load Error: {e}")
