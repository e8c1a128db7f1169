# scriptinspector/core/cycles.py
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from loguru import logger

from .models import AnalyzeStatus, CycleReport, Issue, IssueSeverity, ScriptRecord
from .plugins import CycleDetector
from .registry import ScriptRegistry

CIRCULAR_ISSUE_KIND = "circular-dependency"
CHAIN_SEPARATOR = ">"

def split_chain(chain: str) -> List[str]:
    """'a.ts > b.ts > a.ts' -> ['a.ts', 'b.ts', 'a.ts'] (empty tokens dropped)."""
    return [token.strip() for token in chain.split(CHAIN_SEPARATOR) if token.strip()]

def resolve_token(token: str, scripts: List[ScriptRecord]) -> Optional[ScriptRecord]:
    """
    Finds the script a cycle participant refers to: an exact relative-path match first,
    then a suffix match against the absolute path that must start on a path-segment
    boundary ("b.ts" matches ".../src/b.ts", never ".../src/ab.ts").
    """
    normalized = token.replace("\\", "/")
    if normalized.startswith("./"):
        normalized = normalized[2:]
    for script in scripts:
        if script.relative_path == normalized:
            return script

    suffix = "/" + normalized.lstrip("/")
    matches = [s for s in scripts if s.path.as_posix().endswith(suffix) or s.path.as_posix() == normalized]
    if len(matches) > 1:
        logger.debug(f"Ambiguous cycle token '{token}' matches {len(matches)} scripts; using {matches[0].path}")
    return matches[0] if matches else None

def attribute_cycles(registry: ScriptRegistry, cycles: Iterable[str]) -> int:
    """
    Adds a warning issue to every indexed script taking part in each reported cycle.
    A script named twice in one chain gets one issue for that chain; separate chains
    each add their own. Unresolvable names are skipped. Returns the number of issues added.
    """
    scripts = registry.get_all_scripts()
    added = 0
    for chain in cycles:
        seen: Dict[Path, ScriptRecord] = {}
        for token in split_chain(chain):
            script = resolve_token(token, scripts)
            if script is None:
                logger.debug(f"Cycle participant '{token}' is not indexed. Skipping.")
                continue
            seen.setdefault(script.path, script)

        for path in seen:
            registry.add_issue(path, Issue(kind=CIRCULAR_ISSUE_KIND,
                                           message=f"Circular dependency: {chain}",
                                           line=0,
                                           severity=IssueSeverity.WARNING))
            added += 1
    logger.info(f"Attributed {added} circular dependency issues.")
    return added

def run_cycle_check(registry: ScriptRegistry, detector: CycleDetector, target_path: Path,
                    options: Dict | None = None) -> CycleReport:
    """
    Runs an external detector and writes its cycles into the registry. Every script is
    Analyzing while the detector runs, then Analyzed (or Failed if the report failed).
    Detector exceptions never escape; they become an unsuccessful report.
    """
    scripts = registry.get_all_scripts()
    for script in scripts:
        registry.update_status(script.path, AnalyzeStatus.ANALYZING)

    try:
        report = detector.check_circular(target_path, options)
    except Exception as e:
        logger.exception(f"Cycle detector '{detector.name}' failed for {target_path}: {e}")
        report = CycleReport(success=False, error=f"Detector Error: {e}")

    attribute_cycles(registry, report.cycles)
    final_status = AnalyzeStatus.ANALYZED if report.success else AnalyzeStatus.FAILED
    for script in scripts:
        registry.update_status(script.path, final_status)
    if not report.success: logger.warning(f"Cycle check for {target_path} did not succeed: {report.error}")
    return report

def format_report(report: CycleReport) -> str:
    """Renders a detector report as readable text."""
    lines = ["=== Circular Dependency Check ===",
             f"Status: {'Success' if report.success else 'Failed'}"]
    if not report.success:
        lines.append("\n--- Error ---")
        if report.error: lines.append(f"Error: {report.error}")
        if report.stderr: lines.append(f"Stderr: {report.stderr}")
    lines.append("\n--- Cycles ---")
    if report.cycles:
        for index, chain in enumerate(report.cycles, start=1):
            lines.append(f"{index}. {chain}")
    else:
        lines.append("No circular dependencies found")
    if report.stdout:
        lines.append("\n--- Raw Output ---")
        lines.append(report.stdout)
    return "\n".join(lines)

# --- Qt Adapter Task ---

from PySide6.QtCore import QObject, QRunnable, Signal, Slot

class CycleCheckSignals(QObject):
    finished = Signal(object); error = Signal(str)

class CycleCheckTask(QRunnable):
    """QRunnable adapter for run_cycle_check."""
    def __init__(self, registry: ScriptRegistry, detector: CycleDetector, target_path: Path, options: Dict | None = None):
        super().__init__(); self.registry = registry; self.detector = detector
        self.target_path = target_path; self.options = options
        self.signals = CycleCheckSignals(); self.setAutoDelete(True)
    @Slot()
    def run(self) -> None:
        try:
            report = run_cycle_check(self.registry, self.detector, self.target_path, self.options)
            self.signals.finished.emit(report)
        except Exception as e: logger.exception(f"Unexpected error during cycle check for {self.target_path}: {e}"); self.signals.error.emit(f"Unexpected Cycle Check Error: {e}")
