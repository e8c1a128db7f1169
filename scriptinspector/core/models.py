# scriptinspector/core/models.py
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, List, Dict

class AnalyzeStatus(str, Enum):
    """Analysis state of a single script."""
    PENDING = "pending"
    ANALYZING = "analyzing"
    ANALYZED = "analyzed"
    FAILED = "failed"

class IssueSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

@dataclass
class FileInfo:
    """Lightweight metadata for a script file found on disk."""
    path: Path # Absolute, resolved
    name: str
    extension: str # Includes the leading dot, e.g. ".ts"
    size: int = 0 # Size in bytes
    mod_time: float = 0.0 # Modification time (timestamp)

@dataclass
class DirectoryInfo:
    """Stats for the immediate (non-recursive) file children of a directory."""
    path: Path
    name: str
    file_count: int = 0
    script_file_count: int = 0
    total_size: int = 0

@dataclass(frozen=True)
class Issue:
    """A diagnostic attached to a script. Immutable once created."""
    kind: str # Free-form category tag, e.g. "circular-dependency"
    message: str
    line: int = 0 # 0 when not line-specific
    severity: IssueSeverity = IssueSeverity.WARNING

@dataclass
class ScriptRecord:
    """A script indexed by the registry, keyed by its absolute path."""
    path: Path
    name: str
    extension: str
    size: int
    mod_time: float
    relative_path: str # POSIX-style, relative to the project root
    analyze_status: AnalyzeStatus = AnalyzeStatus.PENDING
    last_analyzed_time: Optional[datetime] = None
    issues: List[Issue] = field(default_factory=list)
    bundle_name: Optional[str] = None
    dependencies: List[Path] = field(default_factory=list)

    @classmethod
    def from_file_info(cls, info: FileInfo, relative_path: str) -> "ScriptRecord":
        return cls(path=info.path, name=info.name, extension=info.extension,
                   size=info.size, mod_time=info.mod_time, relative_path=relative_path)

    # Allow hashing based on path for use in sets
    def __hash__(self):
        return hash(self.path)

    def __eq__(self, other):
        if not isinstance(other, ScriptRecord):
            return NotImplemented
        return self.path == other.path

@dataclass
class BundleRecord:
    """A directory marked as a bundle by its sidecar metadata."""
    name: str
    path: Path
    priority: int = 0
    file_count: int = 0
    script_count: int = 0
    total_size: int = 0
    config_id: Optional[str] = None # uuid from the metadata, if any

    def relative_path(self, root: Path) -> str:
        """Bundle directory relative to `root`, or the absolute path if outside it."""
        try:
            return self.path.relative_to(root).as_posix()
        except ValueError:
            return self.path.as_posix()

@dataclass
class ScriptStatistics:
    total_scripts: int
    by_status: Dict[AnalyzeStatus, int]
    total_issues: int

@dataclass
class BundleStatistics:
    bundle_count: int
    total_files: int
    total_size: int

@dataclass
class LoadResult:
    """Outcome of a registry load operation. Failures are reported, not raised."""
    success: bool
    count: int = 0
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list) # Non-fatal per-entry problems

@dataclass
class CycleReport:
    """Parsed result of an external cycle detector run."""
    success: bool
    cycles: List[str] = field(default_factory=list) # e.g. "a.ts > b.ts > a.ts"
    error: Optional[str] = None
    stdout: str = ""
    stderr: str = ""

@dataclass
class TreeNode:
    """A node of the display tree. Built fresh on every request."""
    label: str
    path: Path
    is_leaf: bool = False
    has_issues: bool = False
    children: List['TreeNode'] = field(default_factory=list)
    script: Optional[ScriptRecord] = None # Only set on leaf nodes

    @property
    def has_children(self) -> bool:
        # Intermediate nodes are expandable, leaves are not
        return not self.is_leaf
