# scriptinspector/plugins/madge.py
import json
import re
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger

from ..core.plugins import CycleDetector, register_detector
from ..core.models import CycleReport

CIRCULAR_MARKER = "Circular"
CHAIN_DELIMITER = " > "
# Matches numbered entries such as "1) LoadingPage.ts > app.ts"
NUMBERED_ENTRY_RE = re.compile(r"^\s*\d+\)\s+(.+)$")

def parse_marker_lines(stdout: str) -> List[str]:
    """
    Success output: every line carrying the circular marker and a chain, reduced to the chain.
    Whatever precedes the first chain token ('Circular: ', 'Circular dependency found in ')
    is dropped; marker lines without a chain are ignored.
    """
    cycles = []
    for line in stdout.splitlines():
        text = line.strip()
        if not text or CIRCULAR_MARKER not in text or CHAIN_DELIMITER not in text:
            continue
        first, _, rest = text.partition(CHAIN_DELIMITER)
        if CIRCULAR_MARKER in first:
            label, sep, token = first.partition(":")
            if not (sep and CIRCULAR_MARKER in label and token.strip()):
                token = first.split()[-1]
            first = token.strip()
        cycles.append(f"{first}{CHAIN_DELIMITER}{rest.strip()}")
    return cycles

def parse_numbered_entries(stdout: str) -> List[str]:
    cycles = []
    for line in stdout.splitlines():
        match = NUMBERED_ENTRY_RE.match(line)
        if match:
            cycles.append(match.group(1).strip())
    return cycles

def parse_json_output(stdout: str) -> List[str]:
    """`madge --circular --json` prints an array of cycles, each an array of paths."""
    try:
        data = json.loads(stdout)
    except json.JSONDecodeError as e:
        logger.warning(f"Could not parse madge JSON output: {e}")
        return []
    if not isinstance(data, list):
        return []
    return [CHAIN_DELIMITER.join(str(p) for p in cycle) for cycle in data if isinstance(cycle, list) and cycle]

def _as_text(output) -> str:
    if output is None: return ""
    if isinstance(output, bytes): return output.decode('utf-8', errors='replace')
    return output

@register_detector
class MadgeCycleDetector(CycleDetector):
    name: str = "madge"

    def check_circular(self, target_path: Path, options: Dict | None = None) -> CycleReport:
        """Runs `madge --circular` against a directory and parses the cycles it reports."""
        options = options or {}
        command = options.get("command", "madge")
        extensions = options.get("extensions") or ["ts"]
        timeout = options.get("timeout", 120)
        use_json = options.get("output_format", "text") == "json"

        absolute_path = Path(target_path).resolve()
        args = [command, "--circular", "--extensions", ",".join(extensions)]
        if use_json:
            args.append("--json")
        args.append(str(absolute_path))
        logger.info(f"MadgeCycleDetector: Executing command: {' '.join(args)}")

        try:
            process = subprocess.run(
                args,
                capture_output=True,
                text=True,
                encoding='utf-8',
                errors='replace',
                check=False, # Non-zero exit still carries the cycle list
                shell=False,
                timeout=timeout,
            )
        except FileNotFoundError:
            logger.error(f"MadgeCycleDetector: '{command}' command not found. Is madge installed and in PATH?")
            return CycleReport(success=False, error=f"Command not found: {command}")
        except subprocess.TimeoutExpired as e:
            partial = _as_text(e.stdout)
            cycles = parse_numbered_entries(partial)
            logger.error(f"MadgeCycleDetector: Timed out after {timeout}s ({len(cycles)} cycles parsed from partial output).")
            return CycleReport(success=False, cycles=cycles, error=f"Timed out after {timeout} seconds",
                               stdout=partial, stderr=_as_text(e.stderr))
        except OSError as e:
            logger.error(f"MadgeCycleDetector: Could not run '{command}': {e}")
            return CycleReport(success=False, error=str(e))

        stdout = process.stdout or ""; stderr = process.stderr or ""
        if use_json:
            cycles = parse_json_output(stdout)
            success = process.returncode == 0 or bool(cycles)
        elif process.returncode == 0:
            cycles = parse_marker_lines(stdout)
            success = True
        else:
            cycles = parse_numbered_entries(stdout)
            success = bool(cycles) # Cycles found counts as a successful check

        error: Optional[str] = None
        if process.returncode != 0:
            error = stderr.strip() or f"madge exited with code {process.returncode}"
        logger.info(f"MadgeCycleDetector: Exit code {process.returncode}, {len(cycles)} cycles found.")
        return CycleReport(success=success, cycles=cycles, error=error, stdout=stdout, stderr=stderr)

    @classmethod
    def get_options_schema(cls) -> Dict | None:
        return {
            "command": {"type": "string", "default": "madge", "description": "madge executable."},
            "extensions": {"type": "array", "default": ["ts"], "description": "Script extensions passed to --extensions."},
            "timeout": {"type": "number", "default": 120, "description": "Seconds before the run is abandoned."},
            "output_format": {"type": "string", "default": "text", "description": "'text' or 'json'."},
        }
