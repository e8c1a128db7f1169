# scriptinspector/config/schema.py
from pydantic import BaseModel, Field, field_validator
from typing import List, Literal

from ..core.fs_scanner import SCRIPT_EXTENSIONS

class AppConfig(BaseModel):
    assets_dir_name: str = "assets" # Assets root, relative to the project root
    cycle_detector: str = "madge" # Registered CycleDetector name
    detector_command: str = "madge"
    detector_extensions: List[str] = Field(default_factory=lambda: ["ts"])
    detector_timeout: float = Field(default=120, gt=0) # Seconds
    detector_output_format: Literal["text", "json"] = "text"
    log_level: str = "INFO"

    @field_validator("detector_extensions")
    @classmethod
    def _known_script_extensions(cls, value: List[str]) -> List[str]:
        """Accepts 'ts' or '.ts' style entries; only the indexed script suffixes are allowed."""
        allowed = [ext.lstrip(".") for ext in SCRIPT_EXTENSIONS]
        normalized: List[str] = []
        for ext in value:
            ext = ext.strip().lstrip(".").lower()
            if ext not in allowed:
                raise ValueError(f"unsupported script extension '{ext}', expected one of {allowed}")
            if ext not in normalized:
                normalized.append(ext)
        if not normalized:
            raise ValueError("at least one script extension is required")
        return normalized

    def detector_options(self) -> dict:
        """Options dict handed to CycleDetector.check_circular."""
        return {
            "command": self.detector_command,
            "extensions": list(self.detector_extensions),
            "timeout": self.detector_timeout,
            "output_format": self.detector_output_format,
        }
