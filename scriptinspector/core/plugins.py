# scriptinspector/core/plugins.py
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Type
import importlib.metadata
from loguru import logger

from .models import CycleReport

class CycleDetector(ABC):
    """Abstract base class for external circular-dependency detectors."""
    name: str = "Unnamed Detector" # Unique identifier name

    @abstractmethod
    def check_circular(self, target_path: Path, options: Dict | None = None) -> CycleReport:
        """
        Runs the detector against `target_path` and returns its cycles as chain strings
        ("a.ts > b.ts > a.ts"). Failures must be reported through CycleReport.success,
        not raised.
        """
        pass

    @classmethod
    def get_options_schema(cls) -> Dict | None:
        """Optional: describes the options accepted by check_circular."""
        return None

# --- Detector Registry ---
_detector_registry: Dict[str, Type[CycleDetector]] = {}

def register_detector(cls: Type[CycleDetector]):
    """Class decorator (or plain function) registering a detector class."""
    if not issubclass(cls, CycleDetector):
        raise TypeError("Detector must inherit from CycleDetector")
    if not cls.name or cls.name == "Unnamed Detector":
         raise ValueError(f"Detector {cls.__name__} must define a unique 'name' attribute.")

    if cls.name in _detector_registry and _detector_registry[cls.name] is not cls:
        logger.warning(f"Detector name conflict: '{cls.name}' already registered. Overwriting.")
    _detector_registry[cls.name] = cls
    logger.debug(f"Registered cycle detector: '{cls.name}'")
    return cls

def load_detectors(entry_point_group="scriptinspector.cycle_detectors"):
    """Registers the built-in detectors, then discovers more through entry points."""
    from ..plugins.madge import MadgeCycleDetector
    register_detector(MadgeCycleDetector)

    logger.debug(f"Discovering detectors using entry point group: '{entry_point_group}'")
    try:
        entry_points = importlib.metadata.entry_points(group=entry_point_group)
    except Exception as e:
         logger.error(f"Error accessing entry points for group '{entry_point_group}': {e}")
         entry_points = []

    loaded_count = 0
    for ep in entry_points:
        try:
            detector_class = ep.load()
            if isinstance(detector_class, type) and issubclass(detector_class, CycleDetector):
                 detector_name = getattr(detector_class, 'name', None)
                 if detector_name and detector_name != "Unnamed Detector":
                     if detector_name in _detector_registry:
                         logger.warning(f"Detector name conflict via entry point: '{detector_name}' already registered. Skipping {ep.name}.")
                     else:
                         _detector_registry[detector_name] = detector_class
                         logger.info(f"Loaded detector '{detector_name}' from entry point '{ep.name}'")
                         loaded_count += 1
                 else:
                      logger.error(f"Detector class {detector_class.__name__} from entry point {ep.name} lacks a valid 'name' attribute.")
            else:
                logger.warning(f"Entry point {ep.name} did not load a CycleDetector subclass.")
        except Exception as e:
            logger.exception(f"Failed to load detector from entry point {ep.name}: {e}")

    logger.debug(f"Loaded {loaded_count} detectors via entry points. Total registered: {len(_detector_registry)}")

def get_available_detectors() -> List[Type[CycleDetector]]:
    return list(_detector_registry.values())

def get_detector_by_name(name: str) -> Type[CycleDetector] | None:
    return _detector_registry.get(name)
