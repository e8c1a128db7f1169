# scriptinspector/__init__.py
import os
from loguru import logger

__version__ = "0.1.0"

# Centralized detector loading
def _initialize_plugins():
    """Loads cycle detector plugins unless explicitly skipped."""
    if os.environ.get("SCRIPTINSPECTOR_SKIP_PLUGINS", "0") == "1":
        logger.info("Skipping detector loading due to SCRIPTINSPECTOR_SKIP_PLUGINS=1.")
        return

    try:
        from .core.plugins import load_detectors
        load_detectors()
    except ImportError as e:
         logger.warning(f"Could not load detectors during initial import: {e}")
    except Exception:
        logger.exception("An unexpected error occurred during detector loading.")

_initialize_plugins()
