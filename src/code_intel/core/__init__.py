"""Configuration and language classification.

The engine facade lives in ``code_intel.core.engine``; it is not imported
here because every other package depends on this one.
"""

from .config import EngineConfig, ThresholdConfig, load_config
from .language import Language, detect_language, detect_language_from_path

__all__ = [
    "EngineConfig",
    "ThresholdConfig",
    "load_config",
    "Language",
    "detect_language",
    "detect_language_from_path",
]
