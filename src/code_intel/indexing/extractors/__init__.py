"""Language-specific symbol extractors."""

from typing import Optional

from code_intel.core.language import Language

from .base import BaseExtractor, ResolvedImport
from .dart_extractor import DartExtractor
from .python_extractor import PythonExtractor
from .typescript_extractor import TypeScriptExtractor

_EXTRACTOR_MAP: dict[str, type[BaseExtractor]] = {
    Language.TYPESCRIPT.value: TypeScriptExtractor,
    Language.JAVASCRIPT.value: TypeScriptExtractor,
    Language.PYTHON.value: PythonExtractor,
    Language.DART.value: DartExtractor,
}


def get_extractor_for_language(language: str) -> Optional[BaseExtractor]:
    cls = _EXTRACTOR_MAP.get(str(getattr(language, "value", language)).lower())
    return cls() if cls else None


__all__ = [
    "BaseExtractor",
    "DartExtractor",
    "PythonExtractor",
    "ResolvedImport",
    "TypeScriptExtractor",
    "get_extractor_for_language",
]
