"""Heuristic object-language classification for source text and paths."""

import re
from enum import Enum
from pathlib import PurePath
from typing import Optional


class Language(str, Enum):
    TYPESCRIPT = "typescript"
    JAVASCRIPT = "javascript"
    PYTHON = "python"
    DART = "dart"
    UNKNOWN = "unknown"

    @property
    def is_curly_brace(self) -> bool:
        return self in (Language.TYPESCRIPT, Language.JAVASCRIPT, Language.DART)

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES: dict[Language, str] = {
    Language.TYPESCRIPT: "TypeScript",
    Language.JAVASCRIPT: "JavaScript",
    Language.PYTHON: "Python",
    Language.DART: "Dart/Flutter",
    Language.UNKNOWN: "Unknown",
}

_EXTENSION_MAP: dict[str, Language] = {
    ".ts": Language.TYPESCRIPT,
    ".tsx": Language.TYPESCRIPT,
    ".js": Language.JAVASCRIPT,
    ".jsx": Language.JAVASCRIPT,
    ".mjs": Language.JAVASCRIPT,
    ".cjs": Language.JAVASCRIPT,
    ".py": Language.PYTHON,
    ".dart": Language.DART,
}

# Ordered: most distinguishing markers first
_DART_PATTERNS = [
    re.compile(r"\bWidget\b"),
    re.compile(r"\bStatelessWidget\b"),
    re.compile(r"\bStatefulWidget\b"),
    re.compile(r"\bBuildContext\b"),
    re.compile(r"Widget build\("),
    re.compile(r"extends\s+(?:StatelessWidget|StatefulWidget|State)\b"),
]
_DART_OVERRIDE = re.compile(r"@override", re.IGNORECASE)
_DART_WIDGET_HINT = re.compile(r"Widget|BuildContext")

_PYTHON_PATTERNS = [
    re.compile(r"^(?:def|async def)\s", re.MULTILINE),
    re.compile(r"^from\s+[\w.]+\s+import", re.MULTILINE),
    re.compile(r"^\s+def\s", re.MULTILINE),
    re.compile(r"\belif\b"),
    re.compile(r"\b__init__\b"),
    re.compile(r"\bprint\(", re.MULTILINE),
]
_TRAILING_COLON = re.compile(r":\s*$", re.MULTILINE)

_TYPESCRIPT_PATTERNS = [
    re.compile(r":\s*(?:string|number|boolean|any|void|unknown|never)\b"),
    re.compile(r"\binterface\s+\w+"),
    re.compile(r"\btype\s+\w+\s*="),
    re.compile(r"<[A-Z]\w*>"),
]
_JAVASCRIPT_PATTERN = re.compile(
    r"\b(?:const|let|var|function|class|async|await|import|export)\b"
)


def detect_language(code: str) -> Language:
    """Classify source text by ordered lexical heuristics.

    Declarative-UI markers are checked before indentation-based markers,
    which are checked before generic curly-brace keywords. The result is a
    pure function of ``code``.
    """
    if not code or not code.strip():
        return Language.UNKNOWN

    if any(p.search(code) for p in _DART_PATTERNS):
        return Language.DART
    if _DART_OVERRIDE.search(code) and _DART_WIDGET_HINT.search(code):
        return Language.DART

    if any(p.search(code) for p in _PYTHON_PATTERNS):
        return Language.PYTHON
    if _TRAILING_COLON.search(code) and ";" not in code:
        return Language.PYTHON

    if any(p.search(code) for p in _TYPESCRIPT_PATTERNS):
        return Language.TYPESCRIPT

    if _JAVASCRIPT_PATTERN.search(code):
        return Language.JAVASCRIPT

    return Language.UNKNOWN


def detect_language_from_path(path: str | PurePath) -> Optional[Language]:
    """Map a file extension to its language, or None when unsupported."""
    return _EXTENSION_MAP.get(PurePath(path).suffix.lower())


def supported_extensions() -> frozenset[str]:
    return frozenset(_EXTENSION_MAP)
