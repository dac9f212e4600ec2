"""Project source loading, parsing and caching."""

from .cache import SourceCache, SourceProject
from .models import Diagnostic, DiagnosticKind, ParsedUnit
from .parsers import ParseError, ParserRegistry

__all__ = [
    "SourceCache",
    "SourceProject",
    "Diagnostic",
    "DiagnosticKind",
    "ParsedUnit",
    "ParseError",
    "ParserRegistry",
]
