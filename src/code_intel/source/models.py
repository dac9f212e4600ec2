"""Data models for parsed source units and per-file diagnostics."""

from dataclasses import dataclass, field
from functools import cached_property
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel

from code_intel.core.language import Language


class DiagnosticKind(str, Enum):
    PARSE_FAILURE = "parse_failure"
    IO_FAILURE = "io_failure"
    TOO_LARGE = "too_large"


class Diagnostic(BaseModel):
    file_path: str
    kind: DiagnosticKind
    message: str

    class Config:
        use_enum_values = True


@dataclass
class ParsedUnit:
    """One source file plus its syntax tree.

    ``tree`` is a tree-sitter ``Tree`` for TypeScript/JavaScript, an
    ``ast.Module`` for Python, and ``None`` for line-scanned languages.
    """
    path: str
    language: Language
    text: str
    tree: Optional[Any] = None
    # per-unit analysis results keyed by extractor
    memo: dict = field(default_factory=dict, repr=False, compare=False)

    @cached_property
    def lines(self) -> list[str]:
        return self.text.splitlines()

    @cached_property
    def source_bytes(self) -> bytes:
        return self.text.encode("utf8")

    @property
    def is_ast_backed(self) -> bool:
        return self.tree is not None

    def line_text(self, line: int) -> str:
        """Return the 1-based ``line`` or an empty string when out of range."""
        if 1 <= line <= len(self.lines):
            return self.lines[line - 1]
        return ""

    def char_column(self, line: int, byte_column: int) -> int:
        """Convert a UTF-8 byte offset within ``line`` to a character column."""
        encoded = self.line_text(line).encode("utf8")
        return len(encoded[:byte_column].decode("utf8", errors="ignore"))
