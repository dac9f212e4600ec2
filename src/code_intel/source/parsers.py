"""Parser registry: tree-sitter grammars for scripts, ``ast`` for Python."""

import ast
import logging
import threading
from pathlib import PurePath
from typing import Any, Optional

import tree_sitter_typescript
from tree_sitter import Language as TreeSitterLanguage
from tree_sitter import Parser

from code_intel.core.language import Language

logger = logging.getLogger(__name__)

# .ts uses the plain TypeScript grammar; everything else JSX-capable uses TSX
_GRAMMAR_BY_EXTENSION: dict[str, str] = {
    ".ts": "typescript",
    ".tsx": "tsx",
    ".js": "tsx",
    ".jsx": "tsx",
    ".mjs": "tsx",
    ".cjs": "tsx",
}

_GRAMMAR_BY_LANGUAGE: dict[Language, str] = {
    Language.TYPESCRIPT: "typescript",
    Language.JAVASCRIPT: "tsx",
}


class ParseError(Exception):
    """Source text could not be parsed by its language's parser."""

    def __init__(self, message: str, line: Optional[int] = None):
        super().__init__(message)
        self.line = line


def _first_error_line(node) -> Optional[int]:
    if node.type == "ERROR" or node.is_missing:
        return node.start_point[0] + 1
    for child in node.children:
        if child.has_error:
            return _first_error_line(child)
    return None


class ParserRegistry:
    """Creates and caches one tree-sitter parser per grammar.

    tree-sitter parsers are not safe for concurrent use, so parsing is
    serialized per registry.
    """

    def __init__(self) -> None:
        self._parsers: dict[str, Parser] = {}
        self._lock = threading.Lock()

    def _get_parser(self, grammar: str) -> Parser:
        parser = self._parsers.get(grammar)
        if parser is None:
            if grammar == "typescript":
                lang = TreeSitterLanguage(tree_sitter_typescript.language_typescript())
            elif grammar == "tsx":
                lang = TreeSitterLanguage(tree_sitter_typescript.language_tsx())
            else:
                raise ValueError(f"Unknown grammar: {grammar}")
            parser = Parser(lang)
            self._parsers[grammar] = parser
            logger.debug("Loaded %s grammar", grammar)
        return parser

    @staticmethod
    def grammar_for(path: Optional[str] = None, language: Optional[Language] = None) -> Optional[str]:
        if path is not None:
            grammar = _GRAMMAR_BY_EXTENSION.get(PurePath(path).suffix.lower())
            if grammar:
                return grammar
        if language is not None:
            return _GRAMMAR_BY_LANGUAGE.get(language)
        return None

    def parse_script(self, text: str, grammar: str, strict: bool = True):
        """Parse TypeScript/JavaScript into a tree-sitter tree.

        With ``strict`` a tree containing error nodes raises ParseError
        instead of returning a partially recovered tree.
        """
        with self._lock:
            tree = self._get_parser(grammar).parse(text.encode("utf8"))
        root = tree.root_node
        if strict and root.has_error:
            line = _first_error_line(root)
            where = f" near line {line}" if line else ""
            raise ParseError(f"{grammar} syntax error{where}", line=line)
        return tree

    @staticmethod
    def parse_python(text: str) -> ast.Module:
        try:
            return ast.parse(text)
        except (SyntaxError, ValueError) as e:
            line = getattr(e, "lineno", None)
            raise ParseError(f"python syntax error: {e}", line=line) from e
        except (RecursionError, MemoryError) as e:
            # valid source nested too deeply for the ast builder
            raise ParseError(f"python source too deeply nested: {e}") from e

    def parse(self, path: str, text: str, language: Language) -> Optional[Any]:
        """Return the syntax tree for a file, or None for line-scanned languages."""
        if language == Language.PYTHON:
            return self.parse_python(text)
        grammar = self.grammar_for(path=path, language=language)
        if grammar is None:
            return None
        return self.parse_script(text, grammar)


def node_text(node) -> str:
    return node.text.decode("utf8", errors="replace")


def walk_nodes(root):
    """Yield every node under ``root`` in document order (pre-order)."""
    cursor = root.walk()
    visited_children = False
    while True:
        if not visited_children:
            yield cursor.node
            if cursor.goto_first_child():
                continue
        if cursor.goto_next_sibling():
            visited_children = False
        elif cursor.goto_parent():
            visited_children = True
        else:
            break
