"""Tests for symbol extraction and project-wide symbol search."""

from code_intel.indexing.extractors import (
    DartExtractor,
    PythonExtractor,
    TypeScriptExtractor,
    get_extractor_for_language,
)
from code_intel.indexing.extractors.base import PREVIEW_MAX_LEN
from code_intel.indexing.finder import find_symbol, summarize_symbols
from code_intel.indexing.models import SymbolKind
from code_intel.source.cache import SourceCache

TS_SOURCE = """\
export interface User {
  id: string;
}

export type UserId = string;

export class UserService {
  getUser(id: UserId): User {
    return { id };
  }
}

export function createUser(id: string): User {
  return { id };
}

export const deleteUser = (id: string) => id;
const MAX_USERS = 10;
"""

PY_SOURCE = '''\
class UserService:
    """Looks users up."""

    def get_user(self, user_id):
        return user_id


def create_user(name):
    return name


normalize = lambda name: name.lower()
DEFAULT_USER = "guest"
'''

DART_SOURCE = """\
class UserCard extends StatelessWidget {
  final String name;

  Widget build(BuildContext context) {
    return Text(name);
  }
}

void showUser(String name) {
  print(name);
}
"""


class TestExtractors:
    def setup_method(self):
        self.cache = SourceCache()

    def _unit(self, make_project, rel, text):
        root = make_project({rel: text})
        return self.cache.get_or_create(root).get(rel)

    def test_typescript_symbols(self, make_project):
        unit = self._unit(make_project, "src/user.ts", TS_SOURCE)
        symbols = {s.name: s for s in TypeScriptExtractor().extract_symbols(unit)}

        assert symbols["User"].kind == SymbolKind.INTERFACE
        assert symbols["UserId"].kind == SymbolKind.TYPE
        assert symbols["UserService"].kind == SymbolKind.CLASS
        assert symbols["getUser"].kind == SymbolKind.METHOD
        assert symbols["createUser"].kind == SymbolKind.FUNCTION
        assert symbols["deleteUser"].kind == SymbolKind.FUNCTION
        assert symbols["MAX_USERS"].kind == SymbolKind.VARIABLE

        create = symbols["createUser"]
        assert (create.line, create.column) == (13, 16)
        assert create.preview.startswith("function createUser(id: string): User {")
        assert len(create.preview) <= 100

    def test_python_symbols(self, make_project):
        unit = self._unit(make_project, "users.py", PY_SOURCE)
        symbols = {s.name: s for s in PythonExtractor().extract_symbols(unit)}

        assert symbols["UserService"].kind == SymbolKind.CLASS
        assert symbols["UserService"].preview == "Looks users up."
        assert (symbols["UserService"].line, symbols["UserService"].column) == (1, 6)
        assert symbols["get_user"].kind == SymbolKind.METHOD
        assert symbols["create_user"].kind == SymbolKind.FUNCTION
        assert symbols["normalize"].kind == SymbolKind.FUNCTION
        assert symbols["DEFAULT_USER"].kind == SymbolKind.VARIABLE

    def test_python_docstring_preview_is_capped(self, make_project):
        source = 'def verbose():\n    """' + "word " * 60 + '"""\n'
        unit = self._unit(make_project, "verbose.py", source)
        [symbol] = PythonExtractor().extract_symbols(unit)
        assert len(symbol.preview) == PREVIEW_MAX_LEN

    def test_dart_symbols(self, make_project):
        unit = self._unit(make_project, "lib/user_card.dart", DART_SOURCE)
        symbols = {s.name: s for s in DartExtractor().extract_symbols(unit)}

        assert symbols["UserCard"].kind == SymbolKind.CLASS
        assert symbols["build"].kind == SymbolKind.METHOD
        assert symbols["showUser"].kind == SymbolKind.FUNCTION
        assert symbols["showUser"].line == 9

    def test_extractor_lookup(self):
        assert isinstance(get_extractor_for_language("typescript"), TypeScriptExtractor)
        assert isinstance(get_extractor_for_language("javascript"), TypeScriptExtractor)
        assert isinstance(get_extractor_for_language("PYTHON"), PythonExtractor)
        assert get_extractor_for_language("cobol") is None


class TestFindSymbol:
    def setup_method(self):
        self.cache = SourceCache()

    def test_substring_match_across_languages(self, make_project):
        root = make_project({
            "src/user.ts": TS_SOURCE,
            "tools/users.py": PY_SOURCE,
            "lib/user_card.dart": DART_SOURCE,
        })
        symbols = find_symbol(self.cache.get_or_create(root), "User")
        names = {s.name for s in symbols}
        assert {"User", "UserId", "UserService", "getUser", "createUser", "UserCard", "showUser"} <= names

    def test_exact_matches_first(self, make_project):
        root = make_project({"src/user.ts": TS_SOURCE})
        symbols = find_symbol(self.cache.get_or_create(root), "User")
        assert symbols[0].name == "User"

    def test_kind_filter(self, make_project):
        root = make_project({"src/user.ts": TS_SOURCE, "tools/users.py": PY_SOURCE})
        symbols = find_symbol(self.cache.get_or_create(root), "User", kind="class")
        assert {s.name for s in symbols} == {"UserService"}
        assert {s.file_path for s in symbols} == {"src/user.ts", "tools/users.py"}

    def test_no_match(self, make_project):
        root = make_project({"src/user.ts": TS_SOURCE})
        assert find_symbol(self.cache.get_or_create(root), "Nothing") == []

    def test_summary(self, make_project):
        root = make_project({"tools/users.py": PY_SOURCE})
        symbols = find_symbol(self.cache.get_or_create(root), "create_user")
        assert summarize_symbols(symbols) == "Found 1 symbol: 1 function"
        assert summarize_symbols([]) == "Found 0 symbols"
