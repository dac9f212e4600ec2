"""Tests for definition/usage lookup."""

from code_intel.indexing.models import ReferenceRole
from code_intel.indexing.references import FALLBACK, PRECISE, ReferenceResolver
from code_intel.source.cache import SourceCache
from tests.unit.project_fixtures import GET_USER_PROJECT

MODULE_PROJECT = {
    "src/user.ts": "export function getUser(id: string) {\n  return { id };\n}\n",
    "src/profile.ts": 'import { getUser } from "./user";\n\nexport const profile = getUser("1");\n',
    "src/other.ts": "export function helper() {\n  const getUser = 1;\n  return getUser;\n}\n",
}


class TestFallbackReferences:
    def setup_method(self):
        self.cache = SourceCache()

    def test_one_definition_two_usages(self, make_project):
        project = self.cache.get_or_create(make_project(GET_USER_PROJECT))
        search = ReferenceResolver(project).find("getUser")

        assert search.mode == FALLBACK
        assert len(search.definitions) == 1
        assert search.definitions[0].file_path == "src/user.js"
        assert len(search.usages) == 2
        assert {r.file_path for r in search.usages} == {"src/profile.js", "src/admin.js"}

    def test_reference_positions_and_text(self, make_project):
        project = self.cache.get_or_create(make_project(GET_USER_PROJECT))
        search = ReferenceResolver(project).find("getUser")

        definition = search.definitions[0]
        assert (definition.line, definition.column) == (1, 9)
        assert definition.role == ReferenceRole.DEFINITION
        usage = next(r for r in search.usages if r.file_path == "src/profile.js")
        assert (usage.line, usage.column) == (1, 16)
        assert usage.text == "const profile = getUser(1);"

    def test_partial_names_do_not_match(self, make_project):
        project = self.cache.get_or_create(make_project({
            "a.js": "function getUserName() {}\ngetUserName();\n",
        }))
        assert ReferenceResolver(project).find("getUser").references == []

    def test_strings_and_comments_are_not_references(self, make_project):
        project = self.cache.get_or_create(make_project({
            "a.js": 'const label = "getUser";\n// getUser is elsewhere\n',
        }))
        assert ReferenceResolver(project).find("getUser").references == []

    def test_unknown_symbol(self, make_project):
        project = self.cache.get_or_create(make_project(GET_USER_PROJECT))
        search = ReferenceResolver(project).find("missing")
        assert search.references == []


class TestPreciseReferences:
    def setup_method(self):
        self.cache = SourceCache()

    def test_script_globals_resolve_across_files(self, make_project):
        project = self.cache.get_or_create(make_project(GET_USER_PROJECT))
        search = ReferenceResolver(project).find("getUser", "src/user.js", 1)

        assert search.mode == PRECISE
        assert len(search.definitions) == 1
        assert len(search.usages) == 2

    def test_imports_resolve_and_shadowed_locals_are_excluded(self, make_project):
        project = self.cache.get_or_create(make_project(MODULE_PROJECT))
        search = ReferenceResolver(project).find("getUser", "src/user.ts", 1)

        assert search.mode == PRECISE
        assert [r.file_path for r in search.definitions] == ["src/user.ts"]
        assert {r.file_path for r in search.usages} == {"src/profile.ts"}
        assert "src/other.ts" not in search.by_file()

        fallback = ReferenceResolver(project).find("getUser")
        assert "src/other.ts" in fallback.by_file()

    def test_anchor_from_a_usage(self, make_project):
        project = self.cache.get_or_create(make_project(MODULE_PROJECT))
        from_usage = ReferenceResolver(project).find("getUser", "src/profile.ts", 3)
        from_definition = ReferenceResolver(project).find("getUser", "src/user.ts", 1)
        assert from_usage.references == from_definition.references

    def test_local_scope_only(self, make_project):
        project = self.cache.get_or_create(make_project(MODULE_PROJECT))
        search = ReferenceResolver(project).find("getUser", "src/other.ts", 2)
        assert {r.file_path for r in search.references} == {"src/other.ts"}
        assert [r.line for r in search.references] == [2, 3]

    def test_python_bindings(self, make_project):
        project = self.cache.get_or_create(make_project({
            "pkg/__init__.py": "",
            "pkg/models.py": "def load(path):\n    return path\n",
            "pkg/app.py": "from .models import load\n\nresult = load('x')\n",
            "pkg/other.py": "def run(load):\n    return load\n",
        }))
        search = ReferenceResolver(project).find("load", "pkg/models.py", 1)
        assert search.mode == PRECISE
        assert {r.file_path for r in search.references} == {"pkg/models.py", "pkg/app.py"}

    def test_unresolvable_anchor_falls_back(self, make_project):
        project = self.cache.get_or_create(make_project(GET_USER_PROJECT))
        search = ReferenceResolver(project).find("getUser", "src/user.js", 3)
        assert search.mode == FALLBACK
        assert len(search.references) == 3

    def test_dart_anchor_uses_fallback(self, make_project):
        project = self.cache.get_or_create(make_project({
            "lib/a.dart": "void greet() {}\n",
            "lib/b.dart": "void main() {\n  greet();\n}\n",
        }))
        search = ReferenceResolver(project).find("greet", "lib/a.dart", 1)
        assert search.mode == FALLBACK
        assert len(search.definitions) == 1
        assert len(search.usages) == 1
