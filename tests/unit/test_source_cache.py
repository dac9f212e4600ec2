"""Tests for project loading and the source cache."""

import threading

from code_intel.core.config import ScanConfig
from code_intel.core.language import Language
from code_intel.source.cache import SourceCache
from code_intel.source.models import DiagnosticKind
from code_intel.source.parsers import ParseError, ParserRegistry

import pytest


class TestSourceProject:
    def setup_method(self):
        self.cache = SourceCache()

    def test_loads_supported_files_in_sorted_order(self, make_project):
        root = make_project({
            "src/b.ts": "export const b = 1;\n",
            "src/a.py": "a = 1\n",
            "lib/c.dart": "void main() {}\n",
            "notes.txt": "ignored",
            "node_modules/pkg/index.js": "module.exports = 1;\n",
        })
        project = self.cache.get_or_create(root)

        assert list(project.units) == ["lib/c.dart", "src/a.py", "src/b.ts"]
        assert project.get("src/b.ts").language == Language.TYPESCRIPT
        assert project.get("src/b.ts").is_ast_backed
        assert not project.get("lib/c.dart").is_ast_backed

    def test_lazy_loading(self, make_project):
        project = self.cache.get_or_create(make_project({"a.ts": "export {};\n"}))
        assert not project.is_loaded
        assert project.file_count == 1
        assert project.is_loaded

    def test_deeply_nested_python_file_is_skipped(self, make_project):
        project = self.cache.get_or_create(make_project({
            "good.py": "def fine():\n    return 1\n",
            "deep.py": "x = " + "+".join(["1"] * 200000) + "\n",
        }))

        assert list(project.units) == ["good.py"]
        assert [(d.file_path, d.kind) for d in project.diagnostics] == [
            ("deep.py", DiagnosticKind.PARSE_FAILURE),
        ]

    def test_same_root_same_project(self, make_project):
        root = make_project({"a.ts": ""})
        assert self.cache.get_or_create(root) is self.cache.get_or_create(str(root) + "/.")

    def test_parse_failure_recorded(self, make_project):
        project = self.cache.get_or_create(make_project({
            "ok.py": "x = 1\n",
            "broken.py": "def (:\n",
        }))
        assert list(project.units) == ["ok.py"]
        [diagnostic] = project.diagnostics
        assert diagnostic.file_path == "broken.py"
        assert diagnostic.kind == DiagnosticKind.PARSE_FAILURE

    def test_oversized_file_skipped(self, make_project):
        cache = SourceCache(scan=ScanConfig(max_file_size=10))
        project = cache.get_or_create(make_project({"big.ts": "export const value = 123456789;\n"}))
        assert project.file_count == 0
        assert project.diagnostics[0].kind == DiagnosticKind.TOO_LARGE

    def test_relative_path_normalisation(self, make_project):
        root = make_project({"src/a.ts": ""})
        project = self.cache.get_or_create(root)
        assert project.relative_path(str(root / "src" / "a.ts")) == "src/a.ts"
        assert project.relative_path("./src/a.ts") == "src/a.ts"

    def test_concurrent_first_access_loads_once(self, make_project):
        project = self.cache.get_or_create(make_project({f"m{i}.ts": "export {};\n" for i in range(20)}))
        results = []
        threads = [threading.Thread(target=lambda: results.append(project.units)) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert all(r is results[0] for r in results)


class TestSourceCache:
    def test_stats_and_clear(self, make_project):
        cache = SourceCache()
        root = make_project({"a.ts": "", "b.ts": ""})
        cache.get_or_create(root).units
        cache.get_or_create(make_project({}, name="unloaded"))

        stats = cache.stats()
        assert stats["cached_projects"] == 2
        by_path = {p["path"]: p for p in stats["projects"]}
        assert by_path[str(root.resolve())] == {"path": str(root.resolve()), "files": 2, "loaded": True}

        cache.clear()
        assert cache.stats() == {"cached_projects": 0, "projects": []}


class TestParserRegistry:
    def test_strict_script_parse_raises(self):
        with pytest.raises(ParseError):
            ParserRegistry().parse_script("function (", "typescript")

    def test_lenient_script_parse(self):
        tree = ParserRegistry().parse_script("function (", "typescript", strict=False)
        assert tree.root_node.has_error

    def test_grammar_selection(self):
        assert ParserRegistry.grammar_for("a.ts") == "typescript"
        assert ParserRegistry.grammar_for("a.jsx") == "tsx"
        assert ParserRegistry.grammar_for(language=Language.JAVASCRIPT) == "tsx"
        assert ParserRegistry.grammar_for("a.py") is None

    def test_python_syntax_error_line(self):
        with pytest.raises(ParseError) as exc:
            ParserRegistry.parse_python("x = 1\ndef (:\n")
        assert exc.value.line == 2

    def test_deeply_nested_python_raises_parse_error(self):
        with pytest.raises(ParseError):
            ParserRegistry.parse_python("x = " + "+".join(["1"] * 200000) + "\n")
