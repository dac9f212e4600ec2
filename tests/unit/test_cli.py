"""Tests for the code-intel command line."""

import json

from click.testing import CliRunner

from code_intel.cli.main import cli
from tests.unit.project_fixtures import CYCLE_PROJECT, GET_USER_PROJECT


def _invoke(*args):
    return CliRunner().invoke(cli, ["--config", "missing-config.yaml", *args])


class TestCli:
    def test_symbol_json(self, make_project):
        root = str(make_project(GET_USER_PROJECT))
        result = _invoke("symbol", "getUser", "--project", root, "--json")

        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["success"] is True
        assert payload["count"] == 1
        assert payload["symbols"][0]["file_path"] == "src/user.js"

    def test_symbol_table(self, make_project):
        root = str(make_project(GET_USER_PROJECT))
        result = _invoke("symbol", "getUser", "-p", root)
        assert result.exit_code == 0
        assert "getUser" in result.stdout

    def test_references_json(self, make_project):
        root = str(make_project(GET_USER_PROJECT))
        result = _invoke("references", "getUser", "-p", root, "--file", "src/user.js", "--line", "1", "--json")

        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["mode"] == "precise"
        assert len(payload["definitions"]) == 1
        assert len(payload["usages"]) == 2

    def test_deps_report(self, make_project):
        root = str(make_project(CYCLE_PROJECT))
        result = _invoke("deps", "-p", root)
        assert result.exit_code == 0
        assert "Dependency Graph Analysis" in result.stdout
        assert "Circular Dependencies Detected" in result.stdout

    def test_complexity_snippet_json(self):
        result = _invoke("complexity", "--code", "if (a) { b(); }", "--metrics", "cyclomatic", "--json")
        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["report"]["cyclomatic_complexity"]["value"] == 2

    def test_complexity_from_file(self, make_project):
        root = make_project({"tool.py": "def f(a):\n    if a:\n        return 1\n"})
        result = _invoke("complexity", "--file", str(root / "tool.py"), "--json")
        assert result.exit_code == 0
        assert json.loads(result.stdout)["report"]["language"] == "python"

    def test_validation_error_exit_code(self):
        result = _invoke("complexity")
        assert result.exit_code == 2

    def test_empty_symbol_name_exit_code(self, tmp_path):
        result = _invoke("symbol", "", "-p", str(tmp_path))
        assert result.exit_code == 2

    def test_cache_stats(self, make_project):
        root = str(make_project(GET_USER_PROJECT))
        result = _invoke("cache-stats", "-p", root, "--json")
        assert result.exit_code == 0
        stats = json.loads(result.stdout)
        assert stats["cached_projects"] == 1
        assert stats["projects"][0]["files"] == 3
