"""Tests for complexity metrics and scoring."""

import math

import pytest

from code_intel.complexity import metrics
from code_intel.complexity.analyzer import (
    ComplexityAnalyzer,
    file_score,
    format_complexity_report,
)
from code_intel.complexity.calculators import (
    DartCalculator,
    GenericCalculator,
    PythonCalculator,
    TypeScriptCalculator,
    get_calculator_for_language,
)
from code_intel.complexity.models import CyclomaticMethod, MetricStatus
from code_intel.core.config import ThresholdConfig
from code_intel.core.language import Language


def _branches(count: int) -> str:
    """Top-level statements with ``count`` if-branches and no nesting."""
    return "".join("if (x) { y = 1; }\n" for _ in range(count))


TRIPLE_NESTED_JS = """\
function check(a, b, c) {
  if (a) {
    if (b) {
      if (c) {
        return 1;
      }
    }
  }
  return 0;
}
"""

TRIPLE_NESTED_PY = """\
def check(a, b, c):
    if a:
        if b:
            if c:
                return 1
    return 0
"""


# ---------------------------------------------------------------------------
# Cyclomatic
# ---------------------------------------------------------------------------
class TestCyclomatic:
    def setup_method(self):
        self.analyzer = ComplexityAnalyzer()

    @pytest.mark.parametrize("source,language", [
        ("const total = 1;", "javascript"),
        ("let name: string = 'a';", "typescript"),
        ("total = 1\n", "python"),
        ("final total = 1;", "dart"),
    ])
    def test_straight_line_code_is_one(self, source, language):
        report = self.analyzer.analyze(source, metrics="cyclomatic", language=language)
        assert report.cyclomatic_complexity.value == 1

    def test_if_for_while_adds_three(self):
        source = """\
function walk(items) {
  if (items) { items.pop(); }
  for (const item of items) { console.log(item); }
  while (items.length) { items.shift(); }
}
"""
        report = self.analyzer.analyze(source, metrics="cyclomatic", language="javascript")
        assert report.cyclomatic_complexity.value == 4
        assert report.cyclomatic_complexity.method == CyclomaticMethod.AST

    def test_python_if_for_while_adds_three(self):
        source = "def walk(items):\n    if items:\n        pass\n    for i in items:\n        pass\n    while items:\n        items.pop()\n"
        report = self.analyzer.analyze(source, metrics="cyclomatic", language="python")
        assert report.cyclomatic_complexity.value == 4

    def test_regex_fallback_when_source_does_not_parse(self):
        source = "if (a) { for (;;) { while (b) {"
        report = self.analyzer.analyze(source, metrics="cyclomatic", language="typescript")
        assert report.cyclomatic_complexity.method == CyclomaticMethod.REGEX
        assert report.cyclomatic_complexity.value == 4

    def test_logical_operators_and_ternary_count(self):
        source = "const ok = a && b || c ? 1 : 2;"
        calc = TypeScriptCalculator()
        assert calc.cyclomatic(source).value == 4
        assert metrics.regex_cyclomatic(source, Language.TYPESCRIPT) == 4

    def test_optional_chaining_and_nullish_are_not_branches(self):
        source = "const v = user?.name ?? 'anon';"
        assert TypeScriptCalculator().cyclomatic(source).value == 1
        assert metrics.regex_cyclomatic(source, Language.TYPESCRIPT) == 1

    def test_keywords_in_strings_and_comments_are_ignored(self):
        source = 'const s = "if for while"; // if (x) && y\n/* case */'
        assert metrics.regex_cyclomatic(source, Language.JAVASCRIPT) == 1

    def test_python_boolean_operators_and_comprehensions(self):
        source = "ok = [x for x in items if x and y or z]\n"
        # comprehension (1) + its if (1) + and/or (2)
        assert PythonCalculator().cyclomatic(source).value == 5

    def test_python_regex_fallback_on_syntax_error(self):
        count = PythonCalculator().cyclomatic("def broken(:\n    if a and b:\n")
        assert count.method == CyclomaticMethod.REGEX
        assert count.value == 3

    def test_python_regex_fallback_on_deep_nesting(self):
        source = "x = " + " + ".join(["a"] * 200000) + "\nif x:\n    pass\n"
        count = PythonCalculator().cyclomatic(source)
        assert count.method == CyclomaticMethod.REGEX
        assert count.value == 2

    def test_dart_counts_null_coalescing(self):
        source = "final name = value ?? 'none';\nif (a) { print(a); }\n"
        assert DartCalculator().cyclomatic(source).value == 3

    def test_per_function_breakdown(self):
        source = """\
function first(a) {
  if (a) { return 1; }
  return 0;
}
const second = (b) => b ? 1 : 2;
"""
        count = TypeScriptCalculator().cyclomatic(source)
        by_name = {f.name: f.cyclomatic for f in count.functions}
        assert by_name == {"first": 2, "second": 2}
        assert count.value == 3

    def test_function_keyword_is_not_a_function(self):
        source = "function first(a) {\n  if (a) { return 1; }\n  return 0;\n}\n"
        count = TypeScriptCalculator().cyclomatic(source)
        assert [f.name for f in count.functions] == ["first"]

    def test_python_per_function_breakdown_excludes_nested(self):
        source = "def outer(a):\n    def inner(b):\n        if b:\n            return b\n    if a:\n        return inner(a)\n"
        count = PythonCalculator().cyclomatic(source)
        by_name = {f.name: f.cyclomatic for f in count.functions}
        assert by_name == {"outer": 2, "inner": 2}
        assert count.value == 3


# ---------------------------------------------------------------------------
# Cognitive
# ---------------------------------------------------------------------------
class TestCognitive:
    def setup_method(self):
        self.analyzer = ComplexityAnalyzer()

    def test_triple_nesting_exceeds_cyclomatic_brace_language(self):
        report = self.analyzer.analyze(TRIPLE_NESTED_JS, language="javascript")
        assert report.cyclomatic_complexity.value == 4
        assert report.cognitive_complexity.value > report.cyclomatic_complexity.value

    def test_triple_nesting_exceeds_cyclomatic_python(self):
        report = self.analyzer.analyze(TRIPLE_NESTED_PY, language="python")
        assert report.cyclomatic_complexity.value == 4
        assert report.cognitive_complexity.value > report.cyclomatic_complexity.value

    def test_brace_nesting_weights(self):
        # 1 + 2 + 3 with no enclosing function
        source = "if (a) {\n  if (b) {\n    if (c) {\n    }\n  }\n}\n"
        assert metrics.brace_cognitive(source, Language.JAVASCRIPT) == 6

    def test_unbalanced_closing_braces_floor_at_zero(self):
        source = "}\n}\nif (a) {\n}\n"
        assert metrics.brace_cognitive(source, Language.JAVASCRIPT) == 1

    def test_indentation_nesting(self):
        source = "if a:\n    if b:\n        pass\nelif c:\n    pass\n"
        # if (1) + nested if (2) + elif back at top level (1)
        assert metrics.indent_cognitive(source) == 4


# ---------------------------------------------------------------------------
# Halstead and size metrics
# ---------------------------------------------------------------------------
class TestHalstead:
    def test_counts_and_formulas(self):
        h = metrics.halstead("a = b + c", Language.PYTHON)
        assert (h.distinct_operators, h.total_operators) == (2, 2)
        assert (h.distinct_operands, h.total_operands) == (3, 3)
        assert h.vocabulary == 5
        assert h.length == 5
        assert h.volume == pytest.approx(5 * math.log2(5))
        assert h.difficulty == pytest.approx(1.0)
        assert h.effort == pytest.approx(h.volume)
        assert h.time_to_program == pytest.approx(h.effort / 18)
        assert h.estimated_defects == pytest.approx(h.volume / 3000)

    def test_empty_source_has_no_division_errors(self):
        h = metrics.halstead("", Language.TYPESCRIPT)
        assert h.volume == 0
        assert h.difficulty == 0
        assert h.effort == 0

    def test_comments_are_stripped_first(self):
        plain = metrics.halstead("x = y", Language.JAVASCRIPT)
        commented = metrics.halstead("x = y // extra + words", Language.JAVASCRIPT)
        assert commented == plain

    def test_additional_metrics(self):
        source = "// helper\nfunction add(a, b) {\n  return a + b;\n}\n\nclass Box {}\n"
        extra = metrics.additional_metrics(source, Language.JAVASCRIPT)
        assert extra.lines_of_code == 5
        assert extra.comment_lines == 1
        assert extra.function_count == 1
        assert extra.class_count == 1
        assert extra.average_function_length == 5

    def test_additional_metrics_without_functions(self):
        extra = metrics.additional_metrics("x = 1\n", Language.PYTHON)
        assert extra.function_count == 0
        assert extra.average_function_length == 0


# ---------------------------------------------------------------------------
# Scoring and thresholds
# ---------------------------------------------------------------------------
class TestScoring:
    def setup_method(self):
        self.analyzer = ComplexityAnalyzer()

    def test_ten_passes_eleven_fails(self):
        at_limit = self.analyzer.analyze(_branches(9), language="javascript")
        over_limit = self.analyzer.analyze(_branches(10), language="javascript")

        assert at_limit.cyclomatic_complexity.value == 10
        assert at_limit.cyclomatic_complexity.status == MetricStatus.PASS
        assert over_limit.cyclomatic_complexity.value == 11
        assert over_limit.cyclomatic_complexity.status == MetricStatus.FAIL

    def test_cyclomatic_failure_costs_twenty(self):
        report = self.analyzer.analyze(_branches(10), language="javascript")
        assert report.overall_score == 80
        assert "High cyclomatic complexity detected" in report.issues
        assert report.recommendations

    def test_clean_code_scores_full_marks(self):
        report = self.analyzer.analyze("const total = 1;", language="javascript")
        assert report.overall_score == 100
        assert report.issues == []

    def test_penalties_combine(self):
        analyzer = ComplexityAnalyzer(thresholds=ThresholdConfig(
            max_cyclomatic=1, max_cognitive=1, max_halstead_difficulty=0.1,
        ))
        source = TRIPLE_NESTED_JS.replace("return 1;", "return a + b * c;")
        report = analyzer.analyze(source, language="javascript")
        assert report.overall_score == 100 - 20 - 25 - 15
        assert len(report.issues) == 3

    def test_metrics_subset(self):
        report = self.analyzer.analyze(TRIPLE_NESTED_JS, metrics="halstead", language="javascript")
        assert report.cyclomatic_complexity is None
        assert report.cognitive_complexity is None
        assert report.halstead_metrics is not None
        assert report.additional_metrics is None

    def test_unknown_metrics_value_rejected(self):
        with pytest.raises(ValueError):
            self.analyzer.analyze("x", metrics="everything")

    def test_language_detected_when_not_given(self):
        report = self.analyzer.analyze(TRIPLE_NESTED_PY)
        assert report.language == "python"

    def test_report_rendering(self):
        report = self.analyzer.analyze(TRIPLE_NESTED_JS, language="javascript")
        text = format_complexity_report(report)
        assert "## Complexity Analysis" in text
        assert "**Cyclomatic:** 4" in text
        assert "`check` (line 1): 4" in text
        assert "Complexity: 4" in report.summary


# ---------------------------------------------------------------------------
# Language quality checks
# ---------------------------------------------------------------------------
class TestQualityChecks:
    def test_python_checks(self):
        source = "from os import *\n\ndef run():\n    try:\n        eval('1')\n    except:\n        pass\n"
        issues, recommendations = PythonCalculator().quality_checks(source)
        assert "Use of eval() or exec() detected" in issues
        assert "Bare except clause detected" in issues
        assert "Wildcard import detected" in issues
        assert len(recommendations) == len(issues)

    def test_python_long_lines(self):
        source = "x = '" + "a" * 90 + "'\n"
        issues, _ = PythonCalculator().quality_checks(source)
        assert any("79 characters" in issue for issue in issues)

    def test_dart_set_state_check(self):
        source = "void update() {\n" + "  setState(() { count++; });\n" * 6 + "}\n"
        issues, recommendations = DartCalculator().quality_checks(source)
        assert "Too many setState calls - consider state management solution" in issues
        assert "Use Provider, Riverpod, or Bloc for complex state" in recommendations

    def test_quality_issues_do_not_change_score(self):
        report = ComplexityAnalyzer().analyze("try:\n    pass\nexcept:\n    pass\n", language="python")
        assert "Bare except clause detected" in report.issues
        assert report.overall_score == 100


class TestCalculatorRegistry:
    def test_known_languages(self):
        assert isinstance(get_calculator_for_language(Language.PYTHON), PythonCalculator)
        assert isinstance(get_calculator_for_language("dart"), DartCalculator)
        assert isinstance(get_calculator_for_language("typescript"), TypeScriptCalculator)

    def test_unknown_uses_token_counting(self):
        calc = get_calculator_for_language("cobol")
        assert isinstance(calc, GenericCalculator)
        assert calc.cyclomatic("if (a && b) {}").method == CyclomaticMethod.REGEX


# ---------------------------------------------------------------------------
# Directory scans
# ---------------------------------------------------------------------------
class TestAnalyzePath:
    def test_file_score(self):
        assert file_score(10, 10) == 100
        assert file_score(15, 10) == 75
        assert file_score(40, 10) == 0

    def test_scans_supported_files_and_skips_vendor_dirs(self, make_project):
        root = make_project({
            "src/simple.ts": "export const a = 1;\n",
            "src/branchy.js": _branches(14),
            "src/tool.py": "def f(a):\n    if a:\n        return 1\n",
            "node_modules/dep/index.js": _branches(3),
            ".cache/gen.ts": "const x = 1;\n",
            "README.md": "# readme\n",
        })
        report = ComplexityAnalyzer().analyze_path(str(root))

        files = {f.file: f for f in report.files}
        assert set(files) == {"src/branchy.js", "src/simple.ts", "src/tool.py"}
        assert files["src/branchy.js"].complexity == 15
        assert files["src/branchy.js"].score == 75
        assert [f.file for f in report.high_complexity_files] == ["src/branchy.js"]
        assert "Files: 3" in report.summary
        assert "High complexity: 1 files" in report.summary

    def test_file_limit(self, make_project):
        root = make_project({f"m{i:02d}.ts": "export const a = 1;\n" for i in range(25)})
        report = ComplexityAnalyzer().analyze_path(str(root))
        assert len(report.files) == 20

    def test_relative_to_project(self, make_project):
        root = make_project({"lib/a.dart": "void main() {}\n"})
        report = ComplexityAnalyzer().analyze_path("lib", project_path=str(root))
        assert [f.file for f in report.files] == ["a.dart"]

    def test_nothing_found(self, tmp_path):
        report = ComplexityAnalyzer().analyze_path(str(tmp_path))
        assert report.files == []
        assert report.summary == f"No supported files found in {tmp_path}"
