"""Tests for diagnostic classification."""

from typegraph_cli.diagnostics import (
    GLOBAL_FILE,
    DiagnosticClassifier,
    NoiseRules,
    categorize,
    format_code,
    is_critical,
    parse_code,
)
from typegraph_cli.models import DiagnosticCategory, RawDiagnostic


def raw(code, message="boom", file="a.ts", category=DiagnosticCategory.ERROR, line=1):
    return RawDiagnostic(code=code, message=message, category=category, file=file, line=line)


TRACKED = {"a.ts", "b.ts"}


def test_codes_round_trip():
    assert format_code(2322) == "TS2322"
    assert parse_code("TS2322") == 2322
    assert parse_code("2322") == 2322
    assert parse_code("TG1001") is None


def test_critical_and_categories():
    assert is_critical("TS2322")
    assert is_critical("TS18048")
    assert not is_critical("TS7006")
    assert not is_critical("TG1001")
    assert categorize(2532) == "strict-null"
    assert categorize(2339) == "property-missing"
    assert categorize(9999) == "other"


class TestNoiseRules:
    def test_noise_codes(self):
        rules = NoiseRules()
        assert rules.is_noise(2307, "Cannot find module 'x'")
        assert rules.is_noise(7016, "Could not find a declaration file")
        assert not rules.is_noise(2322, "Type 'a' is not assignable")

    def test_allowed_globals(self):
        rules = NoiseRules()
        assert rules.is_noise(2304, "Cannot find name 'defineProps'.")
        assert not rules.is_noise(2304, "Cannot find name 'mystery'.")

    def test_phrases_and_json_modules(self):
        rules = NoiseRules()
        assert rules.is_noise(2345, "Something in node_modules/foo")
        assert rules.is_noise(2792, "Cannot find module './data.json'")

    def test_custom_rules(self):
        rules = NoiseRules(codes=frozenset({2322}), phrases=(), allowed_globals=frozenset())
        assert rules.is_noise(2322, "anything")
        assert not rules.is_noise(2307, "Cannot find module 'x'")


class TestClassifier:
    def test_errors_warnings_and_filtered(self):
        classifier = DiagnosticClassifier()
        result = classifier.classify(
            [
                raw(2322),
                raw(7006, category=DiagnosticCategory.ERROR),
                raw(6133, category=DiagnosticCategory.WARNING),
                raw(80001, category=DiagnosticCategory.SUGGESTION),
                raw(2307, "Cannot find module 'vue'"),
            ],
            TRACKED,
        )

        assert [i.code for i in result.errors] == ["TS2322", "TS7006"]
        assert [i.code for i in result.warnings] == ["TS6133", "TS80001"]
        assert [i.code for i in result.filtered] == ["TS2307"]
        assert result.critical_errors == 1
        assert result.errors[0].category == "type-mismatch"
        assert result.errors[0].source == "typescript"

    def test_noise_is_excluded_from_errors_and_warnings(self):
        classifier = DiagnosticClassifier(NoiseRules(codes=frozenset({2322})))
        result = classifier.classify([raw(2322)], TRACKED)

        assert result.errors == ()
        assert result.warnings == ()
        assert len(result.filtered) == 1
        assert result.critical_errors == 0

    def test_out_of_scope_files_are_dropped(self):
        classifier = DiagnosticClassifier()
        result = classifier.classify([raw(2322, file="node_lib/x.ts")], TRACKED)
        assert result.errors == ()
        assert result.filtered == ()

    def test_global_diagnostics_are_kept(self):
        classifier = DiagnosticClassifier()
        result = classifier.classify([raw(5083, "Cannot read file", file=None)], TRACKED)

        assert len(result.errors) == 1
        assert result.errors[0].file == GLOBAL_FILE

    def test_classification_is_stateless(self):
        classifier = DiagnosticClassifier()
        diagnostics = [raw(2322), raw(2345, file="b.ts")]
        assert classifier.classify(diagnostics, TRACKED) == classifier.classify(
            diagnostics, TRACKED
        )
