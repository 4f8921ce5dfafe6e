"""Tests for the Markdown cleanup report."""

from dataclasses import replace
from pathlib import Path

import pytest

from typegraph_cli.analyzer import TypeAnalyzer
from typegraph_cli.models import AnalysisReport, DiagnosticIssue, Scores, Statistics
from typegraph_cli.report_export import export_markdown, render_markdown


@pytest.fixture
def report(sample_project_path: Path, offline_options):
    return TypeAnalyzer(offline_options(sample_project_path)).analyze()


def test_render_sections(report):
    doc = render_markdown(report)

    assert doc.startswith("# 🛠️ TypeScript Type Analysis Report")
    assert "🟢 Overall score: " in doc
    assert "🎉 **Excellent**" in doc
    assert "- Type health: **87**/100" in doc
    assert "| 🗑️ Unused types | **2** | 🟡 Clean up |" in doc
    assert "| 🚨 Type errors | **0** | 🟢 Clean |" in doc
    assert "## 🚨 Type Errors" not in doc


def test_unused_and_duplicates_are_listed(report):
    doc = render_markdown(report)

    assert "1. `LegacyUser` (interface) - `src/types/user.ts:12`" in doc
    assert "2. `UserId` (type-alias) - `src/types/user.ts:16`" in doc
    assert "- `Shared`: `src/types/api.ts:13`, `src/utils/shared.ts:1`" in doc
    assert "## 💡 Suggestions" in doc


def test_errors_are_capped(report):
    errors = tuple(
        DiagnosticIssue("a.ts", n, 1, "TS2322", f"error {n}", "error", "type-mismatch")
        for n in range(1, 13)
    )
    doc = render_markdown(replace(report, errors=errors))

    assert "### 10. TS2322" in doc
    assert "### 11. TS2322" not in doc
    assert "**File**: `a.ts:1`" in doc


def test_low_score_status():
    empty = AnalysisReport(
        timestamp="2026-01-02T03:04:05+00:00",
        root="/tmp/x",
        statistics=Statistics(),
        scores=Scores(health_score=40, validation_score=40, overall_score=40),
        declarations={},
        usages={},
        duplicates={},
        unused=(),
        unused_declarations=(),
        errors=(),
        warnings=(),
        filtered_diagnostics=(),
        suggestions=(),
    )
    doc = render_markdown(empty)

    assert "🔴 Overall score: 40/100" in doc
    assert "🚨 **Needs work**" in doc
    assert "| 🎯 Type definitions | **0** | ⚠️ None found |" in doc
    assert "## 💡 Suggestions" not in doc


def test_export_markdown_names_file_by_date(report, temp_dir: Path):
    dated = replace(report, timestamp="2026-03-04T10:00:00+00:00")
    path = export_markdown(dated, temp_dir / "nested" / "reports")

    assert path == temp_dir / "nested" / "reports" / "type-analysis-2026-03-04.md"
    assert path.read_text(encoding="utf-8") == render_markdown(dated)
