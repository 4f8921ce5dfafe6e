"""Markdown cleanup report for an ``AnalysisReport``."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from .models import AnalysisReport

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = Path("type-reports")
MAX_ERRORS = 10
MAX_UNUSED = 20


def _score_emoji(score: int) -> str:
    if score >= 80:
        return "🟢"
    if score >= 60:
        return "🟡"
    return "🔴"


def _status_line(score: int) -> str:
    if score >= 90:
        return "🎉 **Excellent**: the type system is in very good shape."
    if score >= 75:
        return "✅ **Good**: the type system is healthy with room for small improvements."
    if score >= 60:
        return "⚠️ **Fair**: some problems were found and are worth cleaning up."
    return "🚨 **Needs work**: the type system has many problems that need attention."


def _ok(count: int, good: str, bad: str) -> str:
    return good if count == 0 else bad


def render_markdown(report: AnalysisReport) -> str:
    """Render *report* as a Markdown document."""
    stats = report.statistics
    scores = report.scores

    lines: List[str] = ["# 🛠️ TypeScript Type Analysis Report", ""]
    lines.append(f"**Generated**: {report.timestamp}")
    lines.append(f"**Project**: `{report.root}`")
    lines.append("")

    lines += ["## 📋 Summary", ""]
    emoji = _score_emoji(scores.overall_score)
    lines.append(f"### {emoji} Overall score: {scores.overall_score}/100")
    lines.append("")
    lines.append(_status_line(scores.overall_score))
    lines.append("")
    lines.append(f"- Type health: **{scores.health_score}**/100")
    lines.append(f"- Validation: **{scores.validation_score}**/100")
    lines.append("")

    lines += ["## 📊 Metrics", "", "| Metric | Value | Status |", "|------|------|------|"]
    metrics = [
        ("📁 Source files", stats.source_files, "✅ OK"),
        (
            "🎯 Type definitions",
            stats.type_definitions,
            "✅ OK" if stats.type_definitions > 0 else "⚠️ None found",
        ),
        (
            "🔗 Type references",
            stats.usage_references,
            "✅ OK" if stats.usage_references > 0 else "⚠️ None found",
        ),
        ("🗑️ Unused types", stats.unused_types, _ok(stats.unused_types, "🟢 Clean", "🟡 Clean up")),
        (
            "⚠️ Duplicate definitions",
            stats.duplicate_definitions,
            _ok(stats.duplicate_definitions, "🟢 Clean", "🔴 Fix"),
        ),
        ("🚨 Type errors", stats.total_errors, _ok(stats.total_errors, "🟢 Clean", "🔴 Fix")),
    ]
    for metric, value, status in metrics:
        lines.append(f"| {metric} | **{value}** | {status} |")
    lines.append("")

    if report.errors:
        lines += ["## 🚨 Type Errors", ""]
        for index, error in enumerate(report.errors[:MAX_ERRORS], 1):
            lines.append(f"### {index}. {error.code or 'TypeScript Error'}")
            lines.append(f"**File**: `{error.file}:{error.line}`")
            lines.append(f"**Error**: {error.message}")
            lines.append("")

    if report.duplicates:
        lines += ["## ⚠️ Duplicate Definitions", ""]
        for name, decls in report.duplicates.items():
            where = ", ".join(f"`{d.file}:{d.line}`" for d in decls)
            lines.append(f"- `{name}`: {where}")
        lines.append("")

    if report.unused:
        lines += ["## 🗑️ Unused Types", ""]
        pairs = list(zip(report.unused, report.unused_declarations))[:MAX_UNUSED]
        for index, (key, decl) in enumerate(pairs, 1):
            lines.append(f"{index}. `{key}` ({decl.kind.value}) - `{decl.file}:{decl.line}`")
        lines.append("")

    if report.suggestions:
        lines += ["## 💡 Suggestions", ""]
        for index, suggestion in enumerate(report.suggestions, 1):
            lines.append(f"{index}. {suggestion}")
        lines.append("")

    return "\n".join(lines)


def export_markdown(report: AnalysisReport, output_dir: Path = DEFAULT_OUTPUT_DIR) -> Path:
    """Write ``type-analysis-YYYY-MM-DD.md`` into *output_dir* and return its path."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_file = output_dir / f"type-analysis-{report.timestamp[:10]}.md"
    output_file.write_text(render_markdown(report), encoding="utf-8")
    logger.info("Wrote Markdown report to %s", output_file)
    return output_file
