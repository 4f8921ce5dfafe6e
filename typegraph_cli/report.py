"""Assembly of the immutable ``AnalysisReport`` and its suggestions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Sequence

from .code_quality import UNUSED_IMPORT_CODE
from .models import AnalysisContext, AnalysisReport, DiagnosticIssue, Scores, Statistics

MANY_DUPLICATES = 5


def generate_suggestions(
    errors: Sequence[DiagnosticIssue],
    critical_errors: int,
    unused: int,
    duplicates: int,
    warnings: Sequence[DiagnosticIssue],
    total_declarations: int,
) -> List[str]:
    """Actionable suggestions, highest priority first, one line per rule."""
    suggestions: List[str] = []

    if critical_errors > 0:
        suggestions.append(f"Fix {critical_errors} critical type error(s) first")
    elif errors:
        suggestions.append(f"Fix {len(errors)} type error(s)")

    if unused > 0:
        suggestions.append(f"Remove {unused} unused type declaration(s)")

    if duplicates > MANY_DUPLICATES:
        suggestions.append(
            f"Merge {duplicates} duplicated type names into shared type modules"
        )
    elif duplicates > 0:
        suggestions.append(f"Consolidate {duplicates} duplicated type name(s)")

    unused_imports = sum(1 for w in warnings if w.code == UNUSED_IMPORT_CODE)
    if unused_imports > 0:
        suggestions.append(f"Clean up {unused_imports} unused import(s)")

    if not suggestions:
        if total_declarations == 0:
            suggestions.append("No type declarations found; check the include patterns")
        else:
            suggestions.append("Type declarations look healthy")
    return suggestions


def build_statistics(context: AnalysisContext) -> Statistics:
    return Statistics(
        source_files=len(context.files),
        type_definitions=len(context.entries),
        usage_references=sum(len(sites) for sites in context.usages.values()),
        unused_types=len(context.unused_keys),
        duplicate_definitions=len(context.duplicates),
        ignored_types=len(context.ignored_types),
        total_errors=len(context.errors),
        critical_errors=context.critical_errors,
        total_warnings=len(context.warnings),
        filtered_diagnostics=len(context.filtered_diagnostics),
    )


def build_report(
    context: AnalysisContext,
    scores: Scores,
    timestamp: Optional[str] = None,
) -> AnalysisReport:
    """Freeze the final context into a report.  Reads, never recomputes."""
    statistics = build_statistics(context)
    suggestions = generate_suggestions(
        errors=context.errors,
        critical_errors=context.critical_errors,
        unused=statistics.unused_types,
        duplicates=statistics.duplicate_definitions,
        warnings=context.warnings,
        total_declarations=statistics.type_definitions,
    )
    return AnalysisReport(
        timestamp=timestamp or datetime.now(timezone.utc).isoformat(),
        root=context.root,
        statistics=statistics,
        scores=scores,
        declarations=dict(context.declarations),
        usages=dict(context.usages),
        duplicates=dict(context.duplicates),
        unused=context.unused_keys,
        unused_declarations=context.unused,
        errors=context.errors,
        warnings=context.warnings,
        filtered_diagnostics=context.filtered_diagnostics,
        suggestions=tuple(suggestions),
    )
