"""Type-graph analysis engine.

One ``analyze()`` call runs a synchronous batch:

    discovery -> collection -> diagnostics -> scoring -> report

The per-file map step (collectors and quality checks) may run on a thread
pool; its results are merged in sorted file order so reports do not depend
on completion order.  Cancellation is honoured between phases only.
"""

from __future__ import annotations

import concurrent.futures
import logging
import threading
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from . import config
from .code_quality import check_file
from .collectors import DeclarationCollector, ImportExportTracker, UsageCollector
from .config_manager import AnalyzerOptions, load_options
from .diagnostics import DiagnosticClassifier
from .exceptions import AnalysisCancelledError, SourceRootNotFoundError
from .file_scanner import discover_files
from .graph import (
    detect_duplicates,
    detect_unused,
    merge_file_facts,
    resolve_cross_references,
)
from .models import (
    AnalysisContext,
    AnalysisReport,
    DiagnosticIssue,
    ExportRecord,
    FileFacts,
)
from .parser import Program, SourceFile, TypeScriptFrontend
from .report import build_report
from .scoring import calculate_scores

logger = logging.getLogger(__name__)

FILE_FAILURE_CODE = "TG0001"


def collect_file(source_file: SourceFile, options: AnalyzerOptions) -> FileFacts:
    """Run every collector over one file.  Depends on nothing but that file."""
    declarations = DeclarationCollector(source_file, options)
    declarations.visit()
    usages = UsageCollector(source_file, options)
    usages.visit()
    tracker = ImportExportTracker(source_file)
    tracker.visit()
    quality = tuple(check_file(source_file)) if options.quality_checks else ()

    logger.debug(
        "%s: %d declarations, %d usages, %d imports",
        source_file.path,
        len(declarations.declarations),
        len(usages.usages),
        len(tracker.imports),
    )
    return FileFacts(
        file=source_file.path,
        declarations=tuple(declarations.declarations),
        usages=tuple(usages.usages),
        imports=tuple(tracker.imports),
        exports=ExportRecord(
            file=source_file.path, exported_names=frozenset(tracker.exported_names)
        ),
        quality_warnings=quality,
        ignored=tuple(declarations.ignored),
    )


def file_failure(file: str, reason: str) -> DiagnosticIssue:
    return DiagnosticIssue(
        file=file,
        line=0,
        column=0,
        code=FILE_FAILURE_CODE,
        message=f"File skipped: {reason}",
        severity="warning",
        category="other",
        source="analysis",
    )


class TypeAnalyzer:
    """Analyse a TypeScript/Vue project's type declarations.

    Each ``analyze()`` call starts from a fresh ``AnalysisContext``, which
    replaces the one left by the previous call.  An instance must therefore
    not be shared by analyses running at the same time; give each
    concurrent analysis its own ``TypeAnalyzer``.
    """

    PHASES = ("discovery", "collection", "diagnostics", "scoring")

    def __init__(
        self,
        options: Optional[AnalyzerOptions] = None,
        frontend: Optional[TypeScriptFrontend] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self.options = options or AnalyzerOptions()
        self._frontend = frontend
        self.cancel_event = cancel_event
        self.classifier = DiagnosticClassifier(self.options.noise)
        self.context = AnalysisContext(root=str(self.options.root))
        self.program: Optional[Program] = None

    @property
    def frontend(self) -> TypeScriptFrontend:
        if self._frontend is None:
            self._frontend = TypeScriptFrontend()
        return self._frontend

    def reset(self) -> None:
        self.context = AnalysisContext(root=str(self.options.root))
        self.program = None

    def _checkpoint(self, phase: str) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            logger.info("Analysis cancelled before %s", phase)
            raise AnalysisCancelledError(phase)
        logger.debug("Starting phase: %s", phase)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def analyze(self) -> AnalysisReport:
        root = Path(self.options.root)
        if not root.is_dir():
            raise SourceRootNotFoundError(str(root))
        self.reset()

        self._checkpoint("discovery")
        files = discover_files(
            root,
            self.options.include,
            self.options.exclude,
            extensions=config.SUPPORTED_EXTENSIONS | self.options.component_extensions,
        )

        self._checkpoint("collection")
        self.program = self._create_program(root, files)
        facts, failures = self._collect(self.program)
        context = merge_file_facts(self.context, facts, failures)
        context = resolve_cross_references(context)
        context = detect_duplicates(context, self.options)
        context = detect_unused(context, self.options)

        self._checkpoint("diagnostics")
        context = self._classify_diagnostics(context, self.program)

        self._checkpoint("scoring")
        scores = calculate_scores(
            total_declarations=len(context.entries),
            unused=len(context.unused_keys),
            duplicates=len(context.duplicates),
            critical_errors=context.critical_errors,
            regular_errors=len(context.errors) - context.critical_errors,
            warnings=len(context.warnings),
            weights=self.options.scoring,
        )
        self.context = context
        report = build_report(context, scores)
        logger.info(
            "Analysis complete: %d files, %d types, health %d, validation %d",
            report.statistics.source_files,
            report.statistics.type_definitions,
            scores.health_score,
            scores.validation_score,
        )
        return report

    def _create_program(self, root: Path, files: List[Path]) -> Program:
        if not files:
            logger.warning("No source files matched under %s", root)
            return Program(root=root)
        return self.frontend.create_program(
            files,
            compiler_options={
                "type_check": self.options.type_check,
                "component_extensions": self.options.component_extensions,
            },
            root=root,
        )

    def _collect(self, program: Program) -> Tuple[List[FileFacts], List[DiagnosticIssue]]:
        source_files = program.get_source_files()
        failures = [file_failure(path, reason) for path, reason in program.failures]
        facts: List[FileFacts] = []

        if self.options.workers > 1 and len(source_files) > 1:
            with concurrent.futures.ThreadPoolExecutor(
                max_workers=self.options.workers
            ) as executor:
                futures = {
                    executor.submit(collect_file, sf, self.options): sf
                    for sf in source_files
                }
                for future in concurrent.futures.as_completed(futures):
                    sf = futures[future]
                    try:
                        facts.append(future.result())
                    except Exception as exc:
                        logger.warning("Failed to analyse %s: %s", sf.path, exc)
                        failures.append(file_failure(sf.path, str(exc)))
        else:
            for sf in source_files:
                try:
                    facts.append(collect_file(sf, self.options))
                except Exception as exc:
                    logger.warning("Failed to analyse %s: %s", sf.path, exc)
                    failures.append(file_failure(sf.path, str(exc)))

        failures.sort(key=lambda issue: issue.file)
        return facts, failures

    def _classify_diagnostics(self, context: AnalysisContext, program: Program) -> AnalysisContext:
        result = self.classifier.classify(
            program.get_diagnostics(), tracked_files=set(program.file_paths)
        )

        def _order(issue: DiagnosticIssue) -> Tuple[str, int, int, str]:
            return (issue.file, issue.line, issue.column, issue.code)

        errors = sorted(result.errors, key=_order)
        warnings = sorted(result.warnings, key=_order)
        logger.info("%d errors, %d warnings after filtering", len(errors), len(warnings))
        return replace(
            context,
            errors=tuple(errors),
            warnings=tuple(warnings) + context.warnings,
            filtered_diagnostics=tuple(sorted(result.filtered, key=_order)),
            critical_errors=result.critical_errors,
        )


# ---------------------------------------------------------------------------
# Convenience entry points
# ---------------------------------------------------------------------------


def analyze_project(root: Path, **overrides: Any) -> AnalysisReport:
    """Load options for *root* (config file plus *overrides*) and analyse it."""
    root = Path(root)
    if not root.is_dir():
        raise SourceRootNotFoundError(str(root))
    options = load_options(root, overrides=overrides)
    return TypeAnalyzer(options).analyze()


def quick_check(root: Path, threshold: int = 70, **overrides: Any) -> Dict[str, Any]:
    """Pass/fail summary: no errors and a validation score at or above *threshold*."""
    report = analyze_project(root, **overrides)
    errors = len(report.errors)
    score = report.scores.validation_score
    passed = errors == 0 and score >= threshold
    if errors:
        summary = f"Found {errors} type error(s)"
    else:
        summary = f"Type check passed (score: {score}/100)"
    return {
        "passed": passed,
        "score": score,
        "errors": errors,
        "warnings": len(report.warnings),
        "summary": summary,
    }
