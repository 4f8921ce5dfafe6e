"""Classification of raw compiler diagnostics into real errors and warnings.

Every decision here is a pure function of the diagnostic's code, message and
category, plus the rule data it is configured with.  Nothing is remembered
between diagnostics or between runs.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import AbstractSet, FrozenSet, Iterable, List, Optional, Tuple

from . import config
from .models import DiagnosticCategory, DiagnosticIssue, RawDiagnostic

logger = logging.getLogger(__name__)

GLOBAL_FILE = "<global>"

_QUOTED_NAME = re.compile(r"'([^']+)'")


@dataclass(frozen=True)
class NoiseRules:
    codes: FrozenSet[int] = frozenset(config.DEFAULT_NOISE_CODES)
    phrases: Tuple[str, ...] = tuple(config.DEFAULT_NOISE_PHRASES)
    allowed_globals: FrozenSet[str] = frozenset(config.DEFAULT_ALLOWED_GLOBALS)

    def is_noise(self, code: int, message: str) -> bool:
        if code in self.codes:
            return True
        if code == 2304:
            match = _QUOTED_NAME.search(message)
            if match and match.group(1) in self.allowed_globals:
                return True
        if any(phrase in message for phrase in self.phrases):
            return True
        return ".json" in message and "Cannot find module" in message


@dataclass(frozen=True)
class ClassificationResult:
    errors: Tuple[DiagnosticIssue, ...] = ()
    warnings: Tuple[DiagnosticIssue, ...] = ()
    filtered: Tuple[DiagnosticIssue, ...] = ()
    critical_errors: int = 0


def format_code(code: int) -> str:
    return f"TS{code}"


def parse_code(code: str) -> Optional[int]:
    digits = code[2:] if code.upper().startswith("TS") else code
    return int(digits) if digits.isdigit() else None


def categorize(code: int) -> str:
    return config.DIAGNOSTIC_CATEGORIES.get(code, "other")


def is_critical(code: str) -> bool:
    number = parse_code(code)
    return number is not None and number in config.CRITICAL_CODES


def severity_for(category: DiagnosticCategory) -> str:
    return "error" if category == DiagnosticCategory.ERROR else "warning"


@dataclass
class DiagnosticClassifier:
    """Scope filter, noise filter, severity, criticality and category tag."""

    rules: NoiseRules = field(default_factory=NoiseRules)

    def to_issue(self, diagnostic: RawDiagnostic) -> DiagnosticIssue:
        return DiagnosticIssue(
            file=diagnostic.file or GLOBAL_FILE,
            line=diagnostic.line,
            column=diagnostic.column,
            code=format_code(diagnostic.code),
            message=diagnostic.message,
            severity=severity_for(diagnostic.category),
            category=categorize(diagnostic.code),
        )

    def in_scope(self, diagnostic: RawDiagnostic, tracked_files: AbstractSet[str]) -> bool:
        return diagnostic.file is None or diagnostic.file in tracked_files

    def classify(
        self,
        diagnostics: Iterable[RawDiagnostic],
        tracked_files: AbstractSet[str],
    ) -> ClassificationResult:
        errors: List[DiagnosticIssue] = []
        warnings: List[DiagnosticIssue] = []
        filtered: List[DiagnosticIssue] = []
        critical = 0

        for diagnostic in diagnostics:
            if not self.in_scope(diagnostic, tracked_files):
                logger.debug("Out of scope diagnostic in %s", diagnostic.file)
                continue
            issue = self.to_issue(diagnostic)
            if self.rules.is_noise(diagnostic.code, diagnostic.message):
                filtered.append(issue)
                continue
            if issue.severity == "error":
                errors.append(issue)
                if diagnostic.code in config.CRITICAL_CODES:
                    critical += 1
            else:
                warnings.append(issue)

        if filtered:
            logger.info("Filtered %d environment-related diagnostics", len(filtered))
        return ClassificationResult(
            errors=tuple(errors),
            warnings=tuple(warnings),
            filtered=tuple(filtered),
            critical_errors=critical,
        )
