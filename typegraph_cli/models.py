"""Core data models shared by the collectors, the graph and the report."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Tuple


class DeclarationKind(str, Enum):
    INTERFACE = "interface"
    TYPE_ALIAS = "type-alias"
    ENUM = "enum"
    CLASS = "class"


class DiagnosticCategory(str, Enum):
    """Category reported by the compiler for a raw diagnostic."""

    ERROR = "error"
    WARNING = "warning"
    SUGGESTION = "suggestion"
    MESSAGE = "message"


@dataclass(frozen=True)
class Declaration:
    name: str
    kind: DeclarationKind
    file: str
    line: int
    exported: bool = False

    @property
    def qualified_key(self) -> str:
        return f"{self.file}:{self.name}"


@dataclass(frozen=True)
class UsageSite:
    type_name: str
    file: str
    line: int
    imported_via: Optional[str] = None


@dataclass(frozen=True)
class ImportRecord:
    file: str
    module_specifier: str
    imported_names: Tuple[str, ...]
    line: int


@dataclass(frozen=True)
class ExportRecord:
    file: str
    exported_names: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class RawDiagnostic:
    """A diagnostic as produced by the compiler frontend, before filtering."""

    code: int
    message: str
    category: DiagnosticCategory
    file: Optional[str] = None
    line: int = 0
    column: int = 0
    origin: str = "semantic"


@dataclass(frozen=True)
class DiagnosticIssue:
    file: str
    line: int
    column: int
    code: str
    message: str
    severity: str
    category: str
    source: str = "typescript"


@dataclass(frozen=True)
class FileFacts:
    """Everything the per-file map phase learns about one source file."""

    file: str
    declarations: Tuple[Declaration, ...] = ()
    usages: Tuple[UsageSite, ...] = ()
    imports: Tuple[ImportRecord, ...] = ()
    exports: ExportRecord = field(default_factory=lambda: ExportRecord(file=""))
    quality_warnings: Tuple[DiagnosticIssue, ...] = ()
    ignored: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AnalysisContext:
    """State threaded through the pipeline stages of one analysis run.

    Stages never mutate a context; they return an updated copy.
    """

    root: str
    files: Tuple[str, ...] = ()
    declarations: Dict[str, Tuple[Declaration, ...]] = field(default_factory=dict)
    usages: Dict[str, Tuple[UsageSite, ...]] = field(default_factory=dict)
    imports: Dict[str, Tuple[ImportRecord, ...]] = field(default_factory=dict)
    exports: Dict[str, ExportRecord] = field(default_factory=dict)
    ignored_types: Tuple[str, ...] = ()
    entries: Dict[str, Declaration] = field(default_factory=dict)
    duplicates: Dict[str, Tuple[Declaration, ...]] = field(default_factory=dict)
    unused: Tuple[Declaration, ...] = ()
    unused_keys: Tuple[str, ...] = ()
    errors: Tuple[DiagnosticIssue, ...] = ()
    warnings: Tuple[DiagnosticIssue, ...] = ()
    filtered_diagnostics: Tuple[DiagnosticIssue, ...] = ()
    critical_errors: int = 0


@dataclass(frozen=True)
class Statistics:
    source_files: int = 0
    type_definitions: int = 0
    usage_references: int = 0
    unused_types: int = 0
    duplicate_definitions: int = 0
    ignored_types: int = 0
    total_errors: int = 0
    critical_errors: int = 0
    total_warnings: int = 0
    filtered_diagnostics: int = 0


@dataclass(frozen=True)
class Scores:
    health_score: int = 100
    validation_score: int = 100
    overall_score: int = 100


@dataclass(frozen=True)
class AnalysisReport:
    """Immutable snapshot of one analysis run, read by renderers."""

    timestamp: str
    root: str
    statistics: Statistics
    scores: Scores
    declarations: Dict[str, Tuple[Declaration, ...]]
    usages: Dict[str, Tuple[UsageSite, ...]]
    duplicates: Dict[str, Tuple[Declaration, ...]]
    unused: Tuple[str, ...]
    unused_declarations: Tuple[Declaration, ...]
    errors: Tuple[DiagnosticIssue, ...]
    warnings: Tuple[DiagnosticIssue, ...]
    filtered_diagnostics: Tuple[DiagnosticIssue, ...]
    suggestions: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        return _jsonable(data)

    def equivalent(self, other: "AnalysisReport") -> bool:
        """Compare two reports ignoring the timestamp."""
        mine = self.to_dict()
        theirs = other.to_dict()
        mine.pop("timestamp", None)
        theirs.pop("timestamp", None)
        return mine == theirs


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return sorted(_jsonable(v) for v in value)
    return value
