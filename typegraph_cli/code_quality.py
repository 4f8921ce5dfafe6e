"""Code-quality checks: unused named imports and explicit ``any``."""

from __future__ import annotations

import re
from typing import Dict, List, Set, Tuple

from .collectors import SKIP_CHILDREN, Handler, NodeVisitor, specifier_name
from .models import DiagnosticIssue
from .parser import NodeKind, SourceFile, SyntaxNode

UNUSED_IMPORT_CODE = "TG1001"
EXPLICIT_ANY_CODE = "TG1002"


class _QualityVisitor(NodeVisitor):
    def __init__(self, source_file: SourceFile) -> None:
        self.named_imports: List[Tuple[str, int, int]] = []
        self.referenced: Set[str] = set()
        self.any_sites: List[Tuple[int, int]] = []
        super().__init__(source_file)

    def handlers(self) -> Dict[NodeKind, Handler]:
        return {
            NodeKind.IMPORT: self._import,
            NodeKind.IDENTIFIER: self._reference,
            NodeKind.TYPE_IDENTIFIER: self._reference,
            NodeKind.PREDEFINED_TYPE: self._predefined,
        }

    def _import(self, node: SyntaxNode) -> object:
        for clause in node.children():
            if clause.type != "import_clause":
                continue
            for child in clause.children():
                if child.type != "named_imports":
                    continue
                for spec in child.children():
                    if spec.type == "import_specifier":
                        name = specifier_name(spec)
                        if name:
                            self.named_imports.append((name, spec.line, spec.column))
        return SKIP_CHILDREN

    def _reference(self, node: SyntaxNode) -> None:
        self.referenced.add(node.text)

    def _predefined(self, node: SyntaxNode) -> None:
        if node.text == "any":
            self.any_sites.append((node.line, node.column))


def _used_in_markup(name: str, markup: str) -> bool:
    """Component templates may use an import as ``<MyWidget>`` or ``<my-widget>``."""
    if not markup:
        return False
    if re.search(rf"\b{re.escape(name)}\b", markup):
        return True
    kebab = re.sub(r"(?<!^)(?=[A-Z])", "-", name).lower()
    return kebab != name and re.search(rf"<{re.escape(kebab)}\b", markup) is not None


def check_file(source_file: SourceFile) -> List[DiagnosticIssue]:
    visitor = _QualityVisitor(source_file)
    visitor.visit()

    issues: List[DiagnosticIssue] = []
    for name, line, column in visitor.named_imports:
        if name in visitor.referenced or _used_in_markup(name, source_file.markup):
            continue
        issues.append(DiagnosticIssue(
            file=source_file.path,
            line=line,
            column=column,
            code=UNUSED_IMPORT_CODE,
            message=f"Unused import: {name}",
            severity="warning",
            category="code-cleanup",
            source="unused-import",
        ))
    for line, column in visitor.any_sites:
        issues.append(DiagnosticIssue(
            file=source_file.path,
            line=line,
            column=column,
            code=EXPLICIT_ANY_CODE,
            message="Explicit 'any' type; prefer a more specific type",
            severity="warning",
            category="type-safety",
            source="code-quality",
        ))
    return issues
