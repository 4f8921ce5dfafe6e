"""Per-file collectors: declarations, type usages, imports and exports.

Each collector is a ``NodeVisitor`` with a dispatch table mapping a
``NodeKind`` to a handler.  Collectors only record syntax; resolving names
across files happens later in ``graph``.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Set

from . import config
from .config_manager import AnalyzerOptions
from .models import (
    Declaration,
    DeclarationKind,
    ImportRecord,
    UsageSite,
)
from .parser import DECLARATION_KINDS, NodeKind, SourceFile, SyntaxNode
from .patterns import matches_any

logger = logging.getLogger(__name__)

# Returned by a handler to stop descent into the node's children.
SKIP_CHILDREN = object()

Handler = Callable[[SyntaxNode], Optional[object]]

_DECLARATION_KIND: Dict[NodeKind, DeclarationKind] = {
    NodeKind.INTERFACE: DeclarationKind.INTERFACE,
    NodeKind.TYPE_ALIAS: DeclarationKind.TYPE_ALIAS,
    NodeKind.ENUM: DeclarationKind.ENUM,
    NodeKind.CLASS: DeclarationKind.CLASS,
}


class NodeVisitor:
    """Walks every root of a source file and dispatches on ``NodeKind``."""

    def __init__(self, source_file: SourceFile) -> None:
        self.source_file = source_file
        self.file = source_file.path
        self._dispatch: Dict[NodeKind, Handler] = self.handlers()

    def handlers(self) -> Dict[NodeKind, Handler]:
        return {}

    def visit(self) -> None:
        for root in self.source_file.roots:
            stack = [root]
            while stack:
                node = stack.pop()
                handler = self._dispatch.get(node.kind)
                if handler is not None and handler(node) is SKIP_CHILDREN:
                    continue
                stack.extend(reversed(list(node.children())))


def string_literal(node: Optional[SyntaxNode]) -> str:
    if node is None:
        return ""
    return node.text.strip().strip("'\"`")


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------


class DeclarationCollector(NodeVisitor):
    def __init__(self, source_file: SourceFile, options: AnalyzerOptions) -> None:
        self.options = options
        self.declarations: List[Declaration] = []
        self.ignored: List[str] = []
        self._component = options.is_component_file(source_file.path)
        super().__init__(source_file)

    def handlers(self) -> Dict[NodeKind, Handler]:
        return {kind: self._declaration for kind in DECLARATION_KINDS}

    def should_ignore(self, name: str) -> bool:
        if matches_any(name, self.options.ignore_patterns):
            return True
        return self._component and name in self.options.component_convention_names

    def _declaration(self, node: SyntaxNode) -> None:
        name = node.name
        if not name:
            return
        if self.should_ignore(name):
            self.ignored.append(name)
            return
        self.declarations.append(Declaration(
            name=name,
            kind=_DECLARATION_KIND[node.kind],
            file=self.file,
            line=node.line,
            exported=node.is_exported,
        ))


# ---------------------------------------------------------------------------
# Usages
# ---------------------------------------------------------------------------


class UsageCollector(NodeVisitor):
    """Records type-position references by name, without resolving them."""

    def __init__(self, source_file: SourceFile, options: AnalyzerOptions) -> None:
        self.options = options
        self.usages: List[UsageSite] = []
        super().__init__(source_file)

    def handlers(self) -> Dict[NodeKind, Handler]:
        return {
            NodeKind.TYPE_IDENTIFIER: self._type_identifier,
            NodeKind.CLASS_EXTENDS: self._class_extends,
        }

    def _record(self, name: str, node: SyntaxNode) -> None:
        if name in config.BUILTIN_TYPES or matches_any(name, self.options.ignore_patterns):
            return
        self.usages.append(UsageSite(type_name=name, file=self.file, line=node.line))

    def _type_identifier(self, node: SyntaxNode) -> None:
        parent = node.parent
        if parent is not None:
            # The declaring name of an interface/alias/class/type parameter.
            if node.same_node(parent.field("name")) and parent.type != "generic_type":
                return
            # Qualified references such as ``ns.Type`` are not tracked.
            if parent.type == "nested_type_identifier":
                return
        self._record(node.text, node)

    def _class_extends(self, node: SyntaxNode) -> None:
        # ``class A extends Base`` names its base as an expression, not a type.
        for child in node.children():
            if child.kind == NodeKind.IDENTIFIER:
                self._record(child.text, child)


# ---------------------------------------------------------------------------
# Imports / exports
# ---------------------------------------------------------------------------


class ImportExportTracker(NodeVisitor):
    def __init__(self, source_file: SourceFile) -> None:
        self.imports: List[ImportRecord] = []
        self.exported_names: Set[str] = set()
        super().__init__(source_file)

    def handlers(self) -> Dict[NodeKind, Handler]:
        return {
            NodeKind.IMPORT: self._import,
            NodeKind.EXPORT: self._export,
        }

    def _import(self, node: SyntaxNode) -> object:
        module = string_literal(node.field("source"))
        names: List[str] = []
        for child in node.children():
            if child.type == "import_clause":
                names.extend(import_clause_names(child))
        if module and names:
            self.imports.append(ImportRecord(
                file=self.file,
                module_specifier=module,
                imported_names=tuple(names),
                line=node.line,
            ))
        return SKIP_CHILDREN

    def _export(self, node: SyntaxNode) -> None:
        source = node.field("source")
        value = node.field("value")
        if value is not None and value.kind == NodeKind.IDENTIFIER:
            self.exported_names.add(value.text)

        for child in node.children():
            if child.type != "export_clause":
                continue
            names = [
                specifier_name(spec)
                for spec in child.children()
                if spec.type == "export_specifier"
            ]
            names = [n for n in names if n]
            if source is not None:
                # ``export { A } from './a'`` re-exports another module's names.
                self.imports.append(ImportRecord(
                    file=self.file,
                    module_specifier=string_literal(source),
                    imported_names=tuple(names),
                    line=node.line,
                ))
            else:
                self.exported_names.update(names)


def specifier_name(spec: SyntaxNode) -> str:
    """Local name of an import or export specifier."""
    name = spec.field("name")
    alias = spec.field("alias")
    if spec.type == "import_specifier" and alias is not None:
        return alias.text
    return name.text if name is not None else ""


def import_clause_names(clause: SyntaxNode) -> List[str]:
    """Local names bound by an import clause (default, named, namespace)."""
    names: List[str] = []
    for child in clause.children():
        if child.kind == NodeKind.IDENTIFIER:
            names.append(child.text)
        elif child.type == "named_imports":
            for spec in child.children():
                if spec.type == "import_specifier":
                    local = specifier_name(spec)
                    if local:
                        names.append(local)
        elif child.type == "namespace_import":
            for sub in child.children():
                if sub.kind == NodeKind.IDENTIFIER:
                    names.append(sub.text)
    return names


