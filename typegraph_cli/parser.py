"""TypeScript frontend built on Tree-sitter, plus ``tsc`` for semantic checks.

The analysis engine never looks at tree-sitter objects directly.  It sees:

- ``SyntaxNode``: a thin view over a tree-sitter node with a closed
  ``NodeKind`` tag and a ``children()`` iterator
- ``SourceFile``: one analysed file and the syntax roots of its script code
  (a ``.vue``/``.svelte`` file contributes one root per ``<script>`` block)
- ``Program``: the source files plus raw syntactic, semantic and global
  diagnostics

Semantic diagnostics come from the TypeScript compiler run as a subprocess
(``tsc --noEmit``).  When ``tsc`` is not installed the program simply carries
no semantic diagnostics.
"""

from __future__ import annotations

import importlib
import logging
import os
import re
import shutil
import subprocess
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from . import config
from .exceptions import TypeGraphError
from .models import DiagnosticCategory, RawDiagnostic

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Node kinds
# ---------------------------------------------------------------------------


class NodeKind(str, Enum):
    INTERFACE = "interface"
    TYPE_ALIAS = "type-alias"
    ENUM = "enum"
    CLASS = "class"
    IMPORT = "import"
    EXPORT = "export"
    TYPE_IDENTIFIER = "type-identifier"
    PREDEFINED_TYPE = "predefined-type"
    IDENTIFIER = "identifier"
    CLASS_EXTENDS = "class-extends"
    ERROR = "error"
    OTHER = "other"


_KIND_MAP: Dict[str, NodeKind] = {
    "interface_declaration": NodeKind.INTERFACE,
    "type_alias_declaration": NodeKind.TYPE_ALIAS,
    "enum_declaration": NodeKind.ENUM,
    "class_declaration": NodeKind.CLASS,
    "abstract_class_declaration": NodeKind.CLASS,
    "import_statement": NodeKind.IMPORT,
    "export_statement": NodeKind.EXPORT,
    "type_identifier": NodeKind.TYPE_IDENTIFIER,
    "predefined_type": NodeKind.PREDEFINED_TYPE,
    "identifier": NodeKind.IDENTIFIER,
    "extends_clause": NodeKind.CLASS_EXTENDS,
    "shorthand_property_identifier": NodeKind.IDENTIFIER,
    "ERROR": NodeKind.ERROR,
}

DECLARATION_KINDS = frozenset(
    {NodeKind.INTERFACE, NodeKind.TYPE_ALIAS, NodeKind.ENUM, NodeKind.CLASS}
)


class SyntaxNode:
    """Read-only view of a tree-sitter node, shifted by a line offset."""

    __slots__ = ("_node", "_line_offset")

    def __init__(self, node: Any, line_offset: int = 0) -> None:
        self._node = node
        self._line_offset = line_offset

    def __repr__(self) -> str:
        return f"SyntaxNode({self.type!r}, line={self.line})"

    @property
    def kind(self) -> NodeKind:
        return _KIND_MAP.get(self._node.type, NodeKind.OTHER)

    @property
    def type(self) -> str:
        return self._node.type

    @property
    def text(self) -> str:
        raw = self._node.text
        return raw.decode("utf-8", errors="replace") if raw is not None else ""

    @property
    def line(self) -> int:
        return self._node.start_point[0] + 1 + self._line_offset

    @property
    def column(self) -> int:
        return self._node.start_point[1] + 1

    @property
    def is_missing(self) -> bool:
        return bool(self._node.is_missing)

    @property
    def has_error(self) -> bool:
        return bool(self._node.has_error)

    @property
    def parent(self) -> Optional["SyntaxNode"]:
        parent = self._node.parent
        return SyntaxNode(parent, self._line_offset) if parent is not None else None

    def children(self) -> Iterator["SyntaxNode"]:
        for child in self._node.children:
            yield SyntaxNode(child, self._line_offset)

    def field(self, name: str) -> Optional["SyntaxNode"]:
        child = self._node.child_by_field_name(name)
        return SyntaxNode(child, self._line_offset) if child is not None else None

    def same_node(self, other: Optional["SyntaxNode"]) -> bool:
        if other is None:
            return False
        return (
            self._node.type == other._node.type
            and self._node.start_byte == other._node.start_byte
            and self._node.end_byte == other._node.end_byte
        )

    @property
    def name(self) -> str:
        """Declared name for declaration nodes; empty for anonymous ones."""
        name_node = self.field("name")
        return name_node.text if name_node is not None else ""

    @property
    def is_exported(self) -> bool:
        """True when this declaration carries an ``export`` modifier."""
        parent = self.parent
        while parent is not None and parent.type == "ambient_declaration":
            parent = parent.parent
        return parent is not None and parent.kind == NodeKind.EXPORT


def walk(node: SyntaxNode) -> Iterator[SyntaxNode]:
    """Pre-order traversal of *node* and all of its descendants."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(list(current.children())))


# ---------------------------------------------------------------------------
# Source files and programs
# ---------------------------------------------------------------------------


@dataclass
class SourceFile:
    path: str
    language: str
    roots: List[SyntaxNode] = field(default_factory=list)
    # Template markup of a component file, with its script blocks removed.
    markup: str = ""

    @property
    def suffix(self) -> str:
        return Path(self.path).suffix


@dataclass
class Program:
    root: Path
    source_files: List[SourceFile] = field(default_factory=list)
    diagnostics: List[RawDiagnostic] = field(default_factory=list)
    failures: List[Tuple[str, str]] = field(default_factory=list)

    def get_source_files(self) -> List[SourceFile]:
        return list(self.source_files)

    def get_diagnostics(self, file: Optional[str] = None) -> List[RawDiagnostic]:
        if file is None:
            return list(self.diagnostics)
        return [d for d in self.diagnostics if d.file == file]

    @property
    def file_paths(self) -> List[str]:
        return [sf.path for sf in self.source_files]


# ---------------------------------------------------------------------------
# Component script extraction
# ---------------------------------------------------------------------------

_SCRIPT_BLOCK = re.compile(
    r"<script(?P<attrs>[^>]*)>(?P<body>[\s\S]*?)</script>", re.IGNORECASE
)
_LANG_ATTR = re.compile(r"""lang\s*=\s*["'](?P<lang>[\w-]+)["']""", re.IGNORECASE)


@dataclass(frozen=True)
class ScriptBlock:
    content: str
    line_offset: int
    language: str


def extract_script_blocks(source: str) -> List[ScriptBlock]:
    """Return the TypeScript ``<script>`` blocks of a component file.

    ``line_offset`` is the number of lines before the block body, so line
    numbers inside the block map back onto the component file.
    """
    blocks: List[ScriptBlock] = []
    for match in _SCRIPT_BLOCK.finditer(source):
        lang_match = _LANG_ATTR.search(match.group("attrs"))
        lang = lang_match.group("lang").lower() if lang_match else "ts"
        if lang not in ("ts", "tsx", "typescript", "js"):
            continue
        offset = source.count("\n", 0, match.start("body"))
        blocks.append(ScriptBlock(
            content=match.group("body"),
            line_offset=offset,
            language="tsx" if lang == "tsx" else "typescript",
        ))
    return blocks


# ---------------------------------------------------------------------------
# Tree-sitter frontend
# ---------------------------------------------------------------------------


class TypeScriptFrontend:
    """Builds a ``Program`` from a set of TypeScript/Vue/Svelte files.

    Uses the ``tree-sitter-typescript`` grammars, which tolerate broken syntax
    and still produce a usable tree.  Syntax problems surface as syntactic
    diagnostics instead of exceptions.
    """

    _GRAMMAR_MODULE = "tree_sitter_typescript"
    _GRAMMAR_FUNCTIONS = {
        "typescript": "language_typescript",
        "tsx": "language_tsx",
    }

    def __init__(self) -> None:
        self._parsers: Dict[str, Any] = {}
        self._init_parsers()

    def _init_parsers(self) -> None:
        try:
            from tree_sitter import Language, Parser as TSParser  # type: ignore[import-untyped]
            mod = importlib.import_module(self._GRAMMAR_MODULE)
        except ImportError as exc:
            raise TypeGraphError(
                "tree-sitter grammars are not installed. "
                "Install with: pip install tree-sitter tree-sitter-typescript"
            ) from exc

        for lang, func_name in self._GRAMMAR_FUNCTIONS.items():
            ts_lang = Language(getattr(mod, func_name)())
            self._parsers[lang] = TSParser(ts_lang)
            logger.debug("Loaded tree-sitter parser for %s", lang)

    # ------------------------------------------------------------------
    # Program construction
    # ------------------------------------------------------------------

    def create_program(
        self,
        file_paths: Sequence[Path],
        compiler_options: Optional[Dict[str, Any]] = None,
        root: Optional[Path] = None,
    ) -> Program:
        """Parse *file_paths* and gather their diagnostics.

        ``compiler_options`` understands ``type_check`` (``"auto"``, ``"true"``
        or ``"false"``), ``skip_lib_check`` (default ``True``) and
        ``component_extensions`` (suffixes whose script blocks are extracted).
        """
        options = compiler_options or {}
        components = frozenset(
            options.get("component_extensions", config.COMPONENT_EXTENSIONS)
        )
        root = Path(root) if root is not None else _common_root(file_paths)
        program = Program(root=root)

        for file_path in file_paths:
            rel_path = _relative(file_path, root)
            try:
                source = Path(file_path).read_text(encoding="utf-8", errors="ignore")
                source_file = self.parse_source(rel_path, source, components)
            except (OSError, ValueError, RuntimeError) as exc:
                logger.warning("Failed to parse %s: %s", rel_path, exc)
                program.failures.append((rel_path, str(exc)))
                continue
            program.source_files.append(source_file)
            program.diagnostics.extend(self.syntactic_diagnostics(source_file))

        type_check = str(options.get("type_check", "auto")).lower()
        if type_check != "false" and program.source_files:
            runner = TscRunner(
                skip_lib_check=bool(options.get("skip_lib_check", True)),
                component_extensions=components,
            )
            if runner.available():
                program.diagnostics.extend(runner.run(root, program.file_paths))
            elif type_check == "true":
                logger.warning("tsc was requested but '%s' is not on PATH", runner.executable)
            else:
                logger.info("tsc not found; skipping semantic diagnostics")
        return program

    def parse_source(
        self,
        rel_path: str,
        source: str,
        component_extensions: Optional[Iterable[str]] = None,
    ) -> SourceFile:
        components = (
            config.COMPONENT_EXTENSIONS if component_extensions is None else component_extensions
        )
        suffix = Path(rel_path).suffix
        is_component = suffix in components
        if is_component:
            blocks = extract_script_blocks(source)
        else:
            language = "tsx" if suffix == ".tsx" else "typescript"
            blocks = [ScriptBlock(content=source, line_offset=0, language=language)]

        language = blocks[0].language if blocks else "typescript"
        source_file = SourceFile(path=rel_path, language=language)
        if is_component:
            source_file.markup = _SCRIPT_BLOCK.sub("", source)
        for block in blocks:
            tree = self._parsers[block.language].parse(block.content.encode("utf-8"))
            source_file.roots.append(SyntaxNode(tree.root_node, block.line_offset))
        return source_file

    @staticmethod
    def syntactic_diagnostics(source_file: SourceFile) -> List[RawDiagnostic]:
        """Report ERROR and MISSING nodes as TypeScript-style syntax errors."""
        diagnostics: List[RawDiagnostic] = []
        for root in source_file.roots:
            if not root.has_error:
                continue
            stack = [root]
            while stack:
                node = stack.pop()
                if node.kind == NodeKind.ERROR:
                    diagnostics.append(RawDiagnostic(
                        code=1128,
                        message="Declaration or statement expected.",
                        category=DiagnosticCategory.ERROR,
                        file=source_file.path,
                        line=node.line,
                        column=node.column,
                        origin="syntactic",
                    ))
                    continue
                if node.is_missing:
                    diagnostics.append(RawDiagnostic(
                        code=1005,
                        message=f"'{node.type}' expected.",
                        category=DiagnosticCategory.ERROR,
                        file=source_file.path,
                        line=node.line,
                        column=node.column,
                        origin="syntactic",
                    ))
                    continue
                if node.has_error:
                    stack.extend(reversed(list(node.children())))
        return diagnostics


# ---------------------------------------------------------------------------
# tsc subprocess
# ---------------------------------------------------------------------------

_TSC_LOCATED = re.compile(
    r"^(?P<file>.+?)\((?P<line>\d+),(?P<col>\d+)\): "
    r"(?P<cat>error|warning|message|suggestion) TS(?P<code>\d+): (?P<msg>.*)$"
)
_TSC_GLOBAL = re.compile(
    r"^(?P<cat>error|warning|message|suggestion) TS(?P<code>\d+): (?P<msg>.*)$"
)


class TscRunner:
    """Runs ``tsc --noEmit`` and parses its plain-text diagnostics."""

    def __init__(
        self,
        executable: str = config.TSC_EXECUTABLE,
        skip_lib_check: bool = True,
        timeout: int = config.TSC_TIMEOUT_SECONDS,
        component_extensions: Iterable[str] = config.COMPONENT_EXTENSIONS,
    ) -> None:
        self.executable = executable
        self.skip_lib_check = skip_lib_check
        self.timeout = timeout
        self.component_extensions = frozenset(component_extensions)

    def available(self) -> bool:
        return shutil.which(self.executable) is not None

    def command(self, root: Path, files: Sequence[str]) -> List[str]:
        cmd = [self.executable, "--noEmit", "--pretty", "false"]
        if self.skip_lib_check:
            cmd.append("--skipLibCheck")
        if (root / "tsconfig.json").is_file():
            cmd += ["-p", str(root)]
        else:
            cmd += [f for f in files if Path(f).suffix not in self.component_extensions]
        return cmd

    def run(self, root: Path, files: Sequence[str]) -> List[RawDiagnostic]:
        cmd = self.command(root, files)
        logger.info("Running %s", " ".join(cmd[:5]))
        try:
            result = subprocess.run(
                cmd,
                cwd=str(root),
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            logger.warning("tsc failed to run: %s", exc)
            return []
        return parse_tsc_output(result.stdout, root)


def parse_tsc_output(output: str, root: Path) -> List[RawDiagnostic]:
    """Parse ``tsc --pretty false`` output.

    Indented lines continue the previous diagnostic's message chain.
    """
    diagnostics: List[RawDiagnostic] = []
    current: Optional[Dict[str, Any]] = None

    def _flush() -> None:
        if current is not None:
            diagnostics.append(RawDiagnostic(**current))

    for line in output.splitlines():
        if not line.strip():
            continue
        if line[0].isspace() and current is not None:
            current["message"] += "\n" + line.strip()
            continue
        located = _TSC_LOCATED.match(line)
        global_match = None if located else _TSC_GLOBAL.match(line)
        match = located or global_match
        if match is None:
            continue
        _flush()
        current = {
            "code": int(match.group("code")),
            "message": match.group("msg"),
            "category": DiagnosticCategory(match.group("cat")),
            "file": _relative(root / match.group("file"), root) if located else None,
            "line": int(match.group("line")) if located else 0,
            "column": int(match.group("col")) if located else 0,
            "origin": "semantic" if located else "global",
        }
    _flush()
    return diagnostics


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _relative(file_path: Path, root: Path) -> str:
    path = Path(os.path.normpath(str(file_path)))
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        try:
            return path.resolve().relative_to(root.resolve()).as_posix()
        except ValueError:
            return path.as_posix()


def _common_root(file_paths: Sequence[Path]) -> Path:
    if not file_paths:
        return Path.cwd()
    return Path(os.path.commonpath([str(Path(p).parent) for p in file_paths]))
