"""Cross-file type graph: merging, cross references, duplicates and liveness.

Every function here is pure.  Pipeline stages take an ``AnalysisContext``
and return an updated copy; the helpers they are built from take plain
mappings so each policy can be tested on its own.

Declarations are stored unconditionally, all of them per name.  Whether an
entry is the primary one, a duplicate or a file-qualified component entry is
decided at read time by ``declaration_view``.
"""

from __future__ import annotations

import logging
import posixpath
from collections import defaultdict
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from .config_manager import AnalyzerOptions
from .models import (
    AnalysisContext,
    Declaration,
    DiagnosticIssue,
    ExportRecord,
    FileFacts,
    ImportRecord,
    UsageSite,
)
from .patterns import matches_any

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------


def merge_file_facts(
    context: AnalysisContext,
    facts: Iterable[FileFacts],
    extra_warnings: Sequence[DiagnosticIssue] = (),
) -> AnalysisContext:
    """Fold per-file facts into the context in lexicographic file order.

    The order of *facts* does not matter; sorting here is what makes
    last-write-wins outcomes reproducible.
    """
    declarations: Dict[str, List[Declaration]] = defaultdict(list)
    usages: Dict[str, List[UsageSite]] = defaultdict(list)
    imports: Dict[str, Tuple[ImportRecord, ...]] = {}
    exports: Dict[str, ExportRecord] = {}
    ignored: List[str] = []
    warnings: List[DiagnosticIssue] = list(context.warnings)

    ordered = sorted(facts, key=lambda f: f.file)
    for file_facts in ordered:
        for decl in file_facts.declarations:
            declarations[decl.name].append(decl)
        for usage in file_facts.usages:
            usages[usage.type_name].append(usage)
        if file_facts.imports:
            imports[file_facts.file] = file_facts.imports
        exports[file_facts.file] = replace(file_facts.exports, file=file_facts.file)
        ignored.extend(file_facts.ignored)
        warnings.extend(file_facts.quality_warnings)
    warnings.extend(extra_warnings)

    return replace(
        context,
        files=tuple(f.file for f in ordered),
        declarations={name: tuple(declarations[name]) for name in sorted(declarations)},
        usages={name: tuple(usages[name]) for name in sorted(usages)},
        imports=imports,
        exports=exports,
        ignored_types=tuple(ignored),
        warnings=tuple(warnings),
    )


# ---------------------------------------------------------------------------
# Cross references
# ---------------------------------------------------------------------------


def stamp_imported_usages(
    usages: Mapping[str, Sequence[UsageSite]],
    imports: Mapping[str, Sequence[ImportRecord]],
) -> Dict[str, Tuple[UsageSite, ...]]:
    """Mark usages that are in scope because their file imports the name."""
    origin: Dict[Tuple[str, str], str] = {}
    for file in sorted(imports):
        for record in imports[file]:
            for name in record.imported_names:
                origin[(file, name)] = record.module_specifier

    stamped: Dict[str, Tuple[UsageSite, ...]] = {}
    for name, sites in usages.items():
        stamped[name] = tuple(
            replace(site, imported_via=origin[(site.file, name)])
            if (site.file, name) in origin
            else site
            for site in sites
        )
    return stamped


def resolve_cross_references(context: AnalysisContext) -> AnalysisContext:
    return replace(context, usages=stamp_imported_usages(context.usages, context.imports))


# ---------------------------------------------------------------------------
# Declaration view and duplicates
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DeclarationView:
    # key (plain name, or "file:name" for qualified entries) -> declaration
    entries: Dict[str, Declaration]
    duplicates: Dict[str, Tuple[Declaration, ...]]
    qualified: Tuple[str, ...] = ()


def _files_of(decls: Sequence[Declaration]) -> List[str]:
    return sorted({d.file for d in decls})


def qualifies_by_component(
    name: str,
    decls: Sequence[Declaration],
    options: AnalyzerOptions,
) -> bool:
    """True when *name* is a component convention declared in >= 2 component files."""
    if name not in options.qualified_convention_names:
        return False
    component_files = {d.file for d in decls if options.is_component_file(d.file)}
    return len(component_files) >= 2


def declaration_view(
    buckets: Mapping[str, Sequence[Declaration]],
    options: AnalyzerOptions,
) -> DeclarationView:
    """Decide primary, duplicate and qualified entries from the raw buckets.

    Buckets are in merge order (file, then source position), so the last
    declaration of a name is its primary entry.  A same-file re-declaration
    replaces the earlier one and is not a duplicate.

    Component files that each declare a convention name such as ``Props``
    get file-qualified entries (``"a.vue:Props"``) instead of a duplicate.
    If an ordinary file declares the same name too, the name is still a
    duplicate and the qualified entries keep their own liveness.
    """
    entries: Dict[str, Declaration] = {}
    duplicates: Dict[str, Tuple[Declaration, ...]] = {}
    qualified: List[str] = []

    for name in sorted(buckets):
        decls = list(buckets[name])
        if not decls:
            continue
        plain = decls
        if qualifies_by_component(name, decls, options):
            qualified.append(name)
            plain = []
            for decl in decls:
                if options.is_component_file(decl.file):
                    entries[decl.qualified_key] = decl
                else:
                    plain.append(decl)
            if not plain:
                continue
        entries[name] = plain[-1]
        if len(_files_of(decls)) >= 2:
            duplicates[name] = tuple(sorted(decls, key=lambda d: (d.file, d.line)))

    return DeclarationView(entries=entries, duplicates=duplicates, qualified=tuple(qualified))


def find_duplicates(
    buckets: Mapping[str, Sequence[Declaration]],
    options: AnalyzerOptions,
) -> Dict[str, Tuple[Declaration, ...]]:
    return declaration_view(buckets, options).duplicates


def detect_duplicates(context: AnalysisContext, options: AnalyzerOptions) -> AnalysisContext:
    view = declaration_view(context.declarations, options)
    if view.duplicates:
        logger.info("Found %d duplicated type names", len(view.duplicates))
    return replace(context, entries=view.entries, duplicates=view.duplicates)


# ---------------------------------------------------------------------------
# Liveness
# ---------------------------------------------------------------------------


def _strip_extension(path: str) -> str:
    root, ext = posixpath.splitext(path)
    return root if ext else path


def specifier_resolves_to(specifier: str, importer: str, target: str, name: str) -> bool:
    """Approximate check that *specifier*, written in *importer*, names *target*.

    Matches on the relative path from the importer, on the target's file
    stem (its directory name for ``index`` files) or on the imported name.
    Aliased paths and barrel re-exports through unrelated names are missed.
    """
    target_noext = _strip_extension(target)
    rel = posixpath.relpath(target_noext, posixpath.dirname(importer) or ".")
    spec = specifier[2:] if specifier.startswith("./") else specifier
    rel = rel[2:] if rel.startswith("./") else rel
    if rel in spec:
        return True

    stem = posixpath.basename(target_noext)
    if stem == "index":
        stem = posixpath.basename(posixpath.dirname(target_noext))
    if stem and stem in spec:
        return True
    return name in specifier


def imported_elsewhere(
    name: str,
    file: str,
    imports: Mapping[str, Sequence[ImportRecord]],
) -> bool:
    for importer in sorted(imports):
        if importer == file:
            continue
        for record in imports[importer]:
            if name in record.imported_names and specifier_resolves_to(
                record.module_specifier, importer, file, name
            ):
                return True
    return False


def real_usages(
    decl: Declaration,
    usages: Sequence[UsageSite],
    window: int,
    qualified: bool = False,
) -> List[UsageSite]:
    """Usages of *decl* that are not self-references.

    A qualified component entry only counts usages in its own file or usages
    imported from a specifier that names its file.
    """
    result = []
    for usage in usages:
        if usage.file == decl.file and abs(usage.line - decl.line) <= window:
            continue
        if qualified and usage.file != decl.file:
            if usage.imported_via is None or not specifier_resolves_to(
                usage.imported_via, usage.file, decl.file, decl.name
            ):
                continue
        result.append(usage)
    return result


def is_ignored(name: str, file: str, options: AnalyzerOptions) -> bool:
    if matches_any(name, options.ignore_patterns):
        return True
    return options.is_component_file(file) and name in options.component_convention_names


def find_unused(
    entries: Mapping[str, Declaration],
    usages: Mapping[str, Sequence[UsageSite]],
    imports: Mapping[str, Sequence[ImportRecord]],
    exports: Mapping[str, ExportRecord],
    options: AnalyzerOptions,
) -> List[Tuple[str, Declaration]]:
    """Return ``(key, declaration)`` for every entry with no real usage.

    An entry is kept alive by a real usage, by being exported (modifier or
    export clause in its own file) or by an import of its name elsewhere.
    """
    unused: List[Tuple[str, Declaration]] = []
    for key in sorted(entries):
        decl = entries[key]
        if is_ignored(decl.name, decl.file, options):
            continue
        qualified = key != decl.name
        live = real_usages(
            decl, usages.get(decl.name, ()), options.self_reference_window, qualified
        )
        if live:
            continue
        export = exports.get(decl.file)
        if decl.exported or (export is not None and decl.name in export.exported_names):
            continue
        if imported_elsewhere(decl.name, decl.file, imports):
            continue
        unused.append((key, decl))
    return unused


def detect_unused(context: AnalysisContext, options: AnalyzerOptions) -> AnalysisContext:
    unused = find_unused(
        context.entries, context.usages, context.imports, context.exports, options
    )
    logger.info("Found %d unused type declarations", len(unused))
    return replace(
        context,
        unused=tuple(decl for _, decl in unused),
        unused_keys=tuple(key for key, _ in unused),
    )

