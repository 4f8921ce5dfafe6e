"""Tests for the pure graph stages: merge, duplicates and liveness."""

import pytest

from typegraph_cli.config_manager import AnalyzerOptions
from typegraph_cli.graph import (
    declaration_view,
    find_duplicates,
    find_unused,
    imported_elsewhere,
    merge_file_facts,
    real_usages,
    specifier_resolves_to,
    stamp_imported_usages,
)
from typegraph_cli.models import (
    AnalysisContext,
    Declaration,
    DeclarationKind,
    ExportRecord,
    FileFacts,
    ImportRecord,
    UsageSite,
)


def decl(name, file, line=1, exported=False, kind=DeclarationKind.INTERFACE):
    return Declaration(name=name, kind=kind, file=file, line=line, exported=exported)


@pytest.fixture
def options() -> AnalyzerOptions:
    return AnalyzerOptions(type_check="false", ignore_patterns=())


class TestMerge:
    def test_merge_is_order_independent(self):
        a = FileFacts(
            file="a.ts",
            declarations=(decl("Foo", "a.ts", 1),),
            exports=ExportRecord(file="a.ts"),
        )
        b = FileFacts(
            file="b.ts",
            declarations=(decl("Foo", "b.ts", 3),),
            usages=(UsageSite("Foo", "b.ts", 9),),
            exports=ExportRecord(file="b.ts"),
        )
        ctx = AnalysisContext(root=".")

        forward = merge_file_facts(ctx, [a, b])
        backward = merge_file_facts(ctx, [b, a])

        assert forward == backward
        assert forward.files == ("a.ts", "b.ts")
        assert [d.file for d in forward.declarations["Foo"]] == ["a.ts", "b.ts"]
        assert forward.usages["Foo"] == (UsageSite("Foo", "b.ts", 9),)

    def test_exports_are_recorded_for_every_file(self):
        facts = FileFacts(file="a.ts")
        merged = merge_file_facts(AnalysisContext(root="."), [facts])
        assert merged.exports["a.ts"] == ExportRecord(file="a.ts")


class TestDeclarationView:
    def test_single_declaration(self, options):
        view = declaration_view({"Foo": (decl("Foo", "a.ts"),)}, options)
        assert view.entries == {"Foo": decl("Foo", "a.ts")}
        assert view.duplicates == {}

    def test_cross_file_duplicate(self, options):
        buckets = {"Shared": (decl("Shared", "a.ts", 2), decl("Shared", "b.ts", 5))}
        view = declaration_view(buckets, options)

        assert list(view.duplicates) == ["Shared"]
        assert len(view.duplicates["Shared"]) == 2
        # Last declaration in merge order is primary.
        assert view.entries["Shared"].file == "b.ts"

    def test_same_file_redeclaration_is_not_duplicate(self, options):
        buckets = {"Foo": (decl("Foo", "a.ts", 1), decl("Foo", "a.ts", 8))}
        view = declaration_view(buckets, options)

        assert view.duplicates == {}
        assert view.entries["Foo"].line == 8

    def test_component_convention_names_are_qualified(self, options):
        buckets = {"Props": (decl("Props", "A.vue", 3), decl("Props", "B.vue", 4))}
        view = declaration_view(buckets, options)

        assert view.duplicates == {}
        assert set(view.entries) == {"A.vue:Props", "B.vue:Props"}
        assert view.qualified == ("Props",)

    def test_qualified_name_also_in_plain_file_is_duplicate(self, options):
        buckets = {
            "Props": (
                decl("Props", "A.vue"),
                decl("Props", "B.vue"),
                decl("Props", "shared.ts"),
            )
        }
        view = declaration_view(buckets, options)

        assert "Props" in view.duplicates
        assert view.entries["Props"].file == "shared.ts"
        assert "A.vue:Props" in view.entries

    def test_non_convention_name_in_components_is_duplicate(self, options):
        buckets = {"Row": (decl("Row", "A.vue"), decl("Row", "B.vue"))}
        assert "Row" in find_duplicates(buckets, options)


class TestSpecifierResolution:
    @pytest.mark.parametrize(
        "specifier,importer,target,expected",
        [
            ("./user", "src/api.ts", "src/user.ts", True),
            ("../types/user", "src/services/s.ts", "src/types/user.ts", True),
            ("@/types", "src/a.ts", "src/types/index.ts", True),
            ("./other", "src/a.ts", "src/user.ts", False),
        ],
    )
    def test_resolves(self, specifier, importer, target, expected):
        assert specifier_resolves_to(specifier, importer, target, "Model") is expected

    def test_name_in_specifier(self):
        assert specifier_resolves_to("./Model", "a.ts", "lib/x.ts", "Model")

    def test_imported_elsewhere(self):
        imports = {
            "src/api.ts": (ImportRecord("src/api.ts", "./user", ("User",), 1),),
            "src/user.ts": (ImportRecord("src/user.ts", "./user", ("User",), 1),),
        }
        assert imported_elsewhere("User", "src/user.ts", imports)
        assert not imported_elsewhere("Role", "src/user.ts", imports)
        # An import in the declaring file itself does not count.
        assert not imported_elsewhere("User", "src/api.ts", {"src/api.ts": imports["src/api.ts"]})


class TestRealUsages:
    def test_self_reference_window(self):
        d = decl("Node", "a.ts", line=10)
        usages = [
            UsageSite("Node", "a.ts", 11),
            UsageSite("Node", "a.ts", 12),
            UsageSite("Node", "b.ts", 10),
        ]
        live = real_usages(d, usages, window=1)
        assert [(u.file, u.line) for u in live] == [("a.ts", 12), ("b.ts", 10)]

        assert len(real_usages(d, usages, window=5)) == 1

    def test_qualified_entries_need_local_or_imported_usage(self):
        d = decl("Props", "src/A.vue", line=3)
        usages = [
            UsageSite("Props", "src/B.vue", 7),
            UsageSite("Props", "src/C.ts", 2, imported_via="./A.vue"),
        ]
        live = real_usages(d, usages, window=1, qualified=True)
        assert [u.file for u in live] == ["src/C.ts"]

    def test_stamp_imported_usages(self):
        usages = {"User": (UsageSite("User", "a.ts", 4), UsageSite("User", "b.ts", 2))}
        imports = {"a.ts": (ImportRecord("a.ts", "./user", ("User",), 1),)}
        stamped = stamp_imported_usages(usages, imports)

        assert stamped["User"][0].imported_via == "./user"
        assert stamped["User"][1].imported_via is None


class TestFindUnused:
    def test_unreferenced_declaration_is_unused(self, options):
        entries = {"Foo": decl("Foo", "a.ts")}
        unused = find_unused(entries, {}, {}, {}, options)
        assert unused == [("Foo", entries["Foo"])]

    def test_exported_declaration_is_live(self, options):
        entries = {"Foo": decl("Foo", "a.ts", exported=True)}
        assert find_unused(entries, {}, {}, {}, options) == []

    def test_export_clause_keeps_alive(self, options):
        entries = {"Foo": decl("Foo", "a.ts")}
        exports = {"a.ts": ExportRecord("a.ts", frozenset({"Foo"}))}
        assert find_unused(entries, {}, {}, exports, options) == []

    def test_real_usage_keeps_alive(self, options):
        entries = {"Foo": decl("Foo", "a.ts", line=1)}
        usages = {"Foo": (UsageSite("Foo", "a.ts", 10),)}
        assert find_unused(entries, usages, {}, {}, options) == []

    def test_self_reference_only_is_unused(self, options):
        entries = {"Tree": decl("Tree", "a.ts", line=1)}
        usages = {"Tree": (UsageSite("Tree", "a.ts", 2),)}
        assert [k for k, _ in find_unused(entries, usages, {}, {}, options)] == ["Tree"]

    def test_import_elsewhere_keeps_alive(self, options):
        entries = {"Foo": decl("Foo", "src/foo.ts")}
        imports = {"src/bar.ts": (ImportRecord("src/bar.ts", "./foo", ("Foo",), 1),)}
        assert find_unused(entries, {}, imports, {}, options) == []

    def test_ignored_names_are_never_unused(self):
        options = AnalyzerOptions(type_check="false")
        entries = {"FormState": decl("FormState", "a.ts")}
        assert find_unused(entries, {}, {}, {}, options) == []

    def test_results_sorted_by_key(self, options):
        entries = {"Zed": decl("Zed", "z.ts"), "Alpha": decl("Alpha", "a.ts")}
        assert [k for k, _ in find_unused(entries, {}, {}, {}, options)] == ["Alpha", "Zed"]

    def test_qualified_component_entries_keep_their_own_liveness(self):
        options = AnalyzerOptions(
            type_check="false", ignore_patterns=(), component_convention_names=frozenset()
        )
        entries = {
            "A.vue:Props": decl("Props", "A.vue", line=2),
            "B.vue:Props": decl("Props", "B.vue", line=2),
            "Props": decl("Props", "shared.ts", exported=True),
        }
        usages = {"Props": (UsageSite("Props", "A.vue", 6),)}

        unused = find_unused(entries, usages, {}, {}, options)
        assert [k for k, _ in unused] == ["B.vue:Props"]

    def test_component_convention_names_hide_qualified_entries(self):
        options = AnalyzerOptions(type_check="false", ignore_patterns=())
        entries = {"B.vue:Props": decl("Props", "B.vue", line=2)}
        assert find_unused(entries, {}, {}, {}, options) == []
