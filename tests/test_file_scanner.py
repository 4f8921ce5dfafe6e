"""Tests for source file discovery."""

from pathlib import Path

from typegraph_cli.file_scanner import discover_files, glob_to_regex, matches_glob


def test_glob_to_regex():
    assert glob_to_regex("**/*.ts").match("a.ts")
    assert glob_to_regex("**/*.ts").match("src/deep/a.ts")
    assert not glob_to_regex("src/*.ts").match("src/deep/a.ts")
    assert glob_to_regex("src/**/*.{ts,vue}").match("src/x/A.vue")
    assert glob_to_regex("?.ts").match("a.ts")
    assert not glob_to_regex("?.ts").match("ab.ts")


def test_matches_glob_bare_names():
    assert matches_glob("src/legacy/a.ts", ["legacy"])
    assert not matches_glob("src/legacyish/a.ts", ["legacy"])


def test_discover_files(make_project):
    root = make_project({
        "src/b.ts": "",
        "src/a.ts": "",
        "src/types.d.ts": "",
        "src/a.spec.ts": "",
        "src/View.vue": "",
        "src/readme.md": "",
        "node_modules/lib/index.ts": "",
        ".hidden/x.ts": "",
    })
    found = [p.relative_to(root).as_posix() for p in discover_files(root)]
    assert found == ["src/View.vue", "src/a.ts", "src/b.ts"]


def test_discover_files_custom_patterns(make_project):
    root = make_project({"app/a.ts": "", "lib/b.ts": "", "lib/c.tsx": ""})
    found = discover_files(root, include=["lib/**/*.ts"], exclude=[])
    assert [p.name for p in found] == ["b.ts"]


def test_discover_empty_root(temp_dir: Path):
    assert discover_files(temp_dir) == []


def test_discover_files_custom_extensions(make_project):
    root = make_project({"src/a.ts": "", "src/Page.astro": "", "src/View.vue": ""})
    include = ["**/*.ts", "**/*.astro", "**/*.vue"]

    default = [p.name for p in discover_files(root, include=include, exclude=[])]
    assert default == ["View.vue", "a.ts"]

    found = discover_files(root, include=include, exclude=[], extensions={".ts", ".astro"})
    assert [p.name for p in found] == ["Page.astro", "a.ts"]
