"""Pytest configuration and fixtures for TypeGraph CLI tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Callable, Dict, Generator

import pytest

from typegraph_cli.config_manager import AnalyzerOptions
from typegraph_cli.parser import TypeScriptFrontend


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch):
    """Keep a developer's TYPEGRAPH_CONFIG from leaking into tests."""
    monkeypatch.delenv("TYPEGRAPH_CONFIG", raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_project_path() -> Path:
    """Get path to sample TypeScript project."""
    return Path(__file__).parent / "fixtures" / "sample_project"


@pytest.fixture
def make_project(temp_dir: Path) -> Callable[[Dict[str, str]], Path]:
    """Write ``{relative path: source}`` into the temp dir and return its root."""

    def _make(files: Dict[str, str]) -> Path:
        for rel, source in files.items():
            path = temp_dir / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(source, encoding="utf-8")
        return temp_dir

    return _make


@pytest.fixture
def offline_options() -> Callable[..., AnalyzerOptions]:
    """Options that never shell out to tsc."""

    def _options(root: Path, **kwargs) -> AnalyzerOptions:
        kwargs.setdefault("type_check", "false")
        return AnalyzerOptions(root=Path(root), **kwargs)

    return _options


@pytest.fixture(scope="session")
def frontend() -> TypeScriptFrontend:
    """One tree-sitter frontend shared by the whole session."""
    return TypeScriptFrontend()


@pytest.fixture
def sample_ts_code() -> str:
    """Sample TypeScript code for testing collectors."""
    return '''import { Helper, Unused } from './helpers';
import Default from './default';

export interface Account {
  id: number;
  owner: Owner;
  tags: Array<Tag>;
}

interface Owner {
  name: string;
}

type Tag = string;

enum Status {
  Open,
  Closed,
}

export class Service {
  run(input: Helper): Account | null {
    return null;
  }
}

const x: any = Default;

export { Status };
'''
