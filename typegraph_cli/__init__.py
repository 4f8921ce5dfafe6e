"""TypeGraph CLI: unused, duplicated and broken TypeScript type analysis."""

from __future__ import annotations

__version__ = "0.3.0"

from .analyzer import TypeAnalyzer, analyze_project, quick_check  # noqa: E402
from .config_manager import AnalyzerOptions, load_options  # noqa: E402
from .exceptions import (  # noqa: E402
    AnalysisCancelledError,
    ConfigError,
    SourceRootNotFoundError,
    TypeGraphError,
)
from .models import AnalysisReport  # noqa: E402

__all__ = [
    "__version__",
    "AnalysisCancelledError",
    "AnalysisReport",
    "AnalyzerOptions",
    "ConfigError",
    "SourceRootNotFoundError",
    "TypeAnalyzer",
    "TypeGraphError",
    "analyze_project",
    "load_options",
    "quick_check",
]
