"""Exceptions raised to callers of the analysis engine."""

from __future__ import annotations


class TypeGraphError(Exception):
    """Base class for fatal analysis failures."""


class SourceRootNotFoundError(TypeGraphError):
    def __init__(self, root: str) -> None:
        super().__init__(f"Source root does not exist or is not a directory: {root}")
        self.root = root


class ConfigError(TypeGraphError):
    """Configuration file or option could not be understood."""


class AnalysisCancelledError(TypeGraphError):
    def __init__(self, phase: str) -> None:
        super().__init__(f"Analysis cancelled before phase '{phase}'")
        self.phase = phase
