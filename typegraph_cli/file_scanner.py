"""Source file discovery from include/exclude glob patterns."""

from __future__ import annotations

import logging
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Iterable, List, Pattern, Sequence

from . import config

logger = logging.getLogger(__name__)


@lru_cache(maxsize=256)
def glob_to_regex(pattern: str) -> Pattern[str]:
    """Translate a ``**``/``*``/``?``/``{a,b}`` glob into a compiled regex.

    Patterns are matched against POSIX paths relative to the root.
    """
    out: List[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        ch = pattern[i]
        if pattern.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
            continue
        if pattern.startswith("**", i):
            out.append(".*")
            i += 2
            continue
        if ch == "*":
            out.append("[^/]*")
        elif ch == "?":
            out.append("[^/]")
        elif ch == "{":
            end = pattern.find("}", i)
            if end == -1:
                out.append(re.escape(ch))
            else:
                options = pattern[i + 1:end].split(",")
                out.append("(?:" + "|".join(re.escape(o) for o in options) + ")")
                i = end + 1
                continue
        else:
            out.append(re.escape(ch))
        i += 1
    return re.compile("^" + "".join(out) + "$")


def matches_glob(rel_path: str, patterns: Iterable[str]) -> bool:
    for pattern in patterns:
        if glob_to_regex(pattern).match(rel_path):
            return True
        # Bare names ("dist", "legacy") exclude any path segment with that name.
        if not any(c in pattern for c in "*?{/") and pattern in rel_path.split("/"):
            return True
    return False


def discover_files(
    root: Path,
    include: Sequence[str] = tuple(config.DEFAULT_INCLUDE),
    exclude: Sequence[str] = tuple(config.DEFAULT_EXCLUDE),
    extensions: Iterable[str] = config.SUPPORTED_EXTENSIONS,
) -> List[Path]:
    """Return every file under *root* with one of *extensions*, sorted by relative path."""
    root = Path(root)
    suffixes = frozenset(extensions)
    found: List[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(
            d for d in dirnames if d not in config.SKIP_DIRS and not d.startswith(".")
        )
        for filename in filenames:
            path = Path(dirpath) / filename
            if path.suffix not in suffixes:
                continue
            rel = path.relative_to(root).as_posix()
            if not matches_glob(rel, include):
                continue
            if matches_glob(rel, exclude):
                logger.debug("Excluded %s", rel)
                continue
            found.append(path)
    found.sort(key=lambda p: p.relative_to(root).as_posix())
    logger.info("Discovered %d source files under %s", len(found), root)
    return found
