"""Ignore-name patterns.

Patterns are configured as strings with an optional prefix that selects
the matching strategy::

    exact:Props        name == "Props"
    contains:State     "State" in name
    suffix:Emits       name.endswith("Emits")
    regex:^I[A-Z]      re.search("^I[A-Z]", name)

A string without a prefix is an exact match.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Pattern, Tuple, Union


@dataclass(frozen=True)
class Exact:
    value: str

    def matches(self, name: str) -> bool:
        return name == self.value

    def __str__(self) -> str:
        return f"exact:{self.value}"


@dataclass(frozen=True)
class Substring:
    value: str

    def matches(self, name: str) -> bool:
        return self.value in name

    def __str__(self) -> str:
        return f"contains:{self.value}"


@dataclass(frozen=True)
class Suffix:
    value: str

    def matches(self, name: str) -> bool:
        return name.endswith(self.value)

    def __str__(self) -> str:
        return f"suffix:{self.value}"


@dataclass(frozen=True)
class Regex:
    value: str
    _compiled: Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_compiled", re.compile(self.value))

    def matches(self, name: str) -> bool:
        return self._compiled.search(name) is not None

    def __str__(self) -> str:
        return f"regex:{self.value}"


IgnorePattern = Union[Exact, Substring, Suffix, Regex]

_PREFIXES = {
    "exact": Exact,
    "contains": Substring,
    "substring": Substring,
    "suffix": Suffix,
    "regex": Regex,
    "re": Regex,
}


def parse_pattern(spec: str) -> IgnorePattern:
    """Build a pattern from its ``kind:value`` string form.

    Raises ``ValueError`` for an empty value or an invalid regular expression.
    """
    kind, sep, value = spec.partition(":")
    if sep and kind.strip().lower() in _PREFIXES:
        cls = _PREFIXES[kind.strip().lower()]
    else:
        cls, value = Exact, spec
    if not value:
        raise ValueError(f"Empty ignore pattern: {spec!r}")
    try:
        return cls(value)
    except re.error as exc:
        raise ValueError(f"Invalid regex ignore pattern {spec!r}: {exc}") from exc


def parse_patterns(specs: Iterable[Union[str, IgnorePattern]]) -> Tuple[IgnorePattern, ...]:
    patterns: List[IgnorePattern] = []
    for spec in specs:
        if isinstance(spec, (Exact, Substring, Suffix, Regex)):
            patterns.append(spec)
        else:
            patterns.append(parse_pattern(str(spec)))
    return tuple(patterns)


def matches_any(name: str, patterns: Iterable[IgnorePattern]) -> bool:
    return any(p.matches(name) for p in patterns)
