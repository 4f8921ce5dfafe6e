"""Configuration loading for TypeGraph using TOML files.

Settings are read from ``typegraph.toml`` in the analysed root, or from the
``[tool.typegraph]`` table of its ``pyproject.toml``.  Example::

    include = ["src/**/*.ts", "src/**/*.vue"]
    exclude = ["**/*.d.ts"]
    ignore_patterns = ["exact:Props", "suffix:State", "regex:^I[A-Z]"]
    self_reference_window = 2
    workers = 4

    [noise]
    codes = [2307, 7016]
    phrases = ["node_modules"]
    allowed_globals = ["defineProps"]

    [scoring]
    unused_weight = 50
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

import toml

from . import config
from .diagnostics import NoiseRules
from .exceptions import ConfigError
from .patterns import IgnorePattern, parse_patterns
from .scoring import ScoringWeights

logger = logging.getLogger(__name__)

TYPE_CHECK_MODES = ("auto", "true", "false")


@dataclass(frozen=True)
class AnalyzerOptions:
    root: Path = field(default_factory=Path.cwd)
    include: Tuple[str, ...] = tuple(config.DEFAULT_INCLUDE)
    exclude: Tuple[str, ...] = tuple(config.DEFAULT_EXCLUDE)
    ignore_patterns: Tuple[IgnorePattern, ...] = parse_patterns(config.DEFAULT_IGNORE_PATTERNS)
    noise: NoiseRules = field(default_factory=NoiseRules)
    scoring: ScoringWeights = field(default_factory=ScoringWeights)
    self_reference_window: int = config.DEFAULT_SELF_REFERENCE_WINDOW
    component_extensions: FrozenSet[str] = frozenset(config.COMPONENT_EXTENSIONS)
    component_convention_names: FrozenSet[str] = frozenset(config.COMPONENT_CONVENTION_NAMES)
    qualified_convention_names: FrozenSet[str] = frozenset(config.QUALIFIED_CONVENTION_NAMES)
    workers: int = config.DEFAULT_WORKERS
    quality_checks: bool = True
    type_check: str = "auto"

    def __post_init__(self) -> None:
        if self.self_reference_window < 0:
            raise ConfigError("self_reference_window must be >= 0")
        if self.workers < 1:
            raise ConfigError("workers must be >= 1")
        if self.type_check not in TYPE_CHECK_MODES:
            raise ConfigError(f"type_check must be one of {', '.join(TYPE_CHECK_MODES)}")

    def is_component_file(self, file_path: str) -> bool:
        return Path(file_path).suffix in self.component_extensions


def load_toml_settings(config_file: Path) -> Dict[str, Any]:
    """Read the TypeGraph table from *config_file*.

    Returns an empty dict for a pyproject.toml without a ``[tool.typegraph]``
    table.
    """
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        raise ConfigError(f"Could not read config file {config_file}: {exc}") from exc

    if config_file.name == "pyproject.toml":
        for key in config.PYPROJECT_SECTION:
            data = data.get(key, {})
            if not isinstance(data, dict):
                return {}
    return data


def _str_list(value: Any, key: str) -> List[str]:
    if isinstance(value, str):
        return [p.strip() for p in value.split(",") if p.strip()]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    raise ConfigError(f"'{key}' must be a string or a list of strings")


def _bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "1", "on"):
            return True
        if lowered in ("false", "no", "0", "off"):
            return False
    raise ConfigError(f"'{key}' must be a boolean, got {value!r}")


def _extensions(values: List[str]) -> FrozenSet[str]:
    return frozenset(v if v.startswith(".") else f".{v}" for v in values)


def options_from_settings(root: Path, settings: Dict[str, Any]) -> AnalyzerOptions:
    """Turn a raw settings mapping into validated ``AnalyzerOptions``."""
    options = AnalyzerOptions(root=Path(root))
    changes: Dict[str, Any] = {}

    try:
        if "include" in settings:
            changes["include"] = tuple(_str_list(settings["include"], "include"))
        if "exclude" in settings:
            changes["exclude"] = tuple(_str_list(settings["exclude"], "exclude"))
        if "ignore_patterns" in settings:
            changes["ignore_patterns"] = parse_patterns(
                _str_list(settings["ignore_patterns"], "ignore_patterns")
            )
        if "self_reference_window" in settings:
            changes["self_reference_window"] = int(settings["self_reference_window"])
        if "workers" in settings:
            changes["workers"] = int(settings["workers"])
        if "quality_checks" in settings:
            changes["quality_checks"] = _bool(settings["quality_checks"], "quality_checks")
        if "type_check" in settings:
            changes["type_check"] = str(settings["type_check"]).lower()
        if "component_extensions" in settings:
            changes["component_extensions"] = _extensions(
                _str_list(settings["component_extensions"], "component_extensions")
            )
        if "component_convention_names" in settings:
            changes["component_convention_names"] = frozenset(
                _str_list(settings["component_convention_names"], "component_convention_names")
            )
        if "qualified_convention_names" in settings:
            changes["qualified_convention_names"] = frozenset(
                _str_list(settings["qualified_convention_names"], "qualified_convention_names")
            )

        noise = settings.get("noise", {})
        if noise:
            rules = options.noise
            if "codes" in noise:
                rules = replace(rules, codes=frozenset(int(c) for c in noise["codes"]))
            if "phrases" in noise:
                rules = replace(rules, phrases=tuple(_str_list(noise["phrases"], "noise.phrases")))
            if "allowed_globals" in noise:
                rules = replace(
                    rules,
                    allowed_globals=frozenset(
                        _str_list(noise["allowed_globals"], "noise.allowed_globals")
                    ),
                )
            changes["noise"] = rules

        if settings.get("scoring"):
            changes["scoring"] = ScoringWeights.from_mapping(settings["scoring"])
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc

    return replace(options, **changes)


def load_options(
    root: Path,
    config_file: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> AnalyzerOptions:
    """Load options for *root*: defaults, then the config file, then *overrides*.

    *overrides* uses the same keys as the TOML file; ``None`` values are
    ignored so CLI flags that were not given leave the file setting alone.
    """
    settings: Dict[str, Any] = {}
    source = config_file or config.find_config_file(root)
    if source is not None:
        logger.debug("Loading settings from %s", source)
        settings.update(load_toml_settings(source))
    for key, value in (overrides or {}).items():
        if value is not None:
            settings[key] = value
    return options_from_settings(root, settings)
