"""Default settings for TypeGraph analysis."""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILE_NAME = "typegraph.toml"
PYPROJECT_SECTION = ("tool", "typegraph")
CONFIG_ENV_VAR = "TYPEGRAPH_CONFIG"

DEFAULT_INCLUDE = ["**/*.ts", "**/*.tsx", "**/*.vue"]
DEFAULT_EXCLUDE = [
    "**/*.d.ts",
    "**/*.test.ts",
    "**/*.spec.ts",
    "**/*.test.tsx",
    "**/*.spec.tsx",
]

SKIP_DIRS = {
    "node_modules", "dist", "build", "coverage", ".git", ".cache",
    ".vscode", ".idea", "__tests__", ".nuxt", ".next", ".output",
}

SUPPORTED_EXTENSIONS = {".ts", ".tsx", ".mts", ".cts", ".vue", ".svelte"}
COMPONENT_EXTENSIONS = {".vue", ".svelte"}

DEFAULT_IGNORE_PATTERNS = [
    "exact:Props",
    "exact:Emits",
    "exact:Slots",
    "exact:Expose",
    "suffix:Props",
    "suffix:Emits",
    "regex:Events?$",
    "suffix:State",
]

# Names every component file declares for itself.
COMPONENT_CONVENTION_NAMES = {
    "Props", "Emits", "Slots", "Expose", "Data", "Methods", "Computed",
}
QUALIFIED_CONVENTION_NAMES = {"Props", "Emits", "Slots", "Expose"}

BUILTIN_TYPES = {
    "string", "number", "boolean", "object", "undefined", "null", "void",
    "any", "unknown", "never", "bigint", "symbol",
    "Array", "ReadonlyArray", "Promise", "PromiseLike", "Date", "RegExp",
    "Error", "Function", "Object", "String", "Number", "Boolean", "Symbol",
    "Map", "Set", "WeakMap", "WeakSet", "ReadonlyMap", "ReadonlySet",
    "Record", "Partial", "Required", "Readonly", "Pick", "Omit", "Exclude",
    "Extract", "NonNullable", "ReturnType", "Parameters", "InstanceType",
    "ConstructorParameters", "Awaited", "Uppercase", "Lowercase",
    "Capitalize", "Uncapitalize", "ThisType", "Iterable", "Iterator",
    "IterableIterator", "AsyncIterable", "AsyncIterator", "Generator",
    "AsyncGenerator", "ArrayLike", "PropertyKey", "JSON", "Math",
}

DEFAULT_SELF_REFERENCE_WINDOW = 1
DEFAULT_WORKERS = 1

# Diagnostic noise: environment and configuration problems, not type errors.
DEFAULT_NOISE_CODES = {
    2307,  # Cannot find module
    2732,  # JSON module import without resolveJsonModule
    1343,  # import.meta outside ES module targets
    1259,  # default import needs esModuleInterop
    2802,  # iteration needs downlevelIteration
    2724,  # no exported member (usually a typings mismatch)
    7016,  # no declaration file for module
    2669,  # global augmentation placement
    2664,  # invalid module name in augmentation
    1046,  # top-level .d.ts declarations need declare
}
DEFAULT_NOISE_PHRASES = [
    "node_modules",
    "declaration file for module",
    "import.meta",
    "ImportMeta",
]
DEFAULT_ALLOWED_GLOBALS = {
    "defineProps", "defineEmits", "defineExpose", "defineSlots",
    "defineModel", "defineOptions", "withDefaults",
    "ref", "reactive", "computed", "watch", "watchEffect", "onMounted",
    "onUnmounted", "nextTick", "useRoute", "useRouter",
    "ElMessage", "ElMessageBox", "ElNotification",
}

CRITICAL_CODES = {
    2322,   # Type is not assignable
    2345,   # Argument type is not assignable
    2339,   # Property does not exist on type
    2741,   # Property is missing in type
    2304,   # Cannot find name
    2307,   # Cannot find module
    2531,   # Object is possibly null
    2532,   # Object is possibly undefined
    2533,   # Object is possibly null or undefined
    18047,  # 'x' is possibly null
    18048,  # 'x' is possibly undefined
}

DIAGNOSTIC_CATEGORIES = {
    2322: "type-mismatch",
    2345: "type-mismatch",
    2339: "property-missing",
    2741: "property-missing",
    2304: "name-not-found",
    2552: "name-not-found",
    2307: "module-resolution",
    2792: "module-resolution",
    2531: "strict-null",
    2532: "strict-null",
    2533: "strict-null",
    18047: "strict-null",
    18048: "strict-null",
}

TSC_EXECUTABLE = os.environ.get("TYPEGRAPH_TSC", "tsc")
TSC_TIMEOUT_SECONDS = 300


def find_config_file(root: Path) -> Path | None:
    """Return the config file that applies to *root*, if any."""
    env_file = os.environ.get(CONFIG_ENV_VAR, "")
    if env_file:
        candidate = Path(env_file).expanduser()
        return candidate if candidate.is_file() else None
    for name in (CONFIG_FILE_NAME, "pyproject.toml"):
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None
