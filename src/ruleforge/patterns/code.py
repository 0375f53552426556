"""Code-idiom heuristics over a deterministic sample of files."""

from __future__ import annotations

import posixpath
import re
from collections import Counter, defaultdict

from ruleforge.model import FileEntry

_MAX_EXAMPLES = 5

# ---------------------------------------------------------------------------
# File organization
# ---------------------------------------------------------------------------

TEST_PATTERNS = [
    ("test_*.py",     re.compile(r'(^|/)test_[^/]+\.py$')),
    ("*_test.py",     re.compile(r'(^|/)[^/]+_test\.py$')),
    ("*.test.ts",     re.compile(r'(^|/)[^/]+\.test\.ts$')),
    ("*.test.tsx",    re.compile(r'(^|/)[^/]+\.test\.tsx$')),
    ("*.test.js",     re.compile(r'(^|/)[^/]+\.test\.js$')),
    ("*.test.jsx",    re.compile(r'(^|/)[^/]+\.test\.jsx$')),
    ("*.spec.ts",     re.compile(r'(^|/)[^/]+\.spec\.ts$')),
    ("*.spec.tsx",    re.compile(r'(^|/)[^/]+\.spec\.tsx$')),
    ("*.spec.js",     re.compile(r'(^|/)[^/]+\.spec\.js$')),
    ("*.spec.jsx",    re.compile(r'(^|/)[^/]+\.spec\.jsx$')),
    ("*_test.go",     re.compile(r'(^|/)[^/]+_test\.go$')),
    ("*_test.rs",     re.compile(r'(^|/)[^/]+_test\.rs$')),
    ("Test*.java",    re.compile(r'(^|/)Test[^/]+\.java$')),
    ("*Test.java",    re.compile(r'(^|/)[^/]+Test\.java$')),
    ("*_spec.rb",     re.compile(r'(^|/)[^/]+_spec\.rb$')),
]

BARREL_NAMES = frozenset({
    "index.ts", "index.js", "index.tsx", "index.jsx",
    "index.mjs", "index.cjs",
    "__init__.py", "mod.rs",
})


def match_test_pattern(path: str) -> str | None:
    for pattern_name, regex in TEST_PATTERNS:
        if regex.search(path):
            return pattern_name
    return None


def is_barrel(path: str) -> bool:
    return posixpath.basename(path) in BARREL_NAMES


# ---------------------------------------------------------------------------
# Idiom detection
# ---------------------------------------------------------------------------

_HOOK = re.compile(r'^use[A-Z0-9]')
_FACTORY = re.compile(r'^(create|make|build)[A-Z_]|Factory$|_factory$')
_SINGLETON = re.compile(r'^(getInstance|get_instance|instance|sharedInstance)$|Singleton$')
_PASCAL = re.compile(r'^[A-Z][A-Za-z0-9]*$')
_DI_NAMES = re.compile(r'(Provider|Container|Injector|Module)$')

_COMPONENT_EXTENSIONS = frozenset({".jsx", ".tsx", ".vue", ".svelte"})

_DI_LIBRARIES = frozenset({
    "inversify", "tsyringe", "typedi", "@nestjs/common", "@angular/core",
    "injector", "dependency_injector", "punq", "lagom", "wire",
})

IDIOMS: tuple[str, ...] = (
    "hooks",
    "decorators",
    "async",
    "class_components",
    "function_components",
    "factories",
    "singletons",
    "services",
    "repositories",
    "controllers",
    "error_types",
    "dependency_injection",
    "test_files",
    "barrel_files",
)


def _idioms_for_file(file: FileEntry) -> set[str]:
    found: set[str] = set()
    if match_test_pattern(file.path):
        found.add("test_files")
    if is_barrel(file.path):
        found.add("barrel_files")

    stem = file.name.lower()
    if ".service." in stem or stem.split(".")[0].endswith(("service", "_service")):
        found.add("services")
    if "repository" in stem:
        found.add("repositories")
    if "controller" in stem:
        found.add("controllers")

    symbols = file.extracted_symbols
    if symbols is None:
        return found

    component_file = file.extension in _COMPONENT_EXTENSIONS
    for decl in symbols.declared_names:
        name = decl.name.lstrip("_$")
        kind = decl.kind
        if not name:
            continue
        if _HOOK.match(name) and kind in ("function", "hook", "variable", "const", "constant"):
            found.add("hooks")
        if kind == "decorator" or decl.name.startswith("@"):
            found.add("decorators")
        if "async" in kind or "coroutine" in kind:
            found.add("async")
        if kind == "component":
            found.add("function_components")
        elif component_file and _PASCAL.match(name):
            if kind == "class":
                found.add("class_components")
            elif kind in ("function", "variable", "const", "constant"):
                found.add("function_components")
        if _FACTORY.search(name):
            found.add("factories")
        if _SINGLETON.search(name):
            found.add("singletons")
        if name.endswith("Service"):
            found.add("services")
        if name.endswith(("Repository", "Repo")):
            found.add("repositories")
        if name.endswith("Controller"):
            found.add("controllers")
        if kind in ("class", "struct", "enum") and name.endswith(("Error", "Exception")):
            found.add("error_types")
        if kind in ("class", "function", "variable", "const") and _DI_NAMES.search(name):
            found.add("dependency_injection")

    for ref in symbols.imports:
        if ref in _DI_LIBRARIES or ref.split("/")[0] in _DI_LIBRARIES:
            found.add("dependency_injection")
    return found


def detect_code_patterns(sample: list[FileEntry]) -> dict:
    """Count files exhibiting each idiom.

    *sample* is expected in path order (the caller takes the first N);
    examples keep that order.
    """
    examples: dict[str, list[str]] = defaultdict(list)
    counts: Counter = Counter()
    for file in sample:
        for idiom in _idioms_for_file(file):
            counts[idiom] += 1
            if len(examples[idiom]) < _MAX_EXAMPLES:
                examples[idiom].append(file.path)

    idioms = {
        name: {"count": counts[name], "examples": examples[name]}
        for name in IDIOMS
        if counts[name]
    }

    class_c, func_c = counts["class_components"], counts["function_components"]
    if class_c and func_c:
        component_style = "mixed"
    elif class_c:
        component_style = "class"
    elif func_c:
        component_style = "function"
    else:
        component_style = None

    return {
        "sampled_files": len(sample),
        "idioms": idioms,
        "component_style": component_style,
    }
