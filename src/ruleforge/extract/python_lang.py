from __future__ import annotations

import ast

from ruleforge.extract.base import SymbolExtractor
from ruleforge.model import ExtractedSymbols, FileEntry

_SCOPES = (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)


def _child_statements(node: ast.AST):
    for child in ast.iter_child_nodes(node):
        if isinstance(child, ast.stmt):
            yield child
        elif isinstance(child, (ast.ExceptHandler, ast.match_case)):
            yield from child.body


def _module_imports(body: list[ast.stmt]) -> list[str]:
    """Imports executed at module level, including under ``if``/``try``.

    ``from . import sibling`` yields ``.sibling`` so the resolver can find
    the sibling module; the resolver falls back to the package itself.
    """
    imports: list[str] = []
    stack = list(reversed(body))
    while stack:
        node = stack.pop()
        if isinstance(node, _SCOPES):
            continue
        if isinstance(node, ast.Import):
            imports.extend(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom):
            dots = "." * node.level
            if node.module or not node.level:
                imports.append(dots + (node.module or ""))
            else:
                names = [alias.name for alias in node.names if alias.name != "*"]
                imports.extend(dots + name for name in names or [""])
        else:
            stack.extend(reversed(list(_child_statements(node))))
    return imports


def _decorator_name(node: ast.expr) -> str:
    if isinstance(node, ast.Call):
        node = node.func
    return "@" + ast.unparse(node)


class PythonExtractor(SymbolExtractor):
    """Module-level imports and declarations via the ``ast`` module.

    Decorators are reported as ``@name`` entries of kind ``decorator``;
    coroutines as ``async function`` / ``async method``.
    """

    @property
    def language_name(self) -> str:
        return "python"

    @property
    def file_extensions(self) -> list[str]:
        return [".py", ".pyi"]

    def extract_symbols(self, file: FileEntry, source: str) -> ExtractedSymbols:
        tree = ast.parse(source, filename=file.path)
        names: list[tuple[str, str]] = []
        for node in tree.body:
            self._collect(node, names, in_class=False)
        return self._make_symbols(_module_imports(tree.body), names)

    def _collect(self, node, names: list[tuple[str, str]], in_class: bool) -> None:
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            for deco in node.decorator_list:
                names.append((_decorator_name(deco), "decorator"))
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            kind = "method" if in_class else "function"
            if isinstance(node, ast.AsyncFunctionDef):
                kind = "async " + kind
            names.append((node.name, kind))
        elif isinstance(node, ast.ClassDef):
            names.append((node.name, "class"))
            for child in node.body:
                self._collect(child, names, in_class=True)
        elif isinstance(node, (ast.Assign, ast.AnnAssign)) and not in_class:
            targets = node.targets if isinstance(node, ast.Assign) else [node.target]
            for target in targets:
                if isinstance(target, ast.Name):
                    kind = "constant" if target.id.isupper() else "variable"
                    names.append((target.id, kind))
