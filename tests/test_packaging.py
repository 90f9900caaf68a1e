"""
Every third-party module the package imports is declared in pyproject.toml.
"""

import ast
import re
import sys
from importlib.metadata import packages_distributions
from pathlib import Path

import pytest

tomllib = pytest.importorskip("tomllib")

pytestmark = pytest.mark.unit

ROOT = Path(__file__).resolve().parent.parent
PACKAGE_DIR = ROOT / "backend" / "bug_reader"


def _normalize(name: str) -> str:
    return re.sub(r"[-_.]+", "-", name).lower()


def _declared_distributions() -> set:
    with open(ROOT / "pyproject.toml", "rb") as f:
        project = tomllib.load(f)["project"]
    return {_normalize(re.split(r"[<>=!~;\[ ]", dep, 1)[0]) for dep in project["dependencies"]}


def _imported_top_level_modules() -> set:
    modules = set()
    for path in PACKAGE_DIR.glob("*.py"):
        for node in ast.walk(ast.parse(path.read_text(encoding="utf-8"))):
            if isinstance(node, ast.Import):
                modules.update(alias.name.split(".")[0] for alias in node.names)
            elif isinstance(node, ast.ImportFrom) and node.level == 0 and node.module:
                modules.add(node.module.split(".")[0])
    return {m for m in modules if m not in sys.stdlib_module_names and m != "__future__"}


def test_markupsafe_is_declared():
    assert "markupsafe" in _declared_distributions()


def test_every_imported_library_is_declared():
    declared = _declared_distributions()
    providers = packages_distributions()

    undeclared = []
    for module in sorted(_imported_top_level_modules()):
        dists = {_normalize(d) for d in providers.get(module, [module])}
        if not dists & declared:
            undeclared.append(module)

    assert undeclared == []
