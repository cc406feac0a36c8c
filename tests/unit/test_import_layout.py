"""
Тесты порядка импортов в модулях src/

В каждой группе импортов (блок без пустых строк) `import x` идут раньше
`from x import y`.
"""

import ast
from pathlib import Path

import pytest

SRC_DIR = Path(__file__).resolve().parents[2] / "src"
MODULES = sorted(SRC_DIR.rglob("*.py"))


def _import_blocks(tree: ast.Module):
    """Группы подряд идущих top-level импортов."""
    blocks = []
    current = []
    last_end = None
    for node in tree.body:
        if not isinstance(node, (ast.Import, ast.ImportFrom)):
            if current:
                blocks.append(current)
                current, last_end = [], None
            continue
        if current and node.lineno > last_end + 1:
            blocks.append(current)
            current = []
        current.append(node)
        last_end = node.end_lineno
    if current:
        blocks.append(current)
    return blocks


def test_modules_found():
    assert len(MODULES) > 10


@pytest.mark.parametrize("path", MODULES, ids=lambda p: str(p.relative_to(SRC_DIR)))
def test_plain_imports_precede_from_imports(path: Path):
    tree = ast.parse(path.read_text(encoding="utf-8"))
    for block in _import_blocks(tree):
        seen_from = False
        for node in block:
            if isinstance(node, ast.ImportFrom):
                seen_from = True
            else:
                assert not seen_from, (
                    f"{path.name}:{node.lineno}: `import` after `from ... import` in one group"
                )
