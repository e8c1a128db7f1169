# scriptinspector/core/tree_model.py
from pathlib import Path
from typing import Dict, List, Iterable

from loguru import logger

from .models import ScriptRecord, TreeNode

def build_script_tree(scripts: Iterable[ScriptRecord], assets_root: Path) -> TreeNode:
    """
    Builds a directory tree rooted at `assets_root` from a flat script list.

    Nodes are looked up by their cumulative path, so scripts sharing a directory share one
    ancestor node. Children appear in script processing order (not sorted). Scripts outside
    the assets root are left out.
    """
    root = TreeNode(label=assets_root.name or str(assets_root), path=assets_root)
    node_map: Dict[Path, TreeNode] = {assets_root: root}
    skipped = 0

    for script in scripts:
        try:
            parts = script.path.relative_to(assets_root).parts
        except ValueError:
            skipped += 1
            continue
        if not parts:
            skipped += 1
            continue

        current_path = assets_root
        parent = root
        last = len(parts) - 1
        for i, part in enumerate(parts):
            current_path = current_path / part
            node = node_map.get(current_path)
            if node is None:
                is_leaf = i == last
                node = TreeNode(label=part, path=current_path, is_leaf=is_leaf)
                if is_leaf:
                    node.script = script
                    node.has_issues = len(script.issues) > 0
                node_map[current_path] = node
                parent.children.append(node)
            parent = node

    if skipped: logger.debug(f"Tree build skipped {skipped} scripts outside {assets_root}")
    return root

def iter_tree(node: TreeNode, depth: int = 0):
    """Depth-first (pre-order) walk yielding (depth, node)."""
    yield depth, node
    for child in node.children:
        yield from iter_tree(child, depth + 1)

def leaf_nodes(node: TreeNode) -> List[TreeNode]:
    return [n for _, n in iter_tree(node) if n.is_leaf]
