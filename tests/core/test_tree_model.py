from pathlib import Path

from scriptinspector.core.models import Issue, ScriptRecord
from scriptinspector.core.tree_model import build_script_tree, iter_tree, leaf_nodes


def _script(path: Path) -> ScriptRecord:
    return ScriptRecord(path=path, name=path.name, extension=path.suffix, size=0, mod_time=0.0,
                        relative_path=path.name)


def _shape(node):
    return (node.label, node.path, node.is_leaf, node.has_issues, [_shape(c) for c in node.children])


def test_shared_directory_becomes_single_expandable_node():
    assets = Path("/proj/assets")
    x, y = _script(assets / "a" / "x.ts"), _script(assets / "a" / "y.ts")
    root = build_script_tree([x, y], assets)

    assert root.label == "assets" and root.path == assets
    assert root.has_children and not root.is_leaf
    [a] = root.children
    assert a.label == "a" and a.has_children and a.script is None
    assert [c.label for c in a.children] == ["x.ts", "y.ts"]
    for leaf, script in zip(a.children, (x, y)):
        assert leaf.is_leaf and not leaf.has_children
        assert leaf.children == []
        assert leaf.script is script
        assert leaf.path == script.path


def test_children_follow_processing_order_not_name_order():
    assets = Path("/proj/assets")
    root = build_script_tree([_script(assets / "z.ts"), _script(assets / "b" / "a.ts"), _script(assets / "c.ts")], assets)
    assert [c.label for c in root.children] == ["z.ts", "b", "c.ts"]


def test_scripts_outside_assets_root_are_skipped():
    assets = Path("/proj/assets")
    root = build_script_tree([_script(Path("/proj/scripts/build.ts")), _script(Path("/proj/assets2/x.ts")),
                              _script(assets / "in.ts")], assets)
    assert [c.label for c in root.children] == ["in.ts"]


def test_has_issues_marks_only_leaves_with_issues():
    assets = Path("/proj/assets")
    bad, good = _script(assets / "a" / "bad.ts"), _script(assets / "a" / "good.ts")
    bad.issues.append(Issue(kind="circular-dependency", message="bad.ts > good.ts"))
    root = build_script_tree([bad, good], assets)
    flags = {n.label: n.has_issues for _, n in iter_tree(root)}
    assert flags == {"assets": False, "a": False, "bad.ts": True, "good.ts": False}


def test_rebuild_is_structurally_identical_and_not_shared():
    assets = Path("/proj/assets")
    scripts = [_script(assets / "a" / "x.ts"), _script(assets / "a" / "y.ts"), _script(assets / "b" / "c" / "d.ts")]
    first, second = build_script_tree(scripts, assets), build_script_tree(scripts, assets)
    assert _shape(first) == _shape(second)
    assert first is not second and first.children[0] is not second.children[0]


def test_empty_script_list_gives_bare_root():
    root = build_script_tree([], Path("/proj/assets"))
    assert root.children == [] and root.has_children


def test_leaf_nodes_walk():
    assets = Path("/proj/assets")
    root = build_script_tree([_script(assets / "a" / "x.ts"), _script(assets / "y.ts")], assets)
    assert [n.label for n in leaf_nodes(root)] == ["x.ts", "y.ts"]
    assert [d for d, _ in iter_tree(root)] == [0, 1, 2, 1]
