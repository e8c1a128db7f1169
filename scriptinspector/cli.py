# scriptinspector/cli.py

from pathlib import Path
from typing import Optional, List

import typer
from loguru import logger

from .services.logging import setup_logging
from .config.loader import get_config, save_config
from .core.bundle_locator import group_bundles_by_priority
from .core.cycles import run_cycle_check, format_report
from .core.models import BundleRecord, TreeNode
from .core.plugins import get_detector_by_name, get_available_detectors
from .core.registry import ScriptRegistry
from .core.tree_model import iter_tree
from . import __version__

# --- Typer App ---
app = typer.Typer(help="ScriptInspector CLI - Index project scripts, list bundles and find circular imports.")

def version_callback(value: bool):
    if value:
        print(f"ScriptInspector CLI Version: {__version__}")
        raise typer.Exit()

@app.callback()
def main_options(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    version: Optional[bool] = typer.Option(None, "--version", callback=version_callback, is_eager=True, help="Show version and exit."),
):
    """ Main callback to set up logging """
    log_level = "DEBUG" if verbose else get_config().log_level
    setup_logging(level=log_level, verbose=verbose)
    ctx.ensure_object(dict)
    ctx.obj["VERBOSE"] = verbose


def _format_size(size_bytes: int) -> str:
    if size_bytes < 1024: return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024: return f"{size_bytes / 1024:.1f} KB"
    else: return f"{size_bytes / (1024 * 1024):.1f} MB"

def render_tree(root: TreeNode) -> List[str]:
    """Indented text rendering of a script tree. Leaves with issues are marked with '!'."""
    lines = []
    for depth, node in iter_tree(root):
        marker = "!" if node.has_issues else " "
        suffix = "/" if node.has_children else ""
        lines.append(f"{marker} {'  ' * depth}{node.label}{suffix}")
    return lines

def render_bundles(bundles: List[BundleRecord], root: Path) -> List[str]:
    lines = []
    for priority, group in group_bundles_by_priority(bundles):
        lines.append(f"Priority={priority}")
        for bundle in group:
            lines.append(f"  {bundle.name}  path: {bundle.relative_path(root)}  "
                         f"files: {bundle.file_count} ({bundle.script_count} scripts)  size: {_format_size(bundle.total_size)}")
    return lines


@app.command()
def inspect(
    root: Path = typer.Option(..., "--root", "-r", help="Project root directory.", file_okay=False, dir_okay=True, resolve_path=True),
    assets: Optional[Path] = typer.Option(None, "--assets", "-a", help="Assets directory (defaults to <root>/<assets_dir_name> from config).", file_okay=False, resolve_path=True),
    cycles: bool = typer.Option(True, "--cycles/--no-cycles", help="Run the external cycle detector."),
    detector: Optional[str] = typer.Option(None, "--detector", "-d", help="Cycle detector name (defaults to config)."),
    tree: bool = typer.Option(True, "--tree/--no-tree", help="Print the script tree."),
):
    """
    Indexes every script under the project root, locates bundles and reports circular dependencies.
    """
    config = get_config()
    if not root.is_dir():
        logger.error(f"Project root does not exist or is not a directory: {root}")
        raise typer.Exit(code=1)
    assets_path = assets if assets is not None else root / config.assets_dir_name

    registry = ScriptRegistry(root)
    scripts_result = registry.load_scripts(root, clear_existing=True)
    if not scripts_result.success:
        logger.error(f"Script scan failed: {scripts_result.error}")
        raise typer.Exit(code=1)
    for warning in scripts_result.warnings: logger.warning(warning)

    bundles_result = registry.load_bundles(assets_path)
    if not bundles_result.success:
        logger.warning(f"Bundle discovery skipped: {bundles_result.error}")
    registry.assign_script_bundles()

    report = None
    if cycles:
        detector_name = detector or config.cycle_detector
        detector_cls = get_detector_by_name(detector_name)
        if detector_cls is None:
            available = ", ".join(d.name for d in get_available_detectors()) or "none"
            logger.error(f"Unknown cycle detector '{detector_name}'. Available: {available}")
            raise typer.Exit(code=1)
        report = run_cycle_check(registry, detector_cls(), assets_path if assets_path.is_dir() else root,
                                 config.detector_options())

    stats = registry.get_statistics()
    typer.echo(f"Scripts: {stats.total_scripts}  Issues: {stats.total_issues}")
    typer.echo("  " + "  ".join(f"{status.value}={count}" for status, count in stats.by_status.items()))

    bundle_stats = registry.get_bundle_statistics()
    typer.echo(f"Bundles: {bundle_stats.bundle_count}  Files: {bundle_stats.total_files}  Size: {_format_size(bundle_stats.total_size)}")
    for line in render_bundles(registry.get_all_bundles(), root): typer.echo(line)

    if report is not None:
        typer.echo(format_report(report))

    if tree:
        tree_root = assets_path if assets_path.is_dir() else root
        for line in render_tree(registry.build_tree(tree_root)): typer.echo(line)


@app.command()
def bundles(
    assets: Path = typer.Option(..., "--assets", "-a", help="Assets directory to search for bundles.", exists=True, file_okay=False, dir_okay=True, readable=True, resolve_path=True),
):
    """Lists bundles grouped by priority (highest first)."""
    registry = ScriptRegistry(assets)
    result = registry.load_bundles(assets)
    if not result.success:
        logger.error(f"Bundle discovery failed: {result.error}")
        raise typer.Exit(code=1)
    stats = registry.get_bundle_statistics()
    typer.echo(f"Bundles: {stats.bundle_count}  Files: {stats.total_files}  Size: {_format_size(stats.total_size)}")
    for line in render_bundles(registry.get_all_bundles(), assets): typer.echo(line)


@app.command("config")
def show_config(
    write_defaults: bool = typer.Option(False, "--write-defaults", help="Save the active configuration to the user config file."),
):
    """Prints the active configuration as JSON."""
    config = get_config()
    typer.echo(config.model_dump_json(indent=4))
    if write_defaults:
        try:
            path = save_config(config)
        except OSError as e:
            logger.error(f"Could not save configuration: {e}")
            raise typer.Exit(code=1)
        typer.echo(f"Configuration written to: {path}")


if __name__ == "__main__":
    app()
