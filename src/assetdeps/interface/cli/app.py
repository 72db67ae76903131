from __future__ import annotations

"""
Command Line Interface (CLI) Application Controller.

Orchestrates the CLI lifecycle: logging bootstrap, configuration merge
(defaults, persisted state, CLI overrides), validation, the project scan and
the rendering of the requested reports in human or JSON form.
"""

import argparse
import json
import os
import sys
from typing import Any, Dict, List, Optional

from assetdeps.core.analysis.filters import SelectionFilter
from assetdeps.core.analysis.relations import Relation, classify, combine_filters, relation_filter
from assetdeps.core.services.dependency_tree import DependencyTree
from assetdeps.core.services.validator import validate_config
from assetdeps.domain.config import get_default_config, load_config, save_config
from assetdeps.domain.node_models import BaseNode, LeafNode
from assetdeps.infra.fs import normalize_path
from assetdeps.infra.logging import LoggingConfig, configure_logging, get_default_log_path, get_logger
from assetdeps.interface.cli import args as cli_args
from assetdeps.utils.formatting import bytes_to_string

logger = get_logger(__name__)

_CONFIG_KEYS = [
    "project_root", "content_dir", "packages", "structured_extensions",
    "repository_root", "commit_limit", "snapshot_path",
]

# -----------------------------------------------------------------------------
# ENTRYPOINT ORCHESTRATOR
# -----------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> int:
    """
    Execute the main CLI application workflow.

    Args:
        argv: Optional list of command line arguments. Defaults to sys.argv.

    Returns:
        int: 0 on success, 1 on failure, 2 for an invalid input path and
             130 when interrupted.
    """
    if sys.platform == "win32":
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8")

    # 1. Argument parsing phase
    parser = cli_args.build_parser()
    args = parser.parse_args(argv)

    # 2. Logging bootstrap (console, plus a rotating file on request)
    log_level = "DEBUG" if args.debug else "INFO"
    log_file = None
    if args.log_file is not None:
        log_file = args.log_file or get_default_log_path()
    configure_logging(LoggingConfig(level=log_level, console=True, log_file=log_file))

    logger.debug("CLI execution initiated. Resolving configuration hierarchy...")

    # 3. Resolve base configuration
    base_conf = get_default_config() if args.use_defaults else load_config()

    # 4. Merge overrides and validate
    overrides = cli_args.args_to_overrides(args)
    clean_conf, warnings = validate_config(_merge_config(base_conf, overrides), strict=False)
    for w in warnings:
        logger.warning(f"Configuration Constraint: {w}")

    if args.dump_config:
        print(json.dumps(clean_conf, ensure_ascii=False, indent=2))
        return 0

    # 5. Pre-flight input verification
    project_root = normalize_path(clean_conf["project_root"], os.getcwd())
    clean_conf["project_root"] = project_root
    if not os.path.isdir(project_root):
        msg = f"Project root does not exist: {project_root}"
        logger.error(msg)
        print(f"ERROR: {msg}", file=sys.stderr)
        return 2

    if args.save_config:
        save_config(clean_conf)

    # 6. Scan and report
    tree = DependencyTree(clean_conf)
    try:
        if not tree.refresh():
            error = tree.last_result.error if tree.last_result else "unknown error"
            print(f"ERROR: Scan failed: {error}", file=sys.stderr)
            return 1

        if args.save_snapshot:
            tree.save_snapshot()

        if args.focus and tree.get_node_from_path(args.focus) is None:
            msg = f"Focus path not found: {args.focus}"
            logger.error(msg)
            print(f"ERROR: {msg}", file=sys.stderr)
            return 2

        if args.history:
            tree.lookup_missing_provenance()

        report = build_report(tree, args)
    except KeyboardInterrupt:
        msg = "Interrupted by user."
        logger.warning(msg)
        print(msg, file=sys.stderr)
        return 130
    except Exception as e:
        msg = f"Dependency analysis failed: {e}"
        logger.critical(msg, exc_info=True)
        print(f"ERROR: {msg}", file=sys.stderr)
        return 1

    # 7. Output rendering phase
    if args.json_output:
        print(json.dumps(report, ensure_ascii=False, indent=2))
    else:
        _print_human_report(report)

    return 0

# -----------------------------------------------------------------------------
# CONFIGURATION MERGING
# -----------------------------------------------------------------------------

def _merge_config(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Shallow merge of known, non-None override values into the base configuration."""
    out = dict(base)
    for k in _CONFIG_KEYS:
        if k in overrides and overrides[k] is not None:
            out[k] = overrides[k]
    return out

# -----------------------------------------------------------------------------
# REPORT MODEL
# -----------------------------------------------------------------------------

def build_report(tree: DependencyTree, args: argparse.Namespace) -> Dict[str, Any]:
    """
    Collect the requested views into a JSON-serializable dictionary.

    Args:
        tree: Facade holding an adopted scan.
        args: Parsed command-line arguments selecting the views.

    Returns:
        Dict[str, Any]: Always contains 'summary'; other keys per flag.
    """
    hierarchy = tree.get_hierarchy()
    root = tree.get_root_node()
    analysis = tree.analysis

    report: Dict[str, Any] = {
        "summary": {
            "project_root": tree.config["project_root"],
            "records": len(tree.records or []),
            "files": len(tree.files),
            "total_size": hierarchy.size(root) if hierarchy and root else 0,
            "paths_without_own_identifier": list(analysis.paths_without_own_identifier),
            "duplicated_identifiers": list(analysis.duplicated_identifiers),
            "missing_identifiers": list(analysis.missing_identifiers),
        }
    }
    if hierarchy is None:
        return report

    if args.unused:
        unused_filter = SelectionFilter(analysis.missing_identifiers, only_unused=True)
        report["unused"] = [
            _leaf_entry(leaf) for leaf in hierarchy.leaves() if not unused_filter(leaf)
        ]

    if args.missing or args.history:
        report["missing"] = [
            {
                "identifier": leaf.identifier,
                "referenced_by": sorted(d.path for d in leaf.dependants),
                "history": tree.get_provenance(leaf.identifier),
            }
            for leaf in tree.missing_nodes()
        ]

    if args.focus:
        focus = tree.get_node_from_path(args.focus)
        if focus is not None:
            report["focus"] = _focus_view(tree, focus, args)

    return report


def _focus_view(tree: DependencyTree, focus: BaseNode, args: argparse.Namespace) -> Dict[str, Any]:
    hierarchy = tree.get_hierarchy()
    only_dependencies = bool(args.dependencies or args.cyclic)
    only_dependants = bool(args.dependants or args.cyclic)
    hide = combine_filters(
        relation_filter(hierarchy, only_dependencies, only_dependants),
        lambda node, f: node is f,
    )

    related = []
    leaves = sorted(hierarchy.nodes_by_identifier.values(), key=lambda n: n.path)
    for leaf in leaves:
        if hide(leaf, focus):
            continue
        relation = classify(hierarchy, focus, leaf)
        if relation is Relation.UNRELATED:
            continue
        entry = _leaf_entry(leaf)
        entry["relation"] = relation.value
        related.append(entry)

    return {"path": focus.path, "size": hierarchy.size(focus), "related": related}


def _leaf_entry(leaf: LeafNode) -> Dict[str, Any]:
    return {
        "path": leaf.path,
        "identifier": leaf.identifier,
        "kind": leaf.kind.value,
        "size": leaf.size,
        "package": leaf.package_name,
    }

# -----------------------------------------------------------------------------
# VIEW RENDERING (HUMAN READABLE)
# -----------------------------------------------------------------------------

def _print_human_report(report: Dict[str, Any]) -> None:
    """Print the report dictionary as a terminal summary."""
    summary = report["summary"]
    print(f"Project: {summary['project_root']}")
    print(f"Identifiers: {summary['records']} ({bytes_to_string(summary['total_size'])})")
    print(f"Files scanned: {summary['files']}")

    diagnostics = {
        "paths_without_own_identifier": "Files without identifier",
        "duplicated_identifiers": "Duplicated identifiers",
        "missing_identifiers": "Missing identifiers",
    }
    for key, label in diagnostics.items():
        values = summary[key]
        print(f"{label}: {len(values)}")
        for value in values:
            print(f"  - {value}")

    if "unused" in report:
        print(f"\nUnused assets ({len(report['unused'])}):")
        for entry in report["unused"]:
            print(f"  - {entry['path']} ({bytes_to_string(entry['size'])})")

    if "missing" in report:
        print(f"\nMissing references ({len(report['missing'])}):")
        for entry in report["missing"]:
            print(f"  - {entry['identifier']}")
            for path in entry["referenced_by"]:
                print(f"      referenced by {path}")
            for path in entry["history"]:
                print(f"      previously at {path}")

    if "focus" in report:
        focus = report["focus"]
        print(f"\n{focus['path']} ({bytes_to_string(focus['size'])}):")
        if not focus["related"]:
            print("  (no related assets)")
        for entry in focus["related"]:
            print(f"  [{entry['relation']}] {entry['path']}")

# -----------------------------------------------------------------------------
# CLI ENTRYPOINT
# -----------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(main())
