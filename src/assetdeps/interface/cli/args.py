from __future__ import annotations

"""
CLI Argument Definition and Mapping.

Defines the command-line schema and translates the parsed namespace into
configuration overrides understood by the validator.
"""

import argparse
from typing import Any, Dict, List, Optional

# -----------------------------------------------------------------------------
# ARGUMENT DEFINITION
# -----------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    """
    Construct the argument parser for the assetdeps CLI.

    Returns:
        argparse.ArgumentParser: Configured parser instance.
    """
    p = argparse.ArgumentParser(
        prog="assetdeps",
        description="Scan a project's asset metadata and report its dependency graph.",
    )

    # --- Scan Inputs ---
    p.add_argument(
        "-p", "--project",
        dest="project_root",
        default=None,
        help="Project root. Record paths are reported relative to it.",
    )
    p.add_argument(
        "--content-dir",
        dest="content_dir",
        default=None,
        help="Root content directory, relative to the project root.",
    )
    p.add_argument(
        "--package",
        dest="packages",
        action="append",
        default=None,
        metavar="PATH[:SOURCE]",
        help="Extra package directory to scan. May be repeated.",
    )
    p.add_argument(
        "--ext",
        dest="structured_extensions",
        default=None,
        help="Comma-separated extensions whose body is scanned for references.",
    )

    # --- Reports ---
    p.add_argument("--unused", action="store_true", help="List assets nobody references.")
    p.add_argument(
        "--missing",
        action="store_true",
        help="List missing identifiers and the assets referencing them.",
    )
    p.add_argument(
        "--focus",
        dest="focus",
        default=None,
        metavar="PATH",
        help="Node path to report relations for, e.g. 'Assets/Prefabs/Door.prefab'.",
    )
    p.add_argument("--dependencies", action="store_true", help="With --focus: what the focus depends on.")
    p.add_argument("--dependants", action="store_true", help="With --focus: what depends on the focus.")
    p.add_argument(
        "--cyclic",
        action="store_true",
        help="With --focus: nodes that both depend on and are depended on by the focus.",
    )

    # --- History Lookup ---
    p.add_argument(
        "--history",
        action="store_true",
        help="Search version-control history for the former files of missing identifiers.",
    )
    p.add_argument("--repo", dest="repository_root", default=None, help="Repository to search.")
    p.add_argument(
        "--commit-limit",
        dest="commit_limit",
        type=int,
        default=None,
        help="Number of most recent commits to inspect.",
    )

    # --- Persistence ---
    p.add_argument(
        "--save-snapshot",
        dest="save_snapshot",
        action="store_true",
        help="Save the scan records and analysis as JSON.",
    )
    p.add_argument("--snapshot", dest="snapshot_path", default=None, help="Snapshot file location.")
    p.add_argument(
        "--save-config",
        dest="save_config",
        action="store_true",
        help="Remember the resolved configuration as the starting point of later runs.",
    )

    # --- Configuration and Diagnostic Tools ---
    p.add_argument(
        "--use-defaults",
        action="store_true",
        help="Ignore the saved configuration and start from defaults.",
    )
    p.add_argument(
        "--dump-config",
        action="store_true",
        help="Print the resolved configuration and exit.",
    )
    p.add_argument(
        "--debug",
        action="store_true",
        help="Elevate logging verbosity to DEBUG.",
    )
    p.add_argument(
        "--log-file",
        dest="log_file",
        nargs="?",
        const="",
        default=None,
        metavar="PATH",
        help="Also write logs to PATH (default: the user data directory).",
    )

    # --- Format Selection ---
    p.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Print the report as JSON.",
    )

    return p

# -----------------------------------------------------------------------------
# ARGUMENT MAPPING
# -----------------------------------------------------------------------------

def args_to_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Translate the argparse Namespace into configuration overrides.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Dict[str, Any]: Configuration overrides subset.
    """
    overrides: Dict[str, Any] = {}

    overrides["project_root"] = args.project_root
    overrides["content_dir"] = args.content_dir
    overrides["repository_root"] = args.repository_root
    overrides["commit_limit"] = args.commit_limit
    overrides["snapshot_path"] = args.snapshot_path

    if args.structured_extensions:
        overrides["structured_extensions"] = _split_csv(args.structured_extensions)
    if args.packages:
        overrides["packages"] = [_parse_package(value) for value in args.packages]

    return overrides

# -----------------------------------------------------------------------------
# HELPERS
# -----------------------------------------------------------------------------

def _split_csv(value: Optional[str]) -> Optional[List[str]]:
    """Convert a comma-separated string into a list of sanitized strings."""
    if value is None:
        return None
    parts = [x.strip() for x in value.split(",")]
    return [x for x in parts if x]


def _parse_package(value: str) -> Dict[str, str]:
    """Split 'PATH[:SOURCE]'; a drive letter colon is kept in the path."""
    path, sep, source = value.rpartition(":")
    if not sep or not path or "/" in source or "\\" in source:
        return {"path": value}
    return {"path": path, "source": source}
