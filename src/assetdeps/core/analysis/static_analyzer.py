from __future__ import annotations

"""
Static Analysis of Completed Scans.

Derives the missing, duplicated and unidentified diagnostics from the flat
records and per-file scans. The analysis runs only once the walk has
finished, so its outcome does not depend on the order files were visited.
"""

import logging
from typing import Dict, Iterable, Set

from assetdeps.domain.asset_models import AssetRecord, FileScan, StaticAnalysisResult

logger = logging.getLogger(__name__)


def analyze_scan(records: Iterable[AssetRecord], files: Iterable[FileScan]) -> StaticAnalysisResult:
    """
    Compute the diagnostics of a completed scan.

    Args:
        records: Every record produced by the scan.
        files: Every per-file scan entry, in any order.

    Returns:
        StaticAnalysisResult: Sorted, immutable diagnostic sets.
    """
    without_identifier: Set[str] = set()
    claims: Dict[str, Set[str]] = {}

    for file_scan in files:
        if file_scan.own_identifier is None:
            without_identifier.add(file_scan.path)
            continue
        claims.setdefault(file_scan.own_identifier, set()).add(file_scan.path)

    duplicated = sorted(identifier for identifier, paths in claims.items() if len(paths) > 1)

    # Records only exist because something mentioned them, so a record that
    # never got a path is a dangling reference.
    missing = sorted(record.identifier for record in records if not record.file_path)

    result = StaticAnalysisResult(
        paths_without_own_identifier=tuple(sorted(without_identifier)),
        duplicated_identifiers=tuple(duplicated),
        missing_identifiers=tuple(missing),
    )

    logger.info(
        f"Static analysis: {len(missing)} missing, {len(duplicated)} duplicated, "
        f"{len(without_identifier)} without identifier."
    )
    for identifier in duplicated:
        logger.warning(f"Identifier {identifier} claimed by: {', '.join(sorted(claims[identifier]))}")

    return result
