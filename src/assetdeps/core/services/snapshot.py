from __future__ import annotations

"""
Scan Snapshot Persistence.

Stores the flat asset records and the static analysis of the last
successful scan as JSON. Nothing else is persisted: the node hierarchy and
every cache are always rebuilt from a snapshot on demand.
"""

import json
import logging
import os
from dataclasses import asdict
from typing import Any, Dict, List, Optional, Sequence, Tuple

from assetdeps.domain.asset_models import AssetRecord, PackageSource, StaticAnalysisResult
from assetdeps.domain.constants import UNKNOWN_PACKAGE_NAME
from assetdeps.infra.fs import get_user_data_dir

logger = logging.getLogger(__name__)

SNAPSHOT_FILENAME = "snapshot.json"
SNAPSHOT_SCHEMA_VERSION = 1

Snapshot = Tuple[List[AssetRecord], StaticAnalysisResult]


# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def get_default_snapshot_path() -> str:
    """Location of the snapshot inside the user data directory."""
    return os.path.join(get_user_data_dir(), SNAPSHOT_FILENAME)


def save_snapshot(
        path: str,
        records: Sequence[AssetRecord],
        analysis: StaticAnalysisResult,
) -> bool:
    """
    Write records and analysis to `path`.

    Returns:
        bool: True on success, False if the file could not be written.
    """
    payload = {
        "schema": SNAPSHOT_SCHEMA_VERSION,
        "records": [record_to_dict(r) for r in records],
        "analysis": {k: list(v) for k, v in asdict(analysis).items()},
    }
    try:
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
    except OSError as e:
        logger.error(f"Failed to save snapshot to '{path}': {e}")
        return False

    logger.info(f"Snapshot saved: {path} ({len(records)} records)")
    return True


def load_snapshot(path: str) -> Optional[Snapshot]:
    """
    Read a snapshot written by `save_snapshot`.

    Returns:
        Optional[Snapshot]: (records, analysis), or None if the file is
                            missing, unreadable or from another schema.
    """
    if not os.path.exists(path):
        logger.debug(f"Snapshot not found: {path}")
        return None

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load snapshot '{path}': {e}")
        return None

    if not isinstance(data, dict) or data.get("schema") != SNAPSHOT_SCHEMA_VERSION:
        logger.warning(f"Ignoring snapshot with unsupported schema: {path}")
        return None

    try:
        records = [record_from_dict(item) for item in data.get("records", [])]
        raw_analysis = data.get("analysis", {})
        analysis = StaticAnalysisResult(
            paths_without_own_identifier=tuple(raw_analysis.get("paths_without_own_identifier", [])),
            duplicated_identifiers=tuple(raw_analysis.get("duplicated_identifiers", [])),
            missing_identifiers=tuple(raw_analysis.get("missing_identifiers", [])),
        )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        logger.error(f"Corrupted snapshot '{path}': {e}")
        return None

    return records, analysis


# -----------------------------------------------------------------------------
# SERIALIZATION HELPERS
# -----------------------------------------------------------------------------

def record_to_dict(record: AssetRecord) -> Dict[str, Any]:
    data = asdict(record)
    data["forward_references"] = list(record.forward_references)
    data["back_references"] = list(record.back_references)
    data["package_source"] = record.package_source.value
    return data


def record_from_dict(data: Dict[str, Any]) -> AssetRecord:
    return AssetRecord(
        identifier=data["identifier"],
        file_path=data.get("file_path") or "",
        byte_size=int(data.get("byte_size") or 0),
        forward_references=tuple(data.get("forward_references") or ()),
        back_references=tuple(data.get("back_references") or ()),
        package_name=data.get("package_name") or UNKNOWN_PACKAGE_NAME,
        package_source=PackageSource.parse(data.get("package_source")),
        module_name=data.get("module_name"),
    )
