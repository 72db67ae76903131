from __future__ import annotations

"""
Global Pytest Configuration and Fixtures.

This module sets up the testing environment, including:
1. Path manipulation to ensure the 'src' directory is importable.
2. Builders for on-disk asset projects and in-memory asset records.
"""

import os
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional

import pytest

# -----------------------------------------------------------------------------
# Path Configuration
# -----------------------------------------------------------------------------
_SRC_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if _SRC_PATH not in sys.path:
    sys.path.insert(0, _SRC_PATH)

from assetdeps.domain.asset_models import AssetRecord, PackageSource  # noqa: E402


def guid(n: int) -> str:
    """Deterministic 32-hex identifier for test number `n`."""
    return f"{n:032x}"


# -----------------------------------------------------------------------------
# Shared Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def make_guid() -> Callable[[int], str]:
    return guid


@pytest.fixture
def asset_project(tmp_path: Path) -> Callable[..., Path]:
    """
    Factory writing one asset (and its sidecar) under `tmp_path`.

    Usage:
        asset_project("Assets/Door.prefab", own=guid(1), refs=[guid(2)])

    References are written into the asset body, so they are only picked up
    for structured-text extensions. `sidecar_refs` go into the sidecar.
    """

    def _make(
            rel_path: str,
            own: Optional[str] = None,
            refs: Iterable[str] = (),
            sidecar_refs: Iterable[str] = (),
            body: str = "",
    ) -> Path:
        asset = tmp_path / rel_path
        asset.parent.mkdir(parents=True, exist_ok=True)

        lines = [body] if body else []
        lines += [f"  m_Script: {{fileID: 11500000, guid: {r}, type: 3}}" for r in refs]
        asset.write_text("\n".join(lines) + "\n", encoding="utf-8")

        if own is not None or sidecar_refs:
            meta = ["fileFormatVersion: 2"]
            if own is not None:
                meta.append(f"guid: {own}")
            meta += [f"  - guid: {r}" for r in sidecar_refs]
            Path(str(asset) + ".meta").write_text("\n".join(meta) + "\n", encoding="utf-8")
        return asset

    return _make


@pytest.fixture
def make_record() -> Callable[..., AssetRecord]:
    """Factory for in-memory records with sensible defaults."""

    def _make(
            identifier: str,
            file_path: str = "",
            forward: Iterable[str] = (),
            back: Iterable[str] = (),
            size: int = 0,
            source: PackageSource = PackageSource.EMBEDDED,
    ) -> AssetRecord:
        return AssetRecord(
            identifier=identifier,
            file_path=file_path,
            byte_size=size,
            forward_references=tuple(forward),
            back_references=tuple(back),
            package_name="Assets",
            package_source=source,
        )

    return _make


@pytest.fixture
def base_config(tmp_path: Path) -> Dict[str, Any]:
    """Validated-shape configuration rooted at `tmp_path`."""
    from assetdeps.domain.config import get_default_config

    config = get_default_config()
    config["project_root"] = str(tmp_path)
    config["snapshot_path"] = str(tmp_path / "snapshot.json")
    return config
