from __future__ import annotations

"""
Asset Scan Domain Data Models.

Defines the flat, identifier-keyed records produced by the scanner, the
per-file scan entries, the static analysis diagnostics and the factory
functions used to communicate scan outcomes to the rest of the engine.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from assetdeps.domain.constants import UNKNOWN_PACKAGE_NAME

# -----------------------------------------------------------------------------
# CLASSIFICATION
# -----------------------------------------------------------------------------

class PackageSource(str, Enum):
    """Origin of the package that owns an asset."""
    EMBEDDED = "embedded"
    LOCAL = "local"
    REGISTRY = "registry"
    BUILT_IN = "built-in"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: object) -> "PackageSource":
        """Resolve a raw label, falling back to UNKNOWN for unrecognized input."""
        if isinstance(value, PackageSource):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.UNKNOWN

# -----------------------------------------------------------------------------
# CORE DATA MODELS
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class AssetRecord:
    """
    One discovered identifier and everything known about its owning file.

    Attributes:
        identifier: Stable 32-character hexadecimal key.
        file_path: Project-relative path of the owning file, empty if unresolved.
        byte_size: Size of the owning file in bytes.
        forward_references: Identifiers this asset references.
        back_references: Identifiers of assets referencing this one.
        package_name: Name of the package containing the file.
        package_source: Classification of that package.
        module_name: Name of the enclosing module definition, if any.
    """
    identifier: str
    file_path: str = ""
    byte_size: int = 0
    forward_references: Tuple[str, ...] = ()
    back_references: Tuple[str, ...] = ()
    package_name: str = UNKNOWN_PACKAGE_NAME
    package_source: PackageSource = PackageSource.UNKNOWN
    module_name: Optional[str] = None


@dataclass(frozen=True)
class PackageDirectory:
    """
    A directory scanned as one unit, with the package metadata its files inherit.

    Attributes:
        path: Directory path, absolute or relative to the project root.
        package_name: Package label assigned to every file below it.
        package_source: Classification assigned to every file below it.
    """
    path: str
    package_name: str = UNKNOWN_PACKAGE_NAME
    package_source: PackageSource = PackageSource.UNKNOWN


@dataclass(frozen=True)
class FileScan:
    """
    Identifiers extracted from a single asset file.

    Attributes:
        path: Project-relative path of the scanned file.
        own_identifier: Identifier read from the sidecar, None if unknown.
        references: Referenced identifiers in extraction order.
    """
    path: str
    own_identifier: Optional[str]
    references: Tuple[str, ...] = ()


@dataclass(frozen=True)
class StaticAnalysisResult:
    """
    Diagnostics derived from a completed scan.

    Attributes:
        paths_without_own_identifier: Files whose own identifier is unknown.
        duplicated_identifiers: Identifiers claimed by more than one file.
        missing_identifiers: Referenced identifiers without a resolvable file.
    """
    paths_without_own_identifier: Tuple[str, ...] = ()
    duplicated_identifiers: Tuple[str, ...] = ()
    missing_identifiers: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ScanResult:
    """
    Outcome of one scan over the configured directories.

    A cancelled or failed scan never carries records, so callers cannot
    adopt a partial graph by accident.
    """
    ok: bool
    cancelled: bool = False
    error: str = ""
    records: List[AssetRecord] = field(default_factory=list)
    files: List[FileScan] = field(default_factory=list)
    analysis: Optional[StaticAnalysisResult] = None

# -----------------------------------------------------------------------------
# FACTORY FUNCTIONS
# -----------------------------------------------------------------------------

def create_completed_scan_result(
        records: List[AssetRecord],
        files: List[FileScan],
        analysis: StaticAnalysisResult,
) -> ScanResult:
    """Create a successful scan result."""
    return ScanResult(ok=True, records=records, files=files, analysis=analysis)


def create_cancelled_scan_result(reason: str = "Scan cancelled by user.") -> ScanResult:
    """Create the distinguished 'nothing built' result for an aborted scan."""
    return ScanResult(ok=False, cancelled=True, error=reason)


def create_failed_scan_result(error: str) -> ScanResult:
    """Create a result for a scan that could not run at all."""
    return ScanResult(ok=False, error=error)
