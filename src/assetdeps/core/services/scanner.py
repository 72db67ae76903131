from __future__ import annotations

"""
Identifier Scanning Service.

Walks the root content directory and every package directory, extracts the
identifiers found in sidecar metadata and structured-text assets, and
aggregates them into one record per identifier with forward and backward
reference sets, path, size and package provenance.
"""

import json
import logging
import os
import threading
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from assetdeps.core.analysis.static_analyzer import analyze_scan
from assetdeps.domain.asset_models import (
    AssetRecord,
    FileScan,
    PackageDirectory,
    PackageSource,
    ScanResult,
    create_cancelled_scan_result,
    create_completed_scan_result,
    create_failed_scan_result,
)
from assetdeps.domain.constants import (
    BUILTIN_PACKAGE_NAME,
    DEFAULT_STRUCTURED_EXTENSIONS,
    IDENTIFIER_PATTERN,
    MODULE_DEFINITION_EXT,
    SIDECAR_SUFFIX,
    UNKNOWN_PACKAGE_NAME,
)
from assetdeps.infra.fs import to_project_path

logger = logging.getLogger(__name__)


# ==============================================================================
# PUBLIC API (EXTRACTION)
# ==============================================================================

def extract_identifiers(content: str) -> List[str]:
    """Return every identifier in `content`, in order of appearance."""
    return [match.group(1) for match in IDENTIFIER_PATTERN.finditer(content)]


def parse_asset_file(
        file_path: str,
        structured_extensions: Iterable[str],
) -> Tuple[Optional[str], List[str]]:
    """
    Extract the own identifier and the references of one asset file.

    The sidecar is always read; the asset body only when its extension is
    a structured-text one. A missing sidecar does not stop reference
    extraction from the body.

    Args:
        file_path: Absolute path of the asset.
        structured_extensions: Extensions whose body is scanned too.

    Returns:
        Tuple[Optional[str], List[str]]: (own identifier or None,
        distinct references in order of first appearance).
    """
    found: List[str] = []
    sidecar_path = file_path + SIDECAR_SUFFIX

    if os.path.isfile(sidecar_path):
        found.extend(extract_identifiers(_read_text(sidecar_path)))

    own_identifier = found[0] if found else None

    _, ext = os.path.splitext(file_path)
    if ext.lower() in {e.lower() for e in structured_extensions}:
        found.extend(extract_identifiers(_read_text(file_path)))

    references = [i for i in dict.fromkeys(found) if i != own_identifier]
    return own_identifier, references


def yield_asset_files(directory: str) -> Iterable[str]:
    """
    Walk a directory and yield the absolute path of every asset file.

    Sidecar files are never assets in their own right, and hidden
    directories (such as version-control metadata) are pruned.
    """
    for root, dirs, files in os.walk(directory):
        dirs[:] = sorted(d for d in dirs if not d.startswith("."))
        for file_name in sorted(files):
            if file_name.lower().endswith(SIDECAR_SUFFIX):
                continue
            yield os.path.join(root, file_name)


def yield_asset_folders(directory: str) -> Iterable[str]:
    """Walk a directory and yield every non-hidden folder below it."""
    for root, dirs, _ in os.walk(directory):
        dirs[:] = sorted(d for d in dirs if not d.startswith("."))
        for dir_name in dirs:
            yield os.path.join(root, dir_name)


def read_folder_identifier(folder_path: str) -> Optional[str]:
    """Own identifier of a folder, taken from its sidecar, if any."""
    sidecar_path = folder_path + SIDECAR_SUFFIX
    if not os.path.isfile(sidecar_path):
        return None
    identifiers = extract_identifiers(_read_text(sidecar_path))
    return identifiers[0] if identifiers else None


class ModuleNameResolver:
    """
    Finds the module definition enclosing a file.

    The nearest '*.asmdef' in the file's directory or an ancestor (up to the
    scanned directory) names the module. Lookups are cached per directory.
    """

    def __init__(self) -> None:
        self._cache: Dict[str, Optional[str]] = {}

    def resolve(self, file_path: str, stop_dir: str) -> Optional[str]:
        directory = os.path.dirname(os.path.abspath(file_path))
        stop_dir = os.path.abspath(stop_dir)
        visited: List[str] = []
        name: Optional[str] = None

        while True:
            if directory in self._cache:
                name = self._cache[directory]
                break
            visited.append(directory)
            name = self._read_definition_name(directory)
            if name is not None or directory == stop_dir:
                break
            parent = os.path.dirname(directory)
            if parent == directory:
                break
            directory = parent

        for d in visited:
            self._cache[d] = name
        return name

    @staticmethod
    def _read_definition_name(directory: str) -> Optional[str]:
        try:
            entries = sorted(os.listdir(directory))
        except OSError:
            return None
        for entry in entries:
            if not entry.lower().endswith(MODULE_DEFINITION_EXT):
                continue
            definition_path = os.path.join(directory, entry)
            try:
                with open(definition_path, "r", encoding="utf-8-sig") as f:
                    data = json.load(f)
            except (OSError, ValueError) as e:
                logger.warning(f"Unreadable module definition '{definition_path}': {e}")
                continue
            if isinstance(data, dict) and isinstance(data.get("name"), str):
                return data["name"]
        return None


# ==============================================================================
# PUBLIC API (SCAN ORCHESTRATION)
# ==============================================================================

def scan_directories(
        project_root: str,
        directories: Sequence[PackageDirectory],
        *,
        structured_extensions: Optional[Iterable[str]] = None,
        builtin_paths: Optional[Iterable[str]] = None,
        builtin_identifiers: Optional[Mapping[str, str]] = None,
        cancellation_event: Optional[threading.Event] = None,
) -> ScanResult:
    """
    Scan every directory and aggregate the discovered identifiers.

    Cancellation is checked once before each top-level directory. A
    cancelled scan returns a result without records so that no partial
    graph can be adopted.

    Args:
        project_root: Root that record paths are expressed relative to.
        directories: Content and package directories, scanned in order.
        structured_extensions: Extensions whose body is scanned for references.
        builtin_paths: Pseudo-paths of built-in resources.
        builtin_identifiers: Identifier to built-in pseudo-path mapping used to
                             resolve identifiers that no scanned file claims.
        cancellation_event: Event that aborts the scan when set.

    Returns:
        ScanResult: Records, per-file scans and static analysis, or a
                    cancelled/failed result.
    """
    project_root = os.path.abspath(project_root)
    if not os.path.isdir(project_root):
        msg = f"Invalid project root: {project_root}"
        logger.error(msg)
        return create_failed_scan_result(msg)

    extensions = list(structured_extensions or DEFAULT_STRUCTURED_EXTENSIONS)
    builtin_path_set = set(builtin_paths or [])
    drafts: Dict[str, _RecordDraft] = {}
    files: List[FileScan] = []
    module_resolver = ModuleNameResolver()
    folders: List[Tuple[str, PackageDirectory]] = []

    total = len(directories)
    for index, package_dir in enumerate(directories, start=1):
        if cancellation_event is not None and cancellation_event.is_set():
            logger.warning(f"Scan cancelled before directory {index}/{total}.")
            return create_cancelled_scan_result()

        directory = os.path.join(project_root, package_dir.path)
        if not os.path.isdir(directory):
            logger.warning(f"Skipping missing directory: {directory}")
            continue

        logger.info(f"({index}/{total}) Scanning {package_dir.package_name}: {directory}")
        for file_path in yield_asset_files(directory):
            files.append(_scan_file(
                file_path, project_root, directory, package_dir,
                extensions, builtin_path_set, drafts, module_resolver,
            ))
        folders.extend((folder, package_dir) for folder in yield_asset_folders(directory))

    _resolve_folders(drafts, folders, project_root)
    _resolve_unclaimed(drafts, builtin_identifiers or {})

    records = [drafts[identifier].freeze() for identifier in sorted(drafts)]
    analysis = analyze_scan(records, files)

    logger.info(f"Scan complete: {len(files)} files, {len(records)} identifiers.")
    return create_completed_scan_result(records, files, analysis)


# ==============================================================================
# PRIVATE HELPERS
# ==============================================================================

@dataclass
class _RecordDraft:
    """Mutable accumulator for a record while the walk is in progress."""
    identifier: str
    file_path: str = ""
    byte_size: int = 0
    forward: Dict[str, None] = field(default_factory=dict)
    back: Dict[str, None] = field(default_factory=dict)
    package_name: str = UNKNOWN_PACKAGE_NAME
    package_source: PackageSource = PackageSource.UNKNOWN
    module_name: Optional[str] = None

    def freeze(self) -> AssetRecord:
        return AssetRecord(
            identifier=self.identifier,
            file_path=self.file_path,
            byte_size=self.byte_size,
            forward_references=tuple(sorted(self.forward)),
            back_references=tuple(sorted(self.back)),
            package_name=self.package_name,
            package_source=self.package_source,
            module_name=self.module_name,
        )


def _scan_file(
        file_path: str,
        project_root: str,
        directory: str,
        package_dir: PackageDirectory,
        extensions: List[str],
        builtin_paths: Set[str],
        drafts: Dict[str, _RecordDraft],
        module_resolver: ModuleNameResolver,
) -> FileScan:
    """Parse one file and fold its identifiers into the drafts."""
    rel_path = to_project_path(file_path, project_root)
    own_identifier, references = parse_asset_file(file_path, extensions)

    for identifier in references:
        if identifier not in drafts:
            drafts[identifier] = _RecordDraft(identifier)

    if own_identifier is None:
        logger.debug(f"No own identifier for: {rel_path}")
        return FileScan(rel_path, None, tuple(references))

    draft = drafts.get(own_identifier)
    if draft is None:
        draft = drafts[own_identifier] = _RecordDraft(own_identifier)

    for identifier in references:
        draft.forward[identifier] = None
        drafts[identifier].back[own_identifier] = None

    # First claimant keeps the record; later claimants only add references
    if not draft.file_path:
        draft.file_path = rel_path
        if rel_path in builtin_paths:
            _mark_builtin(draft)
        else:
            draft.byte_size = _file_size(file_path)
            draft.package_name = package_dir.package_name
            draft.package_source = package_dir.package_source
            draft.module_name = module_resolver.resolve(file_path, directory)

    return FileScan(rel_path, own_identifier, tuple(references))


def _resolve_folders(
        drafts: Dict[str, _RecordDraft],
        folders: Sequence[Tuple[str, PackageDirectory]],
        project_root: str,
) -> None:
    """
    Give folder paths to referenced identifiers that no file claimed.

    Folders are never claimants, so they neither create records nor
    count towards duplicated identifiers.
    """
    for folder_path, package_dir in folders:
        identifier = read_folder_identifier(folder_path)
        draft = drafts.get(identifier) if identifier else None
        if draft is None or draft.file_path:
            continue
        draft.file_path = to_project_path(folder_path, project_root)
        draft.package_name = package_dir.package_name
        draft.package_source = package_dir.package_source


def _resolve_unclaimed(drafts: Dict[str, _RecordDraft], builtin_identifiers: Mapping[str, str]) -> None:
    """Give built-in pseudo-paths to identifiers no scanned file claimed."""
    for identifier, draft in drafts.items():
        if draft.file_path:
            continue
        pseudo_path = builtin_identifiers.get(identifier)
        if pseudo_path:
            draft.file_path = pseudo_path
            _mark_builtin(draft)


def _mark_builtin(draft: _RecordDraft) -> None:
    draft.package_name = BUILTIN_PACKAGE_NAME
    draft.package_source = PackageSource.BUILT_IN


def _file_size(file_path: str) -> int:
    """Size of a file in bytes, or 0 if it cannot be read."""
    try:
        return os.path.getsize(file_path)
    except OSError as e:
        logger.error(f"Cannot read size of '{file_path}': {e}")
        return 0


def _read_text(file_path: str) -> str:
    """Read a file as text, returning an empty string on failure."""
    try:
        with open(file_path, "r", encoding="utf-8", errors="replace") as f:
            return f.read()
    except OSError as e:
        logger.error(f"Cannot read '{file_path}': {e}")
        return ""
