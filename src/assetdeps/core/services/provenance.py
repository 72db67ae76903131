from __future__ import annotations

"""
History Provenance Search.

Guesses which historical file a missing identifier used to belong to by
searching the sidecar metadata blobs of recent commits for the identifier
text. Blobs are content-addressed, so a sidecar unchanged across commits is
read only once.

This is a heuristic. Identifiers that were never committed cannot be found,
and a coincidental textual match yields a false positive that is not
corrected for.
"""

import logging
import os
import threading
from typing import Dict, Iterable, List, Optional, Set, Union

from git import Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError
from git.objects import Blob, Tree

from assetdeps.domain.constants import SIDECAR_SUFFIX
from assetdeps.domain.node_models import LeafNode

logger = logging.getLogger(__name__)

# Same window git itself inspects when deciding whether content is binary
_BINARY_SNIFF_BYTES = 8000

MissingReference = Union[LeafNode, str]


# ==============================================================================
# PUBLIC API
# ==============================================================================

def discover_repository(path: str) -> Optional[Repo]:
    """Open the repository containing `path`, or return None if there is none."""
    try:
        return Repo(path, search_parent_directories=True)
    except (InvalidGitRepositoryError, NoSuchPathError):
        return None


def lookup_missing_references(
        missing: Iterable[MissingReference],
        repository_root: str,
        commit_limit: int,
        *,
        cancellation_event: Optional[threading.Event] = None,
) -> Optional[Dict[str, List[str]]]:
    """
    Search recent history for the files that carried each missing identifier.

    Args:
        missing: Missing leaf nodes or bare identifiers.
        repository_root: Any path inside the repository to search.
        commit_limit: Number of most recent commits (from HEAD) to inspect.
        cancellation_event: Checked before each commit; when set, the
                            results gathered so far are returned.

    Returns:
        Optional[Dict[str, List[str]]]: Identifier to sorted candidate paths,
        only for identifiers with at least one hit. None if `repository_root`
        is not inside a repository.
    """
    repo = discover_repository(repository_root)
    if repo is None:
        logger.info(f"No repository found at '{repository_root}'. Skipping history lookup.")
        return None

    identifiers = [m.identifier if isinstance(m, LeafNode) else m for m in missing]
    search = HistorySearch(identifiers, repo.working_tree_dir or "")

    try:
        for index, commit in enumerate(repo.iter_commits(max_count=max(commit_limit, 0)), start=1):
            if cancellation_event is not None and cancellation_event.is_set():
                logger.warning(f"History lookup cancelled after {index - 1} commits.")
                break
            search.scan_tree(commit.tree)
    except (ValueError, GitCommandError) as e:
        # An empty repository has no HEAD to walk from
        logger.warning(f"Cannot walk history of '{repository_root}': {e}")
    finally:
        repo.close()

    logger.info(
        f"History lookup checked {search.blobs_read} sidecar blobs, "
        f"found candidates for {len(search.candidates)}/{len(identifiers)} identifiers."
    )
    return search.results()


class HistorySearch:
    """
    Accumulates candidate paths for a fixed set of identifiers across trees.

    Attributes:
        identifiers: Identifiers being searched for.
        checked_blobs: SHAs of every sidecar blob already inspected.
        blobs_read: Number of blobs whose text was actually searched.
        candidates: Identifier to set of candidate paths.
    """

    def __init__(self, identifiers: Iterable[str], working_dir: str = "") -> None:
        self.identifiers = list(dict.fromkeys(identifiers))
        self.working_dir = working_dir
        self.checked_blobs: Set[str] = set()
        self.blobs_read = 0
        self.candidates: Dict[str, Set[str]] = {}

    def scan_tree(self, tree: Tree) -> None:
        """Recursively inspect every sidecar blob in `tree`."""
        for blob in tree.blobs:
            self.scan_blob(blob)
        for subtree in tree.trees:
            self.scan_tree(subtree)

    def scan_blob(self, blob: Blob) -> None:
        if not blob.name.endswith(SIDECAR_SUFFIX):
            return
        if blob.hexsha in self.checked_blobs:
            return
        self.checked_blobs.add(blob.hexsha)

        data = blob.data_stream.read()
        if _is_binary(data):
            logger.debug(f"Skipping binary sidecar blob: {blob.path}")
            return

        self.blobs_read += 1
        self.scan_text(data.decode("utf-8", errors="replace"), self._file_path(blob.path))

    def scan_text(self, content: str, file_path: str) -> None:
        """Record `file_path` against every identifier that occurs in `content`."""
        for identifier in self.identifiers:
            if identifier in content:
                self.candidates.setdefault(identifier, set()).add(file_path)

    def results(self) -> Dict[str, List[str]]:
        return {identifier: sorted(paths) for identifier, paths in self.candidates.items()}

    def _file_path(self, repo_path: str) -> str:
        if not self.working_dir:
            return repo_path
        return os.path.join(self.working_dir, *repo_path.split("/"))


# ==============================================================================
# PRIVATE HELPERS
# ==============================================================================

def _is_binary(data: bytes) -> bool:
    return b"\0" in data[:_BINARY_SNIFF_BYTES]
