from __future__ import annotations

"""
Configuration Validation Service.

Gatekeeper between untrusted configuration sources (CLI, persisted JSON)
and the engine. Handles type coercion, default value injection and
normalization of extensions, package entries and built-in identifiers.
"""

import logging
from typing import Any, Dict, List, Tuple

from assetdeps.domain.asset_models import PackageSource
from assetdeps.domain.config import get_default_config
from assetdeps.domain.constants import IDENTIFIER_PATTERN

logger = logging.getLogger(__name__)

_STRING_FIELDS = ["project_root", "content_dir", "repository_root", "snapshot_path"]
_LIST_FIELDS = ["builtin_paths", "structured_extensions"]


# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def validate_config(
        config: Any,
        *,
        strict: bool = False,
) -> Tuple[Dict[str, Any], List[str]]:
    """
    Validate and normalize a configuration dictionary.

    Missing keys are filled with domain defaults. In non-strict mode,
    invalid values are replaced by their default and a warning is recorded.

    Args:
        config: Raw configuration data (usually a dictionary).
        strict: If True, raise on invalid values instead of coercing.

    Returns:
        Tuple[Dict[str, Any], List[str]]: Normalized configuration and warnings.
    """
    warnings: List[str] = []
    defaults = get_default_config()

    if not isinstance(config, dict):
        msg = f"Invalid config type: expected dict, received {type(config).__name__}."
        if strict:
            raise TypeError(msg)
        warnings.append(f"{msg} Using defaults.")
        logger.warning(msg)
        return defaults, warnings

    merged: Dict[str, Any] = dict(defaults)
    merged.update(config)

    for field in _STRING_FIELDS:
        merged[field] = _as_str(merged.get(field), defaults[field], field, warnings, strict)

    for field in _LIST_FIELDS:
        merged[field] = _as_list_str(merged.get(field), defaults[field], field, warnings, strict)

    merged["commit_limit"] = _as_non_negative_int(
        merged.get("commit_limit"), defaults["commit_limit"], "commit_limit", warnings, strict
    )
    merged["structured_extensions"] = _normalize_extensions(
        merged["structured_extensions"], defaults["structured_extensions"], warnings, strict
    )
    merged["builtin_identifiers"] = _normalize_builtin_identifiers(
        merged.get("builtin_identifiers"), defaults["builtin_identifiers"], warnings, strict
    )
    merged["packages"] = _normalize_packages(merged.get("packages"), warnings, strict)

    return merged, warnings


# -----------------------------------------------------------------------------
# PRIVATE HELPERS: TYPE COERCION
# -----------------------------------------------------------------------------

def _fail(msg: str, warnings: List[str], strict: bool, exc: type = TypeError) -> None:
    if strict:
        raise exc(msg)
    warnings.append(f"{msg} Using fallback.")


def _as_str(value: Any, fallback: str, field: str, warnings: List[str], strict: bool) -> str:
    """Validate and sanitize string inputs."""
    if value is None:
        return fallback
    if isinstance(value, str):
        return value.strip()
    _fail(f"Invalid field '{field}': expected str, received {type(value).__name__}.", warnings, strict)
    return fallback


def _as_non_negative_int(value: Any, fallback: int, field: str, warnings: List[str], strict: bool) -> int:
    """Coerce integers, including numeric strings in non-strict mode."""
    if value is None:
        return fallback
    if isinstance(value, str) and not strict:
        try:
            value = int(value.strip())
            warnings.append(f"Field '{field}' converted from string to int.")
        except ValueError:
            pass
    if isinstance(value, int) and not isinstance(value, bool):
        if value >= 0:
            return value
        _fail(f"Invalid field '{field}': must be >= 0.", warnings, strict, ValueError)
        return fallback
    _fail(f"Invalid field '{field}': expected int, received {type(value).__name__}.", warnings, strict)
    return fallback


def _as_list_str(value: Any, fallback: List[str], field: str, warnings: List[str], strict: bool) -> List[str]:
    """Ensure input is a list of sanitized strings, supporting CSV parsing."""
    if value is None:
        return list(fallback)

    if isinstance(value, str) and not strict:
        items = [x.strip() for x in value.split(",") if x.strip()]
        warnings.append(f"Field '{field}' converted from CSV string to list.")
        return items

    if isinstance(value, list):
        out: List[str] = []
        for i, item in enumerate(value):
            if isinstance(item, str) and item.strip():
                out.append(item.strip())
            elif not isinstance(item, str):
                msg = f"Invalid item in '{field}[{i}]': expected str."
                if strict:
                    raise TypeError(msg)
                warnings.append(f"{msg} Item discarded.")
        return out

    _fail(f"Invalid field '{field}': expected list[str], received {type(value).__name__}.", warnings, strict)
    return list(fallback)


# -----------------------------------------------------------------------------
# PRIVATE HELPERS: DOMAIN NORMALIZATION
# -----------------------------------------------------------------------------

def _normalize_extensions(exts: List[str], fallback: List[str], warnings: List[str], strict: bool) -> List[str]:
    """Ensure all extensions are lowercase and prefixed with a dot."""
    out: List[str] = []
    for ext in exts:
        e = ext.strip().lower()
        if not e:
            continue
        if not e.startswith("."):
            if strict:
                raise ValueError(f"Invalid extension '{ext}': must start with '.'.")
            warnings.append(f"Extension '{ext}' corrected to '.{e}'.")
            e = "." + e
        out.append(e)
    return out if out else list(fallback)


def _normalize_builtin_identifiers(
        value: Any,
        fallback: Dict[str, str],
        warnings: List[str],
        strict: bool,
) -> Dict[str, str]:
    """Keep only well-formed identifier to pseudo-path entries."""
    if value is None:
        return dict(fallback)
    if not isinstance(value, dict):
        _fail(
            f"Invalid field 'builtin_identifiers': expected dict, received {type(value).__name__}.",
            warnings, strict,
        )
        return dict(fallback)

    out: Dict[str, str] = {}
    for identifier, path in value.items():
        valid_key = isinstance(identifier, str) and IDENTIFIER_PATTERN.fullmatch(f"guid: {identifier}")
        if valid_key and isinstance(path, str) and path.strip():
            out[identifier] = path.strip()
            continue
        msg = f"Invalid built-in identifier entry: {identifier!r}."
        if strict:
            raise ValueError(msg)
        warnings.append(f"{msg} Entry discarded.")
    return out


def _normalize_packages(value: Any, warnings: List[str], strict: bool) -> List[Dict[str, str]]:
    """
    Normalize package entries to {'name', 'path', 'source'} dictionaries.

    A bare string is accepted as a path; the name then defaults to the
    last path segment and the source to 'unknown'.
    """
    if value is None:
        return []
    if not isinstance(value, list):
        _fail(f"Invalid field 'packages': expected list, received {type(value).__name__}.", warnings, strict)
        return []

    out: List[Dict[str, str]] = []
    for i, item in enumerate(value):
        if isinstance(item, str):
            item = {"path": item}
        if not isinstance(item, dict) or not isinstance(item.get("path"), str) or not item["path"].strip():
            msg = f"Invalid item in 'packages[{i}]': expected an object with a 'path'."
            if strict:
                raise TypeError(msg)
            warnings.append(f"{msg} Item discarded.")
            continue

        path = item["path"].strip()
        name = item.get("name") if isinstance(item.get("name"), str) and item["name"].strip() else None
        source = PackageSource.parse(item.get("source", PackageSource.UNKNOWN.value))
        if item.get("source") is not None and source.value != str(item["source"]).strip().lower():
            warnings.append(f"Unknown package source {item['source']!r} for '{path}', using 'unknown'.")

        out.append({
            "name": (name or path.replace("\\", "/").rstrip("/").split("/")[-1]).strip(),
            "path": path,
            "source": source.value,
        })
    return out
