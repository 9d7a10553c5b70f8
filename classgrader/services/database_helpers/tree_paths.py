# /classgrader/services/database_helpers/tree_paths.py

"""
Pure helpers for addressing the hierarchical store.

A path is a slash separated list of keys ("professors/p1/classes/c1"). The
empty path addresses the root. Values are nested dicts whose scalar leaves are
stored one row per full path; `flatten` and `inflate` convert between the two
shapes. Empty dicts and None values are never stored, so writing either one
removes whatever lived at that path.
"""

from typing import Any, Dict, Iterable, List, Tuple

from ...core.errors import InvalidKeyError

FORBIDDEN_KEY_CHARS = frozenset("/.#$[]")


def validate_key(key) -> str:
    """Returns the key unchanged if it can be used as a single path segment."""
    if not isinstance(key, str) or not key:
        raise InvalidKeyError(f"Invalid key {key!r}: keys must be non-empty strings.")
    bad = FORBIDDEN_KEY_CHARS.intersection(key)
    if bad:
        raise InvalidKeyError(f"Invalid key {key!r}: keys cannot contain {''.join(sorted(bad))!r}.")
    return key


def split_path(path: str) -> List[str]:
    if path is None:
        raise InvalidKeyError("A path is required.")
    segments = [segment for segment in path.strip("/").split("/") if segment]
    for segment in segments:
        validate_key(segment)
    return segments


def join_path(*parts: str) -> str:
    """Joins path fragments, validating every resulting segment."""
    segments: List[str] = []
    for part in parts:
        segments.extend(split_path(part))
    return "/".join(segments)


def is_same_or_descendant(path: str, ancestor: str) -> bool:
    return ancestor == "" or path == ancestor or path.startswith(ancestor + "/")


def paths_overlap(first: str, second: str) -> bool:
    """True when one path addresses the other or a node inside it."""
    return is_same_or_descendant(first, second) or is_same_or_descendant(second, first)


def ancestor_paths(path: str) -> List[str]:
    """Every proper, non-root ancestor of a path, nearest last."""
    segments = split_path(path)
    return ["/".join(segments[:i]) for i in range(1, len(segments))]


def flatten(value: Any, base: str) -> Dict[str, Any]:
    """
    Flattens a nested value into {full_path: scalar}.

    Lists are stored whole as a single JSON leaf.
    """
    if value is None:
        return {}
    if isinstance(value, dict):
        leaves: Dict[str, Any] = {}
        for key, child in value.items():
            child_path = f"{base}/{validate_key(key)}" if base else validate_key(key)
            leaves.update(flatten(child, child_path))
        return leaves
    if not base:
        raise InvalidKeyError("The root of the store can only hold a mapping.")
    return {base: value}


def inflate(rows: Iterable[Tuple[str, Any]], base: str) -> Any:
    """Rebuilds the value stored at `base` from its leaf rows; None if there are none."""
    tree: Dict[str, Any] = {}
    found = False
    for path, value in rows:
        if path == base:
            return value
        relative = path[len(base) + 1:] if base else path
        found = True
        node = tree
        segments = relative.split("/")
        for segment in segments[:-1]:
            node = node.setdefault(segment, {})
        node[segments[-1]] = value
    return tree if found else None
