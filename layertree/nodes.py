"""Paths, file references, tree nodes and the results of node lookups."""

from __future__ import annotations

import itertools
import posixpath
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

DIR_SEPARATOR = "/"
WHITEOUT_PREFIX = ".wh."
OPAQUE_WHITEOUT = ".wh..wh..opq"

_reference_ids = itertools.count(1)


class FileType(Enum):
    """The kind of entry a path refers to."""

    REGULAR = "regular"
    HARD_LINK = "hard-link"
    SYM_LINK = "symlink"
    CHARACTER_DEVICE = "character-device"
    BLOCK_DEVICE = "block-device"
    DIRECTORY = "directory"
    FIFO = "fifo"
    SOCKET = "socket"
    IRREGULAR = "irregular"


@dataclass(frozen=True)
class Reference:
    """A unique handle for a file at a real path; every new reference gets a fresh id."""

    real_path: str
    id: int = field(default_factory=lambda: next(_reference_ids))


@dataclass
class Resolution:
    """The outcome of resolving a requested path, with the links followed on the way."""

    request_path: str
    reference: Reference | None = None
    link_resolutions: list[Resolution] = field(default_factory=list)

    def has_reference(self) -> bool:
        return self.reference is not None

    @property
    def real_path(self) -> str | None:
        return self.reference.real_path if self.reference is not None else None

    @property
    def id(self) -> int | None:
        return self.reference.id if self.reference is not None else None


@dataclass
class FileNode:
    """A single entry stored in the tree, keyed by its real path."""

    real_path: str
    file_type: FileType
    link_path: str = ""
    reference: Reference | None = None

    @property
    def id(self) -> str:
        return self.real_path

    def is_link(self) -> bool:
        return self.file_type in (FileType.SYM_LINK, FileType.HARD_LINK)

    def render_link_destination(self) -> str:
        """Return the absolute path this link points at, or "" when it is not a link."""
        if not self.is_link():
            return ""
        if self.link_path.startswith(DIR_SEPARATOR):
            # absolute link paths are used as given
            return self.link_path
        parent_dir = self.real_path[: self.real_path.rfind(DIR_SEPARATOR) + 1]
        return _clean(posixpath.join(parent_dir, self.link_path))


@dataclass
class NodeAccess:
    """A request into the tree for a path and the node it led to (which may live elsewhere)."""

    request_path: str
    file_node: FileNode | None = None
    leaf_link_resolution: list[NodeAccess] = field(default_factory=list)

    def has_file_node(self) -> bool:
        return self.file_node is not None

    def file_resolution(self) -> Resolution | None:
        if self.file_node is None:
            return None
        return Resolution(
            self.request_path,
            self.file_node.reference,
            new_resolutions(self.leaf_link_resolution),
        )

    def references(self) -> list[Reference]:
        if self.file_node is None:
            return []
        refs = []
        if self.file_node.reference is not None:
            refs.append(self.file_node.reference)
        refs.extend(
            leaf.file_node.reference
            for leaf in self.leaf_link_resolution
            if leaf.file_node is not None and leaf.file_node.reference is not None
        )
        return refs


def new_resolutions(node_path: Iterable[NodeAccess]) -> list[Resolution]:
    """Turn a chain of node accesses into resolutions.

    A final entry that found a node is left out, since the caller already holds it;
    a final dead link is kept.
    """
    entries = list(node_path)
    if entries and entries[-1].file_node is not None:
        entries = entries[:-1]
    return [
        Resolution(
            entry.request_path,
            entry.file_node.reference if entry.file_node is not None else None,
        )
        for entry in entries
    ]


def _clean(path: str) -> str:
    cleaned = posixpath.normpath(path)
    if cleaned.startswith("//"):
        cleaned = DIR_SEPARATOR + cleaned.lstrip(DIR_SEPARATOR)
    return cleaned


def normalize_path(path: str) -> str:
    """Drop leading spaces and trailing separators; an empty result becomes the root."""
    trimmed = path
    if trimmed.strip(" "):
        # trailing whitespace is valid in a path, so only the front is trimmed
        trimmed = trimmed.lstrip(" ")
    trimmed = trimmed.rstrip(DIR_SEPARATOR)
    return trimmed or DIR_SEPARATOR


def parent_path(path: str) -> str:
    """Return the parent of a path; the root has none and raises ValueError."""
    split_at = path.rfind(DIR_SEPARATOR)
    parent, child = path[: split_at + 1], path[split_at + 1:]
    sanitized = normalize_path(parent)
    if sanitized == DIR_SEPARATOR:
        if child:
            return DIR_SEPARATOR
        raise ValueError(f"no parent for path={path!r}")
    return sanitized


def constituent_paths(path: str) -> list[str]:
    """Return every ancestor path below the root, shallowest first (excluding the path itself)."""
    parts = path.strip(DIR_SEPARATOR).split(DIR_SEPARATOR)
    cumulative = itertools.accumulate(parts, lambda acc, part: f"{acc}/{part}", initial="")
    return list(cumulative)[1:-1]


def all_paths(path: str) -> list[str]:
    """Return every ancestor path followed by the path itself."""
    if path == DIR_SEPARATOR:
        return [DIR_SEPARATOR]
    return [*constituent_paths(path), path]


def basename(path: str) -> str:
    """Return the last element of a path, treating trailing separators as absent."""
    if not path:
        return "."
    stripped = path.rstrip(DIR_SEPARATOR)
    if not stripped:
        return DIR_SEPARATOR
    return stripped[stripped.rfind(DIR_SEPARATOR) + 1:]


def is_whiteout(path: str) -> bool:
    return basename(path).startswith(WHITEOUT_PREFIX)


def is_dir_whiteout(path: str) -> bool:
    return basename(path).startswith(OPAQUE_WHITEOUT)


def unwhiteout_path(path: str) -> str:
    """Return the path a whiteout entry hides; raises ValueError for other paths."""
    split_at = path.rfind(DIR_SEPARATOR)
    directory, filename = path[: split_at + 1], path[split_at + 1:]
    if filename.startswith(OPAQUE_WHITEOUT):
        return _clean(directory)
    if filename.startswith(WHITEOUT_PREFIX):
        return _clean(posixpath.join(directory, filename[len(WHITEOUT_PREFIX):]))
    raise ValueError(f"not a whiteout: {path!r}")