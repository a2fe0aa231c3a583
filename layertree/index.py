"""An index of file metadata, searchable by type, MIME type, extension and basename."""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from functools import lru_cache

from layertree.nodes import FileType, Reference, basename

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Metadata:
    """Metadata recorded for a single file."""

    path: str = ""
    link_destination: str = ""
    type: FileType = FileType.REGULAR
    is_dir: bool = False
    mime_type: str = ""
    mode: int = 0
    user_id: int = 0
    group_id: int = 0
    size: int = 0


@dataclass(frozen=True)
class IndexEntry:
    """All stored metadata for a single file reference."""

    reference: Reference
    metadata: Metadata

    @property
    def real_path(self) -> str:
        return self.reference.real_path


@lru_cache(maxsize=256)
def _wildcard_regex(pattern: str) -> re.Pattern[str]:
    parts = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.DOTALL)


class Index:
    """File metadata for file references, catalogued by the reference id."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._entries: dict[int, IndexEntry] = {}
        self._by_file_type: dict[FileType, set[int]] = {}
        self._by_mime_type: dict[str, set[int]] = {}
        self._by_extension: dict[str, set[int]] = {}
        self._by_basename: dict[str, set[int]] = {}
        self._basenames: set[str] = set()

    def add(self, ref: Reference, metadata: Metadata) -> None:
        """Record metadata for a reference, overwriting any existing entry."""
        with self._lock:
            ref_id = ref.id
            if ref_id in self._entries:
                log.debug("overwriting existing file index entry id=%s path=%s", ref_id, ref.real_path)

            if metadata.mime_type:
                # an empty MIME type means the contents were not available to detect one
                self._by_mime_type.setdefault(metadata.mime_type, set()).add(ref_id)

            name = basename(ref.real_path)
            self._by_basename.setdefault(name, set()).add(ref_id)
            self._basenames.add(name)

            for ext in file_extensions(ref.real_path):
                self._by_extension.setdefault(ext, set()).add(ref_id)

            self._by_file_type.setdefault(metadata.type, set()).add(ref_id)
            self._entries[ref_id] = IndexEntry(ref, metadata)

    def exists(self, ref: Reference) -> bool:
        with self._lock:
            return ref.id in self._entries

    def get(self, ref: Reference) -> IndexEntry:
        """Return the entry for a reference; raises FileNotFoundError if absent."""
        with self._lock:
            try:
                return self._entries[ref.id]
            except KeyError:
                raise FileNotFoundError(ref.real_path) from None

    def basenames(self) -> list[str]:
        """Return every indexed basename, sorted."""
        with self._lock:
            return sorted(self._basenames)

    def _collect(self, catalog: dict, keys) -> list[IndexEntry]:
        entries = []
        for key in keys:
            for ref_id in sorted(catalog.get(key, ())):
                entry = self._entries.get(ref_id)
                if entry is None:
                    raise FileNotFoundError(f"no index entry for id={ref_id}")
                entries.append(entry)
        return entries

    def get_by_file_type(self, *args: FileType) -> list[IndexEntry]:
        """Return entries of the given file types, in type order then id order."""
        with self._lock:
            return self._collect(self._by_file_type, args)

    def get_by_mime_type(self, *args: str) -> list[IndexEntry]:
        """Return entries with the given MIME types."""
        with self._lock:
            return self._collect(self._by_mime_type, args)

    def get_by_extension(self, *args: str) -> list[IndexEntry]:
        """Return entries with the given extensions (such as ".txt" or ".tar.gz")."""
        with self._lock:
            return self._collect(self._by_extension, args)

    def get_by_basename(self, *args: str) -> list[IndexEntry]:
        """Return entries with the given basenames; a basename may not contain '/'."""
        with self._lock:
            for name in args:
                if "/" in name:
                    raise ValueError("found directory separator in a basename")
            return self._collect(self._by_basename, args)

    def get_by_basename_glob(self, *args: str) -> list[IndexEntry]:
        """Return entries whose basenames match the given '*' and '?' patterns."""
        with self._lock:
            entries = []
            for pattern in args:
                if "**" in pattern:
                    raise ValueError("basename glob patterns with '**' are not supported")
                if "/" in pattern:
                    raise ValueError("found directory separator in a basename")
                regex = _wildcard_regex(pattern)
                for name in self.basenames():
                    if regex.fullmatch(name):
                        entries.extend(self.get_by_basename(name))
            return entries


def file_extensions(path: str) -> list[str]:
    """Return every extension of a path's basename, shortest first.

    Leading dots (hidden files) are ignored, as are paths ending in '.' or '/'.
    """
    path = path.strip()
    if path.endswith(".") or path.endswith("/"):
        return []
    name = basename(path).lstrip(".")
    return [name[pos:] for pos in range(len(name) - 1, -1, -1) if name[pos] == "."]