"""A read-only file system view of a file tree, and glob matching against it."""

from __future__ import annotations

import posixpath
import re
import stat as _stat
from dataclasses import dataclass, field
from typing import Iterator

from layertree.link_strategy import LinkResolutionStrategy
from layertree.nodes import FileNode, FileType, all_paths, basename
from layertree.resolver import LinkCycleError, LinkResolutionDepthError, LinkResolver

_FOLLOW_ALL = LinkResolutionStrategy(follow_ancestor_links=True, follow_basename_links=True)
_FOLLOW_ANCESTORS = LinkResolutionStrategy(follow_ancestor_links=True)

_RESOLUTION_ERRORS = (LinkCycleError, LinkResolutionDepthError)
_LOOKUP_ERRORS = (FileNotFoundError, *_RESOLUTION_ERRORS)


@dataclass
class FileInfo:
    """What a lookup reports about a path; only the directory and link bits are meaningful."""

    virtual_path: str
    node: FileNode

    @property
    def name(self) -> str:
        return basename(self.virtual_path)

    def mode(self) -> int:
        """Return permission and type bits: 0o755 plus the directory or symlink bit."""
        mode = 0o755
        if self.is_dir():
            mode |= _stat.S_IFDIR
        # hardlinks need resolution in the tree just like symlinks, so both report as links
        if self.node.file_type in (FileType.SYM_LINK, FileType.HARD_LINK):
            mode |= _stat.S_IFLNK
        return mode

    def is_dir(self) -> bool:
        return self.node.file_type is FileType.DIRECTORY

    @property
    def is_symlink(self) -> bool:
        return _stat.S_ISLNK(self.mode())


def is_in_path_resolution_loop(path: str, tree: LinkResolver) -> bool:
    """Whether a path doubles back on one of its own ancestors more than once.

    The first pass down a self-referencing path is allowed; a second one is not.
    ``tree`` is the resolver used to look paths up.
    """
    paths = all_paths(path)
    resolved: set[str] = set()
    for candidate in paths:
        access = tree.node(candidate, _FOLLOW_ALL)
        if access.file_node is not None:
            resolved.add(access.file_node.id)
    return len(paths) - len(resolved) > 1


@dataclass
class GlobFS:
    """Answers stat, lstat and directory listings for a file tree."""

    resolver: LinkResolver
    do_not_follow_dead_basename_links: bool = False

    def _list(self, name: str, limit: int = -1) -> list[FileInfo]:
        access = self.resolver.node(name, _FOLLOW_ALL)
        if access.file_node is None:
            return []
        if is_in_path_resolution_loop(name, self.resolver):
            return []

        entries = []
        for position, child in enumerate(self.resolver.tree.children(access.file_node)):
            if position == limit and limit != -1:
                break
            request_path = posixpath.join(name, basename(child.id))
            try:
                entries.append(self.lstat(request_path))
            except FileNotFoundError:
                continue
        return entries

    def read_dir(self, name: str) -> list[FileInfo]:
        """List a directory as lstat would describe each entry; raises on link cycles."""
        return self._list(name)

    def lstat(self, name: str) -> FileInfo:
        """Describe a path without following a link at its basename."""
        access = self.resolver.node(name, _FOLLOW_ANCESTORS)
        if access.file_node is None:
            raise FileNotFoundError(name)
        return FileInfo(name, access.file_node)

    def stat(self, name: str) -> FileInfo:
        """Describe a path, following links at its basename."""
        strategy = LinkResolutionStrategy(
            follow_ancestor_links=True,
            follow_basename_links=True,
            do_not_follow_dead_basename_links=self.do_not_follow_dead_basename_links,
        )
        access = self.resolver.node(name, strategy)
        if access.file_node is None:
            raise FileNotFoundError(name)
        return FileInfo(name, access.file_node)

    def open(self, name: str) -> DirHandle:
        return DirHandle(self, name)


@dataclass
class DirHandle:
    """An open path within a GlobFS, used to list a directory."""

    fs: GlobFS
    name: str
    closed: bool = field(default=False, init=False)

    def read_dir(self, n: int = -1) -> list[FileInfo]:
        """List the directory; with ``n`` other than -1 only the first ``n`` children are read."""
        return self.fs._list(self.name, n)

    def stat(self) -> FileInfo:
        return self.fs.stat(self.name)

    def close(self) -> None:
        """Mark the handle closed; it holds no resources to release."""
        self.closed = True

    def __enter__(self) -> DirHandle:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _bad_pattern(pattern: str) -> ValueError:
    return ValueError(f"syntax error in pattern: {pattern!r}")


def _class_end(pattern: str, start: int) -> int:
    """Return the index of the ']' closing the class opened at ``start``."""
    pos = start + 1
    if pos < len(pattern) and pattern[pos] in "!^":
        pos += 1
    body_start = pos
    while pos < len(pattern):
        char = pattern[pos]
        if char == "\\":
            pos += 2
            continue
        if char == "]":
            if pos == body_start:
                raise _bad_pattern(pattern)
            return pos
        pos += 1
    raise _bad_pattern(pattern)


def _validate(pattern: str) -> None:
    depth = 0
    pos = 0
    while pos < len(pattern):
        char = pattern[pos]
        if char == "\\":
            pos += 2
            continue
        if char == "[":
            pos = _class_end(pattern, pos) + 1
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth < 0:
                raise _bad_pattern(pattern)
        pos += 1
    if depth:
        raise _bad_pattern(pattern)


def _expand_braces(pattern: str) -> Iterator[str]:
    """Expand every {a,b} alternation into separate patterns (nesting allowed)."""
    pos = 0
    start = -1
    while pos < len(pattern):
        char = pattern[pos]
        if char == "\\":
            pos += 2
            continue
        if char == "[":
            pos = _class_end(pattern, pos) + 1
            continue
        if char == "{":
            start = pos
            break
        pos += 1
    if start == -1:
        yield pattern
        return

    depth = 0
    alternatives = []
    section_start = start + 1
    pos = start
    while pos < len(pattern):
        char = pattern[pos]
        if char == "\\":
            pos += 2
            continue
        if char == "[":
            pos = _class_end(pattern, pos) + 1
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                alternatives.append(pattern[section_start:pos])
                break
        elif char == "," and depth == 1:
            alternatives.append(pattern[section_start:pos])
            section_start = pos + 1
        pos += 1
    else:
        raise _bad_pattern(pattern)

    prefix, suffix = pattern[:start], pattern[pos + 1:]
    for alternative in alternatives:
        yield from _expand_braces(prefix + alternative + suffix)


def _has_meta(component: str) -> bool:
    pos = 0
    while pos < len(component):
        char = component[pos]
        if char == "\\":
            pos += 2
            continue
        if char in "*?[":
            return True
        pos += 1
    return False


def _unescape(component: str) -> str:
    return re.sub(r"\\(.)", r"\1", component)


def _class_regex(body: str) -> str:
    negate = body[:1] in ("!", "^")
    if negate:
        body = body[1:]
    tokens: list[tuple[str, bool]] = []
    pos = 0
    while pos < len(body):
        if body[pos] == "\\" and pos + 1 < len(body):
            tokens.append((body[pos + 1], True))
            pos += 2
        else:
            tokens.append((body[pos], False))
            pos += 1
    parts = []
    for position, (char, escaped) in enumerate(tokens):
        is_range = char == "-" and not escaped and 0 < position < len(tokens) - 1
        parts.append("-" if is_range else re.escape(char))
    return "[" + ("^" if negate else "") + "".join(parts) + "]"


def _component_regex(component: str) -> re.Pattern[str]:
    out = []
    pos = 0
    while pos < len(component):
        char = component[pos]
        if char == "\\":
            pos += 1
            out.append(re.escape(component[pos] if pos < len(component) else "\\"))
        elif char == "*":
            out.append("[^/]*")
        elif char == "?":
            out.append("[^/]")
        elif char == "[":
            end = _class_end(component, pos)
            out.append(_class_regex(component[pos + 1:end]))
            pos = end
        else:
            out.append(re.escape(char))
        pos += 1
    return re.compile("".join(out), re.DOTALL)


def _entries(fs: GlobFS, directory: str) -> list[FileInfo]:
    try:
        return fs.read_dir(directory)
    except _RESOLUTION_ERRORS:
        return []


def _is_dir(fs: GlobFS, path: str, info: FileInfo) -> bool:
    if info.is_symlink:
        try:
            return fs.stat(path).is_dir()
        except _LOOKUP_ERRORS:
            return False
    return info.is_dir()


def _exists(fs: GlobFS, path: str) -> bool:
    try:
        fs.stat(path)
    except _LOOKUP_ERRORS:
        return False
    return True


def _double_star(fs: GlobFS, directory: str, include_files: bool) -> Iterator[str]:
    yield directory
    for info in _entries(fs, directory):
        child = posixpath.join(directory, info.name)
        if _is_dir(fs, child, info):
            yield from _double_star(fs, child, include_files)
        elif include_files:
            yield child


def _match(fs: GlobFS, directory: str, components: list[str]) -> Iterator[str]:
    component, rest = components[0], components[1:]

    if component == "**":
        if not rest:
            yield from _double_star(fs, directory, True)
            return
        for found in _double_star(fs, directory, False):
            yield from _match(fs, found, rest)
        return

    if rest and not _has_meta(component):
        yield from _match(fs, posixpath.join(directory, _unescape(component)), rest)
        return

    regex = _component_regex(component)
    for info in _entries(fs, directory):
        if not regex.fullmatch(info.name):
            continue
        child = posixpath.join(directory, info.name)
        if not rest:
            yield child
        elif _is_dir(fs, child, info):
            yield from _match(fs, child, rest)


def _glob_expanded(fs: GlobFS, pattern: str) -> Iterator[str]:
    components = [part for part in pattern.split("/") if part]
    if not any(_has_meta(part) for part in components):
        path = "/" + "/".join(_unescape(part) for part in components)
        if _exists(fs, path):
            yield path
        return
    yield from _match(fs, "/", components)


def glob(fs: GlobFS, pattern: str) -> list[str]:
    """Return the absolute paths matching a pattern, each once.

    Patterns are matched from the root and support '*', '?', '[...]' classes,
    '{a,b}' alternations and '**' for any number of directories. Links to
    directories are descended into. Raises ValueError for a malformed pattern.
    """
    _validate(pattern)
    found: dict[str, None] = {}
    for expanded in _expand_braces(pattern):
        for match in _glob_expanded(fs, expanded):
            found.setdefault(match, None)
    return list(found)