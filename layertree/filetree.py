"""A tree of file paths with symlink-aware lookups, globbing and layer merging."""

from __future__ import annotations

import dataclasses
import posixpath
from typing import Iterable

from layertree.glob import GlobFS, glob
from layertree.link_strategy import (
    LinkResolutionOption,
    LinkResolutionStrategy,
    new_link_resolution_strategy,
)
from layertree.nodes import (
    DIR_SEPARATOR,
    OPAQUE_WHITEOUT,
    FileNode,
    FileType,
    NodeAccess,
    Reference,
    Resolution,
    basename,
    constituent_paths,
    is_dir_whiteout,
    is_whiteout,
    new_resolutions,
    normalize_path,
    parent_path,
    unwhiteout_path,
)
from layertree.resolver import LinkCycleError, LinkResolutionDepthError, LinkResolver
from layertree.store import Tree

_NO_LINKS = LinkResolutionStrategy()
_FOLLOW_ALL = LinkResolutionStrategy(follow_ancestor_links=True, follow_basename_links=True)
_FOLLOW_ANCESTORS = LinkResolutionStrategy(follow_ancestor_links=True)

_LOOKUP_ERRORS = (LinkCycleError, LinkResolutionDepthError, ValueError)


class RemovingRootError(ValueError):
    """The root path cannot be removed from a file tree."""

    def __init__(self, message: str = "cannot remove the root path (`/`) from the FileTree") -> None:
        super().__init__(message)


class FileTree:
    """A file and directory tree rooted at "/"."""

    def __init__(self) -> None:
        self._tree = Tree()
        self._tree.add_root(FileNode(DIR_SEPARATOR, FileType.DIRECTORY))
        self._resolver = LinkResolver(self._tree)

    @property
    def tree(self) -> Tree:
        """The underlying node tree, for traversal."""
        return self._tree

    @property
    def resolver(self) -> LinkResolver:
        """The resolver used for path lookups in this tree."""
        return self._resolver

    def copy(self) -> FileTree:
        """Return an independent copy of this tree."""
        other = FileTree()
        other._tree = self._tree.copy()
        other._resolver = LinkResolver(other._tree)
        return other

    def all_files(self, *args: FileType) -> list[Reference]:
        """Return references of every node of the given types (regular files by default)."""
        wanted = set(args) or {FileType.REGULAR}
        return [
            node.reference
            for node in self._tree.nodes()
            if node.file_type in wanted and node.reference is not None
        ]

    def all_real_paths(self) -> list[str]:
        return [node.real_path for node in self._tree.nodes()]

    def list_paths(self, directory: str) -> list[str]:
        """List the paths directly within a directory, as seen through ``directory``."""
        access = self._resolver.node(directory, _FOLLOW_ALL)
        if access.file_node is None or access.file_node.file_type is not FileType.DIRECTORY:
            return []

        listing = []
        for child in self._tree.children(access.file_node):
            child_access = self._resolver.node(child.real_path, _FOLLOW_ANCESTORS)
            listing.append(posixpath.join(directory, basename(child_access.file_node.real_path)))
        return listing

    def file(self, path: str, *args: LinkResolutionOption) -> tuple[bool, Resolution | None]:
        """Look up a path; return whether it exists and how it resolved.

        Raises LinkCycleError or LinkResolutionDepthError when links cannot be resolved.
        """
        access = self._file(path, args)
        if access is not None and access.has_file_node():
            return True, access.file_resolution()
        return False, None

    def _file(self, path: str, options: Iterable[LinkResolutionOption]) -> NodeAccess | None:
        user = new_link_resolution_strategy(*options)
        # a direct hit is always right unless its basename is a link we were asked to follow
        current = self._resolver.node(path, _NO_LINKS)
        node = current.file_node
        if node is not None and (not node.is_link() or not user.follow_basename_links):
            return current

        current = self._resolver.node(
            path,
            LinkResolutionStrategy(
                follow_ancestor_links=True,
                follow_basename_links=user.follow_basename_links,
                do_not_follow_dead_basename_links=user.do_not_follow_dead_basename_links,
            ),
        )
        return current if current.has_file_node() else None

    def files_by_glob(self, query: str, *args: LinkResolutionOption) -> list[Resolution]:
        """Return resolutions of every non-directory matching a glob, sorted by request path."""
        if not query:
            raise ValueError("no glob pattern given")
        if not query.startswith(DIR_SEPARATOR):
            # paths are always relative to the root
            query = DIR_SEPARATOR + query

        do_not_follow_dead = LinkResolutionOption.DO_NOT_FOLLOW_DEAD_BASENAME_LINKS in args
        fs = GlobFS(self._resolver, do_not_follow_dead)
        strategy = LinkResolutionStrategy(
            follow_ancestor_links=True,
            follow_basename_links=True,
            do_not_follow_dead_basename_links=do_not_follow_dead,
        )

        results = []
        for match in glob(fs, query):
            match_path = match if posixpath.isabs(match) else posixpath.join(DIR_SEPARATOR, match)
            access = self._resolver.node(match_path, strategy)
            if access.file_node is not None and access.file_node.file_type is not FileType.DIRECTORY:
                results.append(
                    Resolution(
                        match_path,
                        access.file_node.reference,
                        new_resolutions(access.leaf_link_resolution),
                    )
                )

        results.sort(key=lambda r: (r.request_path, r.real_path or ""))
        return results

    def _add(self, real_path: str, file_type: FileType, link_path: str = "") -> Reference:
        access = self._resolver.node(real_path, _NO_LINKS)
        existing = access.file_node
        if existing is not None:
            if existing.file_type is not file_type:
                raise FileExistsError(
                    f"path={real_path!r} already exists but is NOT of type {file_type.value}"
                )
            if existing.reference is None:
                existing.reference = Reference(real_path)
            return existing.reference

        self._add_parent_paths(real_path)
        node = FileNode(real_path, file_type, link_path, Reference(real_path))
        self._set_file_node(node)
        return node.reference

    def add_file(self, real_path: str) -> Reference:
        """Add a regular file (and any missing ancestors); the path must hold no links."""
        return self._add(real_path, FileType.REGULAR)

    def add_sym_link(self, real_path: str, link_path: str) -> Reference:
        """Add a symlink pointing at an absolute or relative ``link_path``."""
        return self._add(real_path, FileType.SYM_LINK, link_path)

    def add_hard_link(self, real_path: str, link_path: str) -> Reference:
        """Add a hardlink pointing at ``link_path``."""
        return self._add(real_path, FileType.HARD_LINK, link_path)

    def add_dir(self, real_path: str) -> Reference:
        """Add a directory (and any missing ancestors)."""
        return self._add(real_path, FileType.DIRECTORY)

    def _add_parent_paths(self, real_path: str) -> None:
        """Add reference-less directories for every missing ancestor of a real path."""
        try:
            parent = parent_path(real_path)
        except ValueError as exc:
            raise ValueError(
                f"unable to determine parent path while adding path={real_path!r}"
            ) from exc

        if self._resolver.node(parent, _NO_LINKS).has_file_node():
            return

        # walk upward until an existing ancestor is found
        missing = []
        for ancestor in reversed(constituent_paths(real_path)):
            if self._resolver.node(ancestor, _NO_LINKS).has_file_node():
                break
            missing.append(ancestor)

        for ancestor in reversed(missing):
            self._set_file_node(FileNode(ancestor, FileType.DIRECTORY))

    def _set_file_node(self, node: FileNode) -> None:
        existing = self._tree.node(node.id)
        if existing is not None:
            self._tree.replace(existing, node)
            return

        try:
            parent = parent_path(node.real_path)
        except ValueError as exc:
            raise ValueError(
                f"unable to determine parent path while adding path={node.real_path!r}"
            ) from exc

        parent_access = self._resolver.node(parent, _NO_LINKS)
        if parent_access.file_node is None:
            raise ValueError(
                f"unable to find parent path={parent!r} while adding path={node.real_path!r}"
            )
        self._tree.add_child(parent_access.file_node, node)

    def remove_path(self, path: str) -> None:
        """Remove a path and everything below it; a link at the basename is removed itself.

        Missing paths are ignored. Raises RemovingRootError for "/".
        """
        if normalize_path(path) == DIR_SEPARATOR:
            raise RemovingRootError()
        access = self._resolver.node(path, _FOLLOW_ANCESTORS)
        if access.file_node is not None:
            self._tree.remove_node(access.file_node)

    def remove_child_paths(self, path: str) -> None:
        """Remove everything below a path (following a link at its basename)."""
        access = self._resolver.node(path, _FOLLOW_ALL)
        if access.file_node is None:
            return
        for child in self._tree.children(access.file_node):
            self._tree.remove_node(child)

    def path_diff(self, other: FileTree) -> tuple[list[str], list[str]]:
        """Return (paths only in ``other``, paths only in this tree)."""
        ours = {node.id for node in self._tree.nodes()}
        theirs = {node.id for node in other._tree.nodes()}
        extra = [node.id for node in other._tree.nodes() if node.id not in ours]
        missing = [node.id for node in self._tree.nodes() if node.id not in theirs]
        return extra, missing

    def equal(self, other: FileTree) -> bool:
        """Whether both trees hold exactly the same paths."""
        if len(self._tree) != len(other._tree):
            return False
        extra, missing = self.path_diff(other)
        return not extra and not missing

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FileTree):
            return NotImplemented
        return self.equal(other)

    __hash__ = None  # type: ignore[assignment]

    def has_path(self, path: str, *args: LinkResolutionOption) -> bool:
        """Whether a path exists; resolution failures count as absent."""
        try:
            exists, _ = self.file(path, *args)
        except _LOOKUP_ERRORS:
            return False
        return exists

    def merge(self, upper: FileTree) -> None:
        """Lay ``upper`` over this tree, honouring whiteouts; upper entries win conflicts."""

        def visit(upper_node: FileNode) -> None:
            real_path = upper_node.real_path
            # opaque directories must be processed first
            if _has_opaque_directory(upper, real_path):
                self.remove_child_paths(real_path)

            if is_whiteout(real_path):
                self.remove_path(unwhiteout_path(real_path))
                return

            lower = self._resolver.node(real_path, _NO_LINKS).file_node
            if lower is None:
                self._add_parent_paths(real_path)

            node_copy = dataclasses.replace(upper_node)
            # keep the lower reference when the upper has none (only for the same file type)
            if (
                lower is not None
                and lower.reference is not None
                and upper_node.reference is None
                and upper_node.file_type is lower.file_type
            ):
                node_copy.reference = lower.reference

            if (
                lower is not None
                and upper_node.file_type is not FileType.DIRECTORY
                and lower.file_type is FileType.DIRECTORY
            ):
                self.remove_child_paths(real_path)

            self._set_file_node(node_copy)

        upper.tree.walk_depth_first(
            visit,
            should_visit=lambda n: not is_dir_whiteout(n.real_path),
            should_continue_branch=lambda n: not is_whiteout(n.real_path),
        )


def _has_opaque_directory(tree: FileTree, directory: str) -> bool:
    return tree.has_path(posixpath.join(directory, OPAQUE_WHITEOUT))