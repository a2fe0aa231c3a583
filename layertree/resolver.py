"""Path lookups in a tree of file nodes, following symlinks and hardlinks."""

from __future__ import annotations

from collections import Counter
from dataclasses import replace

from layertree.link_strategy import LinkResolutionStrategy
from layertree.nodes import DIR_SEPARATOR, NodeAccess, normalize_path
from layertree.store import Tree

MAX_LINK_RESOLUTION_DEPTH = 100

_NO_LINKS = LinkResolutionStrategy()


class LinkCycleError(RuntimeError):
    """Link resolution went around in a cycle."""

    def __init__(self, message: str = "cycle during symlink resolution") -> None:
        super().__init__(message)


class LinkResolutionDepthError(RuntimeError):
    """Link resolution followed more links than allowed."""

    def __init__(self, message: str = "maximum link resolution stack depth exceeded") -> None:
        super().__init__(message)


class LinkResolver:
    """Looks up paths in a tree of file nodes, resolving links as a strategy asks."""

    def __init__(self, tree: Tree) -> None:
        self.tree = tree

    def _direct(self, path: str) -> NodeAccess:
        return NodeAccess(path, self.tree.node(path))

    def node(self, path: str, strategy: LinkResolutionStrategy = _NO_LINKS) -> NodeAccess:
        """Look up a path; the returned access always carries the normalized request path."""
        normalized = normalize_path(path)
        if not strategy.follow_links():
            return self._direct(normalized)

        if strategy.follow_ancestor_links:
            current = self.resolve_ancestor_links(normalized, None, MAX_LINK_RESOLUTION_DEPTH)
        else:
            current = self._direct(normalized)

        if current is None or not current.has_file_node():
            # link resolution came up with nothing
            return NodeAccess(normalized)

        if strategy.follow_basename_links:
            current = self.resolve_node_links(
                current,
                not strategy.do_not_follow_dead_basename_links,
                None,
                MAX_LINK_RESOLUTION_DEPTH,
            )

        if current is None:
            return NodeAccess(normalized)
        current.request_path = normalized
        return current

    def resolve_ancestor_links(
        self,
        path: str,
        resolving: Counter | None,
        max_depth: int,
    ) -> NodeAccess:
        """Resolve links in every ancestor of a normalized path (never in the basename)."""
        current = self._direct(path)
        if current.has_file_node():
            # the path is already a real path
            return current

        parts = path.split(DIR_SEPARATOR)
        last_index = len(parts) - 1
        current_path = ""

        for position, part in enumerate(parts):
            if not part:
                # the root itself is never resolved
                continue

            current_path = f"{current_path}{DIR_SEPARATOR}{part}"
            current = self._direct(current_path)
            if not current.has_file_node():
                # a path that has never been observed: it cannot be resolved
                return current

            current_path = current.file_node.real_path

            # nodes added implicitly as parents carry no reference; keep building the path
            if current.file_node.reference is None:
                continue

            if position != last_index and current.file_node.is_link():
                current = self.resolve_node_links(current, True, resolving, max_depth)
                if current.has_file_node():
                    current_path = current.file_node.real_path

        return current

    def resolve_node_links(
        self,
        access: NodeAccess | None,
        follow_dead: bool,
        resolving: Counter | None = None,
        max_depth: int = MAX_LINK_RESOLUTION_DEPTH,
    ) -> NodeAccess | None:
        """Follow links at the basename of a node's real path until a non-link is found.

        With ``follow_dead`` false, a chain that ends in a missing path yields the last
        link that exists instead (or None when there was no link to fall back on).
        """
        if access is None:
            raise ValueError("cannot resolve links with no node given")

        # link destinations being resolved across nested calls; breaks cycles through missing paths
        if resolving is None:
            resolving = Counter()

        last_node: NodeAccess | None = None
        node_path: list[NodeAccess] = []
        next_path = ""
        current = access
        real_paths_visited: set[str] = set()

        while True:
            max_depth -= 1
            if max_depth < 1:
                raise LinkResolutionDepthError()

            node_path.append(replace(current, leaf_link_resolution=list(current.leaf_link_resolution)))

            if not current.has_file_node():
                # a dead link: record the destination that could not be found
                node_path[-1].request_path = next_path
                break

            real_path = current.file_node.real_path
            if real_path in real_paths_visited:
                raise LinkCycleError()

            if not current.file_node.is_link():
                break

            real_paths_visited.add(real_path)

            next_path = current.file_node.render_link_destination()
            if not next_path:
                break

            last_node = current

            if resolving[next_path] > 0:
                raise LinkCycleError()

            resolving[next_path] += 1
            current = self.resolve_ancestor_links(next_path, resolving, max_depth)
            resolving[next_path] -= 1
            if resolving[next_path] <= 0:
                del resolving[next_path]

        if not current.has_file_node() and not follow_dead:
            if last_node is not None:
                last_node.leaf_link_resolution.extend(node_path)
            return last_node

        current.leaf_link_resolution.extend(node_path)
        return current