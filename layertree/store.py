"""A generic tree of nodes keyed by their ``id`` attribute."""

from __future__ import annotations

import copy as _copy
from typing import Any, Callable, Hashable, Iterable

Visitor = Callable[[Any], None]
Condition = Callable[[Any], bool]


class Tree:
    """An ordered tree of nodes, each addressed by its ``id``.

    Children keep the order in which they were added. A tree may hold several roots.
    """

    def __init__(self) -> None:
        self._nodes: dict[Hashable, Any] = {}
        self._children: dict[Hashable, dict[Hashable, None]] = {}
        self._parents: dict[Hashable, Hashable | None] = {}
        self._roots: dict[Hashable, None] = {}

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def _register(self, node: Any, parent_id: Hashable | None) -> None:
        self._nodes[node.id] = node
        self._children[node.id] = {}
        self._parents[node.id] = parent_id

    def add_root(self, node: Any) -> None:
        """Add a node with no parent; raises ValueError if its id is taken."""
        if node.id in self._nodes:
            raise ValueError(f"node {node.id!r} already exists")
        self._register(node, None)
        self._roots[node.id] = None

    def add_child(self, parent: Any, child: Any) -> None:
        """Attach ``child`` below ``parent``."""
        if parent is None:
            raise ValueError("a parent node is required")
        if parent.id not in self._nodes:
            raise KeyError(parent.id)
        if child.id in self._nodes:
            raise ValueError(f"node {child.id!r} already exists")
        self._register(child, parent.id)
        self._children[parent.id][child.id] = None

    def replace(self, old: Any, new: Any) -> None:
        """Put ``new`` in the place of ``old``, keeping its parent and children."""
        old_id, new_id = old.id, new.id
        if old_id not in self._nodes:
            raise KeyError(old_id)
        if new_id == old_id:
            self._nodes[old_id] = new
            return
        if new_id in self._nodes:
            raise ValueError(f"node {new_id!r} already exists")

        self._nodes = _rekey(self._nodes, old_id, new_id, new)
        self._children = _rekey(self._children, old_id, new_id, self._children[old_id])
        parent_id = self._parents[old_id]
        self._parents = _rekey(self._parents, old_id, new_id, parent_id)
        for child_id in self._children[new_id]:
            self._parents[child_id] = new_id
        if parent_id is not None:
            siblings = self._children[parent_id]
            self._children[parent_id] = _rekey(siblings, old_id, new_id, None)
        if old_id in self._roots:
            self._roots = _rekey(self._roots, old_id, new_id, None)

    def remove_node(self, node: Any) -> list[Any]:
        """Remove a node and everything below it; return the removed nodes."""
        if node is None or node.id not in self._nodes:
            raise KeyError(getattr(node, "id", None))
        removed_ids = []
        pending = [node.id]
        while pending:
            current = pending.pop()
            removed_ids.append(current)
            pending.extend(self._children[current])

        parent_id = self._parents[node.id]
        if parent_id is not None:
            self._children[parent_id].pop(node.id, None)
        self._roots.pop(node.id, None)

        removed = []
        for node_id in removed_ids:
            removed.append(self._nodes.pop(node_id))
            del self._children[node_id]
            del self._parents[node_id]
        return removed

    def children(self, node: Any) -> list[Any]:
        """Return the direct children of a node (empty for a missing node)."""
        if node is None or node.id not in self._children:
            return []
        return [self._nodes[child_id] for child_id in self._children[node.id]]

    def node(self, node_id: Hashable) -> Any | None:
        """Return the node with the given id, or None."""
        return self._nodes.get(node_id)

    def nodes(self) -> list[Any]:
        """Return every node in the tree."""
        return list(self._nodes.values())

    def copy(self) -> Tree:
        """Return a tree with the same shape holding shallow copies of the nodes."""
        other = Tree()
        other._nodes = {node_id: _copy.copy(n) for node_id, n in self._nodes.items()}
        other._children = {node_id: dict(kids) for node_id, kids in self._children.items()}
        other._parents = dict(self._parents)
        other._roots = dict(self._roots)
        return other

    def walk_depth_first(
        self,
        visitor: Visitor,
        should_visit: Condition | None = None,
        should_continue_branch: Condition | None = None,
    ) -> None:
        """Visit nodes parent-first, children in insertion order.

        ``should_visit`` decides whether the visitor is called for a node;
        ``should_continue_branch`` decides whether its children are walked.
        Exceptions raised by the visitor stop the walk and propagate.
        """
        stack = list(reversed(self._roots))
        visited: set[Hashable] = set()
        while stack:
            node_id = stack.pop()
            current = self._nodes.get(node_id)
            if current is None:
                continue
            if node_id not in visited:
                visited.add(node_id)
                if should_visit is None or should_visit(current):
                    visitor(current)
            if should_continue_branch is None or should_continue_branch(current):
                kids: Iterable[Hashable] = self._children.get(node_id, {})
                stack.extend(reversed(list(kids)))


def _rekey(mapping: dict, old_key: Hashable, new_key: Hashable, value: Any) -> dict:
    return {
        (new_key if key == old_key else key): (value if key == old_key else item)
        for key, item in mapping.items()
    }