"""N-way trees of data-carrying nodes with ordered children."""

from __future__ import annotations

from enum import Enum, IntFlag
from typing import Any, Callable, Iterator, Optional

__all__ = ["TraverseType", "TraverseFlags", "Node"]


class TraverseType(Enum):
    """The order in which a traversal visits nodes."""

    IN_ORDER = 0
    PRE_ORDER = 1
    POST_ORDER = 2
    LEVEL_ORDER = 3


class TraverseFlags(IntFlag):
    """Which kinds of nodes a traversal reports."""

    LEAFS = 1 << 0
    NON_LEAFS = 1 << 1
    ALL = LEAFS | NON_LEAFS
    MASK = 0x03


NodeFunc = Callable[["Node"], Any]


def _check_flags(flags: int) -> int:
    flags = int(flags)
    if flags < 0 or flags & ~int(TraverseFlags.MASK):
        raise ValueError(f"invalid traverse flags: {flags!r}")
    return flags


def _visit(node: "Node", flags: int, func: NodeFunc) -> bool:
    """Report a single node if its kind is selected; return True to stop."""
    wanted = TraverseFlags.NON_LEAFS if node._children else TraverseFlags.LEAFS
    return bool(flags & wanted) and bool(func(node))


class Node:
    """A tree node holding ``data``, a parent link and ordered children."""

    __slots__ = ("data", "_parent", "_children")

    def __init__(self, data: Any = None) -> None:
        self.data = data
        self._parent: Optional[Node] = None
        self._children: list[Node] = []

    def __repr__(self) -> str:
        return f"Node({self.data!r})"

    def __iter__(self) -> Iterator["Node"]:
        return iter(tuple(self._children))

    @property
    def parent(self) -> Optional["Node"]:
        return self._parent

    @property
    def children(self) -> tuple["Node", ...]:
        return tuple(self._children)

    @property
    def next(self) -> Optional["Node"]:
        if self._parent is None:
            return None
        siblings = self._parent._children
        index = siblings.index(self) + 1
        return siblings[index] if index < len(siblings) else None

    @property
    def prev(self) -> Optional["Node"]:
        if self._parent is None:
            return None
        siblings = self._parent._children
        index = siblings.index(self)
        return siblings[index - 1] if index > 0 else None

    # --- structure -------------------------------------------------------

    def unlink(self) -> None:
        """Detach this node (and its subtree) from its parent."""
        if self._parent is not None:
            self._parent._children.remove(self)
            self._parent = None

    def destroy(self) -> None:
        """Unlink this node and dismantle its whole subtree."""
        self.unlink()
        stack = [self]
        while stack:
            node = stack.pop()
            for child in node._children:
                child._parent = None
                stack.append(child)
            node._children = []

    def insert(self, position: int, node: "Node") -> "Node":
        """Insert ``node`` at ``position``; 0 prepends, negative appends."""
        if position > 0:
            return self.insert_before(self.nth_child(position), node)
        if position == 0:
            return self.prepend(node)
        return self.append(node)

    def insert_before(self, sibling: Optional["Node"], node: "Node") -> "Node":
        """Insert ``node`` before ``sibling``, or last when sibling is None."""
        if not node.is_root():
            raise ValueError("node to insert must be a root node")
        if sibling is not None and sibling._parent is not self:
            raise ValueError("sibling is not a child of this node")
        if node is self or node.is_ancestor(self):
            raise ValueError("cannot insert a node below itself")
        node._parent = self
        if sibling is None:
            self._children.append(node)
        else:
            self._children.insert(self._children.index(sibling), node)
        return node

    def append(self, node: "Node") -> "Node":
        """Add ``node`` as the last child."""
        return self.insert_before(None, node)

    def prepend(self, node: "Node") -> "Node":
        """Add ``node`` as the first child."""
        first = self._children[0] if self._children else None
        return self.insert_before(first, node)

    def reverse_children(self) -> None:
        """Reverse the order of this node's children."""
        self._children.reverse()

    # --- queries ---------------------------------------------------------

    def get_root(self) -> "Node":
        node = self
        while node._parent is not None:
            node = node._parent
        return node

    def is_root(self) -> bool:
        return self._parent is None

    def is_leaf(self) -> bool:
        return not self._children

    def is_ancestor(self, descendant: "Node") -> bool:
        """Return True if this node lies above ``descendant``."""
        node = descendant._parent
        while node is not None:
            if node is self:
                return True
            node = node._parent
        return False

    def depth(self) -> int:
        """Return 1 for a root, 2 for its children, and so on."""
        depth = 0
        node: Optional[Node] = self
        while node is not None:
            depth += 1
            node = node._parent
        return depth

    def max_height(self) -> int:
        """Return the number of levels in the subtree rooted here."""
        return 1 + max((child.max_height() for child in self._children), default=0)

    def n_nodes(self, flags: int = TraverseFlags.ALL) -> int:
        """Count the nodes of the selected kinds in this subtree."""
        flags = _check_flags(flags)
        count = 0
        stack = [self]
        while stack:
            node = stack.pop()
            if node._children:
                if flags & TraverseFlags.NON_LEAFS:
                    count += 1
                stack.extend(node._children)
            elif flags & TraverseFlags.LEAFS:
                count += 1
        return count

    def last_child(self) -> Optional["Node"]:
        return self._children[-1] if self._children else None

    def nth_child(self, n: int) -> Optional["Node"]:
        """Return the child at index ``n``, or None past the end."""
        if n < 0:
            raise ValueError("child index must not be negative")
        return self._children[n] if n < len(self._children) else None

    def n_children(self) -> int:
        return len(self._children)

    def find_child(self, flags: int, data: Any) -> Optional["Node"]:
        """Return the first child of a selected kind holding ``data``."""
        flags = _check_flags(flags)
        for child in self._children:
            if child.data == data:
                wanted = TraverseFlags.LEAFS if child.is_leaf() else TraverseFlags.NON_LEAFS
                if flags & wanted:
                    return child
        return None

    def child_position(self, child: "Node") -> int:
        """Return the index of ``child`` among this node's children."""
        if child._parent is not self:
            raise ValueError("node is not a child of this node")
        return self._children.index(child)

    def child_index(self, data: Any) -> int:
        """Return the index of the first child holding ``data``, or -1."""
        for index, child in enumerate(self._children):
            if child.data == data:
                return index
        return -1

    def first_sibling(self) -> "Node":
        if self._parent is None:
            return self
        return self._parent._children[0]

    def last_sibling(self) -> "Node":
        if self._parent is None:
            return self
        return self._parent._children[-1]

    def children_foreach(self, flags: int, func: Callable[["Node"], Any]) -> None:
        """Call ``func`` on each child of a selected kind."""
        flags = _check_flags(flags)
        for child in tuple(self._children):
            _visit(child, flags, lambda node: (func(node), False)[1])

    # --- traversal -------------------------------------------------------

    def traverse(
        self,
        order: TraverseType,
        flags: int,
        max_depth: int = -1,
        func: Optional[NodeFunc] = None,
    ) -> bool:
        """Call ``func`` on nodes in ``order`` until it returns a true value.

        ``max_depth`` of -1 means unlimited, otherwise it must be positive.
        Returns True if the traversal was stopped by ``func``.
        """
        order = TraverseType(order)
        flags = _check_flags(flags)
        if func is None:
            raise ValueError("a traversal function is required")
        if max_depth != -1 and max_depth <= 0:
            raise ValueError("max_depth must be -1 or positive")
        depth = None if max_depth < 0 else max_depth

        if order is TraverseType.PRE_ORDER:
            return self._pre_order(flags, depth, func)
        if order is TraverseType.POST_ORDER:
            return self._post_order(flags, depth, func)
        if order is TraverseType.IN_ORDER:
            return self._in_order(flags, depth, func)

        if not self._children:
            return _visit(self, flags, func)
        if flags & TraverseFlags.NON_LEAFS and func(self):
            return True
        if depth is not None:
            depth -= 1
            if not depth:
                return False
        return self._level_children(flags, depth, func)

    def _pre_order(self, flags: int, depth: Optional[int], func: NodeFunc) -> bool:
        if not self._children:
            return bool(flags & TraverseFlags.LEAFS) and bool(func(self))
        if flags & TraverseFlags.NON_LEAFS and func(self):
            return True
        if depth is not None:
            depth -= 1
            if not depth:
                return False
        return any(child._pre_order(flags, depth, func) for child in tuple(self._children))

    def _post_order(self, flags: int, depth: Optional[int], func: NodeFunc) -> bool:
        if not self._children:
            return bool(flags & TraverseFlags.LEAFS) and bool(func(self))
        if depth is not None:
            depth -= 1
        if depth is None or depth:
            if any(child._post_order(flags, depth, func) for child in tuple(self._children)):
                return True
        return bool(flags & TraverseFlags.NON_LEAFS) and bool(func(self))

    def _in_order(self, flags: int, depth: Optional[int], func: NodeFunc) -> bool:
        if not self._children:
            return bool(flags & TraverseFlags.LEAFS) and bool(func(self))
        if depth is not None:
            depth -= 1
        if depth is not None and not depth:
            return bool(flags & TraverseFlags.NON_LEAFS) and bool(func(self))
        first, *rest = tuple(self._children)
        if first._in_order(flags, depth, func):
            return True
        if flags & TraverseFlags.NON_LEAFS and func(self):
            return True
        return any(child._in_order(flags, depth, func) for child in rest)

    def _level_children(self, flags: int, depth: Optional[int], func: NodeFunc) -> bool:
        for child in tuple(self._children):
            if _visit(child, flags, func):
                return True
        if depth is not None:
            depth -= 1
            if not depth:
                return False
        for child in tuple(self._children):
            if child._children and child._level_children(flags, depth, func):
                return True
        return False

    def find(self, order: TraverseType, flags: int, data: Any) -> Optional["Node"]:
        """Return the first node in ``order`` whose data equals ``data``."""
        found: list[Node] = []

        def match(node: Node) -> bool:
            if node.data == data:
                found.append(node)
                return True
            return False

        self.traverse(order, flags, -1, match)
        return found[0] if found else None