"""
Generic rooted trees.

The attribute tree handed in by the caller (T = float) and the treemap
produced by the layout (T = Polygon) share this structure; their nodes
correspond one to one by position.
"""
from __future__ import annotations

import logging
from typing import Callable, Generic, Iterator, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")


class TreeNode(Generic[T]):
    """A node owning an attribute value and an ordered list of children."""

    def __init__(self, attribute: T, children: Optional[List[TreeNode[T]]] = None) -> None:
        self.attribute = attribute
        self.children: List[TreeNode[T]] = list(children) if children else []

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(attribute={self.attribute!r}, children={len(self.children)})"

    def add_child(self, child: TreeNode[T]) -> TreeNode[T]:
        self.children.append(child)
        return child

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def walk(self) -> Iterator[TreeNode[T]]:
        """Yield this node and all its descendants in pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def depth(self) -> int:
        """Number of levels below and including this node."""
        if not self.children:
            return 1
        return 1 + max(child.depth() for child in self.children)


class Tree(Generic[T]):
    """A rooted tree."""

    def __init__(self, attribute: T) -> None:
        self.root: TreeNode[T] = TreeNode(attribute)

    @classmethod
    def from_root(cls, root: TreeNode[T]) -> Tree[T]:
        tree = cls.__new__(cls)
        tree.root = root
        return tree

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(root={self.root!r})"

    def walk(self) -> Iterator[TreeNode[T]]:
        return self.root.walk()

    def leaves(self) -> List[TreeNode[T]]:
        return [node for node in self.walk() if node.is_leaf]

    def map(self, func: Callable[[T], U]) -> Tree[U]:
        """Build a structurally identical tree with `func` applied to every attribute."""
        new_root: TreeNode[U] = TreeNode(func(self.root.attribute))
        stack = [(self.root, new_root)]
        while stack:
            source, target = stack.pop()
            for child in source.children:
                stack.append((child, target.add_child(TreeNode(func(child.attribute)))))
        return Tree.from_root(new_root)


def accumulate_attributes(tree: Tree[Optional[float]]) -> float:
    """
    Prepare an attribute tree for the layout.

    Leaves whose attribute is undefined or not positive are set to 1; every
    internal node is set to the sum of its children.

    Args:
        tree: The attribute tree, modified in place.

    Returns:
        The total attribute of the root.
    """
    # Post-order without recursion so deep trees are fine
    order: List[TreeNode[Optional[float]]] = list(tree.walk())
    defaulted = 0
    for node in reversed(order):
        if node.is_leaf:
            if node.attribute is None or node.attribute <= 0:
                node.attribute = 1.0
                defaulted += 1
        else:
            node.attribute = float(sum(child.attribute for child in node.children))

    if defaulted:
        logger.debug(f"{defaulted} leaves without a positive attribute were set to 1.")
    return float(tree.root.attribute)
