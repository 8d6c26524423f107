"""Syntax tree definitions for C-minus.

The tree is an arena: every node lives in ``SyntaxTree.nodes`` and refers to
its children and its next sibling by index. Statement sequences, parameter
lists and argument lists are sibling chains rather than Python lists.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterable, Iterator, Optional

from cminc.builtins.types import DataType


class NodeKind(Enum):
    FUNCTION = auto()
    PARAMETER = auto()
    ARRAY_PARAMETER = auto()
    VAR_DECLARATION = auto()
    ARRAY_DECLARATION = auto()
    IDENTIFIER = auto()
    ARRAY_IDENTIFIER = auto()
    NUMBER = auto()
    OPERATION = auto()
    ASSIGN = auto()
    CALL = auto()
    IF = auto()
    WHILE = auto()
    RETURN = auto()
    BLOCK = auto()


PARAMETER_KINDS = frozenset({NodeKind.PARAMETER, NodeKind.ARRAY_PARAMETER})

ARRAY_KINDS = frozenset({NodeKind.ARRAY_PARAMETER, NodeKind.ARRAY_DECLARATION})

RELATIONAL_OPS = frozenset({"<", "<=", ">", ">=", "==", "!="})


@dataclass
class SyntaxNode:
    index: int
    kind: NodeKind
    name: str = ""
    value: Optional[int] = None
    type: DataType = DataType.VOID
    line: int = 0
    children: list[Optional[int]] = field(default_factory=list)
    sibling: Optional[int] = None

    @property
    def child_count(self) -> int:
        return len(self.children)

    def has_child(self, position: int) -> bool:
        """True when the slot exists, even if it holds an empty chain."""
        return 0 <= position < len(self.children)

    @property
    def has_sibling(self) -> bool:
        return self.sibling is not None

    @property
    def is_parameter(self) -> bool:
        return self.kind in PARAMETER_KINDS

    @property
    def is_array(self) -> bool:
        return self.kind in ARRAY_KINDS


@dataclass
class SyntaxTree:
    nodes: list[SyntaxNode] = field(default_factory=list)
    root: Optional[int] = None

    def add(
        self,
        kind: NodeKind,
        name: str = "",
        *,
        value: int | None = None,
        type: DataType = DataType.VOID,
        line: int = 0,
        children: Iterable[Optional[int]] = (),
    ) -> int:
        index = len(self.nodes)
        self.nodes.append(SyntaxNode(
            index, kind, name, value, type, line, list(children),
        ))
        return index

    def node(self, index: int) -> SyntaxNode:
        return self.nodes[index]

    def maybe(self, index: Optional[int]) -> SyntaxNode | None:
        return None if index is None else self.nodes[index]

    @property
    def root_node(self) -> SyntaxNode | None:
        return self.maybe(self.root)

    def child(self, node: SyntaxNode, position: int) -> SyntaxNode | None:
        if not node.has_child(position):
            return None
        return self.maybe(node.children[position])

    def sibling(self, node: SyntaxNode) -> SyntaxNode | None:
        return self.maybe(node.sibling)

    def chain(self, start: SyntaxNode | None) -> Iterator[SyntaxNode]:
        """Yield ``start`` and every node reachable through its sibling links."""
        node = start
        while node is not None:
            yield node
            node = self.sibling(node)

    def link(self, indices: Iterable[Optional[int]]) -> Optional[int]:
        """Join nodes into a sibling chain and return the head index.

        Empty entries (``None``) are skipped, so an empty statement never
        breaks a chain.
        """
        present = [i for i in indices if i is not None]
        for current, following in zip(present, present[1:]):
            self.nodes[current].sibling = following
        return present[0] if present else None
