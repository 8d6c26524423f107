"""Hierarchical scope table.

Scopes nest by containment: the root owns its entries, each nested scope owns
its own, and a scope is addressed by the path of names leading to it from the
root. Resolution walks that path downward and falls back to each enclosing
scope on the way back up, so the innermost declaration wins.
"""

from __future__ import annotations
import logging
import sys
from dataclasses import dataclass
from typing import TextIO, Union

from cminc.analysis.errors import ErrorCode, SymbolTableError
from cminc.analysis.symbols import (
    ArrayRecord, RecordList, ScalarRecord, SymbolKind, SymbolRecord,
)
from cminc.builtins.types import DataType
from cminc.parser.ast_nodes import NodeKind, SyntaxNode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScopePath:
    segments: tuple[str, ...] = ()

    @classmethod
    def parse(cls, text: str) -> ScopePath:
        return cls(tuple(part for part in text.split(".") if part))

    @property
    def head(self) -> str:
        return self.segments[0]

    @property
    def tail(self) -> ScopePath:
        return ScopePath(self.segments[1:])

    @property
    def is_root(self) -> bool:
        return not self.segments

    def child(self, name: str) -> ScopePath:
        return ScopePath(self.segments + (name,))

    def __len__(self):
        return len(self.segments)

    def __str__(self):
        return ".".join(self.segments)


PathLike = Union[ScopePath, str]

ROOT = ScopePath()


def as_path(path: PathLike) -> ScopePath:
    if isinstance(path, ScopePath):
        return path
    return ScopePath.parse(path)


class ScopeNode:
    """One lexical scope.

    ``entries`` maps declared names (records and function scopes) and
    ``blocks`` maps the generated names of anonymous nested scopes, so a
    variable called ``if_1`` never collides with an ``if`` body.
    """

    def __init__(self, declared_line: int = -1, type: DataType = DataType.VOID):
        self.declared_line = declared_line
        self.type = type
        self.entries: dict[str, SymbolRecord | RecordList | ScopeNode] = {}
        self.blocks: dict[str, ScopeNode] = {}
        self.lines: list[int] = []

    @property
    def kind(self) -> SymbolKind:
        return SymbolKind.SCOPE

    @property
    def is_function(self) -> bool:
        return False

    def add_line(self, line: int) -> None:
        self.lines.append(line)

    def is_empty(self) -> bool:
        return not self.entries and not self.blocks

    # --- Navigation ---

    def _child_scope(self, name: str) -> ScopeNode | None:
        block = self.blocks.get(name)
        if block is not None:
            return block
        entry = self.entries.get(name)
        return entry if isinstance(entry, ScopeNode) else None

    def scope_at(self, path: PathLike) -> ScopeNode:
        """Return the scope located exactly at ``path``."""
        path = as_path(path)
        scope = self
        for name in path.segments:
            scope = scope._child_scope(name)
            if scope is None:
                raise SymbolTableError(ErrorCode.INVALID_SCOPE, str(path))
        return scope

    def local(self, name: str) -> SymbolRecord | ScopeNode | None:
        """Canonical entry for the declared ``name`` in this scope only."""
        entry = self.entries.get(name)
        if isinstance(entry, RecordList):
            return entry.first
        return entry

    def resolve(self, path: PathLike, identifier: str) -> SymbolRecord | ScopeNode | None:
        """Find the innermost declaration of ``identifier`` visible at ``path``."""
        path = as_path(path)
        if path.is_root:
            return self.local(identifier)

        found = None
        child = self._child_scope(path.head)
        if child is not None:
            found = child.resolve(path.tail, identifier)
        if found is None:
            found = self.local(identifier)
        return found

    # --- Mutation ---

    def add_scope(self, parent_path: PathLike, name: str, node: ScopeNode) -> ScopeNode:
        """Insert ``node`` under ``parent_path``.

        Function scopes are declared names and share ``entries`` with
        records; any other scope goes to ``blocks``.
        """
        parent = self.scope_at(parent_path)
        table = parent.entries if node.is_function else parent.blocks
        if name in table:
            raise SymbolTableError(ErrorCode.DUPLICATE_SCOPE, name)
        table[name] = node
        logger.debug("Added %s scope '%s' under '%s'",
                     node.kind.name.lower(), name, as_path(parent_path))
        return node

    def add_record(
        self, parent_path: PathLike, declaration: SyntaxNode, location: int,
    ) -> SymbolRecord:
        """Create the record for ``declaration`` and insert it under its name.

        Parameter declarations also extend the owning function's signature.
        """
        parent = self.scope_at(parent_path)
        record = _make_record(declaration, location)
        name = declaration.name
        # A repeated parameter name still occupies a slot in the signature.
        if declaration.is_parameter and isinstance(parent, FunctionScope):
            parent.add_parameter(declaration.is_array)

        existing = parent.entries.get(name)
        if existing is not None:
            if isinstance(existing, SymbolRecord):
                parent.entries[name] = existing = RecordList(existing)
            if isinstance(existing, RecordList):
                existing.add(record)
            raise SymbolTableError(ErrorCode.DUPLICATE_RECORD, name)

        parent.entries[name] = record
        logger.debug("Added %s record '%s' under '%s'",
                     record.kind.name.lower(), name, as_path(parent_path))
        return record

    def remove_all_empty(self) -> None:
        """Prune plain scopes left without entries, innermost first.

        Function scopes always stay: their signature is needed by callers
        even when the body declares nothing.
        """
        for entry in self.entries.values():
            if isinstance(entry, ScopeNode):
                entry.remove_all_empty()
        for name, block in list(self.blocks.items()):
            block.remove_all_empty()
            if block.is_empty():
                del self.blocks[name]
                logger.debug("Pruned empty scope '%s'", name)

    # --- Diagnostics ---

    def describe(self) -> str:
        return f"scope declared {self.declared_line}"

    def format_table(self, name: str = "<global>", depth: int = 0) -> str:
        indent = "  " * depth
        lines = [f"{indent}{name}: {self.describe()}"]
        if self.is_empty():
            lines.append(f"{indent}  < empty >")
        for key, entry in self.entries.items():
            if isinstance(entry, ScopeNode):
                lines.append(entry.format_table(key, depth + 1))
            elif isinstance(entry, RecordList):
                for record in entry:
                    lines.append(f"{indent}  {key}: {record.describe()}")
            else:
                lines.append(f"{indent}  {key}: {entry.describe()}")
        for key, block in self.blocks.items():
            lines.append(block.format_table(key, depth + 1))
        return "\n".join(lines)

    def print_table(self, file: TextIO | None = None) -> None:
        print(self.format_table(), file=file or sys.stdout)


class FunctionScope(ScopeNode):
    """A function body scope with its parameter signature and return type."""

    def __init__(self, declared_line: int = -1, return_type: DataType = DataType.VOID):
        super().__init__(declared_line, return_type)
        self.parameters: list[bool] = []

    @property
    def kind(self) -> SymbolKind:
        return SymbolKind.FUNCTION

    @property
    def is_function(self) -> bool:
        return True

    @property
    def return_type(self) -> DataType:
        return self.type

    def add_parameter(self, is_array: bool) -> None:
        self.parameters.append(is_array)

    @property
    def parameter_count(self) -> int:
        return len(self.parameters)

    def is_parameter_array(self, index: int) -> bool:
        if 0 <= index < len(self.parameters):
            return self.parameters[index]
        return False

    def signature(self) -> str:
        return ", ".join("int[]" if a else "int" for a in self.parameters) or "void"

    def describe(self) -> str:
        return (
            f"function {self.return_type} ({self.signature()})"
            f" declared {self.declared_line} refs {self.lines}"
        )


def _make_record(declaration: SyntaxNode, location: int) -> SymbolRecord:
    if declaration.type is DataType.VOID:
        raise SymbolTableError(ErrorCode.INVALID_TYPE, declaration.name)

    if declaration.kind in (NodeKind.VAR_DECLARATION, NodeKind.PARAMETER):
        return ScalarRecord(
            declaration.line, declaration.type, location,
            is_parameter=declaration.is_parameter,
        )
    if declaration.kind in (NodeKind.ARRAY_DECLARATION, NodeKind.ARRAY_PARAMETER):
        return ArrayRecord(
            declaration.line, declaration.type, location,
            is_parameter=declaration.is_parameter,
            length=declaration.value or 0,
        )
    raise SymbolTableError(ErrorCode.INVALID_TYPE, declaration.name)
