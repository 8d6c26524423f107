"""Semantic analyzer for C-minus programs.

Walks the syntax tree once, building the scope table and reporting every
scoping and type violation it finds. A violation never stops the walk: each
one is printed, recorded, and analysis carries on so a single run shows as
many independent errors as possible.
"""

from __future__ import annotations
import logging
import sys
from dataclasses import dataclass, field
from typing import TextIO

from cminc.analysis.errors import (
    ErrorCode, InternalAnalyzerError, SemanticError, SymbolTableError,
)
from cminc.analysis.scope import ROOT, FunctionScope, ScopeNode, ScopePath
from cminc.analysis.symbols import ArrayRecord, ScalarRecord
from cminc.builtins.functions import register_builtins
from cminc.builtins.types import DataType, is_boolean_compatible
from cminc.parser.ast_nodes import NodeKind, SyntaxNode, SyntaxTree

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    table: ScopeNode
    errors: list[SemanticError] = field(default_factory=list)

    @property
    def error_occurred(self) -> bool:
        return bool(self.errors)


def analyze(
    tree: SyntaxTree, *, require_main: bool = True, stream: TextIO | None = None,
) -> AnalysisResult:
    analyzer = SemanticAnalyzer(require_main=require_main, stream=stream)
    table = analyzer.analyze(tree)
    return AnalysisResult(table, analyzer.errors)


class SemanticAnalyzer:
    def __init__(self, *, require_main: bool = True, stream: TextIO | None = None):
        self.require_main = require_main
        self.stream = stream
        self.tree: SyntaxTree | None = None
        self.table: ScopeNode | None = None
        self.errors: list[SemanticError] = []
        self._anonymous_count = 0
        self._location = 0
        self._location_stack: list[int] = []
        self._parameter_index = 0

    @property
    def error_occurred(self) -> bool:
        return bool(self.errors)

    def analyze(self, tree: SyntaxTree) -> ScopeNode:
        """Analyze ``tree`` and return its completed scope table.

        All per-run state is reset first, so one analyzer can be reused
        across unrelated programs.
        """
        self.tree = tree
        self.errors = []
        self._anonymous_count = 0
        self._location = 0
        self._location_stack = []
        self._parameter_index = 0

        table = ScopeNode(-1, DataType.VOID)
        register_builtins(table)
        self.table = table

        self._process_chain(tree.root_node, ROOT)

        # Control constructs whose bodies declared nothing leave empty scopes.
        table.remove_all_empty()

        if self.require_main and not isinstance(table.local("main"), FunctionScope):
            self._report(ErrorCode.MAIN_NOT_FOUND, 0, "main")

        logger.debug("Analysis finished with %d error(s)", len(self.errors))
        return table

    # --- Traversal ---

    def _process_chain(self, start: SyntaxNode | None, path: ScopePath) -> int:
        processed = 0
        for node in self.tree.chain(start):
            self._process_node(node, path)
            processed += 1
        return processed

    def _process_node(self, node: SyntaxNode | None, path: ScopePath) -> None:
        if node is None:
            return
        logger.debug("Analyzing %s scope=%r kind=%s", node.name, str(path), node.kind.name)

        kind = node.kind
        if kind == NodeKind.FUNCTION:
            self._process_function(node, path)
        elif kind in (NodeKind.PARAMETER, NodeKind.ARRAY_PARAMETER):
            self._process_parameter(node, path)
        elif kind in (NodeKind.VAR_DECLARATION, NodeKind.ARRAY_DECLARATION):
            self._process_declaration(node, path)
        elif kind == NodeKind.IDENTIFIER:
            self._process_identifier(node, path)
        elif kind == NodeKind.ARRAY_IDENTIFIER:
            self._process_array_identifier(node, path)
        elif kind == NodeKind.OPERATION:
            self._process_operation(node, path)
        elif kind == NodeKind.ASSIGN:
            self._process_assignment(node, path)
        elif kind == NodeKind.CALL:
            self._process_call(node, path)
        elif kind == NodeKind.IF:
            self._process_if(node, path)
        elif kind == NodeKind.WHILE:
            self._process_while(node, path)
        elif kind == NodeKind.BLOCK:
            self._process_block(node, path)
        elif kind == NodeKind.RETURN:
            self._process_return(node, path)
        # NUMBER carries nothing to check

    # --- Declarations ---

    def _process_function(self, node: SyntaxNode, path: ScopePath) -> None:
        if not path.is_root:
            self._report(ErrorCode.NESTED_DEFINITION, node.line, node.name)
            return
        try:
            self.table.add_scope(path, node.name, FunctionScope(node.line, node.type))
        except SymbolTableError as e:
            self._report_table_error(e, node.line)
            return

        function_path = path.child(node.name)
        self._parameter_index = 0
        self._process_chain(self.tree.child(node, 0), function_path)

        # Locals are numbered from zero in every function body.
        self._location_stack.append(self._location)
        self._location = 0
        self._process_chain(self.tree.child(node, 1), function_path)
        self._location = self._location_stack.pop()

    def _process_parameter(self, node: SyntaxNode, path: ScopePath) -> None:
        position = self._parameter_index
        self._parameter_index += 1

        if node.type is DataType.VOID:
            # A lone unnamed void parameter is the "(void)" form of an empty list.
            if node.has_sibling or position > 0:
                self._report(ErrorCode.VOID_ARGUMENT, node.line, node.name)
            elif node.name:
                self._report(ErrorCode.INVALID_TYPE, node.line, node.name)
            return
        try:
            self.table.add_record(path, node, position)
        except SymbolTableError as e:
            self._report_table_error(e, node.line)

    def _process_declaration(self, node: SyntaxNode, path: ScopePath) -> None:
        try:
            record = self.table.add_record(path, node, self._location)
        except SymbolTableError as e:
            self._report_table_error(e, node.line)
            return
        self._location += record.size

    # --- References ---

    def _lookup(self, node: SyntaxNode, path: ScopePath):
        entry = self.table.resolve(path, node.name)
        if entry is None:
            self._report(ErrorCode.RECORD_NOT_FOUND, node.line, node.name)
            return None
        entry.add_line(node.line)
        return entry

    def _process_identifier(self, node: SyntaxNode, path: ScopePath) -> None:
        entry = self._lookup(node, path)
        if isinstance(entry, ScopeNode):
            self._report(ErrorCode.SEMANTIC_FAILURE, node.line, node.name)

    def _process_array_identifier(self, node: SyntaxNode, path: ScopePath) -> None:
        entry = self._lookup(node, path)
        if entry is not None and not isinstance(entry, ArrayRecord):
            self._report(ErrorCode.SEMANTIC_FAILURE, node.line, node.name)

        index = self.tree.child(node, 0)
        if index is None:
            return
        self._process_node(index, path)
        if not self._is_integer_value(index, path):
            self._report(ErrorCode.INVALID_INDEX, index.line, node.name)
        elif (index.kind is NodeKind.NUMBER and isinstance(entry, ArrayRecord)
              and entry.size > 0 and not 0 <= index.value < entry.size):
            self._report(ErrorCode.INVALID_INDEX, index.line, node.name)

    def _process_call(self, node: SyntaxNode, path: ScopePath) -> None:
        entry = self._lookup(node, path)
        arguments = list(self.tree.chain(self.tree.child(node, 0)))
        for arg in arguments:
            self._process_node(arg, path)

        if entry is None:
            return
        if not isinstance(entry, FunctionScope):
            self._report(ErrorCode.SEMANTIC_FAILURE, node.line, node.name)
            return

        node.type = entry.return_type
        if len(arguments) != entry.parameter_count:
            self._report(ErrorCode.BAD_PARAM_COUNT, node.line, node.name)
            return
        for i, arg in enumerate(arguments):
            if not self._argument_matches(arg, path, entry.is_parameter_array(i)):
                self._report(ErrorCode.INVALID_PTYPE, arg.line, arg.name)

    # --- Expressions ---

    def _process_operation(self, node: SyntaxNode, path: ScopePath) -> None:
        lhs = self.tree.child(node, 0)
        rhs = self.tree.child(node, 1)
        self._process_node(lhs, path)
        if lhs is not None and not self._is_integer_value(lhs, path):
            self._report(ErrorCode.INVALID_LHS, node.line, node.name)
        self._process_node(rhs, path)
        if rhs is not None and not self._is_integer_value(rhs, path):
            self._report(ErrorCode.INVALID_RHS, node.line, node.name)

    def _process_assignment(self, node: SyntaxNode, path: ScopePath) -> None:
        target = self.tree.child(node, 0)
        value = self.tree.child(node, 1)
        self._process_node(target, path)
        if target is not None and (
            target.kind not in (NodeKind.IDENTIFIER, NodeKind.ARRAY_IDENTIFIER)
            or not self._is_integer_value(target, path)
        ):
            self._report(ErrorCode.INVALID_LHS, node.line, target.name)
        self._process_node(value, path)
        if value is not None and not self._is_integer_value(value, path):
            self._report(ErrorCode.INVALID_RHS, node.line, value.name)

    def _is_integer_value(self, node: SyntaxNode, path: ScopePath) -> bool:
        """True when ``node`` evaluates to a single integer.

        Unresolved names count as integers: they were already reported and
        should not cascade into operand errors.
        """
        if node.kind == NodeKind.IDENTIFIER:
            entry = self.table.resolve(path, node.name)
            return entry is None or isinstance(entry, ScalarRecord)
        if node.kind == NodeKind.CALL:
            entry = self.table.resolve(path, node.name)
            if not isinstance(entry, FunctionScope):
                return True
            return entry.return_type is DataType.INTEGER
        return node.type is DataType.INTEGER

    def _argument_matches(self, arg: SyntaxNode, path: ScopePath, expects_array: bool) -> bool:
        if arg.kind is NodeKind.IDENTIFIER:
            entry = self.table.resolve(path, arg.name)
            if entry is None:
                return True
            if isinstance(entry, ScopeNode):
                return False
            return entry.is_array == expects_array
        if expects_array:
            return False
        return self._is_integer_value(arg, path)

    # --- Control constructs ---

    def _check_condition(self, node: SyntaxNode, path: ScopePath) -> None:
        condition = self.tree.child(node, 0)
        if condition is None:
            return
        self._process_node(condition, path)
        if condition.kind in (NodeKind.IDENTIFIER, NodeKind.CALL):
            valid = self._is_integer_value(condition, path)
        else:
            valid = is_boolean_compatible(condition.type)
        if not valid:
            self._report(ErrorCode.SEMANTIC_FAILURE, node.line, condition.name)

    def _open_scope(self, path: ScopePath, name: str, line: int) -> ScopePath:
        try:
            self.table.add_scope(path, name, ScopeNode(line))
        except SymbolTableError as e:
            self._report_table_error(e, line, structural=True)
        return path.child(name)

    def _next_anonymous(self) -> int:
        self._anonymous_count += 1
        return self._anonymous_count

    def _process_if(self, node: SyntaxNode, path: ScopePath) -> None:
        self._check_condition(node, path)
        n = self._next_anonymous()
        then_path = self._open_scope(path, f"if_{n}", node.line)
        self._process_chain(self.tree.child(node, 1), then_path)

        if not node.has_child(2):
            return
        otherwise = self.tree.child(node, 2)
        line = otherwise.line if otherwise is not None else node.line
        else_path = self._open_scope(path, f"else_{n}", line)
        self._process_chain(otherwise, else_path)

    def _process_while(self, node: SyntaxNode, path: ScopePath) -> None:
        self._check_condition(node, path)
        n = self._next_anonymous()
        body_path = self._open_scope(path, f"while_{n}", node.line)
        self._process_chain(self.tree.child(node, 1), body_path)

    def _process_block(self, node: SyntaxNode, path: ScopePath) -> None:
        n = self._next_anonymous()
        block_path = self._open_scope(path, f"block_{n}", node.line)
        self._process_chain(self.tree.child(node, 0), block_path)

    def _process_return(self, node: SyntaxNode, path: ScopePath) -> None:
        value = self.tree.child(node, 0)
        self._process_node(value, path)

        function = self._enclosing_function(path)
        if function is None:
            return
        if function.return_type is DataType.VOID:
            if value is not None:
                self._report(ErrorCode.INVALID_RETURN, node.line, path.head)
        elif value is None or not self._is_integer_value(value, path):
            self._report(ErrorCode.INVALID_RETURN, node.line, path.head)

    def _enclosing_function(self, path: ScopePath) -> FunctionScope | None:
        if path.is_root:
            return None
        entry = self.table.local(path.head)
        return entry if isinstance(entry, FunctionScope) else None

    # --- Reporting ---

    def _report_table_error(
        self, error: SymbolTableError, line: int, *, structural: bool = False,
    ) -> None:
        """Report a table failure, escalating analyzer invariant violations.

        ``structural`` marks operations on analyzer-generated scope names,
        where even a duplicate means the analyzer itself went wrong.
        """
        if error.code.is_internal or (structural and error.code is ErrorCode.DUPLICATE_SCOPE):
            raise InternalAnalyzerError(f"{error} at line {line}") from error
        self._report(error.code, line, error.name)

    def _report(self, code: ErrorCode, line: int, name: str = "") -> None:
        error = SemanticError(code, line, name)
        self.errors.append(error)
        print(error.format(), file=self.stream or sys.stderr)
