"""Lark Transformer that builds the syntax tree arena from the parse tree."""

from __future__ import annotations
import logging
from pathlib import Path
from lark import Lark, Transformer
from lark.exceptions import UnexpectedInput

from cminc.builtins.types import DataType, from_keyword
from cminc.parser.ast_nodes import NodeKind, SyntaxTree, RELATIONAL_OPS

logger = logging.getLogger(__name__)

_GRAMMAR_PATH = Path(__file__).parent.parent / "grammar" / "cminus.lark"

_parser = Lark(
    _GRAMMAR_PATH.read_text(encoding="utf-8"),
    parser="lalr",
    propagate_positions=True,
)


class CminusSyntaxError(Exception):
    def __init__(self, message: str, line: int = 0, column: int = 0):
        super().__init__(message)
        self.line = line
        self.column = column


class _Compound:
    """Sentinel for a parsed ``{ ... }`` statement list."""
    def __init__(self, items: list[int | None]):
        self.items = items


class CminusTransformer(Transformer):
    def __init__(self):
        super().__init__()
        self.tree = SyntaxTree()

    # --- Program ---

    def start(self, items):
        self.tree.root = self.tree.link(items)
        return self.tree

    # --- Declarations ---

    def type_spec(self, args):
        tok = args[0]
        return from_keyword(str(tok)), tok

    def var_decl(self, args):
        (dtype, _), name = args
        return self.tree.add(
            NodeKind.VAR_DECLARATION, str(name), type=dtype, line=name.line,
        )

    def array_decl(self, args):
        (dtype, _), name, size = args
        return self.tree.add(
            NodeKind.ARRAY_DECLARATION, str(name),
            value=int(size), type=dtype, line=name.line,
        )

    def fun_declaration(self, args):
        (dtype, _), name, params, body = args
        return self.tree.add(
            NodeKind.FUNCTION, str(name), type=dtype, line=name.line,
            children=[params, self._body(body)],
        )

    def void_params(self, args):
        # "(void)" is kept as a single unnamed void parameter
        tok = args[0]
        return self.tree.add(
            NodeKind.PARAMETER, "", type=DataType.VOID, line=tok.line,
        )

    def param_list(self, items):
        return self.tree.link(items)

    def param(self, args):
        (dtype, _), name = args
        return self.tree.add(
            NodeKind.PARAMETER, str(name), type=dtype, line=name.line,
        )

    def array_param(self, args):
        (dtype, _), name = args
        return self.tree.add(
            NodeKind.ARRAY_PARAMETER, str(name), value=0, type=dtype,
            line=name.line,
        )

    # --- Statements ---

    def compound_stmt(self, items):
        return _Compound([self._statement(item) for item in items])

    def expression_stmt(self, items):
        return items[0] if items else None

    def return_stmt(self, args):
        tok = args[0]
        children = [args[1]] if len(args) > 1 and args[1] is not None else []
        return self.tree.add(NodeKind.RETURN, "return", line=tok.line, children=children)

    def if_stmt(self, args):
        tok, cond, then = args
        return self.tree.add(
            NodeKind.IF, "if", line=tok.line,
            children=[cond, self._body(then)],
        )

    def if_else_stmt(self, args):
        tok, cond, then, _else_tok, otherwise = args
        return self.tree.add(
            NodeKind.IF, "if", line=tok.line,
            children=[cond, self._body(then), self._body(otherwise)],
        )

    def while_stmt(self, args):
        tok, cond, body = args
        return self.tree.add(
            NodeKind.WHILE, "while", line=tok.line,
            children=[cond, self._body(body)],
        )

    # --- Expressions ---

    def assign(self, args):
        target, op, value = args
        return self.tree.add(
            NodeKind.ASSIGN, str(op), type=DataType.INTEGER, line=op.line,
            children=[target, value],
        )

    def operation(self, args):
        lhs, op, rhs = args
        result = DataType.BOOLEAN if str(op) in RELATIONAL_OPS else DataType.INTEGER
        return self.tree.add(
            NodeKind.OPERATION, str(op), type=result, line=op.line,
            children=[lhs, rhs],
        )

    def number(self, args):
        tok = args[0]
        return self.tree.add(
            NodeKind.NUMBER, str(tok), value=int(tok), type=DataType.INTEGER,
            line=tok.line,
        )

    def identifier(self, args):
        tok = args[0]
        return self.tree.add(
            NodeKind.IDENTIFIER, str(tok), type=DataType.INTEGER, line=tok.line,
        )

    def array_identifier(self, args):
        tok, index = args
        return self.tree.add(
            NodeKind.ARRAY_IDENTIFIER, str(tok), type=DataType.INTEGER,
            line=tok.line, children=[index],
        )

    def call(self, args):
        tok = args[0]
        arguments = args[1] if len(args) > 1 else None
        # The analyzer replaces the type with the callee's return type.
        return self.tree.add(
            NodeKind.CALL, str(tok), type=DataType.VOID, line=tok.line,
            children=[arguments],
        )

    def args(self, items):
        return self.tree.link(items)

    # --- Helpers ---

    def _statement(self, item):
        """A nested compound statement becomes an anonymous BLOCK node."""
        if isinstance(item, _Compound):
            body = self.tree.link(item.items)
            line = self.tree.node(body).line if body is not None else 0
            return self.tree.add(NodeKind.BLOCK, "block", line=line, children=[body])
        return item

    def _body(self, item):
        """Function, if and while bodies own their braces; no extra block."""
        if isinstance(item, _Compound):
            return self.tree.link(item.items)
        return self._statement(item)


def parse_cminus(source: str) -> SyntaxTree:
    try:
        tree = _parser.parse(source)
    except UnexpectedInput as e:
        raise CminusSyntaxError(
            f"Syntax error at line {e.line}, column {e.column}: {e}",
            e.line, e.column,
        ) from e
    result = CminusTransformer().transform(tree)
    logger.debug("Parsed %d syntax nodes", len(result.nodes))
    return result
