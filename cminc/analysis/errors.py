"""Error definitions for C-minus semantic analysis."""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Semantic error codes and their user-facing messages."""

    DUPLICATE_RECORD = "Identifier already defined."
    DUPLICATE_SCOPE = "Scope already defined."
    INVALID_SCOPE = "Invalid scope provided."
    INVALID_TYPE = "Invalid expression being added."
    RECORD_NOT_FOUND = "Identifier not declared in any enclosing scope."
    INVALID_LHS = "Left operand is not an integer value."
    INVALID_RHS = "Right operand is not an integer value."
    SEMANTIC_FAILURE = "Type mismatch."
    VOID_ARGUMENT = "A void parameter must be the only parameter."
    NESTED_DEFINITION = "Functions may only be defined at global scope."
    BAD_PARAM_COUNT = "Wrong number of arguments."
    INVALID_PTYPE = "Argument does not match parameter type."
    INVALID_RETURN = "Return value does not match function type."
    INVALID_INDEX = "Array index is not a valid integer."
    MAIN_NOT_FOUND = "No main function defined."

    @property
    def message(self) -> str:
        return self.value

    @property
    def is_internal(self) -> bool:
        """Codes that can only come from an analyzer bug, never from user code."""
        return self is ErrorCode.INVALID_SCOPE


@dataclass(frozen=True)
class SemanticError:
    """One reported violation, in the order it was found."""

    code: ErrorCode
    line: int
    name: str = ""

    def format(self) -> str:
        detail = f" '{self.name}'" if self.name else ""
        return (
            f"***** SEMANTIC ERROR - {self.code.message}{detail}"
            f" - Line {self.line} *****"
        )

    def __str__(self):
        return self.format()


class SymbolTableError(Exception):
    """Raised by scope table operations that cannot be completed."""

    def __init__(self, code: ErrorCode, name: str = ""):
        super().__init__(f"{code.name}: {code.message}" + (f" ({name})" if name else ""))
        self.code = code
        self.name = name


class InternalAnalyzerError(RuntimeError):
    """The analyzer violated one of its own invariants; analysis cannot go on."""


class SemanticAnalysisError(Exception):
    """Raised by the driver when analysis reported errors."""

    def __init__(self, errors: list[SemanticError]):
        count = len(errors)
        super().__init__(
            f"semantic analysis failed with {count} error{'s' if count != 1 else ''}"
        )
        self.errors = errors
