"""Built-in routine signatures for C-minus."""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING

from cminc.builtins.types import DataType

if TYPE_CHECKING:
    from cminc.analysis.scope import ScopeNode


@dataclass(frozen=True)
class FuncSig:
    name: str
    params: tuple[bool, ...]   # is-array flag per parameter
    return_type: DataType


BUILTIN_FUNCTIONS: dict[str, FuncSig] = {
    "input": FuncSig("input", (), DataType.INTEGER),
    "output": FuncSig("output", (False,), DataType.VOID),
}


def register_builtins(table: ScopeNode) -> None:
    """Pre-register the built-in routines at the root of ``table``.

    Built-ins are inserted directly, so they never go through the duplicate
    declaration checks of ``add_scope``.
    """
    from cminc.analysis.scope import FunctionScope

    for sig in BUILTIN_FUNCTIONS.values():
        fn = FunctionScope(-1, sig.return_type)
        for is_array in sig.params:
            fn.add_parameter(is_array)
        table.entries[sig.name] = fn
