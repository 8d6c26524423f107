"""Top-level compiler orchestration."""

from __future__ import annotations
import logging
from typing import TextIO

from cminc.parser.tree_builder import parse_cminus
from cminc.analysis.analyzer import AnalysisResult, analyze
from cminc.analysis.errors import SemanticAnalysisError

logger = logging.getLogger(__name__)


def compile_source(
    source: str,
    source_name: str = "",
    dump_ast: bool = False,
    print_table: bool = False,
    require_main: bool = True,
    stream: TextIO | None = None,
) -> AnalysisResult | None:
    """Run the front end and semantic analysis over ``source``.

    Returns ``None`` when only the tree dump was requested. Raises
    ``SemanticAnalysisError`` when analysis reported anything, so nothing
    downstream ever sees a table built from an invalid program.
    """
    tree = parse_cminus(source)

    if dump_ast:
        _dump_ast(tree)
        return None

    logger.debug("Analyzing %s", source_name or "<source>")
    result = analyze(tree, require_main=require_main, stream=stream)

    if print_table:
        result.table.print_table()

    if result.error_occurred:
        raise SemanticAnalysisError(result.errors)
    return result


def _dump_ast(tree):
    import dataclasses, json

    def _ser(obj):
        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            d = {"_type": type(obj).__name__}
            d.update(dataclasses.asdict(obj))
            return d
        if isinstance(obj, list):
            return [_ser(x) for x in obj]
        return obj

    print(json.dumps(_ser(tree), indent=2, default=str))
