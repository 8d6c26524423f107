"""Tests for the compiler driver and the command-line interface."""

import io
import json
import pytest
from pathlib import Path
from cminc.compiler import compile_source
from cminc.cli import main
from cminc.analysis.errors import ErrorCode, SemanticAnalysisError
from cminc.analysis.scope import FunctionScope
from cminc.parser.tree_builder import CminusSyntaxError

FIXTURES = Path(__file__).parent / "fixtures"


class TestCompileSource:
    def test_gcd_fixture(self):
        src = (FIXTURES / "gcd.cm").read_text()
        result = compile_source(src, "gcd.cm")
        assert not result.error_occurred
        assert result.table.scope_at("gcd").parameters == [False, False]

    def test_sort_fixture(self):
        src = (FIXTURES / "sort.cm").read_text()
        result = compile_source(src, "sort.cm")
        table = result.table
        assert isinstance(table.scope_at("minloc"), FunctionScope)
        assert table.resolve("sort.while_3", "t").location == 2
        # minloc's loop declares nothing, so both of its scopes are pruned
        assert set(table.scope_at("minloc").entries) == {"a", "low", "high", "i", "x", "k"}
        assert table.resolve("main", "x").is_array

    def test_errors_raise_after_full_walk(self):
        src = (FIXTURES / "errors.cm").read_text()
        stream = io.StringIO()
        with pytest.raises(SemanticAnalysisError) as exc:
            compile_source(src, "errors.cm", stream=stream)
        assert [e.code for e in exc.value.errors] == [
            ErrorCode.DUPLICATE_RECORD,
            ErrorCode.RECORD_NOT_FOUND,
            ErrorCode.BAD_PARAM_COUNT,
        ]
        assert "3 errors" in str(exc.value)
        assert stream.getvalue().count("SEMANTIC ERROR") == 3

    def test_syntax_error_propagates(self):
        with pytest.raises(CminusSyntaxError):
            compile_source("int main(void) {")

    def test_require_main_flag(self):
        src = "int f(void) { return 1; }"
        with pytest.raises(SemanticAnalysisError):
            compile_source(src, stream=io.StringIO())
        assert compile_source(src, require_main=False) is not None

    def test_dump_ast(self, capsys):
        result = compile_source("int main(void) { }", dump_ast=True)
        assert result is None
        data = json.loads(capsys.readouterr().out)
        assert data["_type"] == "SyntaxTree"
        assert "FUNCTION" in data["nodes"][-1]["kind"]
        assert data["nodes"][-1]["name"] == "main"

    def test_print_table(self, capsys):
        compile_source((FIXTURES / "gcd.cm").read_text(), print_table=True)
        out = capsys.readouterr().out
        assert out.startswith("<global>")
        assert "gcd: function int (int, int)" in out
        assert "output: function void (int)" in out


class TestCli:
    def test_success_message(self, capsys):
        main([str(FIXTURES / "gcd.cm")])
        assert "gcd.cm: no semantic errors" in capsys.readouterr().out

    def test_semantic_errors_exit_nonzero(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main([str(FIXTURES / "errors.cm")])
        assert exc.value.code == 1
        err = capsys.readouterr().err
        assert "***** SEMANTIC ERROR - Identifier already defined. 'a' - Line 3 *****" in err
        assert "Error: semantic analysis failed with 3 errors" in err

    def test_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            main([str(tmp_path / "absent.cm")])
        assert exc.value.code == 1
        assert "file not found" in capsys.readouterr().err

    def test_syntax_error_reported(self, tmp_path, capsys):
        path = tmp_path / "broken.cm"
        path.write_text("int main(void) { int x }")
        with pytest.raises(SystemExit):
            main([str(path)])
        assert "Syntax error at line 1" in capsys.readouterr().err

    def test_no_main_check(self, tmp_path, capsys):
        path = tmp_path / "lib.cm"
        path.write_text("int twice(int n) { return n + n; }\n")
        main([str(path), "--no-main-check"])
        assert "lib.cm: no semantic errors" in capsys.readouterr().out

    def test_print_table_flag(self, capsys):
        main([str(FIXTURES / "gcd.cm"), "--print-table"])
        out = capsys.readouterr().out
        assert "main: function int (void)" in out

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        assert exc.value.code == 0
        assert "cminc 0.1.0" in capsys.readouterr().out

    def test_no_input_prints_help(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 0
        assert "usage" in capsys.readouterr().out
