"""Tests for symbol records."""

import dataclasses
import pytest
from cminc.analysis.symbols import (
    ScalarRecord, ArrayRecord, RecordList, SymbolKind, SymbolRecord,
)
from cminc.builtins.types import DataType


class TestRecords:
    def test_scalar_record(self):
        r = ScalarRecord(3, DataType.INTEGER, 0)
        assert r.kind is SymbolKind.SCALAR
        assert not r.is_array
        assert r.size == 1
        assert r.lines == []

    def test_array_record(self):
        r = ArrayRecord(4, DataType.INTEGER, 2, length=10)
        assert r.kind is SymbolKind.ARRAY
        assert r.is_array
        assert r.size == 10
        assert r.location == 2

    def test_array_parameter_has_zero_size(self):
        r = ArrayRecord(1, DataType.INTEGER, 0, is_parameter=True)
        assert r.size == 0
        assert r.is_parameter

    def test_negative_array_size_rejected(self):
        with pytest.raises(ValueError):
            ArrayRecord(1, DataType.INTEGER, 0, length=-1)

    def test_add_line_appends_in_order(self):
        r = ScalarRecord(1, DataType.INTEGER, 0)
        r.add_line(5)
        r.add_line(2)
        r.add_line(5)
        assert r.lines == [5, 2, 5]

    def test_declaration_site_is_immutable(self):
        r = ScalarRecord(1, DataType.INTEGER, 0)
        with pytest.raises(dataclasses.FrozenInstanceError):
            r.declared_line = 7
        with pytest.raises(dataclasses.FrozenInstanceError):
            r.type = DataType.VOID

    def test_lines_not_shared_between_records(self):
        a = ScalarRecord(1, DataType.INTEGER, 0)
        b = ScalarRecord(1, DataType.INTEGER, 0)
        a.add_line(9)
        assert b.lines == []

    def test_describe_mentions_parameter(self):
        r = ScalarRecord(2, DataType.INTEGER, 1, is_parameter=True)
        assert "parameter 1" in r.describe()
        assert "scalar int" in r.describe()

    def test_base_record_is_abstract(self):
        with pytest.raises(TypeError):
            SymbolRecord(1, DataType.INTEGER, 0)


class TestRecordList:
    def test_first_is_canonical(self):
        first = ScalarRecord(1, DataType.INTEGER, 0)
        second = ArrayRecord(2, DataType.INTEGER, 1, length=3)
        group = RecordList(first)
        group.add(second)
        assert group.first is first
        assert len(group) == 2
        assert list(group) == [first, second]
