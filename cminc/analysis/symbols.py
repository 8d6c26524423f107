"""Symbol records stored in the scope table."""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto

from cminc.builtins.types import DataType


class SymbolKind(Enum):
    SCALAR = auto()
    ARRAY = auto()
    SCOPE = auto()
    FUNCTION = auto()


@dataclass(frozen=True)
class SymbolRecord(ABC):
    """A declared identifier. Only the reference lines can change."""

    declared_line: int
    type: DataType
    location: int
    is_parameter: bool = False
    lines: list[int] = field(default_factory=list, compare=False)

    @property
    @abstractmethod
    def kind(self) -> SymbolKind: ...

    @property
    def is_array(self) -> bool:
        return self.kind is SymbolKind.ARRAY

    @property
    @abstractmethod
    def size(self) -> int: ...

    def add_line(self, line: int) -> None:
        self.lines.append(line)

    def describe(self) -> str:
        where = "parameter" if self.is_parameter else "location"
        return (
            f"{self.kind.name.lower()} {self.type} declared {self.declared_line}"
            f" {where} {self.location} size {self.size} refs {self.lines}"
        )


@dataclass(frozen=True)
class ScalarRecord(SymbolRecord):
    @property
    def kind(self) -> SymbolKind:
        return SymbolKind.SCALAR

    @property
    def size(self) -> int:
        return 1


@dataclass(frozen=True)
class ArrayRecord(SymbolRecord):
    length: int = 0

    def __post_init__(self):
        if self.length < 0:
            raise ValueError(f"Array size must be non-negative, got {self.length}")

    @property
    def kind(self) -> SymbolKind:
        return SymbolKind.ARRAY

    @property
    def size(self) -> int:
        return self.length


class RecordList:
    """Same-name records declared at one scope level.

    The first record is canonical; later ones are kept only so diagnostics
    can show every conflicting declaration.
    """

    def __init__(self, first: SymbolRecord):
        self.records: list[SymbolRecord] = [first]

    @property
    def first(self) -> SymbolRecord:
        return self.records[0]

    def add(self, record: SymbolRecord) -> None:
        self.records.append(record)

    def __len__(self):
        return len(self.records)

    def __iter__(self):
        return iter(self.records)
