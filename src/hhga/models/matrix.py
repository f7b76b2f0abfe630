from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

from .events import DecodedEvent
from .reads import AlignedRead
from .reference import ReferenceWindow
from .region import Region


class Coverage(Enum):
    NONE = 'no-coverage'

    def __repr__(self) -> str:
        return 'NO_COVERAGE'


NO_COVERAGE = Coverage.NONE

Cell = Union[DecodedEvent, Coverage]


@dataclass(frozen=True)
class Column:
    """A matrix column: a reference position, or the ``offset``-th base
    inserted after it."""
    position: int
    offset: Optional[int] = None

    @property
    def is_reference(self) -> bool:
        return self.offset is None

    @property
    def is_insertion(self) -> bool:
        return self.offset is not None


class ColumnIndex:
    """Ordered columns spanning a region.

    Each reference position contributes its reference column followed by
    ``widths[position]`` insertion columns.
    """

    def __init__(self, region: Region, insertion_widths: Optional[Dict[int, int]] = None):
        self.region = region
        self.insertion_widths = {pos: width for pos, width in (insertion_widths or {}).items()
                                 if width > 0 and region.contains(pos)}
        self._columns: List[Column] = []
        self._lookup: Dict[Tuple[int, Optional[int]], int] = {}
        for position in range(region.start, region.end):
            self._add(Column(position))
            for offset in range(self.insertion_widths.get(position, 0)):
                self._add(Column(position, offset))

    def _add(self, column: Column) -> None:
        self._lookup[(column.position, column.offset)] = len(self._columns)
        self._columns.append(column)

    def __len__(self) -> int:
        return len(self._columns)

    def __iter__(self) -> Iterator[Column]:
        return iter(self._columns)

    def __getitem__(self, idx: int) -> Column:
        return self._columns[idx]

    def reference_column(self, position: int) -> Optional[int]:
        return self._lookup.get((position, None))

    def insertion_column(self, anchor: int, offset: int) -> Optional[int]:
        return self._lookup.get((anchor, offset))

    def column_for(self, event: DecodedEvent) -> Optional[int]:
        """Index of the column an event belongs in, or None if it falls outside."""
        if event.reference_position is not None:
            return self.reference_column(event.reference_position)
        if event.anchor is not None:
            return self.insertion_column(event.anchor, event.offset)
        return None

    @property
    def n_reference(self) -> int:
        return sum(1 for c in self._columns if c.is_reference)

    @property
    def n_insertion(self) -> int:
        return sum(self.insertion_widths.values())


@dataclass(frozen=True)
class MatrixRow:
    read: AlignedRead
    cells: Tuple[Cell, ...]

    def covered(self) -> Iterator[Tuple[int, DecodedEvent]]:
        for idx, cell in enumerate(self.cells):
            if cell is not NO_COVERAGE:
                yield idx, cell


@dataclass
class Matrix:
    """Dense rows-by-columns pileup of reads against a reference window."""
    region: Region
    reference: ReferenceWindow
    columns: ColumnIndex
    rows: List[MatrixRow] = field(default_factory=list)

    def __post_init__(self):
        for row in self.rows:
            self._check_row(row)

    def _check_row(self, row: MatrixRow) -> None:
        if len(row.cells) != len(self.columns):
            raise ValueError(f"Row for read {row.read.name} has {len(row.cells)} cells, expected {len(self.columns)}")

    @property
    def shape(self) -> Tuple[int, int]:
        return len(self.rows), len(self.columns)

    def cell(self, row: int, column: int) -> Cell:
        return self.rows[row].cells[column]

    def column_cells(self, column: int) -> List[Cell]:
        return [row.cells[column] for row in self.rows]

    def reference_base(self, column: int) -> Optional[str]:
        col = self.columns[column]
        if col.is_insertion:
            return None
        return self.reference.base_at(col.position)

    def read_names(self) -> Sequence[str]:
        return [row.read.name for row in self.rows]
