from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, auto
from functools import cached_property
from typing import Dict, Optional, Sequence, Tuple

import pysam

from ..errors import MalformedAlignmentError


class CigarOp(Enum):
    """Alignment operation kinds relevant to column placement."""
    MATCH = auto()      # M, =, X
    INSERTION = auto()  # I
    DELETION = auto()   # D, N
    SOFT_CLIP = auto()  # S
    HARD_CLIP = auto()  # H

    @property
    def consumes_reference(self) -> bool:
        return self in (CigarOp.MATCH, CigarOp.DELETION)

    @property
    def consumes_query(self) -> bool:
        return self in (CigarOp.MATCH, CigarOp.INSERTION, CigarOp.SOFT_CLIP)

    @property
    def is_clip(self) -> bool:
        return self in (CigarOp.SOFT_CLIP, CigarOp.HARD_CLIP)


# pysam cigartuple codes; 6 (P, padding) consumes nothing and is dropped
PYSAM_OPS = {0: CigarOp.MATCH, 1: CigarOp.INSERTION, 2: CigarOp.DELETION, 3: CigarOp.DELETION,
             4: CigarOp.SOFT_CLIP, 5: CigarOp.HARD_CLIP, 7: CigarOp.MATCH, 8: CigarOp.MATCH}
CIGAR_CHARS = {'M': 0, 'I': 1, 'D': 2, 'N': 3, 'S': 4, 'H': 5, 'P': 6, '=': 7, 'X': 8}
PADDING = 6

CIGAR_PATTERN = re.compile(r'(\d+)([MIDNSHP=X])')


@dataclass(frozen=True)
class Operation:
    kind: CigarOp
    length: int

    def __str__(self) -> str:
        return f"{self.kind.name}({self.length})"


def operations_from_cigartuples(cigartuples: Sequence[Tuple[int, int]]) -> Tuple[Operation, ...]:
    """Convert pysam cigartuples into Operations.

    Raises:
        MalformedAlignmentError: on unknown operation codes or non-positive lengths
    """
    operations = []
    for code, length in cigartuples:
        if code == PADDING:
            continue
        kind = PYSAM_OPS.get(code)
        if kind is None:
            raise MalformedAlignmentError(f"Unknown CIGAR operation code: {code}")
        if length <= 0:
            raise MalformedAlignmentError(f"CIGAR operation {kind.name} has non-positive length {length}")
        operations.append(Operation(kind, length))
    return tuple(operations)


def parse_cigar(cigar: str) -> Tuple[Operation, ...]:
    """Parse a CIGAR string such as ``5M2I5M``."""
    if not cigar or cigar == '*':
        raise MalformedAlignmentError("Empty CIGAR string")
    matches = CIGAR_PATTERN.findall(cigar)
    if ''.join(f"{length}{op}" for length, op in matches) != cigar:
        raise MalformedAlignmentError(f"Invalid CIGAR string: {cigar}")
    return operations_from_cigartuples([(CIGAR_CHARS[op], int(length)) for length, op in matches])


def validate_operations(operations: Sequence[Operation]) -> None:
    """Check the structural rules of an operation list.

    Hard clips may only be the outermost operations, soft clips may only
    be preceded/followed by hard clips, and at least one operation must
    consume reference bases.

    Raises:
        MalformedAlignmentError: if any rule is broken
    """
    if not operations:
        raise MalformedAlignmentError("Operation list is empty")

    n_ops = len(operations)
    for idx, op in enumerate(operations):
        if op.length <= 0:
            raise MalformedAlignmentError(f"Operation {op} has non-positive length")
        if op.kind == CigarOp.HARD_CLIP and idx not in (0, n_ops - 1):
            raise MalformedAlignmentError(f"Hard clip in the middle of the operation list at index {idx}")
        if op.kind == CigarOp.SOFT_CLIP:
            before = operations[:idx]
            after = operations[idx + 1:]
            at_left = all(o.kind == CigarOp.HARD_CLIP for o in before)
            at_right = all(o.kind == CigarOp.HARD_CLIP for o in after)
            if not (at_left or at_right):
                raise MalformedAlignmentError(f"Soft clip in the middle of the operation list at index {idx}")

    if not any(op.kind.consumes_reference for op in operations):
        raise MalformedAlignmentError("Operation list consumes no reference bases")


@dataclass(frozen=True)
class AlignedRead:
    """An aligned read detached from its source file.

    ``source_index`` identifies the input file the read came from and
    ``file_order`` its position within that file's stream; together with
    ``reference_start`` they give the merge order.
    """
    source_index: int
    name: str
    contig: str
    reference_start: int
    operations: Tuple[Operation, ...]
    sequence: str
    qualities: Optional[Tuple[int, ...]] = None
    mapq: int = 0
    strand: str = '+'
    file_order: int = 0

    def __post_init__(self):
        if self.reference_start < 0:
            raise MalformedAlignmentError(f"Read {self.name} has negative reference start", read_name=self.name)
        if self.qualities is not None and len(self.qualities) != len(self.sequence):
            raise MalformedAlignmentError(
                f"Read {self.name} has {len(self.qualities)} qualities for {len(self.sequence)} bases",
                read_name=self.name)

    @classmethod
    def from_pysam_read(cls, read: pysam.AlignedSegment, source_index: int = 0, file_order: int = 0) -> 'AlignedRead':
        """Build an AlignedRead from a pysam record.

        Raises:
            MalformedAlignmentError: if the record has no CIGAR, no sequence,
                or an invalid operation list
        """
        name = read.query_name
        if not read.cigartuples:
            raise MalformedAlignmentError(f"Read {name} has no CIGAR operations", read_name=name)
        if read.query_sequence is None:
            raise MalformedAlignmentError(f"Read {name} has no stored sequence", read_name=name)

        try:
            operations = operations_from_cigartuples(read.cigartuples)
            validate_operations(operations)
        except MalformedAlignmentError as exc:
            raise MalformedAlignmentError(f"Read {name}: {exc}", read_name=name) from exc

        qualities = read.query_qualities
        return cls(
            source_index=source_index,
            name=name,
            contig=read.reference_name,
            reference_start=read.reference_start,
            operations=operations,
            sequence=read.query_sequence,
            qualities=tuple(qualities) if qualities is not None else None,
            mapq=read.mapping_quality,
            strand='-' if read.is_reverse else '+',
            file_order=file_order,
        )

    @cached_property
    def reference_length(self) -> int:
        return sum(op.length for op in self.operations if op.kind.consumes_reference)

    @property
    def reference_end(self) -> int:
        return self.reference_start + self.reference_length

    @property
    def placement_start(self) -> int:
        """First position the read contributes a column to.

        A leading insertion hangs off the base before ``reference_start``.
        """
        for op in self.operations:
            if op.kind.is_clip:
                continue
            if op.kind == CigarOp.INSERTION:
                return self.reference_start - 1
            break
        return self.reference_start

    @cached_property
    def query_consumed(self) -> int:
        return sum(op.length for op in self.operations if op.kind.consumes_query)

    @property
    def length(self) -> int:
        return len(self.sequence)

    @property
    def cigar(self) -> str:
        codes = {CigarOp.MATCH: 'M', CigarOp.INSERTION: 'I', CigarOp.DELETION: 'D',
                 CigarOp.SOFT_CLIP: 'S', CigarOp.HARD_CLIP: 'H'}
        return ''.join(f"{op.length}{codes[op.kind]}" for op in self.operations)

    @property
    def sort_key(self) -> Tuple[int, int, int]:
        return (self.reference_start, self.source_index, self.file_order)

    @cached_property
    def cigar_stats(self) -> Dict[str, int]:
        stats: Dict[str, int] = {}
        for op in self.operations:
            stats[op.kind.name] = stats.get(op.kind.name, 0) + op.length
        return stats
