from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional

from ..errors import CigarLengthMismatchError
from ..models.events import GAP, DecodedEvent, DecodedRead, EventKind
from ..models.reads import AlignedRead, CigarOp
from ..models.reference import ReferenceWindow


@dataclass
class AlignmentDecoder:
    """Expands a read's operations into one event per consumed base.

    Match bases are compared against ``reference`` to separate matches
    from mismatches. Positions outside the reference window have no base
    to compare against and are reported as matches.
    """
    reference: Optional[ReferenceWindow] = None

    def decode(self, read: AlignedRead) -> DecodedRead:
        return DecodedRead(read=read, events=tuple(self.iter_events(read)))

    def iter_events(self, read: AlignedRead) -> Iterator[DecodedEvent]:
        sequence = read.sequence
        seq_len = len(sequence)
        ref_pos = read.reference_start
        query_idx = 0
        insert_offset = 0

        for op in read.operations:
            if op.kind.consumes_query and query_idx + op.length > seq_len:
                raise CigarLengthMismatchError(
                    f"Read {read.name}: {op} at read offset {query_idx} runs past sequence length {seq_len}",
                    read_name=read.name)

            if op.kind == CigarOp.MATCH:
                for _ in range(op.length):
                    base = sequence[query_idx]
                    yield DecodedEvent(
                        kind=self._classify(base, ref_pos),
                        base=base,
                        quality=self._quality(read, query_idx),
                        reference_position=ref_pos,
                    )
                    ref_pos += 1
                    query_idx += 1
                insert_offset = 0
            elif op.kind == CigarOp.INSERTION:
                # inserted bases hang off the last reference position seen
                for _ in range(op.length):
                    yield DecodedEvent(
                        kind=EventKind.INSERTION,
                        base=sequence[query_idx],
                        quality=self._quality(read, query_idx),
                        anchor=ref_pos - 1,
                        offset=insert_offset,
                    )
                    insert_offset += 1
                    query_idx += 1
            elif op.kind == CigarOp.DELETION:
                for _ in range(op.length):
                    yield DecodedEvent(kind=EventKind.DELETION, base=GAP, reference_position=ref_pos)
                    ref_pos += 1
                insert_offset = 0
            elif op.kind == CigarOp.SOFT_CLIP:
                for _ in range(op.length):
                    yield DecodedEvent(
                        kind=EventKind.CLIP,
                        base=sequence[query_idx],
                        quality=self._quality(read, query_idx),
                    )
                    query_idx += 1

        if query_idx != seq_len:
            raise CigarLengthMismatchError(
                f"Read {read.name}: operations consume {query_idx} bases but sequence has {seq_len}",
                read_name=read.name)

    def _classify(self, base: str, position: int) -> EventKind:
        if self.reference is None:
            return EventKind.MATCH
        ref_base = self.reference.base_at(position)
        if ref_base is None or ref_base == base.upper():
            return EventKind.MATCH
        return EventKind.MISMATCH

    @staticmethod
    def _quality(read: AlignedRead, query_idx: int) -> Optional[int]:
        if read.qualities is None:
            return None
        return read.qualities[query_idx]
