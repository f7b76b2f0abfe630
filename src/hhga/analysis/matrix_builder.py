from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

from ..errors import ReadError
from ..models.events import DecodedRead, EventKind
from ..models.matrix import NO_COVERAGE, ColumnIndex, Matrix, MatrixRow
from ..models.reads import AlignedRead, validate_operations
from ..models.reference import ReferenceWindow
from ..models.region import Region
from ..models.report import RunWarnings
from ..utils.common import calculate_chunks
from .decoder import AlignmentDecoder

DecodeOutcome = Tuple[AlignedRead, Union[DecodedRead, ReadError]]


@dataclass
class ColumnMatrixBuilder:
    """Builds a dense read-by-column matrix for one region.

    Reads are decoded (optionally across a thread pool), then placed in two
    passes: the first finds the widest insertion at every anchor so the
    column layout is final, the second writes each read's events into that
    fixed layout. Rows are never re-shifted after placement.
    """
    region: Region
    reference: ReferenceWindow
    threads: int = 1
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__), repr=False)

    def __post_init__(self):
        if not self.region.is_resolved:
            raise ValueError(f"Region {self.region} must have an end coordinate")

    def build(
        self,
        reads: Iterable[AlignedRead],
        warnings: Optional[RunWarnings] = None,
        on_chunk: Optional[Callable[[int], None]] = None,
    ) -> Matrix:
        """Decode and place ``reads``.

        Args:
            reads: Aligned reads; reads off the region are ignored
            warnings: Collector for reads skipped because of per-read errors
            on_chunk: Called with the number of reads in each decoded chunk

        Returns:
            Matrix with one row per read that has at least one cell in the region
        """
        if warnings is None:
            warnings = RunWarnings()

        candidates = sorted((r for r in reads if self._in_region(r)), key=lambda r: r.sort_key)
        self.logger.debug(f"{len(candidates)} reads overlap {self.region}")

        decoded = self.decode_all(candidates, warnings, on_chunk)
        columns = self.compute_columns(decoded)
        self.logger.debug(f"Column layout for {self.region}: {columns.n_reference} reference, {columns.n_insertion} insertion columns")
        rows = self.place(decoded, columns)
        self.logger.info(f"Built {len(rows)} x {len(columns)} matrix for {self.region}")
        return Matrix(region=self.region, reference=self.reference, columns=columns, rows=rows)

    def _in_region(self, read: AlignedRead) -> bool:
        if read.contig != self.region.contig:
            return False
        return self.region.overlaps(read.placement_start, read.reference_end)

    def decode_all(
        self,
        reads: List[AlignedRead],
        warnings: RunWarnings,
        on_chunk: Optional[Callable[[int], None]] = None,
    ) -> List[DecodedRead]:
        if not reads:
            return []

        decoder = AlignmentDecoder(self.reference)
        chunks, _ = calculate_chunks(reads, self.threads)
        outcomes: List[List[DecodeOutcome]] = []

        if self.threads <= 1 or len(chunks) == 1:
            for chunk in chunks:
                outcomes.append(self._decode_chunk(decoder, chunk))
                if on_chunk:
                    on_chunk(len(chunk))
        else:
            self.logger.debug(f"Decoding {len(reads)} reads in {len(chunks)} chunks on {self.threads} threads")
            with ThreadPoolExecutor(max_workers=self.threads) as executor:
                futures = [executor.submit(self._decode_chunk, decoder, chunk) for chunk in chunks]
                # every chunk must finish before columns are laid out
                for chunk, future in zip(chunks, futures):
                    outcomes.append(future.result())
                    if on_chunk:
                        on_chunk(len(chunk))

        decoded = []
        for chunk_outcomes in outcomes:
            for read, result in chunk_outcomes:
                if isinstance(result, ReadError):
                    warnings.record(result, source_index=read.source_index, read_name=read.name)
                else:
                    decoded.append(result)
        return decoded

    @staticmethod
    def _decode_chunk(decoder: AlignmentDecoder, chunk: List[AlignedRead]) -> List[DecodeOutcome]:
        results: List[DecodeOutcome] = []
        for read in chunk:
            try:
                validate_operations(read.operations)
                results.append((read, decoder.decode(read)))
            except ReadError as exc:
                results.append((read, exc))
        return results

    def compute_columns(self, decoded: Iterable[DecodedRead]) -> ColumnIndex:
        widths: Dict[int, int] = {}
        for decoded_read in decoded:
            for event in decoded_read.events:
                if event.kind != EventKind.INSERTION or not self.region.contains(event.anchor):
                    continue
                widths[event.anchor] = max(widths.get(event.anchor, 0), event.offset + 1)
        return ColumnIndex(self.region, widths)

    def place(self, decoded: Iterable[DecodedRead], columns: ColumnIndex) -> List[MatrixRow]:
        rows = []
        for decoded_read in decoded:
            cells = [NO_COVERAGE] * len(columns)
            placed = 0
            for event in decoded_read.events:
                idx = columns.column_for(event)
                if idx is None:
                    continue
                cells[idx] = event
                placed += 1
            if placed:
                rows.append(MatrixRow(read=decoded_read.read, cells=tuple(cells)))
            else:
                self.logger.debug(f"Read {decoded_read.read.name} has no events inside {self.region}")
        return rows
