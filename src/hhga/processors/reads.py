from __future__ import annotations

import heapq
import logging
import os
from contextlib import ExitStack
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence

import pysam
from pysam.utils import SamtoolsError

from ..errors import MalformedAlignmentError, SourceOpenError
from ..models.reads import AlignedRead
from ..models.region import Region
from ..models.report import RunWarnings

INDEX_SUFFIXES = ('.bai', '.csi')


class ReadProcessor:
    """Handles access to one alignment file and yields the reads in a region."""

    def __init__(self, alignment_path: Path, source_index: int = 0, min_mapq: int = 0, reference_path: Optional[Path] = None):
        self.alignment_path = Path(alignment_path)
        self.reference_path = reference_path
        self.source_index = source_index
        self.min_mapq = min_mapq
        self.logger = logging.getLogger(__name__)
        self._alignment: Optional[pysam.AlignmentFile] = None

    def __enter__(self):
        if not self.alignment_path.exists():
            raise SourceOpenError(f"Alignment file not found: {self.alignment_path}")

        if self.alignment_path.suffix == '.bam' and not self._index_exists():
            self.logger.info(f"Index not found for {self.alignment_path}, creating index...")
            try:
                pysam.samtools.index(str(self.alignment_path))
                self.logger.info("Index created successfully")
            except SamtoolsError as exc:
                # unsorted BAMs cannot be indexed; they are scanned instead
                self.logger.warning(f"Failed to create BAM index, falling back to a full scan: {exc}")

        threads = max(1, (os.cpu_count() or 2) // 2)
        try:
            # CRAM records are decoded against the reference
            reference = str(self.reference_path) if self.reference_path else None
            self._alignment = pysam.AlignmentFile(str(self.alignment_path), "r", threads=threads,
                                                  reference_filename=reference)
        except (OSError, ValueError) as exc:
            raise SourceOpenError(f"Could not open alignment file {self.alignment_path}: {exc}") from exc
        self.logger.debug(f"Opened alignment file: {self.alignment_path} (source {self.source_index})")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._alignment:
            self._alignment.close()
            self.logger.debug(f"Closed alignment file: {self.alignment_path}")
            self._alignment = None

    def _index_exists(self) -> bool:
        return any(Path(str(self.alignment_path) + suffix).exists() for suffix in INDEX_SUFFIXES)

    def _fetch_records(self, region: Region) -> Iterable[pysam.AlignedSegment]:
        if not self._alignment:
            raise RuntimeError("Alignment file not opened. Use with-statement to open file.")

        if region.contig not in self._alignment.references:
            self.logger.warning(f"Contig '{region.contig}' not present in {self.alignment_path}")
            return iter(())
        if self._alignment.has_index():
            # one past the end picks up reads whose leading insertion anchors on the last base
            return self._alignment.fetch(region.contig, region.start, region.end + 1)
        self.logger.debug(f"No index for {self.alignment_path}, scanning all records")
        return self._alignment.fetch(until_eof=True)

    def iter_reads(self, region: Region, warnings: Optional[RunWarnings] = None) -> Iterator[AlignedRead]:
        """Yield mapped reads overlapping ``region`` ordered by reference start.

        Reads with malformed operation lists are recorded in ``warnings``
        and skipped.
        """
        if warnings is None:
            warnings = RunWarnings()
        indexed = self._alignment is not None and self._alignment.has_index()
        reads = self._convert(self._fetch_records(region), region, warnings)
        if indexed:
            yield from reads
        else:
            yield from sorted(reads, key=lambda r: (r.reference_start, r.file_order))

    def _convert(self, records: Iterable[pysam.AlignedSegment], region: Region, warnings: RunWarnings) -> Iterator[AlignedRead]:
        kept = 0
        for file_order, record in enumerate(records):
            if record.is_unmapped or record.reference_name != region.contig:
                continue
            # one row per molecule: only primary alignments are kept
            if record.is_secondary or record.is_supplementary:
                continue
            if record.mapping_quality < self.min_mapq:
                continue
            try:
                read = AlignedRead.from_pysam_read(record, source_index=self.source_index, file_order=file_order)
            except MalformedAlignmentError as exc:
                warnings.record(exc, source_index=self.source_index, read_name=record.query_name)
                continue
            if not region.overlaps(read.placement_start, read.reference_end):
                continue
            kept += 1
            yield read
        self.logger.debug(f"Kept {kept} reads from {self.alignment_path} in {region}")


class ReadStreamMerger:
    """Opens several alignment files and merges their reads into one ordered stream.

    Each source is read lazily; the merged order is by reference start, then
    source index, then order within the source.
    """

    def __init__(self, alignment_paths: Sequence[Path], min_mapq: int = 0, reference_path: Optional[Path] = None):
        if not alignment_paths:
            raise ValueError("At least one alignment file is required")
        self.processors: List[ReadProcessor] = [
            ReadProcessor(Path(path), source_index=idx, min_mapq=min_mapq, reference_path=reference_path)
            for idx, path in enumerate(alignment_paths)
        ]
        self.logger = logging.getLogger(__name__)
        self._stack: Optional[ExitStack] = None

    def __enter__(self):
        with ExitStack() as stack:
            for processor in self.processors:
                stack.enter_context(processor)
            self._stack = stack.pop_all()
        self.logger.debug(f"Opened {len(self.processors)} alignment sources")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._stack:
            self._stack.close()
            self._stack = None

    def iter_reads(self, region: Region, warnings: Optional[RunWarnings] = None) -> Iterator[AlignedRead]:
        if warnings is None:
            warnings = RunWarnings()
        streams = [processor.iter_reads(region, warnings) for processor in self.processors]
        return heapq.merge(*streams, key=lambda read: read.sort_key)
