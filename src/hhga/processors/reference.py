from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import pysam
from pysam.utils import SamtoolsError

from ..errors import OutOfBoundsError, SourceOpenError
from ..models.reference import ReferenceWindow
from ..models.region import Region


class ReferenceProcessor:
    """Handles FASTA access and produces reference windows for regions."""

    def __init__(self, fasta_path: Path):
        self.fasta_path = Path(fasta_path)
        self.logger = logging.getLogger(__name__)
        self._fasta: Optional[pysam.FastaFile] = None

    def __enter__(self):
        if not self.fasta_path.exists():
            raise SourceOpenError(f"Reference FASTA not found: {self.fasta_path}")

        fai_path = Path(str(self.fasta_path) + ".fai")
        if not fai_path.exists():
            self.logger.info(f"Index not found for {self.fasta_path}, creating index...")
            try:
                pysam.faidx(str(self.fasta_path))
                self.logger.info("Index created successfully")
            except (SamtoolsError, OSError) as exc:
                self.logger.error(f"Failed to create FASTA index: {exc}")
                raise SourceOpenError(f"Failed to create FASTA index for {self.fasta_path}: {exc}") from exc

        try:
            self._fasta = pysam.FastaFile(str(self.fasta_path))
        except (OSError, ValueError) as exc:
            raise SourceOpenError(f"Could not open reference {self.fasta_path}: {exc}") from exc
        self.logger.debug(f"Opened FASTA file: {self.fasta_path}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._fasta:
            self._fasta.close()
            self.logger.debug(f"Closed FASTA file: {self.fasta_path}")
            self._fasta = None

    def _require_open(self) -> pysam.FastaFile:
        if not self._fasta:
            raise RuntimeError("FASTA file not opened. Use with-statement to open file.")
        return self._fasta

    def contig_length(self, contig: str) -> int:
        fasta = self._require_open()
        if contig not in fasta.references:
            raise OutOfBoundsError(f"Unknown contig '{contig}' in {self.fasta_path}")
        return fasta.get_reference_length(contig)

    def resolve_region(self, region: Region) -> Region:
        """Fill in a missing end coordinate and check the region against the contig.

        Raises:
            OutOfBoundsError: if the contig is unknown or the region exceeds it
        """
        length = self.contig_length(region.contig)
        end = region.end if region.end is not None else length
        if region.start >= length or end > length:
            raise OutOfBoundsError(f"Region {region} exceeds length {length} of contig '{region.contig}'")
        return region.with_end(end)

    def fetch_window(self, region: Region) -> ReferenceWindow:
        """Fetch the reference bases covering ``[region.start, region.end)``.

        Raises:
            OutOfBoundsError: if the contig is unknown or the region exceeds it
        """
        resolved = self.resolve_region(region)
        sequence = self._require_open().fetch(resolved.contig, resolved.start, resolved.end)
        self.logger.debug(f"Fetched {len(sequence)} reference bases for {resolved}")
        return ReferenceWindow(region=resolved, sequence=sequence)
