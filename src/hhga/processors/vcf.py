from pathlib import Path
from typing import Iterator, List, Optional
import logging

import pysam

from ..errors import SourceOpenError
from ..models.region import Region
from ..models.variants import VariantRecord


class VCFProcessor:
    """Handles reading VCF files and creating VariantRecord objects for a region."""

    def __init__(self, vcf_path: Path):
        self.vcf_path = Path(vcf_path)
        self._vcf: Optional[pysam.VariantFile] = None
        self.logger = logging.getLogger(__name__)

    def __enter__(self):
        """Open VCF file."""
        if not self.vcf_path.exists():
            raise SourceOpenError(f"VCF file not found: {self.vcf_path}")
        try:
            self._vcf = pysam.VariantFile(str(self.vcf_path), 'r')
        except (OSError, ValueError) as e:
            raise SourceOpenError(f"Could not open {self.vcf_path}: {e}") from e
        self.logger.debug(f"Opened VCF file: {self.vcf_path}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._vcf:
            self._vcf.close()
            self.logger.debug(f"Closed VCF file: {self.vcf_path}")
            self._vcf = None

    def _records(self, region: Region):
        if self._vcf.index is not None:
            try:
                return self._vcf.fetch(region.contig, region.start, region.end)
            except ValueError:
                # contig absent from the index, so no records there
                self.logger.debug(f"Contig '{region.contig}' not indexed in {self.vcf_path}")
                return iter(())
        self.logger.debug(f"No index for {self.vcf_path}, scanning all records")
        return iter(self._vcf)

    def variants_in(self, region: Region) -> Iterator[VariantRecord]:
        """Yield variants whose position lies inside ``region``.

        Raises:
            RuntimeError: if VCF file not opened
            ValueError: if a record has no reference allele
        """
        if not self._vcf:
            raise RuntimeError("VCF file not opened. Use with-statement to open file.")

        for record in self._records(region):
            if record.chrom != region.contig or not region.contains(record.start):
                continue
            yield VariantRecord.from_pysam_record(record)


def load_variants(vcf_path: Path, region: Region, logger: logging.Logger = None) -> List[VariantRecord]:
    """Load the variants in a region from a VCF file."""
    if logger:
        logger.info(f"Loading variants in {region} from {vcf_path}")

    with VCFProcessor(vcf_path) as vcf_proc:
        variants = list(vcf_proc.variants_in(region))

    if logger:
        logger.info(f"Loaded {len(variants)} variants")
    return variants
