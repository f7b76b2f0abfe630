from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..models.region import Region


@dataclass(frozen=True)
class ReportConfig:
    """Configuration for a region report run."""
    # Required arguments
    fasta_reference: Path
    region: Region
    alignment_files: List[Path] = field(default_factory=list)

    # Optional arguments
    vcf_file: Optional[Path] = None
    output: Optional[Path] = None  # stdout if not specified
    stats_output: Optional[Path] = None
    min_mapq: int = 0
    threads: int = 1
    log_dir: Optional[Path] = None
    debug: bool = False
    console_output: bool = False

    @classmethod
    def from_args(cls, args):
        """Create ReportConfig instance from parsed command line arguments."""
        return cls(
            fasta_reference=Path(args.fasta_reference),
            region=Region.parse(args.region),
            alignment_files=[Path(path) for path in args.bam],
            vcf_file=Path(args.vcf) if args.vcf else None,
            output=Path(args.output) if args.output else None,
            stats_output=Path(args.stats) if args.stats else None,
            min_mapq=args.min_mapq,
            threads=max(1, args.threads),
            log_dir=Path(args.logging) if args.logging else None,
            debug=args.debug,
            console_output=args.console_output,
        )
