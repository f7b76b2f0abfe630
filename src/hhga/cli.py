#!/usr/bin/env python3
import argparse
import sys

from rich_argparse import RawDescriptionRichHelpFormatter

from hhga.commands import run_report
from hhga.errors import HHGAError
from hhga.utils import ReportConfig, setup_file_logging


def display_ascii():
    print("""
        \033[1mhhga\033[0m

        \033[3mreports on the rate of putative mutations or errors in aligned reads\033[0m
        """, file=sys.stderr)


class HHGAArgumentParser(argparse.ArgumentParser):
    """Custom argument parser that shows program-specific help on error."""

    def error(self, message):
        """Upon error, prints help message and error."""
        display_ascii()
        self.print_help(sys.stderr)
        self.exit(2, f'\n\033[31mERROR\033[0m: {message}\n')


def build_parser() -> HHGAArgumentParser:
    parser = HHGAArgumentParser(
        prog='hhga',
        formatter_class=RawDescriptionRichHelpFormatter,
        description="""
Generates reports on the rate of putative mutations or errors in the input alignment data.
Reads from every alignment file are merged into one matrix against the reference region.
        """,
        epilog="""
Example:
  hhga -f ref.fa -b sample1.bam -b sample2.bam -r chr1:100-200
  hhga -f ref.fa -b sample.bam -r chr1:100-200 -v known.vcf.gz --stats sites.tsv

Regions are chr:start-end with a 0-based start and exclusive end.
        """
    )
    parser.add_argument("--fasta-reference", "-f", required=True,
                        help="Reference FASTA (required)")
    parser.add_argument("--bam", "-b", action="append", required=True,
                        help="Alignment file (BAM/SAM/CRAM); may be given multiple times (required)")
    parser.add_argument("--region", "-r", required=True,
                        help="Limit output to this region, chr:start-end (required)")
    parser.add_argument("--vcf", "-v",
                        help="Known variants to overlay on the report")
    parser.add_argument("--output", "-o",
                        help="Write the report to this file (default: stdout)")
    parser.add_argument("--stats",
                        help="Write per-column mismatch/indel rates to this TSV file")
    parser.add_argument("--min-mapq", type=int, default=0,
                        help="Minimum mapping quality of reads to include (default: 0)")
    parser.add_argument("--threads", "-t", type=int, default=1,
                        help="Number of threads used to decode reads (default: 1)")
    parser.add_argument("--logging",
                        help="Log directory (default: no log file)")
    parser.add_argument("--debug", action="store_true",
                        help="Enable debug logging")
    parser.add_argument("--console-output", action="store_true",
                        help="Enable logging to stderr (default: False)")
    return parser


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.min_mapq < 0:
        parser.error("--min-mapq must be non-negative")
    if args.threads < 1:
        parser.error("--threads must be at least 1")
    return args, parser


def main(argv=None):
    args, parser = parse_args(argv)
    try:
        config = ReportConfig.from_args(args)
    except ValueError as e:
        parser.error(str(e))

    logger = setup_file_logging(config.log_dir, 'report', config.debug, config.console_output)
    try:
        run_report(config, logger)
    except HHGAError as e:
        logger.error(str(e))
        print(f"\033[31mERROR\033[0m: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
