"""Command module for region report generation."""

import logging
import sys
import time
from concurrent.futures import ThreadPoolExecutor

from rich.console import Console
from rich.progress import Progress, TextColumn, BarColumn, TaskProgressColumn, TimeElapsedColumn

from hhga.analysis.pipeline import build_report
from hhga.analysis.stats import export_site_stats_tsv, site_statistics
from hhga.models.report import ReportResult, RunWarnings
from hhga.processors.reads import ReadStreamMerger
from hhga.processors.reference import ReferenceProcessor
from hhga.processors.vcf import load_variants
from hhga.utils.common import setup_output_directory
from hhga.utils.config import ReportConfig


def run_report(config: ReportConfig, logger: logging.Logger) -> ReportResult:
    """Run the report pipeline for a single region.

    The reference window and the known variants are loaded on worker
    threads while reads stream from the alignment files.

    Raises:
        SourceOpenError: if any input file cannot be opened
        OutOfBoundsError: if the region does not fit its reference contig
    """
    console = Console(stderr=True)
    warnings = RunWarnings()
    start_time = time.time()

    with ReferenceProcessor(config.fasta_reference) as ref_proc, \
         ThreadPoolExecutor(max_workers=2) as executor:
        region = ref_proc.resolve_region(config.region)
        logger.info(f"Building report for {region} from {len(config.alignment_files)} alignment files")

        reference_future = executor.submit(ref_proc.fetch_window, region)
        variant_future = None
        if config.vcf_file is not None:
            variant_future = executor.submit(load_variants, config.vcf_file, region, logger)

        with ReadStreamMerger(config.alignment_files, min_mapq=config.min_mapq,
                              reference_path=config.fasta_reference) as merger:
            reads = list(merger.iter_reads(region, warnings))
        logger.info(f"Loaded {len(reads)} reads overlapping {region}")

        reference = reference_future.result()
        variants = variant_future.result() if variant_future is not None else None

    with Progress(TextColumn("[bold blue]{task.description}"),
                  BarColumn(complete_style="green"),
                  TaskProgressColumn(),
                  TimeElapsedColumn(),
                  console=console,
                  transient=True) as progress:
        task = progress.add_task("[cyan]Decoding reads...", total=len(reads))
        result = build_report(
            region,
            reference,
            reads,
            variants=variants,
            threads=config.threads,
            warnings=warnings,
            on_chunk=lambda n: progress.update(task, advance=n),
        )

    if config.output is not None:
        setup_output_directory(config.output, logger)
        config.output.write_text(result.report + "\n", encoding="utf-8")
        logger.info(f"Wrote report to {config.output}")
    else:
        sys.stdout.write(result.report + "\n")
        sys.stdout.flush()

    if config.stats_output is not None:
        export_site_stats_tsv(site_statistics(result.matrix), config.stats_output)
        logger.info(f"Wrote site statistics to {config.stats_output}")

    if warnings:
        console.print(f"[yellow]WARNING[/yellow]: {warnings.summary()}")

    n_rows, n_cols = result.matrix.shape
    logger.info(f"Completed {n_rows} x {n_cols} report in {time.time() - start_time:.2f} seconds")
    return result
