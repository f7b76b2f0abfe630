"""Common pipeline utilities shared between commands."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Sequence, Tuple, TypeVar

T = TypeVar("T")


def calculate_chunks(items: Sequence[T], n_threads: int) -> Tuple[List[List[T]], int]:
    """Calculate chunks for parallel processing."""
    n_threads = max(1, n_threads)
    chunk_size = max(10, len(items) // (n_threads * 16))
    chunks = [list(items[i:i + chunk_size]) for i in range(0, len(items), chunk_size)]
    return chunks, chunk_size


def setup_output_directory(output_path: Path, logger: logging.Logger = None) -> None:
    """Create the parent directory of an output file if it doesn't exist."""
    output_dir = Path(output_path).parent
    if not output_dir.exists():
        output_dir.mkdir(parents=True)
        if logger:
            logger.info(f"Created output directory: {output_dir}")
