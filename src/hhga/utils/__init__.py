from .config import ReportConfig
from .logging import setup_file_logging
from .common import calculate_chunks, setup_output_directory

__all__ = ['ReportConfig', 'setup_file_logging', 'calculate_chunks', 'setup_output_directory']
