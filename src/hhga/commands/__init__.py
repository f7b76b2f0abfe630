"""Command modules for the hhga CLI."""

from __future__ import annotations

from hhga.commands.report import run_report

__all__ = ['run_report']
