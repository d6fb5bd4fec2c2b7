"""User interaction helpers."""

from .progress import PipelineProgress, ProgressActivity

__all__ = ["PipelineProgress", "ProgressActivity"]
