"""Ingestion progress tracking for the document RAG service."""

from src.pipeline.progress_tracker import ProgressTracker

__all__ = ["ProgressTracker"]
