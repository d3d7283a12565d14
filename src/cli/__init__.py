"""Command-line tools for the document RAG service.

- ``python -m src.cli.rag`` -- ingest text files and ask a question
  against them in one process (also the default for ``python -m src.cli``).

CLI modules use argparse and build their own services rather than the
FastAPI DI container, because they run as one-shot scripts.
"""
