"""Configuration module: exports Settings, load_config, and build_rag_config."""

from src.config.loader import build_rag_config, load_config
from src.config.settings import Settings

__all__ = ["Settings", "build_rag_config", "load_config"]
