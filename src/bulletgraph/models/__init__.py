"""Data models for bulletgraph."""

from bulletgraph.models.config import Config, ParserConfig, RenderConfig

__all__ = ["Config", "ParserConfig", "RenderConfig"]
