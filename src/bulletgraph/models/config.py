"""Configuration models for bulletgraph."""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator


class ParserConfig(BaseModel):
    """Configuration for reading outline files."""

    indent_size: int = Field(
        default=2,
        ge=1,
        le=8,
        description="Number of spaces in one indentation level (a tab is always one level)"
    )

    model_config = {"frozen": True}


class RenderConfig(BaseModel):
    """Configuration for the Graphviz DOT output."""

    splines: str = Field(
        default="ortho",
        description="Graphviz splines attribute (ortho, spline, polyline, line, curved)"
    )

    font_name: str = Field(
        default="arial narrow",
        description="Font used for graph, node and edge labels"
    )

    wrap_width: int = Field(
        default=25,
        ge=5,
        description="Approximate number of characters per label line"
    )

    scale_font_by_size: bool = Field(
        default=True,
        description="Grow the font of nodes with many descendants"
    )

    @field_validator('splines')
    @classmethod
    def validate_splines(cls, v: str) -> str:
        """Reject values Graphviz would not understand."""
        allowed = {"ortho", "spline", "polyline", "line", "curved", "none", "true", "false"}
        if v not in allowed:
            raise ValueError(
                f"Unknown splines value: {v}\n"
                f"Expected one of: {', '.join(sorted(allowed))}"
            )
        return v

    model_config = {"frozen": True}


class Config(BaseModel):
    """Root configuration for bulletgraph."""

    parser: ParserConfig = Field(default_factory=ParserConfig, description="Outline parsing settings")
    render: RenderConfig = Field(default_factory=RenderConfig, description="DOT rendering settings")

    @classmethod
    def load(cls, path: Path) -> "Config":
        """
        Load configuration from YAML file.

        Args:
            path: Path to config.yaml file

        Returns:
            Validated Config instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If YAML is invalid or validation fails
        """
        if not path.exists():
            raise FileNotFoundError(
                f"Configuration file not found at {path}\n\n"
                f"Example configuration:\n\n"
                f"parser:\n"
                f"  indent_size: 2\n\n"
                f"render:\n"
                f"  splines: ortho\n"
                f"  wrap_width: 25\n"
            )

        with open(path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"Configuration in {path} must be a mapping")

        return cls(**data)

    model_config = {"frozen": True}
