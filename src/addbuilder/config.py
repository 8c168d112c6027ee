"""Configuration for addbuilder.

Generation is deterministic, so configuration only tunes the output surface:
- which attributes mark a record for builder generation or a field default
- the name and indentation of the generated builder type
- extra entries for the default-value table
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

DEFAULT_CONFIG_NAME = "addbuilder.yaml"


class Settings(BaseModel):
    """addbuilder settings."""

    builder_attributes: List[str] = Field(
        default_factory=lambda: ["AddBuilder"],
        description="Attributes that request a builder on a type declaration",
    )
    default_attributes: List[str] = Field(
        default_factory=lambda: ["Builder", "AddBuilder"],
        description="Attributes that carry a `default:` override on a field",
    )
    builder_name: str = Field(
        default="Builder",
        description="Name of the generated nested builder type",
    )
    indent_width: int = Field(default=4, description="Spaces per indentation level")
    zero_constructible: List[str] = Field(
        default_factory=list,
        description="Extra type names whose no-argument construction is a valid default",
    )
    literal_defaults: Dict[str, str] = Field(
        default_factory=dict,
        description="Extra type name to default expression mappings",
    )
    detect_cycles: bool = Field(
        default=True,
        description="Reject records whose nested builder defaults form a cycle",
    )

    @field_validator("builder_attributes", "default_attributes", mode="before")
    def _strip_at(cls, value: List[str]) -> List[str]:
        return [str(name).lstrip("@").strip() for name in value or []]

    @field_validator("builder_name")
    def _check_identifier(cls, value: str) -> str:
        if not value.isidentifier():
            raise ValueError(f"builder_name must be an identifier, got {value!r}")
        return value

    @field_validator("indent_width")
    def _check_indent(cls, value: int) -> int:
        if value < 1:
            raise ValueError("indent_width must be at least 1")
        return value


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """Load configuration from YAML if provided, otherwise use defaults."""
    path = config_path or Path.cwd() / DEFAULT_CONFIG_NAME
    if path.exists():
        data = yaml.safe_load(path.read_text()) or {}
    else:
        data = {}
    return Settings(**data)
