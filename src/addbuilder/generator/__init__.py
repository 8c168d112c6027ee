from .defaults import DefaultValueInference, UnsupportedTypeError
from .expansion import expand
from .extractor import extract_fields
from .service import BuilderService, ExpandedSource
from .synthesizer import render_builder, synthesize
from .types import TypeSyntaxError, parse_type, render_type

__all__ = [
    "BuilderService",
    "DefaultValueInference",
    "ExpandedSource",
    "TypeSyntaxError",
    "UnsupportedTypeError",
    "expand",
    "extract_fields",
    "parse_type",
    "render_builder",
    "render_type",
    "synthesize",
]
