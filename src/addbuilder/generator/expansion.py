from __future__ import annotations

import logging
from typing import Optional, Set

from ..config import Settings
from ..models.records import ExpansionRequest, ExpansionResult, RequestKind
from .defaults import DefaultValueInference
from .diagnostics import requires_struct
from .extractor import extract_fields
from .synthesizer import render_builder, synthesize

logger = logging.getLogger(__name__)


def expand(request: ExpansionRequest, settings: Optional[Settings] = None) -> ExpansionResult:
    """Expand one builder request.

    Returns the generated ``Builder`` declaration, a single diagnostic when the
    declaration is not a struct, or nothing for a default-override request.
    Raises :class:`~addbuilder.generator.defaults.UnsupportedTypeError` when
    any field has no inferable default; no partial builder is produced.
    """
    settings = settings or Settings()
    declaration = request.declaration

    if request.kind is RequestKind.BUILDER_DEFAULT:
        return ExpansionResult()
    if declaration.kind != "struct":
        logger.debug("Rejecting %s %s", declaration.kind, declaration.name)
        return ExpansionResult.diagnosed(
            requires_struct(request.location or declaration.location)
        )

    fields = extract_fields(declaration)
    dependencies: Set[str] = set()
    inference = DefaultValueInference(settings, placeholders=declaration.generic_parameters)
    resolved = inference.resolve(fields, dependencies)
    spec = synthesize(
        declaration.name,
        resolved,
        visibility=declaration.visibility,
        dependencies=dependencies,
    )
    logger.debug(
        "Generated %s.%s with %d slots", declaration.name, settings.builder_name, len(spec.fields)
    )
    rendered = render_builder(spec, indent=settings.indent_width, builder_name=settings.builder_name)
    return ExpansionResult.generated(rendered, spec)
