from __future__ import annotations

from typing import Iterable, List, Optional

from ..models.records import BuilderField, BuilderSpec, ResolvedDefault
from .types import render_type

PUBLIC_VISIBILITY = {"public", "open"}


def synthesize(
    record_name: str,
    resolved: Iterable[ResolvedDefault],
    visibility: Optional[str] = None,
    dependencies: Iterable[str] = (),
) -> BuilderSpec:
    """Build the builder layout, or raise the first field's inference error."""
    fields: List[BuilderField] = []
    for entry in resolved:
        if entry.error is not None:
            raise entry.error
        fields.append(
            BuilderField(name=entry.field.name, type=entry.field.type, default=entry.expression)
        )
    return BuilderSpec(
        record_name=record_name,
        fields=tuple(fields),
        visibility=visibility,
        dependencies=tuple(sorted(set(dependencies))),
    )


def render_builder(spec: BuilderSpec, indent: int = 4, builder_name: str = "Builder") -> str:
    """Render ``spec`` as a Swift ``struct`` declaration."""
    pad = " " * indent
    access = "public " if spec.visibility in PUBLIC_VISIBILITY else ""
    lines: List[str] = [f"{access}struct {builder_name} {{"]

    for field_spec in spec.fields:
        lines.append(
            f"{pad}{access}var {field_spec.name}: {render_type(field_spec.type)} = {field_spec.default}"
        )
    if spec.fields:
        lines.append("")

    for field_spec in spec.fields:
        name = field_spec.name
        lines.extend(
            [
                f"{pad}{access}func {name}(_ {name}: {render_type(field_spec.type)}) -> Self {{",
                f"{pad * 2}var copy = self",
                f"{pad * 2}copy.{name} = {name}",
                f"{pad * 2}return copy",
                f"{pad}}}",
                "",
            ]
        )

    lines.append(f"{pad}{access}init() {{}}")
    lines.append("")
    lines.append(f"{pad}{access}func build() -> {spec.record_name} {{")
    if spec.fields:
        lines.append(f"{pad * 2}{spec.record_name}(")
        arguments = [f"{pad * 3}{f.name}: {f.name}" for f in spec.fields]
        lines.append(",\n".join(arguments))
        lines.append(f"{pad * 2})")
    else:
        lines.append(f"{pad * 2}{spec.record_name}()")
    lines.append(f"{pad}}}")
    lines.append("}")
    return "\n".join(lines)
