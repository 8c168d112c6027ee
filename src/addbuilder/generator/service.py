from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from ..config import Settings
from ..models.records import (
    Diagnostic,
    ExpansionRequest,
    ExpansionResult,
    ParsedRecord,
    RequestKind,
    Severity,
    SourceLocation,
)
from .base import ParserRegistry
from .defaults import UnsupportedTypeError
from .diagnostics import cyclic_default, unsupported_type
from .expansion import expand
from .graph import DependencyGraph
from .swift_parser import SwiftDeclarationParser, requested_records

logger = logging.getLogger(__name__)

Edit = Tuple[int, int, bytes]


@dataclass(slots=True)
class RecordExpansion:
    record: ParsedRecord
    result: ExpansionResult

    @property
    def name(self) -> str:
        return self.record.qualified_name or self.record.declaration.name


@dataclass(slots=True)
class ExpandedSource:
    path: Path
    source: str
    expansions: List[RecordExpansion] = field(default_factory=list)
    syntax_errors: List[SourceLocation] = field(default_factory=list)

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return [d for expansion in self.expansions for d in expansion.result.diagnostics]

    @property
    def declarations(self) -> List[str]:
        return [d for expansion in self.expansions for d in expansion.result.declarations]

    @property
    def has_errors(self) -> bool:
        return any(d.severity is Severity.ERROR for d in self.diagnostics)


class BuilderService:
    def __init__(self, settings: Settings | None = None, registry: ParserRegistry | None = None) -> None:
        self.settings = settings or Settings()
        self.registry = registry or build_registry(self.settings)

    # --- public API ---
    def expand_file(self, path: Path) -> ExpandedSource:
        try:
            source = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ValueError(f"Unable to read {path}") from exc
        return self.expand_source(source, path)

    def expand_source(self, source: str, path: Optional[Path] = None) -> ExpandedSource:
        path = path or Path("Source.swift")
        adapter = self.registry.for_path(path)
        parsed = adapter.parse(source, path)
        expansions = [self._expand_record(record) for record in requested_records(parsed)]
        if self.settings.detect_cycles:
            self._reject_cycles(expansions)
        return ExpandedSource(
            path=path,
            source=self._splice(source, expansions),
            expansions=expansions,
            syntax_errors=parsed.errors,
        )

    def render_extensions(self, expanded: ExpandedSource) -> str:
        """Generated builders as standalone ``extension`` blocks."""
        pad = " " * self.settings.indent_width
        blocks: List[str] = []
        for expansion in expanded.expansions:
            for declaration in expansion.result.declarations:
                body = _indent_lines(declaration, pad)
                blocks.append(f"extension {expansion.name} {{\n{body}\n}}")
        return "\n\n".join(blocks) + ("\n" if blocks else "")

    # --- helpers ---
    def _expand_record(self, record: ParsedRecord) -> RecordExpansion:
        request = ExpansionRequest(
            declaration=record.declaration,
            kind=record.request_kind or RequestKind.ADD_BUILDER,
            location=record.request_location,
        )
        try:
            result = expand(request, self.settings)
        except UnsupportedTypeError as exc:
            logger.debug("Expansion of %s failed: %s", record.declaration.name, exc)
            result = ExpansionResult.diagnosed(
                unsupported_type(record.declaration.name, exc, request.location)
            )
        return RecordExpansion(record=record, result=result)

    def _reject_cycles(self, expansions: List[RecordExpansion]) -> None:
        graph = DependencyGraph()
        for expansion in expansions:
            if expansion.result.spec is not None:
                graph.add(expansion.record.declaration.name, expansion.result.spec.dependencies)
        cycles = graph.records_in_cycles()
        for expansion in expansions:
            name = expansion.record.declaration.name
            cycle = cycles.get(name)
            if cycle is None or expansion.result.spec is None:
                continue
            logger.debug("Rejecting %s: builder defaults form a cycle %s", name, cycle)
            expansion.result = ExpansionResult.diagnosed(
                cyclic_default(name, cycle, expansion.record.request_location)
            )

    def _splice(self, source: str, expansions: List[RecordExpansion]) -> str:
        source_bytes = source.encode("utf-8")
        edits: List[Edit] = []
        strip_spans = set()
        for expansion in expansions:
            if expansion.result.has_errors:
                continue
            strip_spans.update(expansion.record.strip_spans)
            for declaration in expansion.result.declarations:
                insertion = self._insertion(source_bytes, expansion.record, declaration)
                if insertion is not None:
                    edits.append(insertion)
        edits.extend((start, end, b"") for start, end in strip_spans)
        for start, end, replacement in sorted(edits, key=lambda e: (e[0], e[1]), reverse=True):
            source_bytes = source_bytes[:start] + replacement + source_bytes[end:]
        return source_bytes.decode("utf-8")

    def _insertion(
        self, source_bytes: bytes, record: ParsedRecord, declaration: str
    ) -> Optional[Edit]:
        if record.body_end is None:
            logger.warning("%s has no body to insert a builder into", record.declaration.name)
            return None
        start = record.body_end
        while start > 0 and source_bytes[start - 1 : start] in (b" ", b"\t", b"\r", b"\n"):
            start -= 1
        member_indent = record.indent + " " * self.settings.indent_width
        text = "\n" + _indent_lines(declaration, member_indent) + "\n" + record.indent
        return start, record.body_end, text.encode("utf-8")


def _indent_lines(text: str, pad: str) -> str:
    return "\n".join(pad + line if line else line for line in text.splitlines())


def build_registry(settings: Settings) -> ParserRegistry:
    return ParserRegistry(SwiftDeclarationParser(settings))
