"""Tests for file-level builder expansion."""
from pathlib import Path

import pytest

from addbuilder.config import Settings
from addbuilder.generator.base import ParserAdapter, ParserRegistry
from addbuilder.generator.service import BuilderService
from addbuilder.generator.swift_parser import SwiftDeclarationParser
from addbuilder.models.records import DiagnosticKind, ParsedSource

from conftest import PERSON_BUILDER, PERSON_SOURCE


def _indented(text: str, pad: str = "    ") -> str:
    return "\n".join(pad + line if line else line for line in text.splitlines())


EXPANDED_PERSON = (
    "struct Person {\n"
    "    let name: String\n"
    "    let cat: Cat\n"
    "    var middleName: String?\n"
    "    let age: Int\n"
    + _indented(PERSON_BUILDER)
    + "\n}\n"
)


def test_expand_source_splices_builder(service: BuilderService):
    expanded = service.expand_source(PERSON_SOURCE, Path("Person.swift"))

    assert expanded.diagnostics == []
    assert expanded.declarations == [PERSON_BUILDER]
    assert expanded.source == EXPANDED_PERSON


def test_expand_source_is_deterministic(service: BuilderService):
    first = service.expand_source(PERSON_SOURCE)
    second = service.expand_source(PERSON_SOURCE)
    assert first.source == second.source


def test_class_declaration_is_reported(service: BuilderService):
    source = "@AddBuilder()\nclass Person {\n    let name: String\n}\n"
    expanded = service.expand_source(source)

    assert expanded.declarations == []
    assert [d.kind for d in expanded.diagnostics] == [DiagnosticKind.REQUIRES_STRUCT]
    assert expanded.diagnostics[0].location.line == 1
    assert expanded.has_errors
    assert expanded.source == source


def test_unsupported_type_becomes_diagnostic(service: BuilderService):
    source = "@AddBuilder()\nstruct Box<T> {\n    let count: Int\n    let value: T\n}\n"
    expanded = service.expand_source(source)

    assert expanded.declarations == []
    assert [d.kind for d in expanded.diagnostics] == [DiagnosticKind.UNSUPPORTED_TYPE]
    assert "'T'" in expanded.diagnostics[0].message
    assert expanded.source == source


# Value types that contain each other do not compile, but the cycle is still
# reported rather than emitting builders that recurse forever.
CONTAINING_SOURCE = """@AddBuilder()
struct Left {
    let right: Right
}

@AddBuilder()
struct Right {
    let left: Left?
}

@AddBuilder()
struct Leaf {
    let left: Left
}
"""

CLOSURE_SOURCE = """@AddBuilder()
struct Screen {
    var next: () -> Screen
}

@AddBuilder()
struct First {
    var makeSecond: () -> Second
}

@AddBuilder()
struct Second {
    let first: First
}
"""


def test_containing_records_are_rejected_as_cycles(service: BuilderService):
    expanded = service.expand_source(CONTAINING_SOURCE)
    by_name = {e.name: e.result for e in expanded.expansions}

    assert [d.kind for d in by_name["Left"].diagnostics] == [DiagnosticKind.CYCLIC_DEFAULT]
    assert [d.kind for d in by_name["Right"].diagnostics] == [DiagnosticKind.CYCLIC_DEFAULT]
    assert "Left -> Right -> Left" in by_name["Left"].diagnostics[0].message
    assert by_name["Leaf"].diagnostics == []
    assert len(by_name["Leaf"].declarations) == 1


def test_closure_fields_do_not_form_cycles(service: BuilderService):
    expanded = service.expand_source(CLOSURE_SOURCE)
    by_name = {e.name: e.result for e in expanded.expansions}

    assert expanded.diagnostics == []
    assert len(expanded.declarations) == 3
    assert "var next: () -> Screen = { Screen.Builder().build() }" in by_name["Screen"].declarations[0]
    assert "var makeSecond: () -> Second = { Second.Builder().build() }" in by_name["First"].declarations[0]
    assert "var first: First = First.Builder().build()" in by_name["Second"].declarations[0]


def test_cycle_detection_can_be_disabled():
    service = BuilderService(Settings(detect_cycles=False))
    expanded = service.expand_source(CONTAINING_SOURCE)
    assert expanded.diagnostics == []
    assert len(expanded.declarations) == 3


def test_default_only_request_strips_marker(service: BuilderService):
    source = "@AddBuilder(default: 1)\nstruct Counter {\n    let count: Int\n}\n"
    expanded = service.expand_source(source)

    assert expanded.declarations == []
    assert expanded.diagnostics == []
    assert expanded.source == "struct Counter {\n    let count: Int\n}\n"


def test_render_extensions_qualifies_nested_records(service: BuilderService):
    source = (
        "struct Outer {\n"
        "    @AddBuilder()\n"
        "    struct Inner {\n"
        "        let x: Int\n"
        "    }\n"
        "}\n"
    )
    expanded = service.expand_source(source)
    rendered = service.render_extensions(expanded)

    assert rendered.startswith("extension Outer.Inner {\n    struct Builder {\n")
    assert "            Inner(\n" in rendered
    assert rendered.endswith("    }\n}\n")
    assert "        struct Builder {\n            var x: Int = Int()\n" in expanded.source


def test_render_extensions_without_builders(service: BuilderService):
    expanded = service.expand_source("struct Plain {\n    let x: Int\n}\n")
    assert expanded.expansions == []
    assert service.render_extensions(expanded) == ""


def test_expand_file_reads_from_disk(service: BuilderService, write_swift):
    path = write_swift(PERSON_SOURCE, "Person.swift")
    expanded = service.expand_file(path)
    assert expanded.path == path
    assert expanded.source == EXPANDED_PERSON


def test_expand_file_missing(service: BuilderService, tmp_path: Path):
    with pytest.raises(ValueError, match="Unable to read"):
        service.expand_file(tmp_path / "Missing.swift")


def test_unknown_language_is_rejected(service: BuilderService):
    with pytest.raises(ValueError, match="No parser registered"):
        service.expand_source("", Path("model.kt"))


def test_registry_dispatches_on_suffix(settings: Settings):
    class InterfaceOnly(ParserAdapter):
        language = "interface"
        suffixes = (".SwiftInterface",)

        def parse(self, source: str, path: Path) -> ParsedSource:
            return ParsedSource()

    custom = InterfaceOnly()
    registry = ParserRegistry(SwiftDeclarationParser(settings))
    registry.register(custom)

    assert isinstance(registry.for_path(Path("Model.swift")), SwiftDeclarationParser)
    assert registry.for_path(Path("Module.swiftinterface")) is custom
    with pytest.raises(ValueError, match="No parser registered for 'Makefile' files"):
        registry.for_path(Path("Makefile"))
