"""Shared test fixtures for addbuilder tests.

Declarations are built either from Swift source through the tree-sitter
front end, or directly as structural records with ``make_record``.
"""
from pathlib import Path
from typing import Callable, Optional, Tuple

import pytest

from addbuilder.config import Settings
from addbuilder.generator.service import BuilderService
from addbuilder.generator.types import parse_type
from addbuilder.models.records import MemberDeclaration, RecordDeclaration

PERSON_SOURCE = """@AddBuilder()
struct Person {
    let name: String
    @AddBuilder(default: Cat(name: "Bob"))
    let cat: Cat
    var middleName: String?
    let age: Int
}
"""

PERSON_BUILDER = """struct Builder {
    var name: String = String()
    var cat: Cat = Cat(name: "Bob")
    var middleName: String? = String()
    var age: Int = Int()

    func name(_ name: String) -> Self {
        var copy = self
        copy.name = name
        return copy
    }

    func cat(_ cat: Cat) -> Self {
        var copy = self
        copy.cat = cat
        return copy
    }

    func middleName(_ middleName: String?) -> Self {
        var copy = self
        copy.middleName = middleName
        return copy
    }

    func age(_ age: Int) -> Self {
        var copy = self
        copy.age = age
        return copy
    }

    init() {}

    func build() -> Person {
        Person(
            name: name,
            cat: cat,
            middleName: middleName,
            age: age
        )
    }
}"""


def member(
    name: Optional[str],
    type_text: Optional[str] = None,
    default: Optional[str] = None,
    **flags,
) -> MemberDeclaration:
    return MemberDeclaration(
        name=name,
        type=parse_type(type_text) if type_text else None,
        default_override=default,
        **flags,
    )


def make_record(name: str, *fields: Tuple[str, str], kind: str = "struct", **extra) -> RecordDeclaration:
    """Build a record from ``(field_name, type_text)`` pairs."""
    return RecordDeclaration(
        name=name,
        kind=kind,
        members=[member(field_name, type_text) for field_name, type_text in fields],
        **extra,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def service(settings: Settings) -> BuilderService:
    return BuilderService(settings)


@pytest.fixture
def write_swift(tmp_path: Path) -> Callable[[str, str], Path]:
    def _write(source: str, name: str = "Model.swift") -> Path:
        path = tmp_path / name
        path.write_text(source, encoding="utf-8")
        return path

    return _write
