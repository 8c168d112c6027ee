from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple, Union


# --- type descriptors -----------------------------------------------------


@dataclass(frozen=True, slots=True)
class NominalType:
    name: str
    arguments: Tuple["TypeDescriptor", ...] = ()


@dataclass(frozen=True, slots=True)
class OptionalType:
    wrapped: "TypeDescriptor"


@dataclass(frozen=True, slots=True)
class ImplicitlyUnwrappedOptionalType:
    wrapped: "TypeDescriptor"


@dataclass(frozen=True, slots=True)
class ArrayType:
    element: "TypeDescriptor"


@dataclass(frozen=True, slots=True)
class DictionaryType:
    key: "TypeDescriptor"
    value: "TypeDescriptor"


@dataclass(frozen=True, slots=True)
class TupleElement:
    type: "TypeDescriptor"
    label: Optional[str] = None


@dataclass(frozen=True, slots=True)
class TupleType:
    elements: Tuple[TupleElement, ...] = ()


@dataclass(frozen=True, slots=True)
class FunctionType:
    parameters: Tuple["TypeDescriptor", ...]
    return_type: "TypeDescriptor"
    is_async: bool = False
    throws: bool = False
    thrown_error: Optional["TypeDescriptor"] = None


@dataclass(frozen=True, slots=True)
class OpaqueType:
    """A type shape with no structural meaning here (``any P``, ``T.Type``, ...)."""
    text: str


TypeDescriptor = Union[
    NominalType,
    OptionalType,
    ImplicitlyUnwrappedOptionalType,
    ArrayType,
    DictionaryType,
    TupleType,
    FunctionType,
    OpaqueType,
]


# --- declarations ---------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SourceLocation:
    path: Optional[Path] = None
    line: int = 1
    column: int = 1

    def __str__(self) -> str:
        prefix = f"{self.path}:" if self.path else ""
        return f"{prefix}{self.line}:{self.column}"


@dataclass(slots=True)
class MemberDeclaration:
    """A member as seen by a front end, before field extraction."""
    name: Optional[str]
    type: Optional[TypeDescriptor] = None
    default_override: Optional[str] = None
    is_mutable: bool = False
    is_static: bool = False
    is_computed: bool = False
    location: Optional[SourceLocation] = None


@dataclass(frozen=True, slots=True)
class FieldDeclaration:
    name: str
    type: TypeDescriptor
    default_override: Optional[str] = None
    is_mutable: bool = False


@dataclass(slots=True)
class RecordDeclaration:
    name: str
    kind: str = "struct"  # struct, class, enum, actor, protocol
    members: List[MemberDeclaration] = field(default_factory=list)
    generic_parameters: List[str] = field(default_factory=list)
    visibility: Optional[str] = None  # public, open, internal, fileprivate, private
    location: Optional[SourceLocation] = None
    attributes: List[str] = field(default_factory=list)


# --- generation products --------------------------------------------------


@dataclass(frozen=True, slots=True)
class ResolvedDefault:
    field: FieldDeclaration
    expression: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True, slots=True)
class BuilderField:
    name: str
    type: TypeDescriptor
    default: str


@dataclass(frozen=True, slots=True)
class BuilderSpec:
    record_name: str
    fields: Tuple[BuilderField, ...] = ()
    visibility: Optional[str] = None
    dependencies: Tuple[str, ...] = ()


class DiagnosticKind(str, Enum):
    REQUIRES_STRUCT = "requires-struct"
    UNSUPPORTED_TYPE = "unsupported-type"
    CYCLIC_DEFAULT = "cyclic-default"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True, slots=True)
class Diagnostic:
    kind: DiagnosticKind
    message: str
    location: Optional[SourceLocation] = None
    severity: Severity = Severity.ERROR

    @property
    def diagnostic_id(self) -> str:
        return f"AddBuilder.{self.kind.value}"

    def __str__(self) -> str:
        where = f"{self.location}: " if self.location else ""
        return f"{where}{self.severity.value}: {self.message}"


class RequestKind(str, Enum):
    ADD_BUILDER = "add-builder"
    BUILDER_DEFAULT = "builder-default"


@dataclass(slots=True)
class ExpansionRequest:
    declaration: RecordDeclaration
    kind: RequestKind = RequestKind.ADD_BUILDER
    location: Optional[SourceLocation] = None


@dataclass(slots=True)
class ExpansionResult:
    """Either generated declarations or diagnostics, never both."""
    declarations: List[str] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    spec: Optional[BuilderSpec] = None

    @classmethod
    def generated(cls, declaration: str, spec: BuilderSpec) -> "ExpansionResult":
        return cls(declarations=[declaration], spec=spec)

    @classmethod
    def diagnosed(cls, diagnostic: Diagnostic) -> "ExpansionResult":
        return cls(diagnostics=[diagnostic])

    @property
    def has_errors(self) -> bool:
        return any(d.severity is Severity.ERROR for d in self.diagnostics)


# --- front-end products ---------------------------------------------------


@dataclass(slots=True)
class ParsedRecord:
    """A type declaration found in source, with the byte ranges needed to splice it."""
    declaration: RecordDeclaration
    request_kind: Optional[RequestKind] = None
    request_location: Optional[SourceLocation] = None
    strip_spans: List[Tuple[int, int]] = field(default_factory=list)
    body_end: Optional[int] = None  # byte offset of the closing brace
    indent: str = ""
    qualified_name: str = ""

    @property
    def requested(self) -> bool:
        return self.request_kind is not None


@dataclass(slots=True)
class ParsedSource:
    records: List[ParsedRecord] = field(default_factory=list)
    errors: List[SourceLocation] = field(default_factory=list)
