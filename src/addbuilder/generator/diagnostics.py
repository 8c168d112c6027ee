from __future__ import annotations

from typing import Optional, Sequence

from ..models.records import Diagnostic, DiagnosticKind, Severity, SourceLocation

REQUIRES_STRUCT_MESSAGE = "'AddBuilder' macro can only be applied to struct."


def requires_struct(location: Optional[SourceLocation] = None) -> Diagnostic:
    return Diagnostic(
        kind=DiagnosticKind.REQUIRES_STRUCT,
        message=REQUIRES_STRUCT_MESSAGE,
        location=location,
        severity=Severity.ERROR,
    )


def unsupported_type(
    record_name: str,
    error: Exception,
    location: Optional[SourceLocation] = None,
) -> Diagnostic:
    return Diagnostic(
        kind=DiagnosticKind.UNSUPPORTED_TYPE,
        message=f"Cannot generate builder for '{record_name}': {error}",
        location=location,
        severity=Severity.ERROR,
    )


def cyclic_default(
    record_name: str,
    cycle: Sequence[str],
    location: Optional[SourceLocation] = None,
) -> Diagnostic:
    path = " -> ".join([*cycle, cycle[0]])
    return Diagnostic(
        kind=DiagnosticKind.CYCLIC_DEFAULT,
        message=f"Builder defaults of '{record_name}' recurse through {path}",
        location=location,
        severity=Severity.ERROR,
    )
