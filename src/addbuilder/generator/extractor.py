from __future__ import annotations

from typing import Iterable, List

from ..models.records import FieldDeclaration, MemberDeclaration, RecordDeclaration


def _is_field(member: MemberDeclaration) -> bool:
    if member.is_static or member.is_computed:
        return False
    return bool(member.name) and member.name.isidentifier() and member.type is not None


def extract_fields(declaration: RecordDeclaration) -> List[FieldDeclaration]:
    """Return the stored fields of ``declaration`` in source order.

    Members without a simple name or without an explicit type annotation are
    not fields and are skipped, as are static and computed members.
    """
    return list(_iter_fields(declaration.members))


def _iter_fields(members: Iterable[MemberDeclaration]) -> Iterable[FieldDeclaration]:
    for member in members:
        if not _is_field(member):
            continue
        yield FieldDeclaration(
            name=member.name,
            type=member.type,
            default_override=member.default_override,
            is_mutable=member.is_mutable,
        )
