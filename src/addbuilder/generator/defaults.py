"""Type-directed default values for builder slots.

Defaults are Swift expressions, not values: they are embedded in the
generated builder and evaluated by the compiled program. Resolution is
layered and the first matching rule wins:

1. an explicit ``default:`` override on the field
2. the nominal table (canonical literals, zero-constructible names,
   ranges, ``Result`` and ``Optional``)
3. structural recursion over collections, optionals, functions and tuples
4. the nested builder of any other nominal type, ``T.Builder().build()``

A type that matches none of these raises :class:`UnsupportedTypeError`.
Optionals are the only place that failure is absorbed: an optional whose
wrapped type has no default becomes ``nil``.
"""
from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Iterable, List, Optional, Set

from ..config import Settings
from ..models.records import (
    ArrayType,
    DictionaryType,
    FieldDeclaration,
    FunctionType,
    ImplicitlyUnwrappedOptionalType,
    NominalType,
    OptionalType,
    ResolvedDefault,
    TupleType,
    TypeDescriptor,
)
from .types import render_type, simple_name

logger = logging.getLogger(__name__)

ABSENT = "nil"

ZERO_CONSTRUCTIBLE: FrozenSet[str] = frozenset(
    {
        "Bool",
        "Int", "Int8", "Int16", "Int32", "Int64",
        "UInt", "UInt8", "UInt16", "UInt32", "UInt64",
        "Float", "Float16", "Float32", "Float64", "Float80",
        "Double", "Decimal", "NSNumber",
        "CGFloat", "CGSize", "CGPoint", "CGRect",
        "String", "NSString", "Substring",
        "Data", "NSData",
        "TimeInterval",
        "Set", "NSSet",
        "Array", "NSArray",
        "Dictionary", "NSDictionary",
    }
)

# Types without a meaningful no-argument initializer.
CANONICAL_LITERALS: Dict[str, str] = {
    "Duration": ".zero",
    "Character": '"/"',
    "Date": "Date(timeIntervalSince1970: 0)",
    "UUID": 'UUID(uuidString: "00000000-0000-0000-0000-000000000000")!',
    "URL": 'URL(string: "/")!',
    "Void": "()",
}

RANGE_OPERATORS: Dict[str, str] = {
    "Range": "..<",
    "ClosedRange": "...",
}

# Nominal names that can never be built.
NOT_CONSTRUCTIBLE: FrozenSet[str] = frozenset({"Any", "AnyObject", "Never", "Self"})


class UnsupportedTypeError(Exception):
    """No default-value rule applies to a type."""

    def __init__(self, descriptor: TypeDescriptor, reason: Optional[str] = None) -> None:
        self.descriptor = descriptor
        self.type_text = render_type(descriptor)
        self.reason = reason
        message = f"Cannot infer a default value for type '{self.type_text}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class DefaultValueInference:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        placeholders: Iterable[str] = (),
    ) -> None:
        settings = settings or Settings()
        self._builder_name = settings.builder_name
        self._zero_constructible = ZERO_CONSTRUCTIBLE | frozenset(settings.zero_constructible)
        self._literals = {**CANONICAL_LITERALS, **settings.literal_defaults}
        self._placeholders = frozenset(placeholders)

    # --- public API ---
    def infer(
        self,
        descriptor: TypeDescriptor,
        override: Optional[str] = None,
        dependencies: Optional[Set[str]] = None,
    ) -> str:
        """Return a default expression for ``descriptor``.

        Names of nominal types whose default delegates to their own builder
        are added to ``dependencies`` when it is given.
        """
        if override is not None:
            return override
        if isinstance(descriptor, NominalType):
            return self._nominal(descriptor, dependencies)
        if isinstance(descriptor, (ArrayType, DictionaryType)):
            return f"{render_type(descriptor)}()"
        if isinstance(descriptor, OptionalType):
            return self._optional(descriptor.wrapped, dependencies)
        if isinstance(descriptor, ImplicitlyUnwrappedOptionalType):
            return self.infer(descriptor.wrapped, dependencies=dependencies)
        if isinstance(descriptor, FunctionType):
            return self._closure(descriptor)
        if isinstance(descriptor, TupleType):
            values = [
                self.infer(element.type, dependencies=dependencies)
                for element in descriptor.elements
            ]
            return "(" + ", ".join(values) + ")"
        raise UnsupportedTypeError(descriptor)

    def resolve(
        self,
        fields: Iterable[FieldDeclaration],
        dependencies: Optional[Set[str]] = None,
    ) -> List[ResolvedDefault]:
        """Resolve every field, capturing failures instead of raising them."""
        resolved: List[ResolvedDefault] = []
        for field_decl in fields:
            try:
                expression = self.infer(
                    field_decl.type, field_decl.default_override, dependencies
                )
            except UnsupportedTypeError as exc:
                logger.debug("No default for field %s: %s", field_decl.name, exc)
                resolved.append(ResolvedDefault(field=field_decl, error=exc))
                continue
            resolved.append(ResolvedDefault(field=field_decl, expression=expression))
        return resolved

    # --- rules ---
    def _nominal(self, descriptor: NominalType, dependencies: Optional[Set[str]]) -> str:
        name = simple_name(descriptor.name)
        first = descriptor.arguments[0] if descriptor.arguments else None

        if descriptor.name in self._placeholders and not descriptor.arguments:
            raise UnsupportedTypeError(descriptor, "generic placeholder")
        if name in NOT_CONSTRUCTIBLE:
            raise UnsupportedTypeError(descriptor)
        if name in self._literals:
            return self._literals[name]
        if name in self._zero_constructible:
            return f"{render_type(descriptor)}()"
        if name in RANGE_OPERATORS:
            if first is None:
                raise UnsupportedTypeError(descriptor, "range without a bound type")
            bound = self.infer(first, dependencies=dependencies)
            return f"({bound}{RANGE_OPERATORS[name]}{bound})"
        if name == "Result":
            if first is None:
                raise UnsupportedTypeError(descriptor, "missing success type")
            return self.infer(first, dependencies=dependencies)
        if name == "Optional":
            if first is None:
                raise UnsupportedTypeError(descriptor, "missing wrapped type")
            return self._optional(first, dependencies)

        if dependencies is not None:
            dependencies.add(descriptor.name)
        return f"{render_type(descriptor)}.{self._builder_name}().build()"

    def _optional(self, wrapped: TypeDescriptor, dependencies: Optional[Set[str]]) -> str:
        found: Set[str] = set()
        try:
            value = self.infer(wrapped, dependencies=found)
        except UnsupportedTypeError as exc:
            logger.debug("Falling back to %s: %s", ABSENT, exc)
            return ABSENT
        if dependencies is not None:
            dependencies.update(found)
        return value

    def _closure(self, descriptor: FunctionType) -> str:
        # The body runs only when the closure is called, so it adds no dependency.
        body = self.infer(descriptor.return_type)
        if not descriptor.parameters:
            return f"{{ {body} }}"
        placeholders = ", ".join("_" for _ in descriptor.parameters)
        return f"{{ {placeholders} in {body} }}"
