"""Swift type syntax to and from :data:`TypeDescriptor`.

The parser understands the shapes the default-value engine reasons about
(nominal types with generic arguments, optionals, collections, tuples and
function types). Anything else that is syntactically valid, such as
existentials, opaque results, compositions or metatypes, becomes an
:class:`OpaqueType` carrying the original text.
"""
from __future__ import annotations

import re
from typing import List, Optional, Tuple

from ..models.records import (
    ArrayType,
    DictionaryType,
    FunctionType,
    ImplicitlyUnwrappedOptionalType,
    NominalType,
    OpaqueType,
    OptionalType,
    TupleElement,
    TupleType,
    TypeDescriptor,
)

_TOKEN_RE = re.compile(
    r"\s*(?:(?P<arrow>->)|(?P<ellipsis>\.\.\.)|(?P<attr>@[A-Za-z_]\w*)"
    r"|(?P<ident>`?[A-Za-z_]\w*`?)|(?P<punct>[<>\[\](),:?!.&]))"
)

EFFECT_KEYWORDS = {"async", "throws", "rethrows"}
METATYPE_SUFFIXES = {"Type", "Protocol"}


class TypeSyntaxError(ValueError):
    """Raised when a type annotation cannot be parsed."""


Token = Tuple[str, int, int]


def _tokenize(text: str) -> List[Token]:
    tokens: List[Token] = []
    pos = 0
    stripped_end = len(text.rstrip())
    while pos < stripped_end:
        match = _TOKEN_RE.match(text, pos)
        if not match or match.end() == pos:
            raise TypeSyntaxError(f"Unexpected character {text[pos]!r} in type {text!r}")
        value = match.group(match.lastgroup)
        tokens.append((value, match.start(match.lastgroup), match.end()))
        pos = match.end()
    return tokens


def _is_identifier(token: Optional[str]) -> bool:
    return bool(token) and (token[0].isalpha() or token[0] in "_`")


class _TypeParser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens = _tokenize(text)
        self.pos = 0

    # --- token helpers ---------------------------------------------------
    def _peek(self, offset: int = 0) -> Optional[str]:
        index = self.pos + offset
        if index < len(self.tokens):
            return self.tokens[index][0]
        return None

    def _advance(self) -> str:
        if self.pos >= len(self.tokens):
            raise TypeSyntaxError(f"Unexpected end of type {self.text!r}")
        value = self.tokens[self.pos][0]
        self.pos += 1
        return value

    def _expect(self, value: str) -> None:
        found = self._advance()
        if found != value:
            raise TypeSyntaxError(f"Expected {value!r} but found {found!r} in type {self.text!r}")

    def _slice(self, start: int) -> str:
        return self.text[self.tokens[start][1] : self.tokens[self.pos - 1][2]].strip()

    # --- grammar ---------------------------------------------------------
    def parse(self) -> TypeDescriptor:
        if not self.tokens:
            raise TypeSyntaxError("Empty type annotation")
        result = self._type()
        if self._peek() is not None:
            raise TypeSyntaxError(f"Unexpected {self._peek()!r} in type {self.text!r}")
        return result

    def _type(self) -> TypeDescriptor:
        start = self.pos
        if self._peek() in {"any", "some"} and self._peek(1) not in {None, ",", ")", ">", "]", ":"}:
            self._advance()
            self._postfix()
            while self._peek() == "&":
                self._advance()
                self._postfix()
            return OpaqueType(self._slice(start))
        result = self._postfix()
        if self._peek() == "&":
            while self._peek() == "&":
                self._advance()
                self._postfix()
            return OpaqueType(self._slice(start))
        return result

    def _postfix(self) -> TypeDescriptor:
        start = self.pos
        result = self._primary()
        while True:
            token = self._peek()
            if token == "?":
                self._advance()
                result = OptionalType(result)
            elif token == "!":
                self._advance()
                result = ImplicitlyUnwrappedOptionalType(result)
            elif token == "." and self._peek(1) in METATYPE_SUFFIXES:
                self._advance()
                self._advance()
                result = OpaqueType(self._slice(start))
            else:
                return result

    def _primary(self) -> TypeDescriptor:
        token = self._peek()
        if token == "(":
            return self._parenthesized()
        if token == "[":
            self._advance()
            key = self._type()
            if self._peek() == ":":
                self._advance()
                value = self._type()
                self._expect("]")
                return DictionaryType(key, value)
            self._expect("]")
            return ArrayType(key)
        if _is_identifier(token):
            return self._nominal()
        raise TypeSyntaxError(f"Unexpected {token!r} in type {self.text!r}")

    def _nominal(self) -> NominalType:
        segments = [self._advance().strip("`")]
        arguments: Tuple[TypeDescriptor, ...] = ()
        while True:
            if self._peek() == "<":
                arguments = self._generic_arguments()
            if (
                self._peek() == "."
                and _is_identifier(self._peek(1))
                and self._peek(1) not in METATYPE_SUFFIXES
            ):
                if arguments:
                    segments[-1] += "<" + ", ".join(render_type(a) for a in arguments) + ">"
                    arguments = ()
                self._advance()
                segments.append(self._advance().strip("`"))
                continue
            return NominalType(".".join(segments), arguments)

    def _generic_arguments(self) -> Tuple[TypeDescriptor, ...]:
        self._expect("<")
        arguments = [self._type()]
        while self._peek() == ",":
            self._advance()
            arguments.append(self._type())
        self._expect(">")
        return tuple(arguments)

    def _parenthesized(self) -> TypeDescriptor:
        self._expect("(")
        elements: List[TupleElement] = []
        if self._peek() != ")":
            elements.append(self._tuple_element())
            while self._peek() == ",":
                self._advance()
                elements.append(self._tuple_element())
        self._expect(")")

        is_async = False
        throws = False
        thrown_error: Optional[TypeDescriptor] = None
        while self._peek() in EFFECT_KEYWORDS:
            keyword = self._advance()
            if keyword == "async":
                is_async = True
                continue
            throws = True
            # typed throws: throws(E)
            if keyword == "throws" and self._peek() == "(":
                self._advance()
                thrown_error = self._type()
                self._expect(")")
        if self._peek() == "->":
            self._advance()
            return_type = self._type()
            return FunctionType(
                tuple(element.type for element in elements),
                return_type,
                is_async=is_async,
                throws=throws,
                thrown_error=thrown_error,
            )
        if is_async or throws:
            raise TypeSyntaxError(f"Effects without a result type in {self.text!r}")
        if len(elements) == 1 and elements[0].label is None:
            return elements[0].type
        return TupleType(tuple(elements))

    def _skip_attributes(self) -> None:
        while True:
            token = self._peek()
            if token is not None and token.startswith("@"):
                attribute_end = self.tokens[self.pos][2]
                self._advance()
                # @convention(c) takes arguments, @escaping (Int) -> Void does not
                if self._peek() == "(" and self.tokens[self.pos][1] == attribute_end:
                    depth = 0
                    while True:
                        value = self._advance()
                        if value == "(":
                            depth += 1
                        elif value == ")":
                            depth -= 1
                            if depth == 0:
                                break
            elif token == "inout":
                self._advance()
            else:
                return

    def _tuple_element(self) -> TupleElement:
        self._skip_attributes()
        label: Optional[str] = None
        if _is_identifier(self._peek()) and self._peek(1) == ":":
            label = self._advance().strip("`")
            self._advance()
        elif (
            _is_identifier(self._peek())
            and _is_identifier(self._peek(1))
            and self._peek(2) == ":"
        ):
            self._advance()
            label = self._advance().strip("`")
            self._advance()
        self._skip_attributes()
        element_type = self._type()
        if self._peek() == "...":
            self._advance()
            element_type = ArrayType(element_type)
        return TupleElement(element_type, label)


def parse_type(text: str) -> TypeDescriptor:
    """Parse a Swift type annotation into a descriptor."""
    return _TypeParser(text).parse()


def _needs_parentheses(descriptor: TypeDescriptor) -> bool:
    if isinstance(descriptor, FunctionType):
        return True
    if isinstance(descriptor, OpaqueType):
        return " " in descriptor.text or "&" in descriptor.text
    return False


def render_type(descriptor: TypeDescriptor) -> str:
    """Render a descriptor back to canonical Swift text."""
    if isinstance(descriptor, NominalType):
        if descriptor.arguments:
            arguments = ", ".join(render_type(a) for a in descriptor.arguments)
            return f"{descriptor.name}<{arguments}>"
        return descriptor.name
    if isinstance(descriptor, (OptionalType, ImplicitlyUnwrappedOptionalType)):
        inner = render_type(descriptor.wrapped)
        if _needs_parentheses(descriptor.wrapped):
            inner = f"({inner})"
        suffix = "?" if isinstance(descriptor, OptionalType) else "!"
        return inner + suffix
    if isinstance(descriptor, ArrayType):
        return f"[{render_type(descriptor.element)}]"
    if isinstance(descriptor, DictionaryType):
        return f"[{render_type(descriptor.key)}: {render_type(descriptor.value)}]"
    if isinstance(descriptor, TupleType):
        parts = []
        for element in descriptor.elements:
            rendered = render_type(element.type)
            parts.append(f"{element.label}: {rendered}" if element.label else rendered)
        return "(" + ", ".join(parts) + ")"
    if isinstance(descriptor, FunctionType):
        parameters = ", ".join(render_type(p) for p in descriptor.parameters)
        effects = ""
        if descriptor.is_async:
            effects += " async"
        if descriptor.throws:
            effects += " throws"
            if descriptor.thrown_error is not None:
                effects += f"({render_type(descriptor.thrown_error)})"
        return f"({parameters}){effects} -> {render_type(descriptor.return_type)}"
    if isinstance(descriptor, OpaqueType):
        return descriptor.text
    raise TypeError(f"Not a type descriptor: {descriptor!r}")


def simple_name(name: str) -> str:
    """Last dotted segment of a nominal name, without generic arguments."""
    return name.split(".")[-1].split("<", 1)[0].strip()
