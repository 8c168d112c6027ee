from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Set, Tuple

from tree_sitter import Language, Node, Parser
from tree_sitter_swift import language as swift_language

from ..config import Settings
from ..models.records import (
    MemberDeclaration,
    OpaqueType,
    ParsedRecord,
    ParsedSource,
    RecordDeclaration,
    RequestKind,
    SourceLocation,
    TypeDescriptor,
)
from .base import ParserAdapter
from .types import TypeSyntaxError, parse_type

logger = logging.getLogger(__name__)

ENTITY_NODE_TYPES = {
    "class_declaration",
    "struct_declaration",
    "enum_declaration",
    "protocol_declaration",
    "actor_declaration",
}

PROPERTY_NODE_TYPES = {
    "property_declaration",
    "variable_declaration",
    "constant_declaration",
}

DECLARATION_KEYWORDS = {"struct", "class", "enum", "actor", "protocol", "extension"}
BINDING_KEYWORDS = {"let", "var"}
VISIBILITY_KEYWORDS = {"public", "open", "package", "internal", "fileprivate", "private"}
STATIC_KEYWORDS = {"static", "class"}
OBSERVER_KEYWORDS = {"willSet", "didSet"}

_WORD_RE = re.compile(r"`?[A-Za-z_]\w*`?")
_ATTRIBUTE_RE = re.compile(r"@([A-Za-z_][\w.]*)")
_LABEL_RE = re.compile(r"\s*([A-Za-z_]\w*)\s*:(?!:)")


@dataclass(slots=True)
class AttributeSyntax:
    name: str
    arguments: Optional[str]  # text between the parentheses
    start: int
    end: int

    def argument_list(self) -> List[Tuple[Optional[str], str]]:
        if self.arguments is None:
            return []
        parsed: List[Tuple[Optional[str], str]] = []
        for piece in _split_top_level(self.arguments):
            if not piece.strip():
                continue
            match = _LABEL_RE.match(piece)
            if match:
                parsed.append((match.group(1), piece[match.end():].strip()))
            else:
                parsed.append((None, piece.strip()))
        return parsed

    def default_argument(self) -> Optional[str]:
        arguments = self.argument_list()
        if not arguments:
            return None
        label, expression = arguments[0]
        if label not in (None, "default"):
            return None
        return expression


@dataclass(slots=True)
class DeclarationHead:
    attributes: List[AttributeSyntax]
    modifiers: List[str]
    keyword: Optional[str]
    end: int

    @property
    def visibility(self) -> Optional[str]:
        for modifier in self.modifiers:
            if modifier in VISIBILITY_KEYWORDS:
                return modifier
        return None


# --- text scanning helpers -------------------------------------------------


def _skip_trivia(text: str, pos: int) -> int:
    while pos < len(text):
        if text[pos].isspace():
            pos += 1
        elif text.startswith("//", pos):
            newline = text.find("\n", pos)
            pos = len(text) if newline == -1 else newline + 1
        elif text.startswith("/*", pos):
            close = text.find("*/", pos + 2)
            pos = len(text) if close == -1 else close + 2
        else:
            break
    return pos


def _balanced_end(text: str, pos: int, opening: str = "(", closing: str = ")") -> int:
    """Return the index just past the bracket that closes ``text[pos]``."""
    depth = 0
    in_string = False
    index = pos
    while index < len(text):
        char = text[index]
        if in_string:
            if char == "\\":
                index += 2
                continue
            if char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char == opening:
            depth += 1
        elif char == closing:
            depth -= 1
            if depth == 0:
                return index + 1
        index += 1
    raise ValueError(f"Unbalanced {opening!r} in {text[pos:pos + 40]!r}")


def _split_top_level(text: str) -> List[str]:
    pieces: List[str] = []
    depth = 0
    in_string = False
    current: List[str] = []
    index = 0
    while index < len(text):
        char = text[index]
        if in_string:
            current.append(char)
            if char == "\\" and index + 1 < len(text):
                current.append(text[index + 1])
                index += 2
                continue
            if char == '"':
                in_string = False
        elif char == '"':
            in_string = True
            current.append(char)
        elif text.startswith("->", index):
            current.append("->")
            index += 2
            continue
        elif char in "([{<":
            depth += 1
            current.append(char)
        elif char in ")]}>":
            depth -= 1
            current.append(char)
        elif char == "," and depth == 0:
            pieces.append("".join(current))
            current = []
        else:
            current.append(char)
        index += 1
    pieces.append("".join(current))
    return pieces


def _scan_head(text: str, stop_words: Set[str]) -> DeclarationHead:
    """Read attributes and modifiers up to the first keyword in ``stop_words``."""
    attributes: List[AttributeSyntax] = []
    modifiers: List[str] = []
    pos = 0
    while True:
        pos = _skip_trivia(text, pos)
        attribute = _ATTRIBUTE_RE.match(text, pos)
        if attribute:
            end = attribute.end()
            arguments = None
            if end < len(text) and text[end] == "(":
                close = _balanced_end(text, end)
                arguments = text[end + 1 : close - 1]
                end = close
            attributes.append(AttributeSyntax(attribute.group(1), arguments, pos, end))
            pos = end
            continue
        word = _WORD_RE.match(text, pos)
        if not word:
            return DeclarationHead(attributes, modifiers, None, pos)
        pos = word.end()
        if word.group(0) in stop_words:
            return DeclarationHead(attributes, modifiers, word.group(0), pos)
        if pos < len(text) and text[pos] == "(":
            # private(set), unowned(safe)
            pos = _balanced_end(text, pos)
        modifiers.append(word.group(0))


def _read_type_text(text: str, pos: int) -> Tuple[str, int]:
    depth = 0
    index = pos
    while index < len(text):
        if text.startswith("->", index):
            index += 2
            continue
        if text.startswith("//", index) or text.startswith("/*", index):
            break
        char = text[index]
        if char in "<([":
            depth += 1
        elif char in ">)]":
            depth -= 1
        elif depth == 0 and char in "={,;":
            break
        index += 1
    return text[pos:index].strip(), index


def _generic_parameters(text: str, pos: int) -> List[str]:
    pos = _skip_trivia(text, pos)
    if pos >= len(text) or text[pos] != "<":
        return []
    close = _balanced_end(text, pos, "<", ">")
    names: List[str] = []
    for piece in _split_top_level(text[pos + 1 : close - 1]):
        match = _WORD_RE.match(piece.strip())
        if match:
            names.append(match.group(0).strip("`"))
    return names


def _derive_kind(keyword: Optional[str], node_type: str) -> str:
    if keyword in DECLARATION_KEYWORDS:
        return keyword
    return node_type.replace("_declaration", "")


class SwiftDeclarationParser(ParserAdapter):
    language = "swift"
    suffixes = (".swift", ".swiftinterface")

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()
        self._language = Language(swift_language())
        self._parser = Parser(self._language)

    def parse(self, source: str, path: Path) -> ParsedSource:
        source_bytes = source.encode("utf-8")
        tree = self._parser.parse(source_bytes)
        root = tree.root_node

        errors = [
            SourceLocation(path, node.start_point[0] + 1, node.start_point[1] + 1)
            for node in self._iter_nodes(root)
            if node.type == "ERROR" or node.is_missing
        ]
        if errors:
            logger.warning("%s: %d syntax error(s), first at %s", path, len(errors), errors[0])

        records: List[ParsedRecord] = []
        for node in self._iter_nodes(root):
            if node.type not in ENTITY_NODE_TYPES:
                continue
            try:
                record = self._parse_record(node, source_bytes, path)
            except ValueError as exc:
                logger.warning("%s: skipping declaration at line %d: %s", path, node.start_point[0] + 1, exc)
                continue
            if record is not None:
                records.append(record)
        records.sort(key=lambda r: (r.declaration.location.line, r.declaration.location.column))
        return ParsedSource(records=records, errors=errors)

    # --- tree helpers ---
    def _iter_nodes(self, node: Node) -> Iterator[Node]:
        stack = [node]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(current.children))

    def _text(self, node: Node, source_bytes: bytes) -> str:
        return source_bytes[node.start_byte : node.end_byte].decode("utf-8")

    def _extract_name(self, node: Node, source_bytes: bytes) -> str | None:
        target = node.child_by_field_name("name")
        if target:
            return self._text(target, source_bytes)
        for child in node.children:
            if child.type in {"identifier", "type_identifier", "simple_identifier"}:
                return self._text(child, source_bytes)
        return None

    def _owner_names(self, node: Node, source_bytes: bytes) -> List[str]:
        owners: List[str] = []
        parent = node.parent
        while parent is not None:
            if parent.type in ENTITY_NODE_TYPES:
                owner = self._extract_name(parent, source_bytes)
                if owner:
                    owners.append(owner.strip("`"))
            parent = parent.parent
        return list(reversed(owners))

    def _body(self, node: Node) -> Optional[Node]:
        body = node.child_by_field_name("body")
        if body is not None:
            return body
        for child in node.children:
            if child.type.endswith("_body"):
                return child
        return None

    def _location(self, path: Path, node: Node, text: str, offset: int = 0) -> SourceLocation:
        newlines = text.count("\n", 0, offset)
        if newlines == 0:
            column = node.start_point[1] + len(text[:offset].encode("utf-8")) + 1
        else:
            line_start = text.rfind("\n", 0, offset) + 1
            column = len(text[line_start:offset].encode("utf-8")) + 1
        return SourceLocation(path, node.start_point[0] + newlines + 1, column)

    def _absolute_span(
        self, node: Node, text: str, start: int, end: int, source_bytes: bytes
    ) -> Tuple[int, int]:
        """Byte span of ``text[start:end]``, widened to the whole line when alone on it."""
        begin = node.start_byte + len(text[:start].encode("utf-8"))
        finish = node.start_byte + len(text[:end].encode("utf-8"))
        line_start = source_bytes.rfind(b"\n", 0, begin) + 1
        line_end = source_bytes.find(b"\n", finish)
        line_end = len(source_bytes) if line_end == -1 else line_end
        if not source_bytes[line_start:begin].strip() and not source_bytes[finish:line_end].strip():
            return line_start, min(line_end + 1, len(source_bytes))
        while finish < len(source_bytes) and source_bytes[finish : finish + 1] in (b" ", b"\t"):
            finish += 1
        return begin, finish

    def _indent_of(self, node: Node, source_bytes: bytes) -> str:
        line_start = source_bytes.rfind(b"\n", 0, node.start_byte) + 1
        line = source_bytes[line_start : node.start_byte].decode("utf-8")
        return line[: len(line) - len(line.lstrip())]

    # --- declarations ---
    def _parse_record(
        self, node: Node, source_bytes: bytes, path: Path
    ) -> Optional[ParsedRecord]:
        text = self._text(node, source_bytes)
        head = _scan_head(text, DECLARATION_KEYWORDS)
        name = self._extract_name(node, source_bytes)
        if head.keyword is not None:
            name_start = _skip_trivia(text, head.end)
            match = _WORD_RE.match(text, name_start)
            if match:
                name = match.group(0)
                generic_parameters = _generic_parameters(text, match.end())
            else:
                generic_parameters = []
        else:
            generic_parameters = []
        if not name:
            return None
        name = name.strip("`")
        keyword = head.keyword
        if keyword is None:
            kind_node = node.child_by_field_name("declaration_kind")
            keyword = self._text(kind_node, source_bytes) if kind_node else None
        kind = _derive_kind(keyword, node.type)

        record = RecordDeclaration(
            name=name,
            kind=kind,
            generic_parameters=generic_parameters,
            visibility=head.visibility,
            location=self._location(path, node, text),
            attributes=[attribute.name for attribute in head.attributes],
        )
        parsed = ParsedRecord(declaration=record, indent=self._indent_of(node, source_bytes))
        parsed.qualified_name = ".".join([*self._owner_names(node, source_bytes), name])

        for attribute in head.attributes:
            if attribute.name not in self.settings.builder_attributes:
                continue
            if parsed.request_kind is None:
                has_default = any(label == "default" for label, _ in attribute.argument_list())
                parsed.request_kind = (
                    RequestKind.BUILDER_DEFAULT if has_default else RequestKind.ADD_BUILDER
                )
                parsed.request_location = self._location(path, node, text, attribute.start)
            parsed.strip_spans.append(
                self._absolute_span(node, text, attribute.start, attribute.end, source_bytes)
            )

        body = self._body(node)
        if body is not None:
            if source_bytes[body.end_byte - 1 : body.end_byte] == b"}":
                parsed.body_end = body.end_byte - 1
            for child in body.named_children:
                if child.type not in PROPERTY_NODE_TYPES:
                    continue
                member, spans = self._parse_member(child, source_bytes, path)
                record.members.append(member)
                parsed.strip_spans.extend(spans)
        return parsed

    def _parse_member(
        self, node: Node, source_bytes: bytes, path: Path
    ) -> Tuple[MemberDeclaration, List[Tuple[int, int]]]:
        text = self._text(node, source_bytes)
        location = self._location(path, node, text)
        try:
            head = _scan_head(text, BINDING_KEYWORDS)
        except ValueError as exc:
            logger.warning("%s: unreadable member: %s", location, exc)
            return MemberDeclaration(name=None, location=location), []

        member = MemberDeclaration(
            name=None,
            is_mutable=head.keyword == "var",
            is_static=any(m in STATIC_KEYWORDS for m in head.modifiers),
            location=location,
        )
        spans: List[Tuple[int, int]] = []
        for attribute in head.attributes:
            if attribute.name not in self.settings.default_attributes:
                continue
            expression = attribute.default_argument()
            if expression is None:
                continue
            if member.default_override is None:
                member.default_override = expression
            spans.append(self._absolute_span(node, text, attribute.start, attribute.end, source_bytes))

        if head.keyword is None:
            return member, spans
        pos = _skip_trivia(text, head.end)
        match = _WORD_RE.match(text, pos)
        if not match:
            return member, spans
        member.name = match.group(0).strip("`")
        pos = _skip_trivia(text, match.end())
        if pos >= len(text) or text[pos] != ":":
            return member, spans

        type_text, pos = _read_type_text(text, pos + 1)
        member.type = self._parse_type(type_text, location)
        pos = _skip_trivia(text, pos)
        if pos < len(text) and text[pos] == "{":
            accessor = _WORD_RE.match(text, _skip_trivia(text, pos + 1))
            member.is_computed = not (accessor and accessor.group(0) in OBSERVER_KEYWORDS)
        return member, spans

    def _parse_type(self, type_text: str, location: SourceLocation) -> Optional[TypeDescriptor]:
        if not type_text:
            return None
        try:
            return parse_type(type_text)
        except TypeSyntaxError as exc:
            logger.debug("%s: keeping type %r opaque: %s", location, type_text, exc)
            return OpaqueType(type_text)


def requested_records(parsed: ParsedSource) -> Iterable[ParsedRecord]:
    return (record for record in parsed.records if record.requested)
