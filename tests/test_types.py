"""Tests for Swift type annotation parsing and rendering."""
import pytest

from addbuilder.generator.types import TypeSyntaxError, parse_type, render_type, simple_name
from addbuilder.models.records import (
    ArrayType,
    DictionaryType,
    FunctionType,
    ImplicitlyUnwrappedOptionalType,
    NominalType,
    OpaqueType,
    OptionalType,
    TupleElement,
    TupleType,
)

INT = NominalType("Int")
STRING = NominalType("String")


class TestParseType:
    def test_nominal(self):
        assert parse_type("Int") == INT

    def test_generic_arguments(self):
        parsed = parse_type("Dictionary<String, [Int]>")
        assert parsed == NominalType("Dictionary", (STRING, ArrayType(INT)))

    def test_qualified_name(self):
        parsed = parse_type("Swift.Result<Int, Error>")
        assert parsed == NominalType("Swift.Result", (INT, NominalType("Error")))

    def test_optional_sugar(self):
        assert parse_type("String?") == OptionalType(STRING)
        assert parse_type("String??") == OptionalType(OptionalType(STRING))

    def test_implicitly_unwrapped(self):
        assert parse_type("Int!") == ImplicitlyUnwrappedOptionalType(INT)

    def test_collection_sugar(self):
        assert parse_type("[Cat]") == ArrayType(NominalType("Cat"))
        assert parse_type("[String: Int]") == DictionaryType(STRING, INT)

    def test_tuple_with_labels(self):
        parsed = parse_type("(x: Int, y: Double)")
        assert parsed == TupleType(
            (TupleElement(INT, "x"), TupleElement(NominalType("Double"), "y"))
        )

    def test_parenthesized_type_unwraps(self):
        assert parse_type("(Int)") == INT

    def test_empty_tuple(self):
        assert parse_type("()") == TupleType(())

    def test_function_type(self):
        parsed = parse_type("(Int, String) -> Bool")
        assert parsed == FunctionType((INT, STRING), NominalType("Bool"))

    def test_function_effects_and_labels(self):
        parsed = parse_type("(_ value: Int) async throws -> Void")
        assert parsed == FunctionType((INT,), NominalType("Void"), is_async=True, throws=True)

    def test_typed_throws(self):
        parsed = parse_type("() throws(ParseError) -> Int")
        assert parsed == FunctionType((), INT, throws=True, thrown_error=NominalType("ParseError"))

    def test_escaping_parameter(self):
        parsed = parse_type("(@escaping (Int) -> Void) -> Void")
        inner = FunctionType((INT,), NominalType("Void"))
        assert parsed == FunctionType((inner,), NominalType("Void"))

    def test_optional_function(self):
        closure = FunctionType((), NominalType("Void"))
        assert parse_type("(() -> Void)?") == OptionalType(closure)
        assert parse_type("() -> Void?") == FunctionType((), OptionalType(NominalType("Void")))

    @pytest.mark.parametrize("text", ["any Equatable", "some View", "P & Q", "Int.Type"])
    def test_shapes_without_structure_are_opaque(self, text):
        assert parse_type(text) == OpaqueType(text)

    @pytest.mark.parametrize("text", ["", "[Int", "Array<Int", "Int?)", "(Int) async", "Int -"])
    def test_malformed_types_raise(self, text):
        with pytest.raises(TypeSyntaxError):
            parse_type(text)


class TestRenderType:
    @pytest.mark.parametrize(
        "text",
        [
            "[String: Int]",
            "Array<Cat>",
            "(x: Int, y: Double)",
            "(Int, String) -> Bool",
            "(() -> Void)?",
            "() async throws -> Void",
            "(String) throws(ParseError) -> Int",
        ],
    )
    def test_canonical_text_is_stable(self, text):
        assert render_type(parse_type(text)) == text

    def test_whitespace_is_normalized(self):
        assert render_type(parse_type("Dictionary<String,Int>")) == "Dictionary<String, Int>"
        assert render_type(parse_type("[ String : Int ]")) == "[String: Int]"


def test_simple_name_drops_module_prefix():
    assert simple_name("Foundation.Date") == "Date"
    assert simple_name("Int") == "Int"
