"""
Unit tests for the compilation entry point.

Tests cover:
- End-to-end scenarios over small schemas
- Empty version detection
- Rendering, lookup helpers and fingerprints
- Settings passed to the compiler
"""

import json

import pytest

from verschema.config import CompilerSettings
from verschema.errors import (
    CompileError,
    DanglingReferenceError,
    EmptyVersionError,
    EnumDiscriminantError,
    EnumShapeError,
    MalformedVersionError,
    NameOverlapError,
    ReferenceKindError,
    VersionLimitError,
)
from verschema.schema.compiler import CompiledSchema, compile_schema
from verschema.schema.parser import parse_schema
from verschema.schema.types import RecordDef, field, version


def compile_text(text, settings=None):
    return compile_schema(parse_schema(text), settings)


EVOLVING_SCHEMA = """
struct Point {
    x: i32,
    y: i32,
    #[add(2)]
    z: opt<i32>,
}

node Shape {
    origin: Point,
    #[rem(3)]
    parent: opt<ref<Shape>>,
    #[add(3)]
    parent: opt<ref<any>>,
}

#[add(2)]
enum Color {
    Red = 1,
    Green,
    #[add(3)]
    Blue = 5,
}
"""


class TestScenarios:
    """End-to-end compilation scenarios."""

    def test_single_struct(self):
        """One unannotated struct gives exactly one version with all fields."""
        compiled = compile_schema([RecordDef("S", fields=(field("a", "u8"), field("b", "str")))])

        assert compiled.versions == 1
        assert compiled.to_dict() == {
            "versions": [
                {
                    "version": 1,
                    "types": [
                        {
                            "name": "S",
                            "kind": "struct",
                            "fields": [
                                {"name": "a", "type": "u8"},
                                {"name": "b", "type": "str"},
                            ],
                        }
                    ],
                }
            ]
        }

    def test_replaced_field(self):
        """A field retired in version 2 and redeclared from version 2."""
        compiled = compile_text(
            """
            struct S {
                #[rem(2)] f: u8,
                #[add(2)] f: u64,
            }
            """
        )

        assert compiled.versions == 2
        assert compiled.module(1).types[0].fields == [0]
        assert compiled.module(2).types[0].fields == [1]

    def test_overlapping_field(self):
        """Ranges [1, 3) and [2, inf) share version 2."""
        with pytest.raises(NameOverlapError) as exc_info:
            compile_text(
                """
                struct S {
                    #[rem(3)] f: u8,
                    #[add(2)] f: u64,
                }
                """
            )
        assert exc_info.value.location.line == 4

    def test_struct_through_ref(self):
        compile_text("struct P { x: u8 } struct L { p: P }")

        with pytest.raises(ReferenceKindError):
            compile_text("struct P { x: u8 } struct L { p: ref<P> }")

    def test_empty_version(self):
        """A version with no types at all is rejected."""
        with pytest.raises(EmptyVersionError, match="version 2 is empty") as exc_info:
            compile_text(
                """
                #[rem(2)] struct A { x: u8 }
                #[add(3)] struct B { y: u8 }
                """
            )
        assert exc_info.value.version == 2
        assert exc_info.value.code == "EMPTY_VERSION"
        assert exc_info.value.location is None

    def test_evolving_schema(self):
        compiled = compile_text(EVOLVING_SCHEMA)

        assert compiled.versions == 3
        assert compiled.type_names(1) == ["Point", "Shape"]
        assert compiled.type_names(2) == ["Point", "Shape", "Color"]

        rendered = compiled.to_dict()["versions"]
        shape_v3 = rendered[2]["types"][1]
        assert shape_v3 == {
            "name": "Shape",
            "kind": "node",
            "fields": [
                {"name": "origin", "type": "Point"},
                {"name": "parent", "type": "opt<ref<any>>"},
            ],
        }
        color_v3 = rendered[2]["types"][2]
        assert color_v3["variants"] == [
            {"name": "Red", "discriminant": 1},
            {"name": "Green"},
            {"name": "Blue", "discriminant": 5},
        ]

    def test_empty_declaration_list(self):
        compiled = compile_schema([])
        assert compiled.versions == 0
        assert compiled.to_dict() == {"versions": []}


class TestErrorOrder:
    """With several errors in one file, the first in source order is reported."""

    def test_member_overlap_before_later_bad_range(self):
        text = "struct A { f: u8, f: u8 }\n#[add(3), rem(2)] struct B { x: u8 }"

        with pytest.raises(NameOverlapError) as exc_info:
            compile_text(text)
        assert (exc_info.value.location.line, exc_info.value.location.column) == (1, 19)

    def test_bad_range_before_later_enum_shape(self):
        text = "#[add(3), rem(2)] struct A { x: u8 }\nenum E { A = 1, B(u8) }"

        with pytest.raises(MalformedVersionError) as exc_info:
            compile_text(text)
        assert exc_info.value.location.line == 1

    def test_enum_shape_before_later_bad_range(self):
        text = "enum E { A = 1, B(u8) }\n#[add(3), rem(2)] struct A { x: u8 }"

        with pytest.raises(EnumShapeError):
            compile_text(text)

    def test_discriminant_before_later_dangling_reference(self):
        text = "enum E { A = 5, B = 1 }\nstruct S { m: Missing }"

        with pytest.raises(EnumDiscriminantError) as exc_info:
            compile_text(text)
        assert exc_info.value.location.line == 1

    def test_dangling_reference_before_later_version(self):
        """Modules are validated in version order."""
        text = "struct S { m: Missing, #[add(2)] e: E }\n#[add(2)] enum E { A = 5, B = 1 }"

        with pytest.raises(DanglingReferenceError, match="version 1"):
            compile_text(text)

    def test_type_name_checked_after_its_members(self):
        text = "struct A { x: u8 }\nstruct A { y: u8, y: u8 }"

        with pytest.raises(NameOverlapError) as exc_info:
            compile_text(text)
        assert exc_info.value.details == {"name": "y"}


class TestRendering:
    """Tests for the rendered form of payload variants."""

    def test_payload_variants(self):
        compiled = compile_text(
            """
            enum Event {
                Click(i32, i32),
                Key { code: u32, #[add(2)] repeat: bool },
                Quit,
            }
            """
        )

        v1, v2 = compiled.to_dict()["versions"]
        assert v1["types"][0]["variants"] == [
            {"name": "Click", "values": ["i32", "i32"]},
            {"name": "Key", "fields": [{"name": "code", "type": "u32"}]},
            {"name": "Quit"},
        ]
        assert v2["types"][0]["variants"][1]["fields"] == [
            {"name": "code", "type": "u32"},
            {"name": "repeat", "type": "bool"},
        ]

    def test_to_json_is_sorted(self):
        compiled = compile_text("struct S { b: u8, a: u8 }")
        data = json.loads(compiled.to_json())
        assert data == compiled.to_dict()
        assert compiled.to_json(indent=None).startswith('{"versions"')


class TestCompiledSchema:
    """Tests for CompiledSchema helpers."""

    def test_module_lookup(self):
        compiled = compile_text(EVOLVING_SCHEMA)
        assert compiled.module(1).version == 1
        assert compiled.module(3).version == 3

    def test_missing_version(self):
        compiled = compile_text(EVOLVING_SCHEMA)

        with pytest.raises(KeyError):
            compiled.module(0)
        with pytest.raises(KeyError):
            compiled.module(4)

    def test_fingerprint_format(self):
        compiled = compile_text(EVOLVING_SCHEMA)
        assert compiled.fingerprint.startswith("sha256:")
        assert len(compiled.fingerprint) == len("sha256:") + 64

    def test_fingerprint_is_deterministic(self):
        first = compile_text(EVOLVING_SCHEMA)
        second = compile_text(EVOLVING_SCHEMA)
        assert first.fingerprint == second.fingerprint

    def test_fingerprint_ignores_formatting(self):
        """Only the compiled shape matters, not whitespace or comments."""
        compact = compile_text("struct S { a: u8 }")
        spaced = compile_text("// comment\nstruct S {\n    a: u8,\n}\n")
        assert compact.fingerprint == spaced.fingerprint

    def test_fingerprint_changes_with_shape(self):
        before = compile_text("struct S { a: u8 }")
        after = compile_text("struct S { a: u8, #[add(2)] b: u8 }")
        assert before.fingerprint != after.fingerprint

    def test_declarations_are_kept(self):
        decls = parse_schema("struct S { a: u8 }")
        compiled = compile_schema(decls)
        assert isinstance(compiled, CompiledSchema)
        assert compiled.declarations == tuple(decls)


class TestSettings:
    """Tests for settings passed to the compiler."""

    def test_max_version(self):
        settings = CompilerSettings(max_version=4)

        compile_text("struct S { #[add(4)] a: u8 }", settings)
        with pytest.raises(VersionLimitError):
            compile_text("struct S { #[add(5)] a: u8 }", settings)

    def test_errors_share_a_base(self):
        with pytest.raises(CompileError):
            compile_schema([RecordDef("S", version=version(add=3, rem=2))])
