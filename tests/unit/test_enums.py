"""
Unit tests for enum semantics.

Tests cover:
- Variant shape consistency across the whole file
- Discriminant order within each version
"""

import pytest

from verschema.errors import EnumDiscriminantError, EnumShapeError
from verschema.schema.compiler import compile_schema
from verschema.schema.enums import DiscriminantCounter, VariantShapeCheck
from verschema.schema.parser import parse_schema
from verschema.schema.timeline import build_timeline
from verschema.schema.types import EnumDef, IntLiteral, VariantDef, VariantKind


def compile_text(text):
    return compile_schema(parse_schema(text))


def check_shapes(text):
    for decl in parse_schema(text):
        shapes = VariantShapeCheck(decl)
        for variant in decl.variants:
            shapes.check(variant)


def int_variant(name, value):
    return VariantDef(name, VariantKind.INT, discriminant=IntLiteral(value))


class TestEnumShapes:
    """Tests for mixing integer and payload variants."""

    def test_int_and_unit(self):
        check_shapes("enum E { A = 1, B, C = 5 }")

    def test_payload_and_unit(self):
        check_shapes("enum E { A(u8), B, C { x: u8 } }")

    def test_int_then_tuple(self):
        with pytest.raises(EnumShapeError, match="cannot have variants with both integer") as exc_info:
            check_shapes("enum E { A = 1, B(u8) }")
        assert exc_info.value.location.line == 1
        assert exc_info.value.details == {"enum": "E", "variant": "B"}

    def test_struct_then_int(self):
        with pytest.raises(EnumShapeError):
            check_shapes("enum E { A { x: u8 }, B, C = 3 }")

    def test_conflict_across_disjoint_versions(self):
        """Shapes are checked per enum, even for variants that never coexist."""
        text = """
            enum E {
                #[rem(2)] A = 1,
                #[add(2)] B(u8),
            }
        """

        with pytest.raises(EnumShapeError):
            compile_text(text)

    def test_enums_are_checked_independently(self):
        check_shapes("enum A { X = 1 } enum B { Y(u8) }")

    def test_checked_while_building_timeline(self):
        with pytest.raises(EnumShapeError):
            build_timeline(parse_schema("enum E { A(u8), B = 2 }"))

    def test_shape_checked_before_variant_range(self):
        """A conflicting variant is reported even if its own range is bad."""
        with pytest.raises(EnumShapeError):
            build_timeline(parse_schema("enum E { A = 1, #[add(3), rem(2)] B(u8) }"))


class TestDiscriminants:
    """Tests for discriminant order within one version."""

    def test_increasing(self):
        compile_text("enum E { A = 1, B = 2, C = 10 }")

    def test_not_increasing(self):
        with pytest.raises(EnumDiscriminantError, match="greater than the last discriminant"):
            compile_text("enum E { A = 5, B = 5 }")

    def test_unit_variants_take_values(self):
        """Each unit variant after an integer one takes the next value."""
        compile_text("enum E { A = 1, B, C = 3 }")

        with pytest.raises(EnumDiscriminantError):
            compile_text("enum E { A = 1, B, C = 2 }")

    def test_unit_variants_before_any_integer(self):
        """Leading unit variants do not constrain the first discriminant."""
        compile_text("enum E { A, B, C = 0 }")

    def test_counter_resets_on_each_integer(self):
        compile_text("enum E { A = 1, B, C, D = 4, E = 5 }")

    def test_error_reported_at_literal(self):
        with pytest.raises(EnumDiscriminantError) as exc_info:
            compile_text("enum E {\n    A = 10,\n    B = 3,\n}")
        assert exc_info.value.location.line == 3
        assert exc_info.value.location.column == 9
        assert exc_info.value.details["version"] == 1

    def test_reused_name_with_disjoint_ranges(self):
        """A lower value is fine when it never coexists with the higher one."""
        compiled = compile_text(
            """
            enum E {
                #[rem(2)] Val = 10,
                #[add(2)] Val = 5,
            }
            """
        )
        assert compiled.versions == 2

    def test_only_active_variants_count(self):
        """A retired variant does not constrain later versions."""
        text = """
            enum E {
                A = 1,
                #[rem(2)] B = 8,
                #[add(2)] C = 2,
            }
        """
        compiled = compile_text(text)
        assert compiled.versions == 2

    def test_violation_in_later_version(self):
        text = """
            enum E {
                A = 5,
                #[add(2)] B = 3,
            }
        """

        with pytest.raises(EnumDiscriminantError, match="version 2"):
            compile_text(text)

    def test_counter_directly(self):
        enum_def = EnumDef("E", variants=(int_variant("A", 3), VariantDef("B"), int_variant("C", 4)))
        counter = DiscriminantCounter(enum_def, version=2)
        counter.check(enum_def.variants[0])
        counter.check(enum_def.variants[1])

        with pytest.raises(EnumDiscriminantError) as exc_info:
            counter.check(enum_def.variants[2])
        assert exc_info.value.details == {"enum": "E", "variant": "C", "version": 2}

    def test_counter_ignores_payload_variants(self):
        (enum_def,) = parse_schema("enum E { A(u8), B { x: u8 } }")
        counter = DiscriminantCounter(enum_def, version=1)
        for variant in enum_def.variants:
            counter.check(variant)
