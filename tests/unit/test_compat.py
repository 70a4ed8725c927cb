"""
Unit tests for version-to-version change classification.

Tests cover:
- Detection of breaking changes
- Detection of non-breaking changes
- Specific change types
"""

import pytest

from verschema.schema.compat import (
    ChangeKind,
    CompatibilityError,
    SchemaChange,
    check_upgrade,
    diff_versions,
)
from verschema.schema.compiler import compile_schema
from verschema.schema.parser import parse_schema


def compile_text(text):
    return compile_schema(parse_schema(text))


class TestChangeDetection:
    """Tests for diff_versions."""

    def test_no_changes(self):
        """Identical versions have no changes."""
        compiled = compile_text("struct User { email: str, #[add(2)] name: str }")

        assert diff_versions(compiled, 2, 2) == []

    def test_add_type(self):
        """Adding a type is allowed."""
        compiled = compile_text("node User { email: str } #[add(2)] node Task { title: str }")

        changes = diff_versions(compiled, 1, 2)

        assert len(changes) == 1
        assert changes[0].kind == ChangeKind.TYPE_ADDED
        assert changes[0].path == "Task"
        assert changes[0].new_value == "node"
        assert not changes[0].is_breaking

    def test_remove_type_is_breaking(self):
        """Removing a type is breaking."""
        compiled = compile_text("node User { email: str } #[rem(2)] node Task { title: str }")

        changes = diff_versions(compiled, 1, 2)

        breaking = [c for c in changes if c.is_breaking]
        assert len(breaking) == 1
        assert breaking[0].kind == ChangeKind.TYPE_REMOVED
        assert breaking[0].path == "Task"

    def test_redefine_type_is_breaking(self):
        """A name backed by a different declaration is breaking."""
        compiled = compile_text(
            """
            struct Anchor { x: u8 }
            #[rem(2)] struct Status { code: u8 }
            #[add(2)] enum Status { Active, Closed }
            """
        )

        changes = diff_versions(compiled, 1, 2)

        assert [c.kind for c in changes] == [ChangeKind.TYPE_REDEFINED]
        assert changes[0].old_value == "struct"
        assert changes[0].new_value == "enum"

    def test_add_field(self):
        """Adding a field is allowed."""
        compiled = compile_text("struct User { email: str, #[add(2)] name: str }")

        changes = diff_versions(compiled, 1, 2)

        assert len(changes) == 1
        assert changes[0].kind == ChangeKind.FIELD_ADDED
        assert changes[0].path == "User.name"
        assert changes[0].new_value == "str"
        assert not changes[0].is_breaking

    def test_remove_field_is_breaking(self):
        """Removing a field is breaking."""
        compiled = compile_text("struct User { email: str, #[rem(2)] name: str }")

        changes = diff_versions(compiled, 1, 2)

        breaking = [c for c in changes if c.is_breaking]
        assert len(breaking) == 1
        assert breaking[0].kind == ChangeKind.FIELD_REMOVED
        assert breaking[0].path == "User.name"

    def test_redefine_field_is_breaking(self):
        """Replacing a field under the same name is breaking."""
        compiled = compile_text(
            """
            struct User {
                #[rem(2)] age: str,
                #[add(2)] age: u8,
            }
            """
        )

        changes = diff_versions(compiled, 1, 2)

        assert len(changes) == 1
        assert changes[0].kind == ChangeKind.FIELD_REDEFINED
        assert changes[0].old_value == "str"
        assert changes[0].new_value == "u8"
        assert changes[0].is_breaking

    def test_add_variant_allowed(self):
        compiled = compile_text("enum Status { Todo, Done, #[add(2)] Doing }")

        changes = diff_versions(compiled, 1, 2)

        assert [c.kind for c in changes] == [ChangeKind.VARIANT_ADDED]
        assert changes[0].path == "Status.Doing"

    def test_remove_variant_is_breaking(self):
        compiled = compile_text("enum Status { Todo, #[rem(2)] Doing, Done }")

        changes = diff_versions(compiled, 1, 2)

        assert [c.kind for c in changes] == [ChangeKind.VARIANT_REMOVED]
        assert changes[0].is_breaking

    def test_redefine_variant_is_breaking(self):
        compiled = compile_text(
            """
            enum Code {
                Ok = 0,
                #[rem(2)] Fail = 1,
                #[add(2)] Fail = 2,
            }
            """
        )

        changes = diff_versions(compiled, 1, 2)

        assert [c.kind for c in changes] == [ChangeKind.VARIANT_REDEFINED]
        assert changes[0].old_value == "Fail = 1"
        assert changes[0].new_value == "Fail = 2"

    def test_struct_variant_fields(self):
        """Fields of a struct-shaped variant are compared too."""
        compiled = compile_text(
            """
            enum Event {
                Key { code: u32, #[rem(2)] shift: bool, #[add(2)] mods: u8 },
            }
            """
        )

        changes = diff_versions(compiled, 1, 2)

        kinds = {c.path: c.kind for c in changes}
        assert kinds == {
            "Event.Key.shift": ChangeKind.FIELD_REMOVED,
            "Event.Key.mods": ChangeKind.FIELD_ADDED,
        }

    def test_downgrade_reverses_kinds(self):
        """Diffing backwards turns additions into removals."""
        compiled = compile_text("struct User { email: str, #[add(2)] name: str }")

        changes = diff_versions(compiled, 2, 1)

        assert [c.kind for c in changes] == [ChangeKind.FIELD_REMOVED]

    def test_missing_version(self):
        compiled = compile_text("struct User { email: str }")

        with pytest.raises(KeyError):
            diff_versions(compiled, 1, 2)


class TestCheckUpgrade:
    """Tests for check_upgrade."""

    def test_compatible_upgrade(self):
        compiled = compile_text("struct User { email: str, #[add(2)] name: str }")

        changes = check_upgrade(compiled, 1, 2)

        assert len(changes) == 1

    def test_breaking_upgrade_raises(self):
        compiled = compile_text("struct User { email: str, #[rem(2)] name: str }")

        with pytest.raises(CompatibilityError) as exc_info:
            check_upgrade(compiled, 1, 2)

        assert len(exc_info.value.changes) == 1
        assert "1 breaking change(s)" in str(exc_info.value)
        assert "FIELD_REMOVED: User.name" in str(exc_info.value)


class TestChangeKind:
    """Tests for ChangeKind classification."""

    def test_breaking_kinds(self):
        breaking = {k for k in ChangeKind if k.is_breaking}
        assert breaking == {
            ChangeKind.TYPE_REMOVED,
            ChangeKind.TYPE_REDEFINED,
            ChangeKind.FIELD_REMOVED,
            ChangeKind.FIELD_REDEFINED,
            ChangeKind.VARIANT_REMOVED,
            ChangeKind.VARIANT_REDEFINED,
        }

    def test_change_str(self):
        change = SchemaChange(ChangeKind.FIELD_ADDED, "User.name", message="Field 'name' added")
        assert str(change) == "[OK] FIELD_ADDED: User.name - Field 'name' added"

    def test_change_to_dict(self):
        change = SchemaChange(ChangeKind.TYPE_REMOVED, "Task", old_value="node")
        assert change.to_dict() == {
            "kind": "TYPE_REMOVED",
            "path": "Task",
            "breaking": True,
            "old_value": "node",
            "new_value": None,
            "message": "",
        }
