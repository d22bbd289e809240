"""
Unit tests for ChocoPy static types and the class hierarchy.
"""

import pytest

from chocopy.compiler.types import (
    BOOL_TYPE,
    EMPTY_TYPE,
    INT_TYPE,
    NONE_TYPE,
    OBJECT_TYPE,
    STR_TYPE,
    UNKNOWN_TYPE,
    ClassHierarchy,
    ClassInfo,
    ClassValueType,
    FuncType,
    ListValueType,
)


@pytest.fixture
def hierarchy():
    """object <- A <- B, and A <- C."""
    classes = ClassHierarchy()
    classes.add(ClassInfo("A", "object"))
    classes.add(ClassInfo("B", "A"))
    classes.add(ClassInfo("C", "A"))
    return classes


A = ClassValueType("A")
B = ClassValueType("B")
C = ClassValueType("C")


class TestValueTypes:
    """Equality and display of types."""

    def test_structural_equality(self):
        assert ClassValueType("A") == ClassValueType("A")
        assert hash(ClassValueType("A")) == hash(ClassValueType("A"))
        assert ListValueType(INT_TYPE) == ListValueType(ClassValueType("int"))
        assert ListValueType(INT_TYPE) != ListValueType(STR_TYPE)

    def test_display(self):
        assert str(INT_TYPE) == "int"
        assert str(ListValueType(ListValueType(INT_TYPE))) == "[[int]]"
        assert str(FuncType((INT_TYPE, STR_TYPE), BOOL_TYPE)) == "(int, str) -> bool"
        assert str(UNKNOWN_TYPE) == "<Unknown>"

    def test_special_classes(self):
        assert INT_TYPE.is_special
        assert BOOL_TYPE.is_special
        assert STR_TYPE.is_special
        assert not OBJECT_TYPE.is_special
        assert not A.is_special

    def test_is_list(self):
        assert ListValueType(INT_TYPE).is_list
        assert not INT_TYPE.is_list


class TestSubtyping:
    """The <= relation."""

    def test_reflexive(self, hierarchy):
        assert hierarchy.is_subtype(A, A)
        assert hierarchy.is_subtype(ListValueType(A), ListValueType(A))

    def test_superclass_chain(self, hierarchy):
        assert hierarchy.is_subtype(B, A)
        assert hierarchy.is_subtype(B, OBJECT_TYPE)
        assert not hierarchy.is_subtype(A, B)
        assert not hierarchy.is_subtype(B, C)

    def test_everything_below_object(self, hierarchy):
        for t in (INT_TYPE, STR_TYPE, NONE_TYPE, ListValueType(INT_TYPE)):
            assert hierarchy.is_subtype(t, OBJECT_TYPE)

    def test_ancestors(self, hierarchy):
        assert hierarchy.ancestors("B") == ["B", "A", "object"]
        assert hierarchy.ancestors("object") == ["object"]


class TestAssignability:
    """The <=a relation."""

    def test_none_to_class(self, hierarchy):
        assert hierarchy.is_assignable(NONE_TYPE, A)
        assert hierarchy.is_assignable(NONE_TYPE, ListValueType(INT_TYPE))

    def test_none_to_special_class(self, hierarchy):
        assert not hierarchy.is_assignable(NONE_TYPE, INT_TYPE)
        assert not hierarchy.is_assignable(NONE_TYPE, STR_TYPE)

    def test_empty_list(self, hierarchy):
        assert hierarchy.is_assignable(EMPTY_TYPE, ListValueType(INT_TYPE))
        assert not hierarchy.is_assignable(EMPTY_TYPE, INT_TYPE)

    def test_lists_are_invariant(self, hierarchy):
        assert not hierarchy.is_assignable(ListValueType(B), ListValueType(A))

    def test_list_of_none(self, hierarchy):
        assert hierarchy.is_assignable(ListValueType(NONE_TYPE), ListValueType(A))
        assert not hierarchy.is_assignable(ListValueType(NONE_TYPE), ListValueType(INT_TYPE))

    def test_unknown_is_compatible(self, hierarchy):
        assert hierarchy.is_assignable(UNKNOWN_TYPE, INT_TYPE)
        assert hierarchy.is_assignable(INT_TYPE, UNKNOWN_TYPE)


class TestJoin:
    """Least upper bounds."""

    def test_join_siblings(self, hierarchy):
        assert hierarchy.join(B, C) == A

    def test_join_with_ancestor(self, hierarchy):
        assert hierarchy.join(B, A) == A
        assert hierarchy.join(A, B) == A

    def test_join_unrelated(self, hierarchy):
        assert hierarchy.join(INT_TYPE, STR_TYPE) == OBJECT_TYPE

    def test_join_none(self, hierarchy):
        assert hierarchy.join(NONE_TYPE, A) == A

    def test_join_unknown(self, hierarchy):
        assert hierarchy.join(UNKNOWN_TYPE, INT_TYPE) == INT_TYPE
        assert hierarchy.join(INT_TYPE, UNKNOWN_TYPE) == INT_TYPE
