"""Tests for the entity registry and matrix construction helpers."""

import pytest

from rbac_service.core.entities import (
    ACTIONS,
    ENTITY_REGISTRY,
    build_default_matrix,
    copy_matrix,
    full_access_matrix,
    normalize_matrix,
    validate_capability,
    validate_matrix,
)
from rbac_service.core.errors import ValidationFailed


class TestBuildDefaultMatrix:
    def test_one_all_false_row_per_registry_entity(self):
        matrix = build_default_matrix()
        assert list(matrix) == list(ENTITY_REGISTRY)
        for row in matrix.values():
            assert row == {"view": False, "create": False, "edit": False, "delete": False}

    def test_custom_registry(self):
        matrix = build_default_matrix(["A", "B"])
        assert set(matrix) == {"A", "B"}

    def test_empty_registry_gives_empty_matrix(self):
        assert build_default_matrix([]) == {}

    def test_each_call_returns_independent_structure(self):
        first = build_default_matrix()
        first["Usuarios"]["view"] = True
        second = build_default_matrix()
        assert second["Usuarios"]["view"] is False

    def test_rows_are_not_shared_between_entities(self):
        matrix = build_default_matrix()
        matrix["Roles"]["edit"] = True
        assert matrix["Permisos"]["edit"] is False


class TestFullAccessMatrix:
    def test_every_cell_true(self):
        matrix = full_access_matrix()
        assert all(row[action] is True for row in matrix.values() for action in ACTIONS)


class TestNormalizeMatrix:
    def test_none_becomes_default(self):
        assert normalize_matrix(None) == build_default_matrix()

    def test_non_mapping_becomes_default(self):
        assert normalize_matrix(["Usuarios"]) == build_default_matrix()

    def test_missing_entities_and_actions_filled_with_false(self):
        matrix = normalize_matrix({"Roles": {"view": True}})
        assert matrix["Roles"] == {"view": True, "create": False, "edit": False, "delete": False}
        assert matrix["Usuarios"] == {"view": False, "create": False, "edit": False, "delete": False}
        assert set(matrix) == set(ENTITY_REGISTRY)

    def test_only_exact_true_grants(self):
        matrix = normalize_matrix({"Roles": {"view": "true", "create": 1, "edit": None, "delete": True}})
        assert matrix["Roles"] == {"view": False, "create": False, "edit": False, "delete": True}

    def test_unknown_entities_dropped(self):
        matrix = normalize_matrix({"Bodega": {"view": True}})
        assert "Bodega" not in matrix

    def test_input_not_modified(self):
        stored = {"Roles": {"view": True}}
        normalize_matrix(stored)
        assert stored == {"Roles": {"view": True}}


class TestValidation:
    def test_valid_cell(self):
        validate_capability("Estado Medidores", "delete")

    def test_unknown_entity(self):
        with pytest.raises(ValidationFailed, match="Unknown entity"):
            validate_capability("Bodega", "view")

    def test_unknown_action(self):
        with pytest.raises(ValidationFailed, match="Unknown action"):
            validate_capability("Roles", "approve")

    def test_matrix_with_unknown_action(self):
        with pytest.raises(ValidationFailed):
            validate_matrix({"Roles": {"view": True, "export": True}})

    def test_matrix_row_must_be_mapping(self):
        with pytest.raises(ValidationFailed):
            validate_matrix({"Roles": True})

    def test_partial_matrix_is_valid(self):
        validate_matrix({"Asistencia": {"view": True}})


def test_copy_matrix_is_deep():
    original = {"Roles": {"view": True}, "Legacy": {"view": True}}
    copied = copy_matrix(original)
    copied["Roles"]["view"] = False
    assert original["Roles"]["view"] is True
    assert "Legacy" in copied
