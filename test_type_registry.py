"""
Unit tests for the scalar type registry.
"""

from logistics_forms.type_registry import (
    BASIC_TYPES,
    XSD_BOOLEAN,
    XSD_DATETIME,
    XSD_DOUBLE,
    XSD_INTEGER,
    ScalarKind,
    TypeRegistry,
)


class TestTypeRegistry:
    """Test cases for TypeRegistry lookups."""

    def test_basic_types_are_case_insensitive(self):
        assert TypeRegistry.is_basic_type("string")
        assert TypeRegistry.is_basic_type("DateTime")
        assert TypeRegistry.is_basic_type("INTEGER")
        assert not TypeRegistry.is_basic_type("Piece")
        assert not TypeRegistry.is_basic_type("")
        assert not TypeRegistry.is_basic_type(None)

    def test_reference_is_not_a_basic_type(self):
        assert ScalarKind.REFERENCE not in BASIC_TYPES
        assert not TypeRegistry.is_basic_type("reference")

    def test_xsd_iris(self):
        assert TypeRegistry.xsd_iri(ScalarKind.BOOLEAN) == XSD_BOOLEAN
        assert TypeRegistry.xsd_iri(ScalarKind.INTEGER) == XSD_INTEGER
        assert TypeRegistry.xsd_iri(ScalarKind.DOUBLE) == XSD_DOUBLE
        assert TypeRegistry.xsd_iri(ScalarKind.DATETIME) == XSD_DATETIME
        assert TypeRegistry.xsd_iri(ScalarKind.REFERENCE) is None
        assert TypeRegistry.xsd_iri("unknown") is None

    def test_zero_values(self):
        assert TypeRegistry.get(ScalarKind.BOOLEAN).zero_value is False
        assert TypeRegistry.get(ScalarKind.INTEGER).zero_value == 0
        assert TypeRegistry.get(ScalarKind.DOUBLE).zero_value == 0.0
        assert TypeRegistry.get(ScalarKind.DATETIME).zero_value == ""
        assert TypeRegistry.get(ScalarKind.REFERENCE).zero_value == ""

    def test_string_and_reference_are_untagged(self):
        assert not TypeRegistry.get(ScalarKind.STRING).tagged
        assert not TypeRegistry.get(ScalarKind.REFERENCE).tagged
        assert TypeRegistry.get("Double").tagged
