"""
Unit tests for the schema resolver.
"""

import pytest

from logistics_forms.exceptions import SchemaLoadError
from logistics_forms.schema_models import Column, FieldKind, ObjectType, SchemaDocument
from logistics_forms.schema_resolver import SchemaResolver, find_descriptor, split_path
from logistics_forms.schema_store import InMemorySchemaStore
from logistics_forms.type_registry import ScalarKind

CARGO = "https://onerecord.iata.org/ns/cargo#"


@pytest.fixture
def store():
    """In-memory schemas for a Piece with embedded, enumerated and reference columns."""
    return InMemorySchemaStore({
        "LogisticsObjects.Piece": {
            "columns": [
                {"name": "goodsDescription", "type": "string"},
                {"name": "slac", "type": "Integer"},
                {"name": "dimensions", "type": "Dimensions", "schemaType": "Embedded",
                 "valueIRI": f"{CARGO}Dimensions"},
                {"name": "packagingType", "type": "UnitType", "schemaType": "Enum", "codelist": True,
                 "valueIRI": "https://onerecord.iata.org/ns/coreCodeLists#UnitType"},
                {"name": "ofShipment", "type": "Shipment", "valueIRI": f"{CARGO}Shipment"},
                {"name": "shippingMarks", "type": "string", "array": True},
            ]
        },
        "Embedded.Dimensions": {
            "columns": [
                {"name": "height", "type": "double"},
                {"name": "width", "type": "double"},
            ]
        },
    })


class TestSplitPath:
    """Test cases for field path handling."""

    def test_split_dotted_path(self):
        assert split_path("dimensions.height") == ["dimensions", "height"]
        assert split_path("slac") == ["slac"]
        assert split_path("") == []

    def test_split_sequence(self):
        assert split_path(("dimensions", "height")) == ["dimensions", "height"]


class TestSchemaResolver:
    """Test cases for resolving columns into field descriptors."""

    @pytest.mark.asyncio
    async def test_resolves_all_field_kinds_in_order(self, store):
        resolver = SchemaResolver(store)

        fields = await resolver.resolve_object_type(ObjectType(name="Piece"))

        assert [f.name for f in fields] == [
            "goodsDescription", "slac", "dimensions", "packagingType", "ofShipment", "shippingMarks"
        ]
        assert resolver.errors == []

        description, slac, dimensions, packaging, shipment, marks = fields
        assert description.kind == FieldKind.SCALAR
        assert description.scalar_kind == ScalarKind.STRING
        assert slac.scalar_kind == ScalarKind.INTEGER
        assert packaging.kind == FieldKind.REFERENCE
        assert packaging.codelist is True
        assert packaging.reference_type is None
        assert shipment.kind == FieldKind.REFERENCE
        assert shipment.reference_type == "Shipment"
        assert shipment.value_iri == f"{CARGO}Shipment"
        assert marks.array is True

    @pytest.mark.asyncio
    async def test_embedded_children_resolved_in_order(self, store):
        fields = await SchemaResolver(store).resolve_object_type(ObjectType(name="Piece"))

        dimensions = fields[2]
        assert dimensions.kind == FieldKind.EMBEDDED
        assert [c.name for c in dimensions.children] == ["height", "width"]
        assert all(c.scalar_kind == ScalarKind.DOUBLE for c in dimensions.children)
        assert dimensions.embedded_type_tag == f"{CARGO}Dimensions"

    @pytest.mark.asyncio
    async def test_label_falls_back_to_description(self):
        resolver = SchemaResolver(InMemorySchemaStore())

        fields = await resolver.resolve([{"name": "", "description": "Gross weight", "type": "double"}])

        assert fields[0].label == "Gross weight"

    @pytest.mark.asyncio
    async def test_missing_embedded_schema_is_omitted_and_reported(self):
        reported = []
        resolver = SchemaResolver(InMemorySchemaStore(), on_error=reported.append)

        fields = await resolver.resolve([
            Column(name="before", type="string"),
            Column(name="volume", type="Volume", schemaType="Embedded"),
            Column(name="after", type="boolean"),
        ])

        assert [f.name for f in fields] == ["before", "after"]
        assert len(resolver.errors) == 1
        assert resolver.errors[0].schema_id == "Embedded.Volume"
        assert reported == resolver.errors

    @pytest.mark.asyncio
    async def test_malformed_column_is_skipped_and_reported(self):
        resolver = SchemaResolver(InMemorySchemaStore())

        fields = await resolver.resolve([
            {"name": "ok", "type": "string"},
            {"name": "bad"},
            {"name": "last", "type": "integer"},
        ])

        assert [f.name for f in fields] == ["ok", "last"]
        assert len(resolver.errors) == 1
        assert isinstance(resolver.errors[0], SchemaLoadError)
        assert "Invalid column 1" in str(resolver.errors[0])

    @pytest.mark.asyncio
    async def test_self_embedding_schema_is_rejected(self):
        store = InMemorySchemaStore({
            "Embedded.Node": {"columns": [
                {"name": "label", "type": "string"},
                {"name": "next", "type": "Node", "schemaType": "Embedded"},
            ]},
        })
        resolver = SchemaResolver(store)

        fields = await resolver.resolve([{"name": "root", "type": "Node", "schemaType": "Embedded"}])

        assert [c.name for c in fields[0].children] == ["label"]
        assert len(resolver.errors) == 1
        assert "embeds itself" in str(resolver.errors[0])

    @pytest.mark.asyncio
    async def test_missing_top_level_schema_yields_no_fields(self):
        resolver = SchemaResolver(InMemorySchemaStore())

        fields = await resolver.resolve_object_type(ObjectType(name="Unknown"))

        assert fields == []
        assert isinstance(resolver.errors[0], SchemaLoadError)
        assert resolver.errors[0].schema_id == "LogisticsObjects.Unknown"

    @pytest.mark.asyncio
    async def test_inline_full_schema_skips_the_store(self):
        object_type = ObjectType.model_validate({
            "name": "Adhoc",
            "fullSchema": {"columns": [{"name": "note", "type": "string"}]},
        })

        fields = await SchemaResolver(InMemorySchemaStore()).resolve_object_type(object_type)

        assert [f.name for f in fields] == ["note"]

    @pytest.mark.asyncio
    async def test_custom_embedded_category(self):
        store = InMemorySchemaStore({"Parts.Value": SchemaDocument(columns=[Column(name="v", type="double")])})
        resolver = SchemaResolver(store, embedded_category="Parts")

        fields = await resolver.resolve([{"name": "weight", "type": "Value", "schemaType": "Embedded"}])

        assert fields[0].children[0].name == "v"


class TestFindDescriptor:
    """Test cases for path lookup through embedded children."""

    @pytest.mark.asyncio
    async def test_find_nested_descriptor(self, store):
        fields = await SchemaResolver(store).resolve_object_type(ObjectType(name="Piece"))

        assert find_descriptor(fields, "dimensions.width").name == "width"
        assert find_descriptor(fields, ["ofShipment"]).reference_type == "Shipment"
        assert find_descriptor(fields, "dimensions.depth") is None
        assert find_descriptor(fields, "slac.value") is None
        assert find_descriptor(fields, "") is None


class TestPlainReferences:
    """Test cases for plain columns naming another object type."""

    @pytest.mark.asyncio
    async def test_consignment_column_is_a_reference(self):
        fields = await SchemaResolver(InMemorySchemaStore()).resolve([
            {"name": "consignment", "type": "Consignment", "schemaType": "Plain"},
        ])

        assert fields[0].kind == FieldKind.REFERENCE
        assert fields[0].reference_type == "Consignment"
        assert fields[0].scalar_kind is None
        assert fields[0].children is None
