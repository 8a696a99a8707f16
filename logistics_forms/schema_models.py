"""
Data models for logistics object schemas and resolved form fields.

Columns and schema documents are parsed with Pydantic since they come from
external files; field descriptors are frozen dataclasses built by the resolver.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SchemaType:
    """Column schemaType constants."""
    EMBEDDED = "Embedded"
    ENUM = "Enum"
    PLAIN = "Plain"


class FieldKind:
    """Field descriptor kind constants."""
    SCALAR = "scalar"
    REFERENCE = "reference"
    EMBEDDED = "embedded"


class Column(BaseModel):
    """One column of a logistics object schema document."""

    model_config = ConfigDict(populate_by_name=True, extra='ignore', frozen=True)

    name: str = ""
    description: str = ""
    type: str
    schema_type: str = Field(default=SchemaType.PLAIN, alias="schemaType")
    array: bool = False
    value_iri: Optional[str] = Field(default=None, alias="valueIRI")
    codelist: bool = False

    @field_validator('schema_type', mode='before')
    @classmethod
    def _normalize_schema_type(cls, value: Any) -> str:
        if value in (SchemaType.EMBEDDED, SchemaType.ENUM):
            return value
        return SchemaType.PLAIN

    @field_validator('description', 'name', mode='before')
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator('codelist', 'array', mode='before')
    @classmethod
    def _falsy_to_false(cls, value: Any) -> Any:
        return False if value is None else value


class SchemaDocument(BaseModel):
    """A schema document: an ordered list of columns plus free metadata."""

    model_config = ConfigDict(extra='allow')

    columns: List[Column]


class ObjectType(BaseModel):
    """
    Identifies the logistics object type a form edits.

    The schema store key is "<schema>.<name>" unless full_schema is given.
    """

    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    name: str
    schema_category: str = Field(default="LogisticsObjects", alias="schema")
    full_schema: Optional[SchemaDocument] = Field(default=None, alias="fullSchema")

    @property
    def schema_id(self) -> str:
        return f"{self.schema_category}.{self.name}"


@dataclass(frozen=True)
class FieldDescriptor:
    """
    Resolved, immutable description of one form field.

    Attributes:
        name: Field name (record key)
        label: Display label
        kind: One of FieldKind
        array: Whether the field holds an ordered list of values
        description: Column description
        value_iri: IRI describing the value (codelist key source, catalog scope, embedded tag)
        codelist: Whether options come from the codelist table
        scalar_kind: Scalar kind for kind == scalar
        reference_type: Referenced object type for object references
        schema_type_name: The column's original type name
        children: Resolved child descriptors for kind == embedded
    """
    name: str
    label: str
    kind: str
    array: bool = False
    description: str = ""
    value_iri: Optional[str] = None
    codelist: bool = False
    scalar_kind: Optional[str] = None
    reference_type: Optional[str] = None
    schema_type_name: str = ""
    children: Optional[Tuple['FieldDescriptor', ...]] = None

    @property
    def is_reference(self) -> bool:
        return self.kind == FieldKind.REFERENCE

    @property
    def is_embedded(self) -> bool:
        return self.kind == FieldKind.EMBEDDED

    @property
    def embedded_type_tag(self) -> str:
        """Tag stamped into "@type" of embedded values."""
        return self.value_iri or self.schema_type_name

    def child(self, name: str) -> Optional['FieldDescriptor']:
        """Return the child descriptor with the given name, if any."""
        for child in self.children or ():
            if child.name == name:
                return child
        return None
