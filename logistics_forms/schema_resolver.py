"""
Schema resolver for logistics object forms.
Turns schema column lists into FieldDescriptor trees, loading embedded schemas recursively.
"""

import logging
from typing import Callable, FrozenSet, List, Optional, Sequence, Union

from pydantic import ValidationError

from .exceptions import SchemaLoadError
from .schema_models import Column, FieldDescriptor, FieldKind, ObjectType, SchemaType
from .schema_store import EMBEDDED_CATEGORY, SchemaStore
from .type_registry import TypeRegistry

logger = logging.getLogger(__name__)

FieldPath = Union[str, Sequence[str]]

INLINE_SCHEMA_ID = "<inline>"


def split_path(path: FieldPath) -> List[str]:
    """Split a dotted field path (or a sequence of names) into segments."""
    if isinstance(path, str):
        return [segment for segment in path.split('.') if segment]
    return [str(segment) for segment in path]


def find_descriptor(descriptors: Sequence[FieldDescriptor], path: FieldPath) -> Optional[FieldDescriptor]:
    """
    Find the descriptor addressed by a path through embedded children.

    Args:
        descriptors: Top-level descriptors
        path: Field name, dotted path ("dimensions.height") or sequence of names

    Returns:
        The descriptor, or None if any segment does not resolve
    """
    segments = split_path(path)
    if not segments:
        return None

    current: Sequence[FieldDescriptor] = descriptors
    found: Optional[FieldDescriptor] = None
    for segment in segments:
        found = next((d for d in current if d.name == segment), None)
        if found is None:
            return None
        current = found.children or ()
    return found


class SchemaResolver:
    """
    Resolves schema columns into field descriptors.

    Embedded schemas that fail to load are dropped from the result; the error is
    logged, kept in ``errors`` and passed to ``on_error`` if given.
    """

    def __init__(self, store: SchemaStore, embedded_category: str = EMBEDDED_CATEGORY,
                 on_error: Optional[Callable[[SchemaLoadError], None]] = None):
        self.store = store
        self.embedded_category = embedded_category
        self.on_error = on_error
        self.errors: List[SchemaLoadError] = []

    def _report(self, error: SchemaLoadError) -> None:
        logger.error(f"Schema resolution error: {error}")
        self.errors.append(error)
        if self.on_error is not None:
            self.on_error(error)

    async def resolve(self, columns: Sequence[Column]) -> List[FieldDescriptor]:
        """
        Resolve columns into descriptors, preserving column order.

        Args:
            columns: Column models (or raw column mappings)

        Returns:
            List of fully resolved FieldDescriptor objects
        """
        return await self._resolve_columns(columns, frozenset(), INLINE_SCHEMA_ID)

    async def resolve_object_type(self, object_type: ObjectType) -> List[FieldDescriptor]:
        """
        Resolve the form fields for an object type.

        Uses the inline full schema when present, otherwise loads
        "<schema>.<name>" from the store. A failing top-level schema yields [].
        """
        if object_type.full_schema is not None:
            return await self.resolve(object_type.full_schema.columns)

        try:
            document = await self.store.load(object_type.schema_id)
        except SchemaLoadError as e:
            self._report(e)
            return []

        fields = await self._resolve_columns(document.columns, frozenset({object_type.schema_id}),
                                             object_type.schema_id)
        logger.info(f"Resolved {len(fields)} fields for {object_type.schema_id}")
        return fields

    async def _resolve_columns(self, columns: Sequence[Column], ancestors: FrozenSet[str],
                               schema_id: str) -> List[FieldDescriptor]:
        fields: List[FieldDescriptor] = []
        for index, column in enumerate(columns):
            if not isinstance(column, Column):
                try:
                    column = Column.model_validate(column)
                except ValidationError as e:
                    self._report(SchemaLoadError(
                        schema_id, e, message=f"Invalid column {index} in schema '{schema_id}': {e}"
                    ))
                    continue
            field = await self._resolve_column(column, ancestors)
            if field is not None:
                fields.append(field)
        return fields

    async def _resolve_column(self, column: Column,
                              ancestors: FrozenSet[str]) -> Optional[FieldDescriptor]:
        common = dict(
            name=column.name,
            label=column.name or column.description,
            array=column.array,
            description=column.description,
            value_iri=column.value_iri,
            codelist=column.codelist,
            schema_type_name=column.type,
        )

        if column.schema_type == SchemaType.EMBEDDED:
            schema_id = f"{self.embedded_category}.{column.type}"
            if schema_id in ancestors:
                self._report(SchemaLoadError(
                    schema_id, message=f"Embedded schema '{schema_id}' embeds itself via '{column.name}'"
                ))
                return None
            try:
                document = await self.store.load(schema_id)
            except SchemaLoadError as e:
                self._report(e)
                return None
            children = await self._resolve_columns(document.columns, ancestors | {schema_id}, schema_id)
            return FieldDescriptor(kind=FieldKind.EMBEDDED, children=tuple(children), **common)

        if column.schema_type == SchemaType.ENUM:
            return FieldDescriptor(kind=FieldKind.REFERENCE, **common)

        if TypeRegistry.is_basic_type(column.type):
            return FieldDescriptor(kind=FieldKind.SCALAR, scalar_kind=column.type.lower(), **common)

        # Anything else is a reference to another logistics object
        return FieldDescriptor(kind=FieldKind.REFERENCE, reference_type=column.type, **common)
