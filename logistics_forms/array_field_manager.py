"""
ArrayFieldManager for logistics object forms

Composes element-level edits of array-valued fields. Every element goes
through the typed value codec before it is placed into the array; the result
is a new list ready for FormValueStore.set_field.
"""

import copy
from dataclasses import replace
import logging
from typing import Any, List, Optional

from .schema_models import FieldDescriptor, FieldKind
from .type_registry import ScalarKind, TypeRegistry
from .typed_value_codec import (
    AnomalyCallback,
    TYPE_KEY,
    VALUE_KEY,
    as_list,
    codec_kind,
    encode_field,
)

logger = logging.getLogger(__name__)


class ArrayFieldManager:
    """Element-wise editing helpers for array fields"""

    @staticmethod
    def coerce_array(value: Any) -> List[Any]:
        """Copy of an array field value, wrapping single values and mapping None to []."""
        return copy.deepcopy(as_list(value))

    @staticmethod
    def _element_descriptor(descriptor: FieldDescriptor) -> FieldDescriptor:
        return replace(descriptor, array=False)

    @staticmethod
    def new_item(descriptor: FieldDescriptor) -> Any:
        """
        Encoded value of a freshly added, still empty element.

        Args:
            descriptor: Array field descriptor

        Returns:
            {"@id": ""} for references, the zero value for tagged scalars,
            an empty stamped mapping for embedded objects, "" for free text
        """
        if descriptor.kind == FieldKind.EMBEDDED:
            return {TYPE_KEY: descriptor.embedded_type_tag}

        kind = codec_kind(descriptor)
        if kind == ScalarKind.DATETIME:
            # Blank date instead of an unparsable "NaN"
            return {TYPE_KEY: TypeRegistry.xsd_iri(kind), VALUE_KEY: ""}

        entry = TypeRegistry.get(kind)
        empty = entry.zero_value if entry is not None and entry.tagged else ""
        return encode_field(empty, ArrayFieldManager._element_descriptor(descriptor))

    @staticmethod
    def encode_item(descriptor: FieldDescriptor, plain: Any,
                    on_anomaly: Optional[AnomalyCallback] = None) -> Any:
        """Encode a single plain element for an array field."""
        return encode_field(plain, ArrayFieldManager._element_descriptor(descriptor), on_anomaly)

    @staticmethod
    def append_item(items: Any, descriptor: FieldDescriptor, plain: Any = None,
                    on_anomaly: Optional[AnomalyCallback] = None) -> List[Any]:
        """Return a new array with an element appended (empty element if plain is None)."""
        result = ArrayFieldManager.coerce_array(items)
        if plain is None:
            result.append(ArrayFieldManager.new_item(descriptor))
        else:
            result.append(ArrayFieldManager.encode_item(descriptor, plain, on_anomaly))
        return result

    @staticmethod
    def insert_item(items: Any, index: int, descriptor: FieldDescriptor, plain: Any = None,
                    on_anomaly: Optional[AnomalyCallback] = None) -> List[Any]:
        """Return a new array with an element inserted before ``index``."""
        result = ArrayFieldManager.coerce_array(items)
        if index < 0 or index > len(result):
            logger.warning(f"Insert index {index} out of range for {descriptor.name} ({len(result)} items)")
            return result
        if plain is None:
            item = ArrayFieldManager.new_item(descriptor)
        else:
            item = ArrayFieldManager.encode_item(descriptor, plain, on_anomaly)
        result.insert(index, item)
        return result

    @staticmethod
    def update_item(items: Any, index: int, descriptor: FieldDescriptor, plain: Any,
                    on_anomaly: Optional[AnomalyCallback] = None) -> List[Any]:
        """Return a new array with the element at ``index`` replaced."""
        result = ArrayFieldManager.coerce_array(items)
        if index < 0 or index >= len(result):
            logger.warning(f"Update index {index} out of range for {descriptor.name} ({len(result)} items)")
            return result
        result[index] = ArrayFieldManager.encode_item(descriptor, plain, on_anomaly)
        return result

    @staticmethod
    def remove_item(items: Any, index: int, descriptor: Optional[FieldDescriptor] = None) -> List[Any]:
        """Return a new array without the element at ``index``."""
        result = ArrayFieldManager.coerce_array(items)
        if index < 0 or index >= len(result):
            name = descriptor.name if descriptor else "array"
            logger.warning(f"Remove index {index} out of range for {name} ({len(result)} items)")
            return result
        del result[index]
        return result
