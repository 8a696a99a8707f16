"""
Scalar type registry for logistics object forms.
Maps schema scalar type names to codec behaviour and the XSD IRIs used on the wire.
"""

from dataclasses import dataclass
from typing import Dict, Optional

XSD_NAMESPACE = "http://www.w3.org/2001/XMLSchema#"

XSD_STRING = f"{XSD_NAMESPACE}string"
XSD_BOOLEAN = f"{XSD_NAMESPACE}boolean"
XSD_INTEGER = f"{XSD_NAMESPACE}integer"
XSD_DOUBLE = f"{XSD_NAMESPACE}double"
XSD_DATETIME = f"{XSD_NAMESPACE}dateTime"


class ScalarKind:
    """Scalar kind constants understood by the typed value codec."""
    REFERENCE = "reference"
    STRING = "string"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    DOUBLE = "double"
    DATETIME = "datetime"


# Column types resolved as scalar fields (compared case-insensitively)
BASIC_TYPES = (
    ScalarKind.STRING,
    ScalarKind.BOOLEAN,
    ScalarKind.INTEGER,
    ScalarKind.DOUBLE,
    ScalarKind.DATETIME,
)


@dataclass(frozen=True)
class TypeEntry:
    """
    Codec behaviour for one scalar kind.

    Attributes:
        kind: Scalar kind name
        xsd_iri: IRI written to "@type" (None when not tagged)
        tagged: Whether values are wrapped as {"@type", "@value"}
        zero_value: Value decoded when the wire value is absent or malformed
    """
    kind: str
    xsd_iri: Optional[str]
    tagged: bool
    zero_value: object


class TypeRegistry:
    """Static lookup table for scalar kinds."""

    _ENTRIES: Dict[str, TypeEntry] = {
        ScalarKind.REFERENCE: TypeEntry(ScalarKind.REFERENCE, None, False, ""),
        # Free text travels unwrapped; the IRI is kept for consumers that need it
        ScalarKind.STRING: TypeEntry(ScalarKind.STRING, XSD_STRING, False, ""),
        ScalarKind.BOOLEAN: TypeEntry(ScalarKind.BOOLEAN, XSD_BOOLEAN, True, False),
        ScalarKind.INTEGER: TypeEntry(ScalarKind.INTEGER, XSD_INTEGER, True, 0),
        ScalarKind.DOUBLE: TypeEntry(ScalarKind.DOUBLE, XSD_DOUBLE, True, 0.0),
        ScalarKind.DATETIME: TypeEntry(ScalarKind.DATETIME, XSD_DATETIME, True, ""),
    }

    @staticmethod
    def get(kind: Optional[str]) -> Optional[TypeEntry]:
        """Return the entry for a scalar kind, or None for unknown/absent kinds."""
        if not kind:
            return None
        return TypeRegistry._ENTRIES.get(kind.lower())

    @staticmethod
    def is_basic_type(type_name: Optional[str]) -> bool:
        """Check whether a column type names one of the basic scalar types."""
        return bool(type_name) and type_name.lower() in BASIC_TYPES

    @staticmethod
    def xsd_iri(kind: Optional[str]) -> Optional[str]:
        """Return the XSD IRI for a scalar kind."""
        entry = TypeRegistry.get(kind)
        return entry.xsd_iri if entry else None
