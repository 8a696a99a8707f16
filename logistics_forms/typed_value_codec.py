"""
Typed value codec for logistics object records.

Converts between plain editing values and the JSON-LD style wire encoding:
references as {"@id": ...} and scalars as {"@type": <XSD IRI>, "@value": <string>}.
Numeric and date parsing follows browser form semantics (leading-prefix
integer/float parsing, epoch milliseconds for dates); unparsable input is
stored as the string "NaN" instead of raising.
"""

import math
import re
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from dateutil import parser as date_parser

from .exceptions import CoercionAnomaly
from .schema_models import FieldDescriptor, FieldKind
from .type_registry import ScalarKind, TypeRegistry

logger = logging.getLogger(__name__)

ID_KEY = "@id"
TYPE_KEY = "@type"
VALUE_KEY = "@value"

NAN_TEXT = "NaN"

_INT_PREFIX = re.compile(r'^\s*([+-]?\d+)')
_FLOAT_PREFIX = re.compile(r'^\s*([+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))')
_EPOCH_MS = re.compile(r'^-?\d+$')
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

AnomalyCallback = Callable[[CoercionAnomaly], None]


def format_number(value: float) -> str:
    """Format a number the way a browser stringifies it ("1" not "1.0")."""
    if isinstance(value, float):
        if math.isnan(value):
            return NAN_TEXT
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    return str(value)


def to_text(value: Any) -> str:
    """Stringify a plain value for the wire."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return format_number(value)
    return str(value)


def parse_int(value: Any) -> Optional[int]:
    """
    Parse an integer from the leading digits of a value.

    Returns:
        Parsed integer, or None when no integer prefix exists
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return int(value)
    match = _INT_PREFIX.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def parse_float(value: Any) -> Optional[float]:
    """
    Parse a float from the leading numeric part of a value.

    Returns:
        Parsed float, or None when no numeric prefix exists
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return None if math.isnan(number) else number
    match = _FLOAT_PREFIX.match(str(value))
    if not match:
        return None
    return float(match.group(1).replace("Infinity", "inf"))


def parse_epoch_ms(value: Any) -> Optional[int]:
    """
    Parse a date/time value into epoch milliseconds.

    Accepts datetime and date objects, epoch milliseconds given as integers or
    digit strings, ISO-8601 strings and free-form date strings such as
    "Jan 15, 2024" or RFC 2822 dates. Values without a timezone are UTC.

    Returns:
        Epoch milliseconds, or None when the value is not a date
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime(value.year, value.month, value.day)
    elif isinstance(value, int):
        return value
    elif isinstance(value, float):
        return None if math.isnan(value) or math.isinf(value) else int(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        if _EPOCH_MS.match(text):
            return int(text)
        try:
            moment = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            try:
                moment = date_parser.parse(text)
            except (ValueError, OverflowError) as e:
                logger.debug(f"Failed to parse date string '{text}': {e}")
                return None

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return (moment - _EPOCH) // timedelta(milliseconds=1)


def epoch_ms_to_datetime(value: Any) -> Optional[datetime]:
    """Convert a decoded datetime value (epoch milliseconds) to an aware datetime."""
    millis = parse_epoch_ms(value)
    if millis is None:
        return None
    return _EPOCH + timedelta(milliseconds=millis)


def _report_anomaly(value: Any, scalar_kind: str, on_anomaly: Optional[AnomalyCallback]) -> None:
    anomaly = CoercionAnomaly(value, scalar_kind)
    logger.warning(str(anomaly))
    if on_anomaly is not None:
        on_anomaly(anomaly)


def encode(plain: Any, scalar_kind: Optional[str],
           on_anomaly: Optional[AnomalyCallback] = None) -> Any:
    """
    Encode a plain value into its wire typed value.

    Args:
        plain: Value as edited
        scalar_kind: ScalarKind constant; None (or string) passes the value through
        on_anomaly: Optional callback receiving CoercionAnomaly for unparsable input

    Returns:
        {"@id": ...}, {"@type": ..., "@value": ...} or the unmodified value
    """
    kind = scalar_kind.lower() if scalar_kind else None

    if kind == ScalarKind.REFERENCE:
        return {ID_KEY: to_text(plain)}

    entry = TypeRegistry.get(kind)
    if entry is None or not entry.tagged:
        return plain

    if kind == ScalarKind.BOOLEAN:
        text = "true" if plain is True or plain == "true" else "false"
    elif kind == ScalarKind.INTEGER:
        number = parse_int(plain)
        text = NAN_TEXT if number is None else str(number)
    elif kind == ScalarKind.DOUBLE:
        number = parse_float(plain)
        text = NAN_TEXT if number is None else format_number(number)
    else:
        millis = parse_epoch_ms(plain)
        text = NAN_TEXT if millis is None else str(millis)

    if text == NAN_TEXT:
        _report_anomaly(plain, kind, on_anomaly)

    return {TYPE_KEY: entry.xsd_iri, VALUE_KEY: text}


def decode(typed: Any, scalar_kind: Optional[str]) -> Any:
    """
    Decode a wire typed value back into a plain value. Never raises.

    Absent or malformed input degrades to the kind's zero value:
    "" for references and datetimes, 0 / 0.0 for numbers, False for booleans.
    """
    kind = scalar_kind.lower() if scalar_kind else None

    if kind == ScalarKind.REFERENCE:
        if isinstance(typed, dict):
            return to_text(typed.get(ID_KEY)) if typed.get(ID_KEY) else ""
        return ""

    entry = TypeRegistry.get(kind)
    if entry is None or not entry.tagged:
        return "" if typed is None else typed

    if not isinstance(typed, dict):
        return entry.zero_value

    raw = typed.get(VALUE_KEY)

    if kind == ScalarKind.BOOLEAN:
        return raw is True or raw == "true"
    if kind == ScalarKind.INTEGER:
        number = parse_int(raw if raw else "0")
        return 0 if number is None else number
    if kind == ScalarKind.DOUBLE:
        number = parse_float(raw if raw else "0")
        return 0.0 if number is None else number
    return to_text(raw) if raw else ""


def codec_kind(descriptor: FieldDescriptor) -> Optional[str]:
    """Scalar kind the codec applies to a descriptor (None means passthrough)."""
    if descriptor.kind == FieldKind.REFERENCE:
        return ScalarKind.REFERENCE
    if descriptor.kind == FieldKind.SCALAR and descriptor.scalar_kind != ScalarKind.STRING:
        return descriptor.scalar_kind
    return None


def as_list(value: Any) -> List[Any]:
    """Normalize an array field value: None -> [], single value -> [value]."""
    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    if value is None or value == "":
        return []
    return [value]


def _encode_element(plain: Any, descriptor: FieldDescriptor,
                    on_anomaly: Optional[AnomalyCallback]) -> Any:
    if descriptor.kind != FieldKind.EMBEDDED:
        return encode(plain, codec_kind(descriptor), on_anomaly)

    if not isinstance(plain, dict):
        return {TYPE_KEY: descriptor.embedded_type_tag}

    encoded: Dict[str, Any] = {}
    for key, value in plain.items():
        if key == TYPE_KEY:
            continue
        child = descriptor.child(key)
        encoded[key] = value if child is None else encode_field(value, child, on_anomaly)
    encoded[TYPE_KEY] = descriptor.embedded_type_tag
    return encoded


def _decode_element(typed: Any, descriptor: FieldDescriptor) -> Any:
    if descriptor.kind != FieldKind.EMBEDDED:
        return decode(typed, codec_kind(descriptor))

    source = typed if isinstance(typed, dict) else {}
    return {
        child.name: decode_field(source.get(child.name), child)
        for child in descriptor.children or ()
    }


def encode_field(plain: Any, descriptor: FieldDescriptor,
                 on_anomaly: Optional[AnomalyCallback] = None) -> Any:
    """
    Encode a plain field value, including arrays and embedded objects.

    Embedded values are dictionaries keyed by child name; they are stamped
    with the descriptor's embedded type tag.
    """
    if descriptor.array:
        return [_encode_element(item, descriptor, on_anomaly) for item in as_list(plain)]
    return _encode_element(plain, descriptor, on_anomaly)


def decode_field(typed: Any, descriptor: FieldDescriptor) -> Any:
    """Decode a wire field value, including arrays and embedded objects."""
    if descriptor.array:
        return [_decode_element(item, descriptor) for item in as_list(typed)]
    return _decode_element(typed, descriptor)
