"""
Form value store for logistics object records.

Holds the record being edited in its wire shape, applies path-addressed edits
through the typed value codec and emits debounced snapshots to a consumer.
"""

import asyncio
import copy
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from .debounce import DebounceTimer
from .diff_utils import calculate_record_diff, has_changes
from .exceptions import CoercionAnomaly
from .schema_models import FieldDescriptor, ObjectType
from .schema_resolver import FieldPath, SchemaResolver, find_descriptor, split_path
from .typed_value_codec import TYPE_KEY, as_list, codec_kind, decode_field, encode

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
SnapshotConsumer = Callable[[Record], None]

DEFAULT_DEBOUNCE_SECONDS = 0.5


class _InvalidPath(ValueError):
    pass


class FormValueStore:
    """
    In-progress record for one editing session.

    Edits are applied immediately and in call order. Snapshots reach
    ``on_snapshot`` at most once per quiescence window: every edit restarts the
    window and only the state after the last edit is emitted. With
    ``auto_emit=False`` nothing is scheduled and ``flush()`` emits instead.
    """

    def __init__(
        self,
        descriptors: Sequence[FieldDescriptor],
        initial_data: Optional[Record] = None,
        on_snapshot: Optional[SnapshotConsumer] = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        auto_emit: bool = True,
    ):
        self.descriptors: List[FieldDescriptor] = list(descriptors)
        self.on_snapshot = on_snapshot
        self.auto_emit = auto_emit
        self.errors: List[CoercionAnomaly] = []
        self.last_snapshot: Optional[Record] = None

        self._initial: Record = copy.deepcopy(initial_data or {})
        self._record: Record = copy.deepcopy(self._initial)
        self._dirty = False
        self._closed = False
        self._timer = DebounceTimer(debounce_seconds, self._emit)

    @classmethod
    async def create(cls, object_type: ObjectType, resolver: SchemaResolver,
                     initial_data: Optional[Record] = None, **kwargs: Any) -> 'FormValueStore':
        """Resolve the object type's fields and start a session for it."""
        descriptors = await resolver.resolve_object_type(object_type)
        return cls(descriptors, initial_data, **kwargs)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def dirty(self) -> bool:
        """Whether edits were made since the last emitted snapshot."""
        return self._dirty

    @property
    def snapshot_pending(self) -> bool:
        return self._timer.pending

    def descriptor(self, path: FieldPath) -> Optional[FieldDescriptor]:
        return find_descriptor(self.descriptors, path)

    def _record_anomaly(self, anomaly: CoercionAnomaly) -> None:
        self.errors.append(anomaly)

    def _encode_target(self, descriptor: FieldDescriptor, raw_value: Any, existing: Any) -> Any:
        if descriptor.array:
            # Elements arrive already encoded; composition is the caller's job
            if raw_value is not None and not isinstance(raw_value, (list, tuple)):
                logger.warning(f"Array field {descriptor.name} received a single value, wrapping it")
            return copy.deepcopy(as_list(raw_value))

        if descriptor.is_embedded:
            if not isinstance(raw_value, dict):
                raise _InvalidPath(f"Embedded field {descriptor.name} expects a mapping, got {type(raw_value).__name__}")
            merged = dict(existing) if isinstance(existing, dict) else {}
            merged.update(copy.deepcopy(raw_value))
            merged[TYPE_KEY] = descriptor.embedded_type_tag
            return merged

        return encode(raw_value, codec_kind(descriptor), self._record_anomaly)

    def _merge_into(self, descriptor: FieldDescriptor, existing: Any,
                    segments: List[str], raw_value: Any) -> Dict[str, Any]:
        if descriptor.array or not descriptor.is_embedded:
            raise _InvalidPath(f"Cannot address children of {descriptor.name}")

        child = descriptor.child(segments[0])
        if child is None:
            raise _InvalidPath(f"{descriptor.name} has no field {segments[0]}")

        container = dict(existing) if isinstance(existing, dict) else {}
        if len(segments) == 1:
            container[child.name] = self._encode_target(child, raw_value, container.get(child.name))
        else:
            container[child.name] = self._merge_into(child, container.get(child.name), segments[1:], raw_value)
        container[TYPE_KEY] = descriptor.embedded_type_tag
        return container

    def set_field(self, path: FieldPath, raw_value: Any) -> None:
        """
        Apply one edit.

        Args:
            path: Field name or dotted path through embedded fields ("dimensions.height")
            raw_value: Plain value for scalars/references, an encoded list for
                arrays, or a mapping of encoded children for embedded fields
        """
        if self._closed:
            logger.warning(f"Ignoring edit of {path} on a closed form")
            return

        segments = split_path(path)
        top = next((d for d in self.descriptors if segments and d.name == segments[0]), None)
        if top is None:
            logger.warning(f"Ignoring edit of unknown field {path}")
            return

        try:
            if len(segments) == 1:
                value = self._encode_target(top, raw_value, self._record.get(top.name))
            else:
                value = self._merge_into(top, self._record.get(top.name), segments[1:], raw_value)
        except _InvalidPath as e:
            logger.warning(f"Ignoring edit of {path}: {e}")
            return

        self._record[top.name] = value
        self._dirty = True
        logger.debug(f"Set {path} -> {value!r}")
        self._schedule()

    def get_typed(self, path: FieldPath) -> Any:
        """Wire value stored at a path (a copy), or None."""
        value: Any = self._record
        for segment in split_path(path):
            if not isinstance(value, dict):
                return None
            value = value.get(segment)
        return copy.deepcopy(value)

    def get_field(self, path: FieldPath) -> Any:
        """Decoded plain value at a path."""
        descriptor = self.descriptor(path)
        if descriptor is None:
            logger.warning(f"Unknown field {path}")
            return None
        return decode_field(self.get_typed(path), descriptor)

    def get_snapshot(self) -> Record:
        """Independent copy of the current record."""
        return copy.deepcopy(self._record)

    def _schedule(self) -> None:
        """Restart the quiescence window; without a running loop the edit waits for flush()."""
        if not self.auto_emit or self.on_snapshot is None:
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop, snapshot deferred until flush()")
            return
        self._timer.arm()

    def _emit(self) -> None:
        self._dirty = False
        snapshot = self.get_snapshot()
        self.last_snapshot = snapshot
        if self.on_snapshot is None:
            return
        try:
            self.on_snapshot(copy.deepcopy(snapshot))
        except Exception as e:
            logger.error(f"Snapshot consumer failed: {e}", exc_info=True)

    def flush(self) -> bool:
        """
        Emit pending edits now instead of waiting for the window to close.

        Returns:
            True if a snapshot was emitted
        """
        self._timer.cancel()
        if not self._dirty or self._closed:
            return False
        self._emit()
        return True

    def reset(self) -> None:
        """Restore the initial record."""
        if self._closed:
            return
        self._record = copy.deepcopy(self._initial)
        self._dirty = True
        self._schedule()

    def close(self) -> None:
        """End the session; a pending snapshot is discarded."""
        self._timer.cancel()
        self._closed = True

    def changes(self) -> Dict[str, Any]:
        """DeepDiff of the current record against the initial data."""
        return calculate_record_diff(self._initial, self._record)

    def has_changes(self) -> bool:
        return has_changes(self.changes())
