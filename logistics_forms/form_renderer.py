"""
Streamlit form renderer for logistics objects.

Renders resolved field descriptors as widgets and writes every change back
through FormValueStore.set_field, so the store stays the single source of the
record being edited.
"""

import asyncio
import logging
from dataclasses import replace
from datetime import datetime, time, timezone
from typing import Any, Dict, List, Optional, Sequence

import streamlit as st

from .array_field_manager import ArrayFieldManager
from .form_value_store import FormValueStore
from .reference_options import ReferenceFieldState, ReferenceOptionProvider
from .schema_models import FieldDescriptor
from .type_registry import ScalarKind
from .typed_value_codec import decode_field, epoch_ms_to_datetime

logger = logging.getLogger(__name__)

WIDGET_KEY_PREFIX = "lof"

OptionStates = Dict[str, ReferenceFieldState]


def widget_key(path: str, suffix: str = "") -> str:
    key = f"{WIDGET_KEY_PREFIX}_{path}"
    return f"{key}_{suffix}" if suffix else key


def clear_widget_state(path: str = "") -> None:
    """Drop seeded widget values (all of them, or those under one field path)."""
    prefix = widget_key(path) if path else f"{WIDGET_KEY_PREFIX}_"
    for key in [k for k in st.session_state.keys() if str(k).startswith(prefix)]:
        del st.session_state[key]


class FormRenderer:
    """Renders a logistics object form bound to a FormValueStore."""

    @staticmethod
    def render_form(descriptors: Sequence[FieldDescriptor], store: FormValueStore,
                    provider: ReferenceOptionProvider, option_states: OptionStates) -> None:
        """
        Render all fields in schema order.

        Args:
            descriptors: Resolved top-level descriptors
            store: Store receiving the edits
            provider: Option provider for reference fields
            option_states: Per-path reference field state, kept across reruns
        """
        if not descriptors:
            st.info("This object type has no fields to edit.")
            return

        for descriptor in descriptors:
            FormRenderer._render_field(descriptor, descriptor.name, store, provider, option_states)

    @staticmethod
    def _render_field(descriptor: FieldDescriptor, path: str, store: FormValueStore,
                      provider: ReferenceOptionProvider, option_states: OptionStates) -> None:
        """Render one field and write a changed value back to the store."""
        try:
            if descriptor.array:
                FormRenderer._render_array(descriptor, path, store, provider, option_states)
                return

            if descriptor.is_embedded:
                FormRenderer._render_fieldset(descriptor, path, store, provider, option_states)
                return

            current = store.get_field(path)
            new_value = FormRenderer._render_value(descriptor, path, current, provider, option_states)
            if new_value is not None and new_value != current:
                store.set_field(path, new_value)

        except Exception as e:
            st.error(f"Error rendering field {path}: {str(e)}")
            logger.error(f"Error rendering field {path}: {e}", exc_info=True)
            with st.expander("Error Details"):
                st.code(str(e))

    @staticmethod
    def _render_fieldset(descriptor: FieldDescriptor, path: str, store: FormValueStore,
                         provider: ReferenceOptionProvider, option_states: OptionStates) -> None:
        with st.container(border=True):
            st.markdown(f"**{descriptor.label}**")
            if descriptor.description and descriptor.description != descriptor.label:
                st.caption(descriptor.description)
            for child in descriptor.children or ():
                FormRenderer._render_field(child, f"{path}.{child.name}", store, provider, option_states)

    @staticmethod
    def _render_value(descriptor: FieldDescriptor, key_path: str, current: Any,
                      provider: ReferenceOptionProvider, option_states: OptionStates) -> Any:
        """
        Render the widget for a single (non-array) value.

        Returns:
            The plain value shown by the widget, or None when nothing was entered
        """
        if descriptor.is_reference:
            return FormRenderer._render_reference(descriptor, key_path, current, provider, option_states)

        if descriptor.is_embedded:
            return FormRenderer._render_embedded_item(descriptor, key_path, current, provider, option_states)

        widget_kwargs = {
            'key': widget_key(key_path),
            'label': descriptor.label,
            'help': descriptor.description or None,
        }

        kind = descriptor.scalar_kind
        if kind == ScalarKind.BOOLEAN:
            FormRenderer._seed(widget_kwargs['key'], bool(current))
            return st.checkbox(**widget_kwargs)
        if kind == ScalarKind.INTEGER:
            FormRenderer._seed(widget_kwargs['key'], int(current or 0))
            return st.number_input(step=1, format="%d", **widget_kwargs)
        if kind == ScalarKind.DOUBLE:
            FormRenderer._seed(widget_kwargs['key'], float(current or 0.0))
            return st.number_input(step=0.01, **widget_kwargs)
        if kind == ScalarKind.DATETIME:
            return FormRenderer._render_datetime_input(current, widget_kwargs)

        FormRenderer._seed(widget_kwargs['key'], "" if current is None else str(current))
        return st.text_input(**widget_kwargs)

    @staticmethod
    def _seed(key: str, value: Any) -> None:
        if key not in st.session_state:
            st.session_state[key] = value

    @staticmethod
    def _render_datetime_input(current: Any, kwargs: Dict[str, Any]) -> Optional[int]:
        """Render date and time inputs side by side; returns epoch milliseconds."""
        moment = epoch_ms_to_datetime(current)
        date_key = f"{kwargs['key']}_date"
        time_key = f"{kwargs['key']}_time"
        FormRenderer._seed(date_key, moment.date() if moment else None)
        FormRenderer._seed(time_key, moment.time().replace(tzinfo=None) if moment else time(0, 0))

        col1, col2 = st.columns(2)
        with col1:
            date_value = st.date_input(kwargs['label'], key=date_key, help=kwargs['help'])
        with col2:
            time_value = st.time_input("Time (UTC)", key=time_key)

        if date_value is None:
            return None
        combined = datetime.combine(date_value, time_value or time(0, 0), tzinfo=timezone.utc)
        millis = int(combined.timestamp() * 1000)
        if current not in ("", None) and str(current) == str(millis):
            return current
        return millis

    @staticmethod
    def _option_state(descriptor: FieldDescriptor, key_path: str, current: Any,
                      option_states: OptionStates) -> ReferenceFieldState:
        state = option_states.get(key_path)
        if state is None:
            state = ReferenceFieldState(descriptor, value="" if current is None else str(current),
                                        path=key_path)
            option_states[key_path] = state
        elif state.value != ("" if current is None else str(current)):
            state.set_value(current)
        return state

    @staticmethod
    def _render_reference(descriptor: FieldDescriptor, key_path: str, current: Any,
                          provider: ReferenceOptionProvider, option_states: OptionStates) -> str:
        """Render a select over loaded options, or a URL text box in direct input mode."""
        state = FormRenderer._option_state(descriptor, key_path, current, option_states)
        current = state.value
        target = descriptor.reference_type or descriptor.schema_type_name

        direct = st.toggle(
            "Direct URL Input",
            value=state.use_direct_input,
            key=widget_key(key_path, "direct"),
        )
        if direct != state.use_direct_input:
            state.set_direct_input(direct)

        if state.use_direct_input:
            text_key = widget_key(key_path, "url")
            FormRenderer._seed(text_key, current)
            return st.text_input(
                descriptor.label,
                key=text_key,
                help=descriptor.description or None,
                placeholder=f"Enter {target} URL",
            )

        if st.button(f"Load {target} options", key=widget_key(key_path, "load")):
            # Late results are applied even if the user switched modes meanwhile
            asyncio.run(state.open(provider))

        labels = {option.id: option.label for option in state.options}
        choices: List[str] = [""] + list(labels)
        if current and current not in labels:
            choices.append(current)

        return st.selectbox(
            descriptor.label,
            options=choices,
            index=choices.index(current),
            format_func=lambda value: f"Select {target}" if value == "" else labels.get(value, value),
            key=widget_key(key_path, "select"),
            help=descriptor.description or None,
        )

    @staticmethod
    def _render_embedded_item(descriptor: FieldDescriptor, key_path: str, current: Any,
                              provider: ReferenceOptionProvider, option_states: OptionStates) -> Dict[str, Any]:
        """Render the children of one embedded array element; returns the plain element."""
        values = dict(current) if isinstance(current, dict) else {}
        for child in descriptor.children or ():
            child_path = f"{key_path}.{child.name}"
            if child.array:
                st.caption(f"{child.label} (edit in the record view)")
                st.json(values.get(child.name, []))
                continue
            new_value = FormRenderer._render_value(child, child_path, values.get(child.name),
                                                   provider, option_states)
            if new_value is not None:
                values[child.name] = new_value
        return values

    @staticmethod
    def _render_array(descriptor: FieldDescriptor, path: str, store: FormValueStore,
                      provider: ReferenceOptionProvider, option_states: OptionStates) -> None:
        """Render one widget per element with add and remove buttons."""
        items = ArrayFieldManager.coerce_array(store.get_typed(path))
        element = replace(descriptor, array=False)

        with st.container(border=True):
            col1, col2 = st.columns([3, 1])
            with col1:
                st.markdown(f"**{descriptor.label}**")
                if descriptor.description and descriptor.description != descriptor.label:
                    st.caption(descriptor.description)
            with col2:
                if st.button("Add Item", key=widget_key(path, "add")):
                    store.set_field(path, ArrayFieldManager.append_item(items, descriptor))
                    st.rerun()

            if not items:
                st.caption("No items")
                return

            for index, item in enumerate(items):
                item_path = f"{path}.{index}"
                current = decode_field(item, element)
                col1, col2 = st.columns([5, 1])
                with col1:
                    new_value = FormRenderer._render_value(element, item_path, current, provider, option_states)
                with col2:
                    remove = st.button("Remove", key=widget_key(item_path, "remove"))

                if remove:
                    store.set_field(path, ArrayFieldManager.remove_item(items, index, descriptor))
                    clear_widget_state(f"{path}.")
                    for key in [k for k in option_states if k.startswith(f"{path}.")]:
                        del option_states[key]
                    st.rerun()
                    return

                if new_value is not None and new_value != current:
                    items = ArrayFieldManager.update_item(items, index, descriptor, new_value,
                                                          store.errors.append)
                    store.set_field(path, items)
