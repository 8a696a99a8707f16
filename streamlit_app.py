"""
Main Streamlit application for logistics object forms.
Schema-driven editor producing JSON-LD style logistics object records.
"""

import asyncio
import json
import logging

import streamlit as st

from logistics_forms.catalog_client import CatalogClient
from logistics_forms.codelists import load_codelists
from logistics_forms.config_loader import configure_logging, get_config_value, load_config, validate_config
from logistics_forms.diff_utils import format_changes, get_change_summary
from logistics_forms.error_handler import ErrorHandler
from logistics_forms.form_renderer import FormRenderer, clear_widget_state
from logistics_forms.form_value_store import FormValueStore
from logistics_forms.reference_options import ReferenceOptionProvider
from logistics_forms.schema_models import ObjectType
from logistics_forms.schema_resolver import SchemaResolver
from logistics_forms.schema_store import FileSchemaStore

config = load_config()
configure_logging(config)
logger = logging.getLogger(__name__)

st.set_page_config(
    page_title=get_config_value(config, 'app', 'name', 'Logistics Object Forms'),
    page_icon="📦",
    layout="wide",
    initial_sidebar_state="expanded"
)


def main():
    """Main application entry point."""
    try:
        if not validate_config(config):
            st.warning("⚠️ Some configuration settings are invalid, check config.yaml.")

        init_session_state()
        render_sidebar()
        render_main_content()

    except Exception as e:
        ErrorHandler.display_error(e, "application", show_details=True)


def init_session_state():
    """Initialize session state variables."""
    if 'object_type_id' not in st.session_state:
        st.session_state.object_type_id = None

    if 'form_store' not in st.session_state:
        st.session_state.form_store = None

    if 'descriptors' not in st.session_state:
        st.session_state.descriptors = []

    if 'option_states' not in st.session_state:
        st.session_state.option_states = {}

    if 'schema_errors' not in st.session_state:
        st.session_state.schema_errors = []

    if 'provider' not in st.session_state:
        st.session_state.provider = build_provider()


def build_provider() -> ReferenceOptionProvider:
    """Create the option provider from the codelist and catalog settings."""
    codelists = load_codelists(get_config_value(config, 'codelists', 'path', 'codelists/codelists.json'))
    catalog = CatalogClient(
        base_url=get_config_value(config, 'catalog', 'base_url', 'http://localhost:8080'),
        timeout=float(get_config_value(config, 'catalog', 'timeout', 10)),
    )
    return ReferenceOptionProvider(codelists, catalog)


def schema_store() -> FileSchemaStore:
    return FileSchemaStore(get_config_value(config, 'schema', 'directory', 'logistics-objects'))


def start_session(object_type_id: str, initial_data=None):
    """Resolve the object type and open a new editing session for it."""
    category, _, name = object_type_id.partition('.')
    object_type = ObjectType(schema=category, name=name)
    resolver = SchemaResolver(
        schema_store(),
        embedded_category=get_config_value(config, 'schema', 'embedded_category', 'Embedded'),
    )

    if st.session_state.form_store is not None:
        st.session_state.form_store.close()

    store = asyncio.run(FormValueStore.create(
        object_type,
        resolver,
        initial_data,
        debounce_seconds=float(get_config_value(config, 'form', 'debounce_ms', 500)) / 1000,
        auto_emit=False,
    ))

    clear_widget_state()
    st.session_state.object_type_id = object_type_id
    st.session_state.form_store = store
    st.session_state.descriptors = store.descriptors
    st.session_state.option_states = {}
    st.session_state.schema_errors = list(resolver.errors)
    logger.info(f"Started editing {object_type_id} with {len(store.descriptors)} fields")


def load_uploaded_record(uploaded):
    """Parse an uploaded record; shows the error and returns None when it is not a JSON object."""
    try:
        record = json.load(uploaded)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        ErrorHandler.display_error(e, "record upload")
        return None

    if not isinstance(record, dict):
        ErrorHandler.display_error(ValueError("Uploaded record must be a JSON object"), "record upload")
        return None
    return record


def render_sidebar():
    """Render application sidebar."""
    with st.sidebar:
        st.header("Object Type")

        object_types = schema_store().list_object_types()
        if not object_types:
            st.warning("No logistics object schemas found")
            return

        current = st.session_state.object_type_id
        selected = st.selectbox(
            "Select object type:",
            options=object_types,
            index=object_types.index(current) if current in object_types else 0,
            format_func=lambda schema_id: schema_id.partition('.')[2] or schema_id,
        )

        uploaded = st.file_uploader("Existing record (JSON)", type=["json"])

        if selected != current or st.button("🔄 Start New Form"):
            initial_data = None
            if uploaded is not None:
                initial_data = load_uploaded_record(uploaded)
                if initial_data is None:
                    return
            start_session(selected, initial_data)
            st.rerun()

        st.divider()
        st.caption(f"Catalog: {get_config_value(config, 'catalog', 'base_url', '')}")


def render_main_content():
    """Render the form, the emitted record and the change preview."""
    store = st.session_state.form_store
    if store is None:
        st.info("Select an object type to start editing")
        return

    st.title(st.session_state.object_type_id.partition('.')[2])
    ErrorHandler.display_errors(st.session_state.schema_errors, "schema resolution")

    col1, col2 = st.columns([3, 2])
    with col1:
        render_form(store)
    with col2:
        render_record(store)
        render_diff_section(store)

    provider = st.session_state.provider
    ErrorHandler.display_errors(provider.errors, "option loading")
    provider.errors.clear()
    ErrorHandler.display_errors(store.errors, "value conversion")
    store.errors.clear()


def render_form(store: FormValueStore):
    """Render the dynamic form and emit the record once per rerun."""
    try:
        FormRenderer.render_form(
            st.session_state.descriptors,
            store,
            st.session_state.provider,
            st.session_state.option_states,
        )
        store.flush()
    except Exception as e:
        st.error(f"Error rendering form: {str(e)}")
        logger.error(f"Error in dynamic form: {e}", exc_info=True)

    st.divider()
    if st.button("🔄 Reset to Original", help="Reset form to the initial record"):
        store.reset()
        store.flush()
        clear_widget_state()
        st.session_state.option_states = {}
        st.rerun()


def render_record(store: FormValueStore):
    st.subheader("📄 Record")
    st.json(store.last_snapshot if store.last_snapshot is not None else store.get_snapshot())
    st.download_button(
        "⬇️ Download JSON",
        data=json.dumps(store.get_snapshot(), indent=2),
        file_name=f"{st.session_state.object_type_id}.json",
        mime="application/ld+json",
    )


def render_diff_section(store: FormValueStore):
    """Render the diff section showing changes."""
    st.subheader("🔍 Changes Preview")

    try:
        diff = store.changes()
        if not store.has_changes():
            st.success("✅ No changes detected")
            return

        summary = get_change_summary(diff)
        st.caption(
            f"{summary['modified']} modified, {summary['added']} added, {summary['removed']} removed"
        )
        for change in format_changes(diff):
            st.markdown(f"- **{change['field']}** ({change['type']}): {change['old_value']} → {change['new_value']}")

    except Exception as e:
        st.error(f"Error calculating diff: {str(e)}")


if __name__ == "__main__":
    main()
