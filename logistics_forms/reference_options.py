"""
Reference option loading for enumerated and object-reference fields.

Options come either from the codelist table (fields flagged as codelists) or
from the catalog service. Failures never propagate: they are logged and the
field simply gets no options, which switches it to direct input.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence

from .codelists import CodelistTable
from .exceptions import OptionLoadError
from .schema_models import FieldDescriptor
from .typed_value_codec import ID_KEY, TYPE_KEY

logger = logging.getLogger(__name__)


class CatalogLookup(Protocol):
    async def fetch(self, type_iri: str) -> Any:
        ...


@dataclass(frozen=True)
class ReferenceOption:
    """A selectable reference candidate."""
    id: str
    label: str
    type_iri: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        """Option as a JSON-LD node; the id is kept under both "@id" and legacy "id"."""
        data: Dict[str, Any] = {ID_KEY: self.id, 'id': self.id, 'label': self.label}
        if self.type_iri:
            data[TYPE_KEY] = self.type_iri
        return data


def codelist_key(value_iri: Optional[str]) -> Optional[str]:
    """Codelist name encoded in a value IRI (text after '#')."""
    if not value_iri or '#' not in value_iri:
        return None
    return value_iri.split('#', 1)[1] or None


def needs_direct_input(value: Any, options: Sequence[ReferenceOption]) -> bool:
    """
    Whether a reference value has no matching option.

    Linear scan over the options; option lists are small.
    """
    if value is None or value == "":
        return False
    return not any(option.id == value for option in options)


def normalize_catalog_response(response: Any) -> List[Dict[str, Any]]:
    """
    Flatten a catalog response into a list of objects.

    Accepts a single object, a {"@graph": [...]} envelope or a bare list;
    empty entries are dropped.
    """
    if isinstance(response, dict) and '@graph' in response:
        items = response['@graph']
    elif isinstance(response, list):
        items = response
    else:
        items = [response]

    if not isinstance(items, list):
        raise ValueError(f"Unexpected catalog graph type: {type(items).__name__}")

    return [item for item in items if isinstance(item, dict) and item]


def option_from_catalog_object(obj: Dict[str, Any], type_iri: Optional[str]) -> Optional[ReferenceOption]:
    object_id = obj.get(ID_KEY)
    if not object_id:
        logger.debug(f"Skipping catalog object without @id: {obj}")
        return None
    label = obj.get('name') or obj.get('description') or object_id
    object_type = obj.get(TYPE_KEY)
    return ReferenceOption(
        id=str(object_id),
        label=str(label),
        type_iri=object_type if isinstance(object_type, str) else type_iri,
    )


class ReferenceOptionProvider:
    """Loads and caches reference options per field."""

    def __init__(self, codelists: Optional[CodelistTable] = None,
                 catalog: Optional[CatalogLookup] = None):
        self.codelists = codelists if codelists is not None else CodelistTable()
        self.catalog = catalog
        self.errors: List[OptionLoadError] = []
        self._options: Dict[str, List[ReferenceOption]] = {}

    def options_for(self, path: str) -> List[ReferenceOption]:
        """Last loaded options for a field path ([] if never loaded)."""
        return list(self._options.get(path, []))

    async def load_options(self, field_descriptor: FieldDescriptor,
                           path: Optional[str] = None) -> List[ReferenceOption]:
        """
        Load options for a reference field.

        Args:
            field_descriptor: Enumerated or object-reference descriptor
            path: Dotted path of the field in the form; cache key, defaults to the field name

        Returns:
            List of ReferenceOption (empty on any failure)
        """
        try:
            if field_descriptor.codelist:
                options = self._load_codelist_options(field_descriptor)
            else:
                options = await self._load_catalog_options(field_descriptor)
        except OptionLoadError as e:
            options = self._fail(field_descriptor, e)
        except Exception as e:
            options = self._fail(field_descriptor, OptionLoadError(field_descriptor.name, e))

        # Late results are kept even if the field was closed meanwhile
        cache_key = path or field_descriptor.name
        self._options[cache_key] = options
        logger.debug(f"Loaded {len(options)} options for {cache_key}")
        return list(options)

    def _fail(self, field_descriptor: FieldDescriptor, error: OptionLoadError) -> List[ReferenceOption]:
        logger.error(f"Error loading options for {field_descriptor.name}: {error}")
        self.errors.append(error)
        return []

    def _load_codelist_options(self, field_descriptor: FieldDescriptor) -> List[ReferenceOption]:
        key = codelist_key(field_descriptor.value_iri)
        if key is None or key not in self.codelists:
            logger.warning(f"No codelist '{key}' for field {field_descriptor.name}")
            return []

        return [
            ReferenceOption(id=entry.id, label=entry.description or entry.id,
                            type_iri=field_descriptor.value_iri)
            for entry in self.codelists[key]
        ]

    async def _load_catalog_options(self, field_descriptor: FieldDescriptor) -> List[ReferenceOption]:
        if self.catalog is None:
            raise OptionLoadError(field_descriptor.name, message=f"No catalog configured for {field_descriptor.name}")
        if not field_descriptor.value_iri:
            raise OptionLoadError(field_descriptor.name, message=f"Field {field_descriptor.name} has no valueIRI")

        response = await self.catalog.fetch(field_descriptor.value_iri)
        try:
            objects = normalize_catalog_response(response)
        except ValueError as e:
            raise OptionLoadError(field_descriptor.name, e) from e

        options = []
        for obj in objects:
            option = option_from_catalog_object(obj, field_descriptor.value_iri)
            if option is not None:
                options.append(option)
        return options


@dataclass
class ReferenceFieldState:
    """
    Presentation state of one reference field.

    ``use_direct_input`` is advisory: it tells the renderer to offer free text
    instead of a selection and never changes ``value``.
    """
    descriptor: FieldDescriptor
    value: str = ""
    path: str = ""
    options: List[ReferenceOption] = field(default_factory=list)
    loading: bool = False
    use_direct_input: bool = False

    def __post_init__(self):
        self.reevaluate()

    def reevaluate(self) -> None:
        if self.loading:
            return
        self.use_direct_input = needs_direct_input(self.value, self.options)

    def set_value(self, value: Any) -> None:
        self.value = "" if value is None else str(value)
        self.reevaluate()

    def set_options(self, options: Sequence[ReferenceOption]) -> None:
        self.options = list(options)
        self.reevaluate()

    def set_direct_input(self, enabled: bool) -> None:
        """User override of the input mode (until the next re-evaluation)."""
        self.use_direct_input = bool(enabled)

    async def open(self, provider: ReferenceOptionProvider) -> List[ReferenceOption]:
        """Load options because the selection is about to be displayed."""
        self.loading = True
        try:
            options = await provider.load_options(self.descriptor, self.path or None)
        finally:
            self.loading = False
        self.set_options(options)
        return self.options
