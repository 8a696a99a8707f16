"""
Schema stores for logistics object forms.
Loads schema documents (JSON or YAML column lists) keyed by "<category>.<type>".
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Union

import yaml
from pydantic import ValidationError

from .exceptions import SchemaLoadError
from .schema_models import SchemaDocument

logger = logging.getLogger(__name__)

SCHEMA_SUFFIXES = ('.json', '.yaml', '.yml')
EMBEDDED_CATEGORY = "Embedded"


class SchemaStore(Protocol):
    """Anything that can load a schema document by id."""

    async def load(self, schema_id: str) -> SchemaDocument:
        ...


def parse_schema_document(schema_id: str, raw: Any) -> SchemaDocument:
    """
    Validate a raw schema mapping into a SchemaDocument.

    Args:
        schema_id: Schema identifier (for error reporting)
        raw: Parsed JSON/YAML content

    Returns:
        Validated SchemaDocument

    Raises:
        SchemaLoadError: If the content is not a mapping with valid columns
    """
    if not isinstance(raw, dict):
        raise SchemaLoadError(schema_id, message=f"Schema '{schema_id}' must be a mapping")
    try:
        return SchemaDocument.model_validate(raw)
    except ValidationError as e:
        raise SchemaLoadError(schema_id, e) from e


class InMemorySchemaStore:
    """Schema store backed by a dictionary of raw schema documents."""

    def __init__(self, schemas: Optional[Mapping[str, Any]] = None):
        self._schemas: Dict[str, Any] = dict(schemas or {})

    def add(self, schema_id: str, schema: Union[SchemaDocument, Dict[str, Any]]) -> None:
        self._schemas[schema_id] = schema

    async def load(self, schema_id: str) -> SchemaDocument:
        if schema_id not in self._schemas:
            raise SchemaLoadError(schema_id, KeyError(schema_id))
        raw = self._schemas[schema_id]
        if isinstance(raw, SchemaDocument):
            return raw
        return parse_schema_document(schema_id, raw)


class FileSchemaStore:
    """
    Schema store reading "<schema_id>.json|.yaml|.yml" files from a directory.

    Files are read off the event loop so loading never blocks it.
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def _find_schema_file(self, schema_id: str) -> Optional[Path]:
        for suffix in SCHEMA_SUFFIXES:
            candidate = self.directory / f"{schema_id}{suffix}"
            if candidate.is_file():
                return candidate
        return None

    def load_sync(self, schema_id: str) -> SchemaDocument:
        """
        Load a schema document synchronously.

        Raises:
            SchemaLoadError: If the file is missing, unreadable or invalid
        """
        path = self._find_schema_file(schema_id)
        if path is None:
            logger.error(f"Schema file not found for '{schema_id}' in {self.directory}")
            raise SchemaLoadError(schema_id, FileNotFoundError(str(self.directory / schema_id)))

        try:
            with open(path, 'r', encoding='utf-8') as f:
                if path.suffix.lower() == '.json':
                    raw = json.load(f)
                else:
                    raw = yaml.safe_load(f)
        except json.JSONDecodeError as e:
            logger.error(f"JSON parsing error in {path}: {e}")
            raise SchemaLoadError(schema_id, e) from e
        except yaml.YAMLError as e:
            logger.error(f"YAML parsing error in {path}: {e}")
            raise SchemaLoadError(schema_id, e) from e
        except OSError as e:
            logger.error(f"Failed to read schema file {path}: {e}")
            raise SchemaLoadError(schema_id, e) from e

        document = parse_schema_document(schema_id, raw)
        logger.info(f"Successfully loaded schema: {schema_id} ({len(document.columns)} columns)")
        return document

    async def load(self, schema_id: str) -> SchemaDocument:
        return await asyncio.to_thread(self.load_sync, schema_id)

    def list_schema_ids(self) -> List[str]:
        """List all schema ids available in the directory."""
        if not self.directory.is_dir():
            logger.warning(f"Schema directory does not exist: {self.directory}")
            return []

        schema_ids = set()
        for path in self.directory.iterdir():
            if path.is_file() and path.suffix.lower() in SCHEMA_SUFFIXES:
                schema_ids.add(path.stem)
        return sorted(schema_ids)

    def list_object_types(self) -> List[str]:
        """List schema ids of editable object types (embedded schemas excluded)."""
        return [
            schema_id for schema_id in self.list_schema_ids()
            if not schema_id.startswith(f"{EMBEDDED_CATEGORY}.")
        ]
