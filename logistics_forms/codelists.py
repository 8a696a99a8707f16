"""
Codelist table for enumerated reference fields.
A read-only mapping from codelist name to its ordered entries.
"""

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

logger = logging.getLogger(__name__)


class CodelistEntry(BaseModel):
    """One selectable codelist value."""

    model_config = ConfigDict(extra='ignore', frozen=True)

    id: str
    description: str = ""


class CodelistTable(Mapping[str, Tuple[CodelistEntry, ...]]):
    """Immutable codelist lookup table."""

    def __init__(self, codelists: Optional[Mapping[str, Any]] = None):
        parsed: Dict[str, Tuple[CodelistEntry, ...]] = {}
        for name, entries in (codelists or {}).items():
            if not isinstance(entries, list):
                logger.warning(f"Codelist '{name}' is not a list, skipping")
                continue
            valid: List[CodelistEntry] = []
            for entry in entries:
                try:
                    valid.append(entry if isinstance(entry, CodelistEntry) else CodelistEntry.model_validate(entry))
                except ValidationError as e:
                    logger.warning(f"Skipping invalid entry in codelist '{name}': {e}")
            parsed[name] = tuple(valid)
        self._codelists = MappingProxyType(parsed)

    def __getitem__(self, name: str) -> Tuple[CodelistEntry, ...]:
        return self._codelists[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._codelists)

    def __len__(self) -> int:
        return len(self._codelists)


def load_codelists(path: Union[str, Path]) -> CodelistTable:
    """
    Load a codelist table from a JSON or YAML file.

    Args:
        path: Path to the codelist file

    Returns:
        CodelistTable (empty if the file is missing or invalid)
    """
    path = Path(path)

    if not path.exists():
        logger.warning(f"Codelist file not found: {path}, using empty table")
        return CodelistTable()

    try:
        with open(path, 'r', encoding='utf-8') as f:
            if path.suffix.lower() in ['.yaml', '.yml']:
                raw = yaml.safe_load(f)
            else:
                raw = json.load(f)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        logger.error(f"Codelist parsing error in {path}: {e}")
        return CodelistTable()
    except OSError as e:
        logger.error(f"Failed to read codelist file {path}: {e}")
        return CodelistTable()

    if not isinstance(raw, dict):
        logger.error(f"Codelist file {path} must contain a mapping")
        return CodelistTable()

    table = CodelistTable(raw)
    logger.info(f"Loaded {len(table)} codelists from {path}")
    return table
