"""
Diff utilities for logistics object records.
Compares the record being edited with its initial data using DeepDiff and
turns the result into flat change lists for display.
"""

import json
import re
import logging
from typing import Any, Dict, List

from deepdiff import DeepDiff

logger = logging.getLogger(__name__)

_PATH_TOKEN_PATTERN = re.compile(r"\['([^']+)'\]|\[(\d+)\]")

_CHANGE_SECTIONS = {
    'values_changed': 'Modified',
    'type_changes': 'Modified',
    'dictionary_item_added': 'Added',
    'iterable_item_added': 'Added',
    'dictionary_item_removed': 'Removed',
    'iterable_item_removed': 'Removed',
}


def calculate_record_diff(original: Dict[str, Any], modified: Dict[str, Any]) -> Dict[str, Any]:
    """
    Calculate differences between two records.

    Array order is significant in records, so lists are compared positionally.

    Args:
        original: Record before editing
        modified: Current record

    Returns:
        DeepDiff result as a plain dictionary ({} when identical or on error)
    """
    try:
        diff = DeepDiff(original or {}, modified or {}, verbose_level=2)
        return diff.to_dict()
    except Exception as e:
        logger.error(f"Error calculating record diff: {e}", exc_info=True)
        return {}


def has_changes(diff: Dict[str, Any]) -> bool:
    """Check if a diff contains any change section."""
    return any(diff.get(section) for section in _CHANGE_SECTIONS)


def clean_path(path: str) -> str:
    """
    Convert a DeepDiff path to a readable field path.

    "root['dimensions']['height']['@value']" -> "dimensions → height → @value"
    "root['pieces'][1]['@id']" -> "pieces[1] → @id"
    """
    parts: List[str] = []
    for key, index in _PATH_TOKEN_PATTERN.findall(str(path)):
        if index:
            if parts:
                parts[-1] += f"[{index}]"
            else:
                parts.append(f"[{index}]")
        else:
            parts.append(key)
    return " → ".join(parts) if parts else "root"


def _format_value(value: Any, max_length: int = 100) -> str:
    if value is None:
        return "None"
    if isinstance(value, (dict, list)):
        text = json.dumps(value, ensure_ascii=False)
    else:
        text = str(value)
    if len(text) > max_length:
        return f"{text[:max_length-3]}..."
    return text


def format_changes(diff: Dict[str, Any]) -> List[Dict[str, str]]:
    """
    Flatten a diff into display rows.

    Returns:
        List of {'type', 'field', 'old_value', 'new_value'} dictionaries
    """
    changes: List[Dict[str, str]] = []
    for section, change_type in _CHANGE_SECTIONS.items():
        entries = diff.get(section)
        if not entries:
            continue
        if not isinstance(entries, dict):
            entries = {path: None for path in entries}

        for path, detail in entries.items():
            if section in ('values_changed', 'type_changes'):
                old_value = detail.get('old_value')
                new_value = detail.get('new_value')
            elif change_type == 'Added':
                old_value, new_value = None, detail
            else:
                old_value, new_value = detail, None

            changes.append({
                'type': change_type,
                'field': clean_path(path),
                'old_value': '' if old_value is None else _format_value(old_value),
                'new_value': '' if new_value is None else _format_value(new_value),
            })
    return changes


def get_change_summary(diff: Dict[str, Any]) -> Dict[str, int]:
    """Count changes by type."""
    summary = {'modified': 0, 'added': 0, 'removed': 0, 'total': 0}
    for change in format_changes(diff):
        summary[change['type'].lower()] += 1
        summary['total'] += 1
    return summary
