"""
Parse submitted form pairs back into nested records.

``project[tasks_attributes][1700000000001][title]=Write`` becomes
``{"project": {"tasks_attributes": {"1700000000001": {"title": "Write"}}}}``
and ``collection_attributes`` turns the indexed mapping into a list of
child attribute dicts in submission order.
"""

import re
from typing import Any, Dict, Iterable, List, Tuple


KEY_PATTERN = re.compile(r"^([^\[\]]+)((?:\[[^\[\]]*\])*)$")
SEGMENT_PATTERN = re.compile(r"\[([^\[\]]*)\]")

TRUE_VALUES = {"1", "true", "on", "yes"}


class NestedParamsError(ValueError):
    """Raised when submitted names conflict or are malformed."""
    pass


def split_key(name: str) -> List[str]:
    """``a[b][c]`` -> ``["a", "b", "c"]``; ``a[b][]`` ends with ``""``."""
    match = KEY_PATTERN.match(name)
    if not match:
        raise NestedParamsError(f"Malformed parameter name '{name}'")
    return [match.group(1)] + SEGMENT_PATTERN.findall(match.group(2))


def parse_nested_params(pairs: Iterable[Tuple[str, str]]) -> Dict[str, Any]:
    """
    Build nested dicts from ``(name, value)`` pairs.

    Later pairs overwrite earlier scalars with the same name; ``[]``
    segments collect values into a list.
    """
    params: Dict[str, Any] = {}
    for name, value in pairs:
        segments = split_key(name)
        node = params
        for position, segment in enumerate(segments[:-1]):
            following = segments[position + 1]
            if following == "" and position + 1 == len(segments) - 1:
                node.setdefault(segment, [])
                if not isinstance(node[segment], list):
                    raise NestedParamsError(f"'{name}' mixes list and scalar values")
                node[segment].append(value)
                break
            child = node.setdefault(segment, {})
            if not isinstance(child, dict):
                raise NestedParamsError(f"'{name}' conflicts with a scalar value")
            node = child
        else:
            last = segments[-1]
            if isinstance(node.get(last), dict):
                raise NestedParamsError(f"'{name}' conflicts with nested values")
            node[last] = value
    return params


def is_truthy(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUE_VALUES


def collection_attributes(
    indexed: Dict[str, Dict[str, Any]],
    destroy_field: str = "_destroy",
) -> List[Dict[str, Any]]:
    """
    Flatten ``{"<index>": {...}}`` into child attribute dicts in submission
    order, with ``destroy_field`` coerced to a bool.
    """
    records = []
    for attributes in indexed.values():
        record = dict(attributes)
        if destroy_field in record:
            record[destroy_field] = is_truthy(record[destroy_field])
        records.append(record)
    return records


def partition_destroyed(
    records: List[Dict[str, Any]],
    destroy_field: str = "_destroy",
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """Split records into (kept, marked_for_deletion)."""
    kept = [record for record in records if not record.get(destroy_field)]
    destroyed = [record for record in records if record.get(destroy_field)]
    return kept, destroyed
