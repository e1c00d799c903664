from typing import Any, Dict, Iterable, List, Mapping, Optional
from .models import CustomFieldValue

IMPACT_FIELD = "impact"
PRODUCT_AREA_FIELD = "product area"


def _resolve_field_name(field_dictionary: Mapping, field_id: Any) -> Optional[str]:
    # JSON object keys arrive as strings while assignment ids are usually ints
    entry = field_dictionary.get(field_id)
    if entry is None and field_id is not None:
        entry = field_dictionary.get(str(field_id))
    if isinstance(entry, Mapping):
        entry = entry.get("name")
    return entry if isinstance(entry, str) else None


def group_fields_by_task(field_dictionary: Mapping, assignments) -> Dict[str, List[CustomFieldValue]]:
    """
    Joins the ``customfieldTasks`` side table against the ``customfields``
    dictionary, producing task id -> list of named field values. Task ids
    are keyed as strings so int and str ids from the API line up.

    Assignments are visited in the order the caller supplies them. Missing
    or empty inputs produce an empty mapping.
    """
    if not field_dictionary or not assignments:
        return {}
    if not isinstance(field_dictionary, Mapping):
        return {}

    items: Iterable = assignments.values() if isinstance(assignments, Mapping) else assignments

    fields_per_task: Dict[str, List[CustomFieldValue]] = {}
    for item in items:
        if not isinstance(item, Mapping) or item.get("taskId") is None:
            continue
        field_id = item.get("customfieldId")
        if not isinstance(field_id, (int, str)):
            field_id = None
        fields_per_task.setdefault(str(item["taskId"]), []).append(
            CustomFieldValue(
                field_id=field_id,
                name=_resolve_field_name(field_dictionary, field_id),
                value=item.get("value"),
            )
        )
    return fields_per_task


def find_field_value(fields: List[CustomFieldValue], name: str) -> Any:
    """Returns the value of the first field whose name matches case-insensitively."""
    wanted = name.lower()
    for field in fields:
        if field.name and field.name.lower() == wanted:
            return field.value
    return None
