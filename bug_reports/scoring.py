import re
from types import MappingProxyType
from typing import Optional

DEFAULT_IMPACT = "Level 3"
DEFAULT_PRIORITY = "medium"
FALLBACK_SCORE = 2

# Impact level x priority -> base score. Levels 0 and 1 are equally severe, level 4 is the floor.
SCORE_TABLE = MappingProxyType({
    "LEVEL_0": MappingProxyType({"HIGH": 10, "MEDIUM": 10, "LOW": 10}),
    "LEVEL_1": MappingProxyType({"HIGH": 10, "MEDIUM": 10, "LOW": 10}),
    "LEVEL_2": MappingProxyType({"HIGH": 5, "MEDIUM": 4, "LOW": 3}),
    "LEVEL_3": MappingProxyType({"HIGH": 3, "MEDIUM": 2, "LOW": 1}),
    "LEVEL_4": MappingProxyType({"HIGH": 1, "MEDIUM": 1, "LOW": 1}),
})

_WHITESPACE = re.compile(r"\s+")


def normalize_key(value: str) -> str:
    """Turns 'level 2' / '  Level   2 ' / 'LEVEL_2' into 'LEVEL_2'."""
    return _WHITESPACE.sub("_", str(value).strip()).upper()


def calculate_bug_score(
    impact: Optional[str] = None,
    priority: Optional[str] = None,
    ticket_count: Optional[int] = None,
) -> int:
    """
    Scores a task from its impact level, priority and linked ticket volume.

    Unknown impact or priority strings fall back to a base score of 2.
    The ticket count is added as-is, negative values included.
    """
    impact_key = normalize_key(impact if impact is not None else DEFAULT_IMPACT)
    priority_key = normalize_key(priority if priority is not None else DEFAULT_PRIORITY)

    base = SCORE_TABLE.get(impact_key, {}).get(priority_key, FALLBACK_SCORE)
    return base + (ticket_count or 0)
