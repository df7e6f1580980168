"""
Statute hierarchy ranks.

Lower rank wins (lex superior):
1 헌법 (Constitution)
2 법률 (Act)
3 대통령령 / 시행령 (Presidential Decree)
4 총리령 / 부령 / 시행규칙 (Ministerial Decree)
5 조례 / 규칙 (Local Ordinance)
6 행정규칙 and anything unrecognized (Administrative Rule)
"""
from dataclasses import dataclass
from typing import Optional

UNKNOWN_RANK = 6


@dataclass(frozen=True)
class HierarchyLevel:
    rank: int
    description: str


CONSTITUTION = HierarchyLevel(1, "Constitution")
ACT = HierarchyLevel(2, "Act")
PRESIDENTIAL_DECREE = HierarchyLevel(3, "Presidential Decree")
MINISTERIAL_DECREE = HierarchyLevel(4, "Ministerial Decree")
LOCAL_ORDINANCE = HierarchyLevel(5, "Local Ordinance")
ADMINISTRATIVE_RULE = HierarchyLevel(UNKNOWN_RANK, "Administrative Rule")

HIERARCHY_BY_TYPE = {
    "헌법": CONSTITUTION,
    "법률": ACT,
    "대통령령": PRESIDENTIAL_DECREE,
    "시행령": PRESIDENTIAL_DECREE,
    "총리령": MINISTERIAL_DECREE,
    "부령": MINISTERIAL_DECREE,
    "시행규칙": MINISTERIAL_DECREE,
    "조례": LOCAL_ORDINANCE,
    "규칙": LOCAL_ORDINANCE,
    "행정규칙": ADMINISTRATIVE_RULE,
}

# Checked against the end of a statute name when the type is missing
NAME_SUFFIXES = [
    ("시행규칙", MINISTERIAL_DECREE),
    ("시행령", PRESIDENTIAL_DECREE),
    ("조례", LOCAL_ORDINANCE),
    ("헌법", CONSTITUTION),
]


def hierarchy_level(law_type: Optional[str], law_name: Optional[str] = None) -> HierarchyLevel:
    """
    Rank a statute by its type, falling back to its name.

    Examples:
        >>> hierarchy_level("법률").rank
        2
        >>> hierarchy_level(None, "근로기준법 시행령").rank
        3
        >>> hierarchy_level("고시").rank
        6
    """
    key = (law_type or "").replace(" ", "")
    if key in HIERARCHY_BY_TYPE:
        return HIERARCHY_BY_TYPE[key]

    name = (law_name or "").replace(" ", "")
    for suffix, level in NAME_SUFFIXES:
        if name.endswith(suffix):
            return level
    if not key and name.endswith("법"):
        return ACT
    return ADMINISTRATIVE_RULE
