"""
ACR Gate Models

Policy evaluator: catalog index, freshness, satisfaction, enrollment
gaps, action search and pattern listing.
"""

from core.models.catalog import enrolled_candidates, resolve_policy, type_index
from core.models.validity import is_action_still_valid, parse_validated_at
from core.models.satisfaction import is_option_satisfied, is_satisfied, valid_ids_for_requirement
from core.models.enrollment import missing_enrollments
from core.models.enumerator import (
    DEFAULT_SEARCH_BUDGET,
    ActionEnumerator,
    BranchState,
    dedupe_unordered,
)
from core.models.patterns import required_patterns

__all__ = [
    "type_index",
    "resolve_policy",
    "enrolled_candidates",
    "parse_validated_at",
    "is_action_still_valid",
    "valid_ids_for_requirement",
    "is_option_satisfied",
    "is_satisfied",
    "missing_enrollments",
    "DEFAULT_SEARCH_BUDGET",
    "ActionEnumerator",
    "BranchState",
    "dedupe_unordered",
    "required_patterns",
]
