"""
ACR Gate Action Enumerator

Backtracking search producing every distinct set of fresh authentications
sufficient to satisfy an ACR, given the user's enrollments and the
session history.

Search Rules (per option, per requirement position):
    History branch: one child per valid, not-yet-used history id.
    Fallback branch: only when no history child exists; one child per
        enrolled id of the type that is unused and not currently valid.
    A position with no children is a dead end.

Branch states are immutable snapshots on an explicit LIFO worklist, so
no state is shared between branches and recursion depth never grows.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from core.exceptions import SearchBudgetExceededError
from core.models.catalog import enrolled_candidates, resolve_policy
from core.models.satisfaction import valid_ids_for_requirement
from core.schemas.inputs import Catalog, PolicyOption, Session, User


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_SEARCH_BUDGET = 100_000


# =============================================================================
# Helpers
# =============================================================================

@dataclass(frozen=True)
class BranchState:
    """One node of the action search."""
    position: int
    used_history: FrozenSet[str] = frozenset()
    used_new: FrozenSet[str] = frozenset()
    to_do: Tuple[str, ...] = ()


def dedupe_unordered(patterns: Iterable[Sequence[str]]) -> List[List[str]]:
    """
    Drop sequences that are set-equal to an earlier one.

    ["a", "b"] and ["b", "a"] are the same set; the first one seen is kept.
    """
    unique: Dict[Tuple[str, ...], List[str]] = {}
    for sequence in patterns:
        unique.setdefault(tuple(sorted(sequence)), list(sequence))
    return list(unique.values())


# =============================================================================
# Enumerator
# =============================================================================

class ActionEnumerator:
    """
    Enumerates sufficient sets of new authentications for an ACR.

    `budget` caps the number of branch states visited per call. Exceeding
    it raises SearchBudgetExceededError instead of running unbounded.
    """

    def __init__(self, budget: Optional[int] = None) -> None:
        self.budget = DEFAULT_SEARCH_BUDGET if budget is None else budget

    def enumerate(
        self,
        catalog: Catalog,
        user: User,
        session: Session,
        acr_name: str,
        now_ms: float
    ) -> List[List[str]]:
        """Return distinct (order-insensitive) action sets across all options."""
        options = resolve_policy(catalog, acr_name)
        action_sets: List[List[str]] = []
        visited = 0

        for option in options:
            emitted, visited = self._search_option(catalog, option, user, session, now_ms, visited)
            action_sets.extend(emitted)

        logger.debug(
            f"Action search for ACR {acr_name!r} visited {visited} nodes, "
            f"emitted {len(action_sets)} sets"
        )
        return dedupe_unordered(action_sets)

    def _search_option(
        self,
        catalog: Catalog,
        option: PolicyOption,
        user: User,
        session: Session,
        now_ms: float,
        visited: int
    ) -> Tuple[List[List[str]], int]:
        history = session.past_authentication_actions

        # Validity only depends on raw history, never on the branch
        valid_by_position = [
            valid_ids_for_requirement(catalog, requirement, user, history, now_ms)
            for requirement in option
        ]
        enrolled_by_position = [
            enrolled_candidates(catalog, user, requirement.type)
            for requirement in option
        ]

        emitted: List[List[str]] = []
        worklist: List[BranchState] = [BranchState(position=0)]

        while worklist:
            state = worklist.pop()
            visited += 1
            if visited > self.budget:
                raise SearchBudgetExceededError(self.budget)

            if state.position >= len(option):
                emitted.append(list(state.to_do))
                continue

            valid_ids = valid_by_position[state.position]
            next_position = state.position + 1

            children = [
                BranchState(
                    position=next_position,
                    used_history=state.used_history | {amr_id},
                    used_new=state.used_new,
                    to_do=state.to_do,
                )
                for amr_id in valid_ids
                if amr_id not in state.used_history
            ]

            if not children:
                children = [
                    BranchState(
                        position=next_position,
                        used_history=state.used_history,
                        used_new=state.used_new | {amr_id},
                        to_do=state.to_do + (amr_id,),
                    )
                    for amr_id in enrolled_by_position[state.position]
                    if amr_id not in state.used_history
                    and amr_id not in state.used_new
                    and amr_id not in valid_ids
                ]

            worklist.extend(children)

        return emitted, visited
