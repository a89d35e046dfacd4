"""
ACR Gate Satisfaction Checker

Decides whether session history alone already satisfies an ACR.

Assignment is greedy: each requirement takes the first valid, unused
candidate in catalog order, without backtracking across requirements of
the same option. Some enrollment/validity combinations are therefore
reported as unsatisfied even though an exhaustive matching exists.
"""

from typing import Iterable, List

from core.models.catalog import enrolled_candidates, resolve_policy
from core.models.validity import is_action_still_valid
from core.schemas.inputs import Catalog, PastAuthAction, PolicyOption, Requirement, Session, User


def valid_ids_for_requirement(
    catalog: Catalog,
    requirement: Requirement,
    user: User,
    past_actions: Iterable[PastAuthAction],
    now_ms: float
) -> List[str]:
    """Enrolled ids of the requirement's type with a fresh history entry."""
    history = list(past_actions)
    return [
        amr_id
        for amr_id in enrolled_candidates(catalog, user, requirement.type)
        if is_action_still_valid(history, amr_id, requirement.max_age, now_ms)
    ]


def is_option_satisfied(
    catalog: Catalog,
    option: PolicyOption,
    user: User,
    session: Session,
    now_ms: float
) -> bool:
    used = set()

    for requirement in option:
        valid_ids = valid_ids_for_requirement(
            catalog, requirement, user, session.past_authentication_actions, now_ms
        )
        pick = next((amr_id for amr_id in valid_ids if amr_id not in used), None)
        if pick is None:
            return False
        used.add(pick)

    return True


def is_satisfied(
    catalog: Catalog,
    user: User,
    session: Session,
    acr_name: str,
    now_ms: float
) -> bool:
    """True as soon as one option of the ACR is satisfied by history."""
    for option in resolve_policy(catalog, acr_name):
        if is_option_satisfied(catalog, option, user, session, now_ms):
            return True
    return False
