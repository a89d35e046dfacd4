"""
ACR Gate Enrollment Gap Analyzer
"""

from typing import List

from core.models.catalog import resolve_policy, type_index
from core.schemas.inputs import Catalog, User


def missing_enrollments(catalog: Catalog, user: User, acr_name: str) -> List[str]:
    """
    Catalog methods useful for `acr_name` that the user is not enrolled in.

    A method is useful when its type appears in any requirement of any
    option, regardless of current validity. Result is in catalog order.
    """
    options = resolve_policy(catalog, acr_name)
    useful_types = {requirement.type for option in options for requirement in option}
    enrolled = set(user.enrolled_means)

    return [
        amr.id
        for amr in catalog.amrs
        if amr.type in useful_types and amr.id not in enrolled
    ]
