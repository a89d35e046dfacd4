"""
ACR Gate Pattern Catalog

User-independent view of an ACR: every combination of catalog methods
that could satisfy it, ignoring enrollments and history.
"""

from typing import List, Tuple

from core.models.catalog import resolve_policy, type_index
from core.models.enumerator import dedupe_unordered
from core.schemas.inputs import Catalog


def required_patterns(catalog: Catalog, acr_name: str) -> List[List[str]]:
    """
    All distinct AMR id patterns satisfying `acr_name`.

    Example (default model): "normal" ->
        [["phone_otp"], ["password"], ["mail_otp"], ["phone_biometry"]]

    A method id never repeats inside one pattern; an option requiring a
    type with no catalog methods contributes nothing.
    """
    index = type_index(catalog)
    patterns: List[Tuple[str, ...]] = []

    for option in resolve_policy(catalog, acr_name):
        partials: List[Tuple[str, ...]] = [()]

        for requirement in option:
            ids = index.get(requirement.type, ())
            if not ids:
                partials = []
                break
            partials = [
                sequence + (amr_id,)
                for sequence in partials
                for amr_id in ids
                if amr_id not in sequence
            ]

        patterns.extend(partials)

    return dedupe_unordered(patterns)
