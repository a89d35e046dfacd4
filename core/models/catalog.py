"""
ACR Gate Catalog Index

Groups catalog methods by strength type and resolves, for a user, the
enrolled candidates of a requirement type. Requirements always match by
type; concrete method ids are resolved here at evaluation time.
"""

from functools import lru_cache
from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple

from core.exceptions import UnknownPolicyError
from core.schemas.inputs import AmrType, Catalog, Policy, User


@lru_cache(maxsize=64)
def _index_entries(entries: Tuple[Tuple[str, AmrType], ...]) -> Mapping[AmrType, Tuple[str, ...]]:
    grouped: Dict[AmrType, List[str]] = {}
    for amr_id, amr_type in entries:
        grouped.setdefault(amr_type, []).append(amr_id)
    return MappingProxyType({amr_type: tuple(ids) for amr_type, ids in grouped.items()})


def type_index(catalog: Catalog) -> Mapping[AmrType, Tuple[str, ...]]:
    """
    Map each AMR type to its method ids, preserving catalog order.

    Memoized on the catalog's (id, type) content, so repeated evaluations
    against the same catalog share one index.
    """
    return _index_entries(tuple((amr.id, amr.type) for amr in catalog.amrs))


def resolve_policy(catalog: Catalog, acr_name: str) -> Policy:
    """Return the options of a named ACR or raise UnknownPolicyError."""
    options = catalog.acr.get(acr_name)
    if options is None:
        raise UnknownPolicyError(f"Unknown ACR: {acr_name}")
    return options


def enrolled_candidates(catalog: Catalog, user: User, amr_type: AmrType) -> List[str]:
    """Catalog ids of `amr_type` the user is enrolled in, in catalog order."""
    enrolled = set(user.enrolled_means)
    return [amr_id for amr_id in type_index(catalog).get(amr_type, ()) if amr_id in enrolled]
