"""
ACR Gate Output Schemas

This module defines Pydantic V2 models that enforce the decision
record contract returned by the evaluator.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from core.schemas.inputs import CamelModel


# =============================================================================
# Enums
# =============================================================================

class AcrStatus(str, Enum):
    """Outcome of an ACR evaluation."""
    OK = "OK"
    AUTHENTICATION_REQUIRED = "authentication required"


# =============================================================================
# Decision Record
# =============================================================================

class AcrDecision(CamelModel):
    """
    Decision record for one (session, ACR) evaluation.

    - status: OK or "authentication required"
    - missing_enrollments: catalog methods useful for the ACR the user lacks
    - possible_action_sets: only when authentication is required; each entry
      is one sufficient set of fresh authentications
    """
    status: AcrStatus = Field(..., description="Evaluation outcome")
    missing_enrollments: List[str] = Field(
        default_factory=list,
        description="AMR ids relevant to the ACR the user is not enrolled in"
    )
    possible_action_sets: Optional[List[List[str]]] = Field(
        None,
        description="Distinct sufficient sets of new authentications"
    )

    def is_ok(self) -> bool:
        return self.status == AcrStatus.OK

    def to_dict(self) -> Dict[str, Any]:
        """Plain structured value for transport."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RequiredPatternsResponse(CamelModel):
    """User-independent method patterns able to satisfy an ACR."""
    acr: str = Field(..., description="ACR policy name")
    patterns: List[List[str]] = Field(default_factory=list, description="Distinct AMR id patterns")
