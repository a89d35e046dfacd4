"""
ACR Gate Schemas

Public exports for input and output Pydantic models.
"""

# Input schemas - Catalog
from core.schemas.inputs import (
    Amr,
    AmrType,
    Catalog,
    Policy,
    PolicyOption,
    Requirement,
)

# Input schemas - Users and sessions
from core.schemas.inputs import (
    AuthModel,
    PastAuthAction,
    Session,
    User,
)

# Input schemas - Request payloads
from core.schemas.inputs import (
    EnrollPayload,
    EvaluatePayload,
    RecordActionPayload,
)

# Output schemas
from core.schemas.outputs import (
    AcrDecision,
    AcrStatus,
    RequiredPatternsResponse,
)

__all__ = [
    # Input - Catalog
    "AmrType",
    "Amr",
    "Requirement",
    "PolicyOption",
    "Policy",
    "Catalog",
    # Input - Users and sessions
    "User",
    "PastAuthAction",
    "Session",
    "AuthModel",
    # Input - Payloads
    "EvaluatePayload",
    "RecordActionPayload",
    "EnrollPayload",
    # Output
    "AcrStatus",
    "AcrDecision",
    "RequiredPatternsResponse",
]
