"""
ACR Gate Input Schemas

This module defines Pydantic V2 models for:
- The policy catalog (AMRs and ACR policies)
- Users, sessions and their past authentication actions
- Request payloads for evaluation and model mutations

Python attributes are snake_case; the JSON wire format is camelCase.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


# =============================================================================
# Base
# =============================================================================

class CamelModel(BaseModel):
    """Base model accepting both camelCase and snake_case keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _find_duplicates(ids: List[str]) -> List[str]:
    seen = set()
    duplicates = []
    for item in ids:
        if item in seen and item not in duplicates:
            duplicates.append(item)
        seen.add(item)
    return duplicates


# =============================================================================
# Enums
# =============================================================================

class AmrType(str, Enum):
    """Strength type of an authentication method."""
    SINGLE_FACTOR = "single_factor"
    MULTI_FACTOR = "multi_factor"


# =============================================================================
# Catalog Models
# =============================================================================

class Amr(CamelModel):
    """Authentication Method Reference: one concrete way to prove identity."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Unique method identifier")
    type: AmrType = Field(..., description="single_factor or multi_factor")


class Requirement(CamelModel):
    """One proof of `type` performed within `max_age` seconds of now."""
    model_config = ConfigDict(frozen=True)

    type: AmrType = Field(..., description="Required method strength type")
    max_age: int = Field(..., description="Freshness window in seconds (may be 0 or negative)")


PolicyOption = List[Requirement]
Policy = List[PolicyOption]


class Catalog(CamelModel):
    """
    Configuration side of the model: methods and named policies.

    A policy is an OR of options; each option is an AND of requirements.
    """
    amrs: List[Amr] = Field(default_factory=list, description="Method catalog, in display order")
    acr: Dict[str, Policy] = Field(default_factory=dict, description="Policy name -> options")

    @field_validator("amrs")
    @classmethod
    def check_unique_amr_ids(cls, amrs: List[Amr]) -> List[Amr]:
        duplicates = _find_duplicates([amr.id for amr in amrs])
        if duplicates:
            raise ValueError(f"Duplicate AMR ids: {', '.join(duplicates)}")
        return amrs

    @field_validator("acr")
    @classmethod
    def check_policy_names(cls, acr: Dict[str, Policy]) -> Dict[str, Policy]:
        if any(not name for name in acr):
            raise ValueError("ACR policy names must be non-empty")
        return acr


# =============================================================================
# User & Session Models
# =============================================================================

class User(CamelModel):
    """A user and the methods they are enrolled in."""
    id: str = Field(..., min_length=1, description="Unique user identifier")
    enrolled_means: List[str] = Field(
        default_factory=list,
        description="Enrolled AMR ids (may reference ids absent from the catalog)"
    )


class PastAuthAction(CamelModel):
    """
    Record that a method was performed at some instant.

    `validated_at` is kept as loaded; it is parsed to epoch milliseconds
    at evaluation time and unparsable values are never valid.
    """
    method_id: str = Field(
        ...,
        validation_alias=AliasChoices("methodId", "method_id", "id"),
        serialization_alias="methodId",
        description="AMR id that was validated"
    )
    validated_at: Any = Field(None, description="Epoch milliseconds (number or string) or ISO-8601")


class Session(CamelModel):
    """An authentication session and its append-only action history."""
    id: str = Field(..., min_length=1, description="Unique session identifier")
    user_id: str = Field(..., description="Owning user identifier")
    past_authentication_actions: List[PastAuthAction] = Field(
        default_factory=list,
        description="Past authentication actions, oldest first"
    )


class AuthModel(Catalog):
    """The whole editable model: catalog plus users and sessions."""
    users: List[User] = Field(default_factory=list)
    sessions: List[Session] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_ids(self) -> AuthModel:
        duplicate_users = _find_duplicates([user.id for user in self.users])
        if duplicate_users:
            raise ValueError(f"Duplicate user ids: {', '.join(duplicate_users)}")
        duplicate_sessions = _find_duplicates([session.id for session in self.sessions])
        if duplicate_sessions:
            raise ValueError(f"Duplicate session ids: {', '.join(duplicate_sessions)}")
        return self

    def find_session(self, session_id: str) -> Session | None:
        return next((s for s in self.sessions if s.id == session_id), None)

    def find_user(self, user_id: str) -> User | None:
        return next((u for u in self.users if u.id == user_id), None)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# Request Payloads
# =============================================================================

class EvaluatePayload(CamelModel):
    """Request to evaluate a session against a named ACR."""
    session_id: str = Field(..., min_length=1, description="Session to evaluate")
    acr: str = Field(..., min_length=1, description="Requested ACR policy name")


class RecordActionPayload(CamelModel):
    """Record that the session's user just performed a method."""
    amr_id: str = Field(..., min_length=1, description="AMR id performed now")


class EnrollPayload(CamelModel):
    """Enroll a user in a catalog method."""
    amr_id: str = Field(..., min_length=1, description="AMR id to enroll")
